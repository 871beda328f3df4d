# mainspecies/selection/hac.py
"""
HAC species selection.

Species (not events) are clustered on their profile of catch proportions
across events, with Ward linkage over Euclidean distances. A first-order
scree test on the merge heights gives the initial number of clusters; the
cluster with the lowest mean catch share is the "residual" (non-target)
group. Finer cuts of the same tree are then tried to see whether single
species were wrongly pooled into the residual group.
"""

from __future__ import annotations
import logging
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import cut_tree, linkage

from mainspecies.config import MIN_SPECIES_FOR_HAC
from mainspecies.types import DendrogramCut, HACOutcome, HACSelection, NotApplicable

logger = logging.getLogger(__name__)


class Refinement(NamedTuple):
    residual: Tuple[str, ...]
    k: int
    stabilized: bool
    cuts: Tuple[DendrogramCut, ...]


def build_dendrogram(proportions: pd.DataFrame) -> np.ndarray:
    """Ward linkage of the species profiles (species are the rows)."""
    profiles = proportions.T.to_numpy(dtype="float64")
    return linkage(profiles, method="ward", metric="euclidean")


def scree(heights: Sequence[float]) -> pd.DataFrame:
    """
    Scree table of the merge heights sorted decreasing:
      delta[i]   = eig[i] - eig[i-1]        (from the 2nd height)
      epsilon[i] = delta[i] - delta[i-1]    (from the 3rd height)
    Indexed from 1, like the cluster counts it is read against.
    """
    eig = np.sort(np.asarray(heights, dtype="float64"))[::-1]
    delta = np.zeros_like(eig)
    epsilon = np.zeros_like(eig)
    if len(eig) > 1:
        delta[1:] = np.diff(eig)
    if len(eig) > 2:
        epsilon[2:] = np.diff(delta[1:])
    return pd.DataFrame(
        {"eig": eig, "delta": delta, "epsilon": epsilon},
        index=pd.RangeIndex(1, len(eig) + 1, name="k"),
    )


def scree_cluster_count(heights: Sequence[float]) -> Optional[int]:
    """First k whose epsilon is negative, or None."""
    table = scree(heights)
    hits = table.index[table["epsilon"] < 0]
    return int(hits[0]) if len(hits) else None


def cut(Z: np.ndarray, k: int, leaves: Sequence[str]) -> pd.Series:
    labels = cut_tree(Z, n_clusters=k).flatten()
    return pd.Series(labels, index=list(leaves), name=f"k{k}")


def species_shares(proportions: pd.DataFrame, catch: Optional[pd.DataFrame] = None) -> pd.Series:
    """Share of each species in the catch: of the grand total when raw catch is given."""
    if catch is not None:
        totals = catch.fillna(0.0).sum(axis=0)
        grand = float(totals.sum())
        if grand > 0:
            return totals / grand * 100.0
    return proportions.mean(axis=0)


def residual_cluster(labels: pd.Series, shares: pd.Series) -> int:
    """Label of the cluster with the lowest mean species share (first one on ties)."""
    means = shares.reindex(labels.index).groupby(labels, sort=False).mean()
    return int(means.idxmin())


def refine_residuals(
    Z: np.ndarray,
    leaves: Sequence[str],
    residual: Sequence[str],
    k0: int,
) -> Refinement:
    """
    Cut the tree at k0+1, k0+2, ... and watch the residual species.
    A split into groups of 2+ species means the residual group is stable;
    a split that isolates one species promotes that species out of the
    residual group and the search continues one level down. If the bound is
    reached first, the k0 partition is kept.
    """
    n_species = len(leaves)
    working: List[str] = list(residual)
    cuts: List[DendrogramCut] = []

    n = 1
    while n < n_species - k0 - 1:
        k = k0 + n
        step = cut(Z, k, leaves)[working]
        if step.nunique() == 1:
            logger.debug(f"k={k}: no residual cut")
            n += 1
            continue

        cuts.append(DendrogramCut("residual_split", k, tuple(working)))
        sizes = step.groupby(step, sort=False).size()
        if sizes.min() > 1:
            logger.debug(f"k={k}: residual species split into groups of {sizes.tolist()}, stable")
            return Refinement(tuple(working), k, True, tuple(cuts))

        alone = sizes.idxmin()
        promoted = step.index[(step == alone).to_numpy()].tolist()
        logger.debug(f"k={k}: promoting {promoted} out of the residual species")
        working = [s for s in working if s not in promoted]
        n += 1

    logger.debug(f"No stable residual cut below k={k0}; keeping the initial partition")
    return Refinement(tuple(residual), k0, False, tuple(cuts))


def select_by_clustering(
    proportions: pd.DataFrame,
    catch: Optional[pd.DataFrame] = None,
    min_species: int = MIN_SPECIES_FOR_HAC,
) -> HACOutcome:
    leaves = list(proportions.columns)
    n_species = len(leaves)
    if n_species < min_species:
        return NotApplicable(f"{n_species} species; clustering needs at least {min_species}")
    if len(proportions) == 0:
        return NotApplicable("no events to build species profiles from")

    Z = build_dendrogram(proportions)
    k0 = scree_cluster_count(Z[:, 2])
    if k0 is None:
        return NotApplicable("scree test found no negative second difference in the merge heights")

    labels = cut(Z, k0, leaves)
    res_label = residual_cluster(labels, species_shares(proportions, catch))
    residual = [s for s in leaves if labels[s] == res_label]
    logger.info(f"HAC: {k0} clusters by scree test, {len(residual)} residual species")

    refined = refine_residuals(Z, leaves, residual, k0)
    dropped = set(refined.residual)
    main = tuple(s for s in leaves if s not in dropped)

    cuts = (
        DendrogramCut("initial", k0, tuple(residual)),
        *refined.cuts,
        DendrogramCut("final", refined.k, refined.residual),
    )
    return HACSelection(
        method="hac",
        species=main,
        n_total=n_species,
        k_initial=k0,
        k_final=refined.k,
        stabilized=refined.stabilized,
        linkage=Z,
        leaves=tuple(leaves),
        cuts=cuts,
    )
