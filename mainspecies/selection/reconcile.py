from __future__ import annotations
import logging

import pandas as pd

from mainspecies.types import FinalSelection, HACOutcome, NotApplicable, SelectionResult

logger = logging.getLogger(__name__)


def catch_coverage(catch: pd.DataFrame, species) -> float:
    """Percentage of the grand total catch taken by `species` (0 when nothing was caught)."""
    totals = catch.fillna(0.0).sum(axis=0)
    grand = float(totals.sum())
    if grand == 0 or not len(species):
        return 0.0
    return float(totals.reindex(list(species)).fillna(0.0).sum()) / grand * 100.0


def reconcile(
    hac: HACOutcome,
    total: SelectionResult,
    logevent: SelectionResult,
    catch: pd.DataFrame,
) -> FinalSelection:
    """
    Union of the species retained by the three methods, sorted alphabetically,
    with the share of the total catch they represent.
    """
    pooled: set[str] = set(total.species) | set(logevent.species)
    if isinstance(hac, NotApplicable):
        logger.info(f"HAC not applicable ({hac.reason}); reconciling total and logevent only")
    else:
        pooled |= set(hac.species)

    species = tuple(sorted(pooled))
    pct = catch_coverage(catch, species)
    logger.info(f"Final selection: {len(species)} of {catch.shape[1]} species, {pct:.2f}% of total catch")
    return FinalSelection(
        species=species,
        pct_catch=pct,
        n_total=catch.shape[1],
        methods=(hac, total, logevent),
    )
