from __future__ import annotations
import logging
from typing import Iterable

import numpy as np
import pandas as pd

from mainspecies.config import THRESHOLDS
from mainspecies.types import SelectionResult, ThresholdSweep

logger = logging.getLogger(__name__)


def rank_by_total(catch: pd.DataFrame) -> pd.Series:
    """
    Percentage of the grand total caught per species, largest first.
    Equal shares keep column order.
    """
    totals = catch.fillna(0.0).sum(axis=0).astype("float64")
    grand = float(totals.sum())
    shares = totals / grand * 100.0 if grand > 0 else totals * 0.0
    order = np.argsort(-shares.to_numpy(), kind="stable")
    return shares.iloc[order]


def select_by_cumulative_total(catch: pd.DataFrame, thresholds: Iterable[int] = THRESHOLDS) -> ThresholdSweep:
    """
    Ranked species are taken until their cumulated share passes each
    threshold: the prefix whose cumulative share stays <= t, plus the next
    species. Every species is retained at 100%.
    """
    n_species = catch.shape[1]
    ranked = rank_by_total(catch)
    names = tuple(ranked.index)
    cumulative = ranked.cumsum().to_numpy()
    degenerate = n_species == 0 or float(ranked.sum()) == 0.0
    if degenerate:
        logger.warning("Total method: no catch recorded, every selection is empty")

    selections: dict[int, SelectionResult] = {}
    for t in sorted(thresholds):
        if degenerate:
            n = 0
        elif t >= 100:
            n = n_species
        else:
            n = min(int((cumulative <= t).sum()) + 1, n_species)
        selections[t] = SelectionResult("total", names[:n], n_species)
        logger.debug(f"Total method, threshold {t}%: {n} species")

    return ThresholdSweep("total", selections, baseline=0, ranking=names)
