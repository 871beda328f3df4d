from __future__ import annotations
import logging
from typing import Iterable

import pandas as pd

from mainspecies.config import THRESHOLDS
from mainspecies.types import SelectionResult, ThresholdSweep

logger = logging.getLogger(__name__)


def select_by_logevent_dominance(proportions: pd.DataFrame, thresholds: Iterable[int] = THRESHOLDS) -> ThresholdSweep:
    """
    Keep, for each threshold, every species making up at least that
    percentage of the catch of at least one event (one row).
    """
    n_species = proportions.shape[1]
    peak = proportions.fillna(0.0).max(axis=0) if len(proportions) else pd.Series(0.0, index=proportions.columns)

    selections: dict[int, SelectionResult] = {}
    for t in sorted(thresholds):
        chosen = tuple(peak.index[(peak >= t).to_numpy()])
        selections[t] = SelectionResult("logevent", chosen, n_species)
        logger.debug(f"Logevent method, threshold {t}%: {len(chosen)} species")

    return ThresholdSweep("logevent", selections, baseline=n_species)
