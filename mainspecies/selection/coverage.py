from __future__ import annotations
from typing import Iterable

import numpy as np
import pandas as pd

from mainspecies.types import CoverageDiagnostics, HACOutcome, NotApplicable, ThresholdSweep


def event_coverage(catch: pd.DataFrame, species: Iterable[str]) -> pd.Series:
    """% of each event's catch taken by `species`; NaN for events with no catch."""
    values = catch.fillna(0.0)
    totals = values.sum(axis=1)
    kept = values[list(species)].sum(axis=1)
    return kept / totals.where(totals != 0) * 100.0


def median_event_coverage(catch: pd.DataFrame, species: Iterable[str]) -> float:
    return float(event_coverage(catch, species).median())


def coverage_diagnostics(
    catch: pd.DataFrame,
    hac: HACOutcome,
    total: ThresholdSweep,
    logevent: ThresholdSweep,
) -> CoverageDiagnostics:
    # threshold 0 is anchored like the counts: nothing for total, everything for logevent
    rows = {0: {"total": 0.0, "logevent": 100.0}}
    for t in total.thresholds:
        rows[t] = {
            "total": median_event_coverage(catch, total.at(t).species),
            "logevent": median_event_coverage(catch, logevent.at(t).species),
        }
    by_threshold = pd.DataFrame.from_dict(rows, orient="index").rename_axis("threshold")

    hac_median = np.nan if isinstance(hac, NotApplicable) else median_event_coverage(catch, hac.species)
    return CoverageDiagnostics(hac=hac_median, by_threshold=by_threshold)
