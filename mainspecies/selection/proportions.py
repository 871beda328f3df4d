from __future__ import annotations
import pandas as pd


def to_proportions(catch: pd.DataFrame) -> pd.DataFrame:
    """
    Percentage of each event's total catch taken by each species.
    Rows sum to 100; events with no catch stay at zero.
    """
    values = catch.fillna(0.0).astype("float64")
    totals = values.sum(axis=1)
    out = values.div(totals.where(totals != 0), axis=0) * 100.0
    return out.fillna(0.0)
