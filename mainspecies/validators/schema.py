from __future__ import annotations
from typing import Iterable, Mapping

import pandas as pd

from mainspecies.config import EVENT_ID_COL


class InconsistentShapeError(ValueError):
    """Catch rows do not share one fixed set of species columns."""


def catch_table_from_records(
    records: Iterable[Mapping[str, object]],
    event_col: str = EVENT_ID_COL,
) -> pd.DataFrame:
    """
    Build a catch table from per-event mappings {event_col: id, species: qty, ...}.
    Every record must carry the same species keys; missing quantities (None/NaN)
    are allowed and later read as zero.
    """
    rows = list(records)
    if not rows:
        return pd.DataFrame(columns=[event_col])

    species: list[str] | None = None
    for i, rec in enumerate(rows):
        if event_col not in rec:
            raise InconsistentShapeError(f"Record {i} has no '{event_col}' field")
        keys = [k for k in rec.keys() if k != event_col]
        if species is None:
            species = keys
        elif set(keys) != set(species):
            extra = sorted(set(keys) - set(species))
            missing = sorted(set(species) - set(keys))
            raise InconsistentShapeError(
                f"Record {i} species columns differ from record 0 (extra: {extra}, missing: {missing})"
            )

    return pd.DataFrame(rows, columns=[event_col, *species])


def validate_catch_table(df: pd.DataFrame, event_col: str = EVENT_ID_COL) -> None:
    if event_col not in df.columns:
        raise InconsistentShapeError(f"Missing event column '{event_col}'")

    dup = df.columns[df.columns.duplicated()].tolist()
    if dup:
        raise InconsistentShapeError(f"Duplicate species codes: {sorted(map(str, dup))}")

    for c in df.columns:
        if c == event_col:
            continue
        # allow NaN but ensure numeric coercion would work
        values = pd.to_numeric(df[c], errors="raise")
        if (values.dropna() < 0).any():
            raise ValueError(f"Negative catch values for species {c}")
