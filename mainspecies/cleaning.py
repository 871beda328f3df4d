# mainspecies/cleaning.py
from __future__ import annotations
import pandas as pd

from mainspecies.config import EVENT_ID_COL


def standardize_headers(df: pd.DataFrame, event_col: str = EVENT_ID_COL) -> pd.DataFrame:
    """Trim species codes; the event column keeps its name."""
    rename_map = {c: str(c).strip() for c in df.columns if c != event_col}
    return df.rename(columns=rename_map)


def clean_types(df: pd.DataFrame, event_col: str = EVENT_ID_COL) -> pd.DataFrame:
    """Coerce species columns to float and read missing catch as zero."""
    out = df.copy()
    for c in out.columns:
        if c == event_col:
            continue
        out[c] = pd.to_numeric(out[c], errors="coerce").fillna(0.0).astype("float64")
    return out


def species_frame(df: pd.DataFrame, event_col: str = EVENT_ID_COL) -> pd.DataFrame:
    """Species columns only, positionally indexed."""
    return df.drop(columns=[event_col]).reset_index(drop=True)


def drop_empty_events(df: pd.DataFrame, event_col: str = EVENT_ID_COL) -> pd.DataFrame:
    """Remove events whose total catch is zero."""
    totals = species_frame(clean_types(df, event_col), event_col).sum(axis=1)
    return df.loc[(totals > 0).to_numpy()].reset_index(drop=True)


def prepare_catch_table(df: pd.DataFrame, event_col: str = EVENT_ID_COL) -> pd.DataFrame:
    """Unified preprocessing before species selection."""
    out = standardize_headers(df, event_col)
    out = clean_types(out, event_col)
    return out
