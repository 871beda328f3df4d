from __future__ import annotations
import json
import logging
from pathlib import Path

import pandas as pd

from mainspecies.config import EVENT_ID_CANDIDATES, EVENT_ID_COL
from mainspecies.types import SpeciesExploration

logger = logging.getLogger(__name__)

READERS = {
    ".parquet": pd.read_parquet,
    ".feather": pd.read_feather,
    ".csv": pd.read_csv,
}


def _pick_col(df: pd.DataFrame, candidates: list[str]) -> str | None:
    # exact first, then case-insensitive
    for c in candidates:
        if c in df.columns:
            return c
    lower = {str(c).lower(): c for c in df.columns}
    for c in candidates:
        if c.lower() in lower:
            return lower[c.lower()]
    return None


def load_catch_table(path: str | Path, event_col: str | None = None) -> pd.DataFrame:
    """
    Read an event x species catch table (.csv, .parquet or .feather).
    The event identifier column is renamed to the canonical LE_ID; when
    `event_col` is not given it is detected among the usual names.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Catch table not found: {p.resolve()}")

    reader = READERS.get(p.suffix.lower())
    if reader is None:
        raise ValueError(f"Unsupported catch table format '{p.suffix}' (expected one of {sorted(READERS)})")

    df = reader(p)
    col = _pick_col(df, [event_col] if event_col else EVENT_ID_CANDIDATES)
    if col is None:
        wanted = event_col or EVENT_ID_CANDIDATES
        raise ValueError(f"No event identifier column found in {p.name} (looked for {wanted})")
    if col != EVENT_ID_COL:
        if EVENT_ID_COL in df.columns:
            raise ValueError(
                f"Event column '{col}' clashes with an existing '{EVENT_ID_COL}' column in {p.name}; "
                f"drop one of them or pick '{EVENT_ID_COL}' as the event column"
            )
        df = df.rename(columns={col: EVENT_ID_COL})

    logger.debug(f"Loaded {p.name}: {len(df):,} events x {df.shape[1] - 1} species")
    return df


def write_exploration(exploration: SpeciesExploration, outdir: Path, name: str = "selection") -> dict[str, Path]:
    """Write the JSON summary and threshold-count table of one run."""
    outdir.mkdir(parents=True, exist_ok=True)

    summary_path = outdir / f"{name}_main_species.json"
    summary_path.write_text(json.dumps(exploration.to_dict(), indent=2), encoding="utf-8")
    logger.info(f"Wrote summary -> {summary_path}")

    counts_path = outdir / f"{name}_threshold_counts.csv"
    counts = exploration.threshold_counts()
    if exploration.coverage is not None:
        medians = exploration.coverage.by_threshold.add_prefix("median_coverage_")
        counts = counts.join(medians)
    counts.reset_index().to_csv(counts_path, index=False)
    logger.info(f"Wrote threshold counts -> {counts_path}")

    return {"summary": summary_path, "counts": counts_path}
