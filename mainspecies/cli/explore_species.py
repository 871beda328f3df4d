# mainspecies/cli/explore_species.py
"""
Explore which species of a logbook catch table should be kept as main
(target) species.

Usage examples:
  # 1) All three methods, results written to data/selection:
  python -m mainspecies.cli.explore_species \
    --input data/processed/eflalo_OTB_euro.csv \
    --outdir data/selection \
    --name metier_analysis_OTB

  # 2) Large table: skip the HAC method, add coverage diagnostics and charts:
  python -m mainspecies.cli.explore_species \
    --input data/processed/eflalo_OTB_euro.parquet \
    --no-hac --diagnostics --charts

Notes:
- Input: one row per event, an event id column (LE_ID or --event-col) and one
  numeric column per species.
- Outputs, prefixed with --name:
    <name>_main_species.json, <name>_threshold_counts.csv
  and with --charts the Altair charts as .html files.
"""

from __future__ import annotations
import argparse
import logging
from pathlib import Path

from mainspecies.cleaning import drop_empty_events, standardize_headers
from mainspecies.config import EVENT_ID_COL, OUT_DIR
from mainspecies.io import load_catch_table, write_exploration
from mainspecies.selection import select_main_species
from mainspecies.types import HACSelection, SpeciesExploration
from mainspecies.viz.charts import coverage_chart, dendrogram_snapshots, threshold_counts_chart


def _setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )


def write_charts(exploration: SpeciesExploration, outdir: Path, name: str) -> list[Path]:
    outdir.mkdir(parents=True, exist_ok=True)
    charts = {"number_of_main_species": threshold_counts_chart(exploration)}
    if exploration.coverage is not None:
        charts["median_coverage"] = coverage_chart(exploration.coverage, exploration.hac)
    if isinstance(exploration.hac, HACSelection):
        charts.update({f"HAC_dendrogram_{key}": ch for key, ch in dendrogram_snapshots(exploration.hac).items()})

    written = []
    for key, chart in charts.items():
        path = outdir / f"{name}_{key}.html"
        chart.save(str(path))
        logging.info(f"Wrote chart -> {path}")
        written.append(path)
    return written


def summarize(exploration: SpeciesExploration) -> dict:
    hac = exploration.hac
    return {
        "species": exploration.n_species,
        "events": exploration.meta.get("n_events"),
        "hac": hac.n_selected if isinstance(hac, HACSelection) else "n/a",
        f"total@{exploration.total_reference}": exploration.total.at(exploration.total_reference).n_selected,
        f"logevent@{exploration.logevent_reference}": exploration.logevent.at(exploration.logevent_reference).n_selected,
        "final": exploration.final.n_selected,
        "pct_catch": round(exploration.final.pct_catch, 2),
    }


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Select the main species of a logbook catch table.")
    parser.add_argument("--input", type=Path, required=True, help="Catch table (.csv, .parquet or .feather)")
    parser.add_argument("--outdir", type=Path, default=OUT_DIR, help="Destination directory for results")
    parser.add_argument("--name", default="selection", help="Analysis name used to prefix output files")
    parser.add_argument("--event-col", default=None, help=f"Event id column (default: detect, e.g. {EVENT_ID_COL})")
    parser.add_argument("--no-hac", action="store_true", help="Skip the HAC method (very large species lists)")
    parser.add_argument("--diagnostics", action="store_true", help="Compute median per-event catch coverage")
    parser.add_argument("--drop-empty", action="store_true", help="Drop events with no catch before selecting")
    parser.add_argument("--charts", action="store_true", help="Also write Altair charts as HTML")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    logging.info("Reading catch table…")
    df = load_catch_table(args.input, event_col=args.event_col)
    logging.info(f"Raw shape: {df.shape[0]:,} events × {df.shape[1] - 1} species")

    if args.drop_empty:
        before = len(df)
        df = drop_empty_events(standardize_headers(df), EVENT_ID_COL)
        logging.info(f"Dropped {before - len(df):,} events with no catch")

    exploration = select_main_species(
        df,
        event_col=EVENT_ID_COL,
        run_clustering=not args.no_hac,
        diagnostics=args.diagnostics,
    )

    written = write_exploration(exploration, args.outdir, args.name)
    if args.charts:
        write_charts(exploration, args.outdir, args.name)

    logging.info(f"[Summary] {summarize(exploration)} -> {written['summary']}")
    logging.info(f"Main species: {', '.join(map(str, exploration.final.species)) or '(none)'}")
    return exploration


if __name__ == "__main__":
    main()
