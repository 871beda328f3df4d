import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from mainspecies.cleaning import drop_empty_events, prepare_catch_table
from mainspecies.cli.explore_species import main
from mainspecies.io import load_catch_table, write_exploration
from mainspecies.selection import select_main_species
from mainspecies.types import HACSelection
from mainspecies.viz.charts import cut_height, dendrogram_chart, threshold_counts_chart


def _table(n_events: int = 50, n_species: int = 12, seed: int = 4) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    values = rng.gamma(0.4, 1.0, size=(n_events, n_species)) * rng.gamma(0.5, 100.0, size=n_species)
    values[rng.random((n_events, n_species)) < 0.5] = 0.0
    df = pd.DataFrame(values.round(1), columns=[f"SP{i:02d}" for i in range(n_species)])
    df.insert(0, "trip_id", [f"T{i}" for i in range(n_events)])
    return df


def test_load_detects_event_column(tmp_path: Path):
    p = tmp_path / "catch.csv"
    _table().to_csv(p, index=False)
    df = load_catch_table(p)
    assert df.columns[0] == "LE_ID"
    assert df.shape == (50, 13)


def test_load_errors(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_catch_table(tmp_path / "missing.csv")

    txt = tmp_path / "catch.txt"
    txt.write_text("LE_ID,A\n1,2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported"):
        load_catch_table(txt)

    no_id = tmp_path / "no_id.csv"
    pd.DataFrame({"A": [1.0], "B": [2.0]}).to_csv(no_id, index=False)
    with pytest.raises(ValueError, match="event identifier"):
        load_catch_table(no_id)


def test_cleaning_helpers():
    df = pd.DataFrame({"LE_ID": [1, 2, 3], " COD ": ["5", None, "x"], "SOL": [0.0, 0.0, 1.0]})
    out = prepare_catch_table(df)
    assert out.columns.tolist() == ["LE_ID", "COD", "SOL"]
    assert out["COD"].tolist() == [5.0, 0.0, 0.0]
    assert drop_empty_events(out)["LE_ID"].tolist() == [1, 3]


def test_write_exploration(tmp_path: Path):
    df = _table().rename(columns={"trip_id": "LE_ID"})
    exp = select_main_species(df, diagnostics=True)
    written = write_exploration(exp, tmp_path, "otb")

    summary = json.loads(written["summary"].read_text(encoding="utf-8"))
    assert summary["nbAllSpecies"] == 12
    assert summary["namesMainSpeciesAll"] == list(exp.final.species)
    assert len(summary["nbMainSpeciesTotal"]) == 21
    assert summary["nbMainSpeciesLogevent"][0] == 12

    counts = pd.read_csv(written["counts"])
    assert counts["threshold"].tolist() == list(range(0, 101, 5))
    assert {"total", "logevent", "median_coverage_total", "median_coverage_logevent"} <= set(counts.columns)


def test_cli_end_to_end(tmp_path: Path):
    src = tmp_path / "catch.csv"
    _table().to_csv(src, index=False)
    out = tmp_path / "out"

    exp = main(["--input", str(src), "--outdir", str(out), "--name", "run", "--diagnostics", "--charts"])

    assert (out / "run_main_species.json").exists()
    assert (out / "run_threshold_counts.csv").exists()
    assert (out / "run_number_of_main_species.html").exists()
    assert (out / "run_median_coverage.html").exists()
    if isinstance(exp.hac, HACSelection):
        assert (out / f"run_HAC_dendrogram_final_k{exp.hac.k_final}.html").exists()


def test_cli_without_hac(tmp_path: Path):
    src = tmp_path / "catch.csv"
    _table().to_csv(src, index=False)
    exp = main(["--input", str(src), "--outdir", str(tmp_path), "--no-hac", "--drop-empty"])
    summary = json.loads((tmp_path / "selection_main_species.json").read_text(encoding="utf-8"))
    assert summary["nbMainSpeciesHAC"] is None
    assert summary["hacNotApplicable"] == "clustering disabled"
    assert exp.final.species == tuple(summary["namesMainSpeciesAll"])


def test_charts_build():
    df = _table().rename(columns={"trip_id": "LE_ID"})
    exp = select_main_species(df)
    assert "layer" in threshold_counts_chart(exp).to_dict() or "mark" in threshold_counts_chart(exp).to_dict()
    if isinstance(exp.hac, HACSelection):
        spec = dendrogram_chart(exp.hac).to_dict()
        assert len(spec["layer"]) == 3


def test_cut_height_separates_k_clusters():
    Z = np.array([[0, 1, 1.0, 2], [2, 3, 2.0, 2], [4, 5, 10.0, 4]])
    assert cut_height(Z, 2) == pytest.approx(6.0)
    assert cut_height(Z, 3) == pytest.approx(1.5)
    assert cut_height(Z, 4) == 0.0


def test_cut_height_steps_below_tied_merges():
    Z = np.array([[0, 1, 1.0, 2], [2, 3, 2.0, 2], [4, 5, 2.0, 4]])
    h = cut_height(Z, 2)
    assert h == pytest.approx(1.5)
    assert h not in Z[:, 2]


def test_load_rejects_event_column_clash(tmp_path: Path):
    p = tmp_path / "catch.csv"
    df = _table()
    df.insert(1, "LE_ID", range(len(df)))
    df.to_csv(p, index=False)
    with pytest.raises(ValueError, match="clashes with an existing 'LE_ID'"):
        load_catch_table(p, event_col="trip_id")
    # asking for LE_ID itself is fine
    assert load_catch_table(p, event_col="LE_ID")["LE_ID"].tolist() == list(range(50))
