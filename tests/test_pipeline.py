import numpy as np
import pandas as pd
import pytest

from mainspecies import select_main_species
from mainspecies.types import HACSelection, NotApplicable
from mainspecies.validators.schema import InconsistentShapeError, catch_table_from_records


def _abc_table() -> pd.DataFrame:
    return pd.DataFrame({
        "LE_ID": ["e1", "e2", "e3", "e4"],
        "A": [100.0, 100.0, 0.0, 0.0],
        "B": [0.0, 0.0, 100.0, 0.0],
        "C": [0.0, 0.0, 0.0, 0.0],
    })


def _random_table(seed: int = 21, n_events: int = 80, n_species: int = 18) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    scale = rng.gamma(0.5, 100.0, size=n_species)
    values = rng.gamma(0.4, 1.0, size=(n_events, n_species)) * scale
    values[rng.random((n_events, n_species)) < 0.6] = 0.0
    df = pd.DataFrame(values, columns=[f"SP{i:02d}" for i in range(n_species)])
    df.insert(0, "LE_ID", [f"ev{i}" for i in range(n_events)])
    return df


def test_abc_scenario():
    exp = select_main_species(_abc_table())
    assert isinstance(exp.hac, NotApplicable)
    assert exp.logevent.at(100).species == ("A", "B")
    assert exp.total.at(95).species == ("A", "B")
    assert exp.final.species == ("A", "B")
    assert exp.final.pct_catch == pytest.approx(100.0)
    assert exp.n_species == 3


def test_uniform_profiles():
    df = pd.DataFrame(10.0, index=range(6), columns=list("ABCDEF"))
    df.insert(0, "LE_ID", range(6))
    exp = select_main_species(df)
    assert isinstance(exp.hac, NotApplicable)
    assert exp.total.at(95).n_selected == 6
    assert exp.logevent.at(100).species == ()
    assert exp.logevent.at(15).n_selected == 6
    assert exp.final.n_selected == 6


def test_run_twice_identical():
    df = _random_table()
    first = select_main_species(df, diagnostics=True)
    second = select_main_species(df, diagnostics=True)
    assert first.to_dict() == second.to_dict()
    assert first.hac == second.hac
    assert first.final == second.final


def test_final_is_union_of_reference_selections():
    exp = select_main_species(_random_table())
    expected = set(exp.total.at(95).species) | set(exp.logevent.at(100).species)
    if isinstance(exp.hac, HACSelection):
        expected |= set(exp.hac.species)
    assert exp.final.species == tuple(sorted(expected))
    assert 0.0 < exp.final.pct_catch <= 100.0


def test_clustering_switch_leaves_other_methods_alone():
    df = _random_table()
    with_hac = select_main_species(df)
    without = select_main_species(df, run_clustering=False)
    assert isinstance(without.hac, NotApplicable)
    assert without.hac.reason == "clustering disabled"
    assert without.total.at(95) == with_hac.total.at(95)
    assert without.logevent.at(100) == with_hac.logevent.at(100)
    assert set(without.final.species) <= set(with_hac.final.species)


def test_diagnostics_coverage():
    exp = select_main_species(_random_table(), diagnostics=True)
    cov = exp.coverage.by_threshold
    assert cov.index[0] == 0 and cov.index[-1] == 100
    assert cov.loc[0, "logevent"] == 100.0
    assert cov.loc[100, "total"] == pytest.approx(100.0)
    assert select_main_species(_random_table()).coverage is None


def test_degenerate_tables():
    zero = pd.DataFrame({"LE_ID": [1, 2], "A": [0.0, 0.0], "B": [0.0, 0.0]})
    exp = select_main_species(zero)
    assert exp.final.species == ()
    assert exp.final.pct_catch == 0.0

    no_species = pd.DataFrame({"LE_ID": [1, 2]})
    exp = select_main_species(no_species)
    assert exp.n_species == 0
    assert exp.final.species == ()


def test_missing_catch_read_as_zero():
    df = _abc_table()
    df.loc[3, "C"] = np.nan
    assert select_main_species(df).final.species == ("A", "B")


def test_rejects_bad_tables():
    with pytest.raises(InconsistentShapeError):
        select_main_species(pd.DataFrame({"trip": [1], "A": [1.0]}))

    dup = pd.DataFrame([[1, 2.0, 3.0]], columns=["LE_ID", "A", "A"])
    with pytest.raises(InconsistentShapeError):
        select_main_species(dup)

    with pytest.raises(ValueError, match="Negative"):
        select_main_species(pd.DataFrame({"LE_ID": [1], "A": [-1.0]}))

    with pytest.raises(ValueError):
        select_main_species(pd.DataFrame({"LE_ID": [1], "A": ["lots"]}))

    with pytest.raises(ValueError, match="Reference threshold"):
        select_main_species(_abc_table(), thresholds=[10, 20])


def test_records_with_mismatched_species():
    ok = catch_table_from_records([
        {"LE_ID": "a", "COD": 1.0, "SOL": 2.0},
        {"LE_ID": "b", "SOL": None, "COD": 3.0},
    ])
    assert ok.columns.tolist() == ["LE_ID", "COD", "SOL"]

    with pytest.raises(InconsistentShapeError):
        catch_table_from_records([
            {"LE_ID": "a", "COD": 1.0},
            {"LE_ID": "b", "COD": 1.0, "PLE": 2.0},
        ])
