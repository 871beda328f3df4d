import math

import pandas as pd
import pytest

from mainspecies.selection.coverage import event_coverage, median_event_coverage
from mainspecies.selection.logevent import select_by_logevent_dominance
from mainspecies.selection.proportions import to_proportions
from mainspecies.selection.reconcile import catch_coverage, reconcile
from mainspecies.selection.total import select_by_cumulative_total
from mainspecies.types import NotApplicable, SelectionResult


def _catch() -> pd.DataFrame:
    return pd.DataFrame({
        "SOL": [10.0, 0.0, 5.0],
        "COD": [50.0, 20.0, 0.0],
        "PLE": [0.0, 10.0, 5.0],
        "WHG": [0.0, 0.0, 0.0],
    })


def test_union_sorted_and_coverage():
    catch = _catch()
    hac = SelectionResult("hac", ("PLE",), 4)
    total = SelectionResult("total", ("COD", "SOL"), 4)
    logevent = SelectionResult("logevent", ("COD",), 4)

    final = reconcile(hac, total, logevent, catch)

    assert final.species == ("COD", "PLE", "SOL")
    assert final.pct_catch == pytest.approx(100.0)
    summary = final.method_summary()
    assert summary["method"].tolist() == ["hac", "total", "logevent"]
    assert summary["n_selected"].tolist() == [1, 2, 1]
    assert summary["pct_of_species"].tolist() == [25.0, 50.0, 25.0]


def test_not_applicable_hac_contributes_nothing():
    catch = _catch()
    final = reconcile(
        NotApplicable("clustering disabled"),
        SelectionResult("total", ("COD",), 4),
        SelectionResult("logevent", (), 4),
        catch,
    )
    assert final.species == ("COD",)
    assert final.pct_catch == pytest.approx(70.0)
    assert final.method_summary()["n_selected"].isna().tolist() == [True, False, False]


def test_zero_catch_gives_zero_coverage():
    catch = pd.DataFrame(0.0, index=range(2), columns=["A", "B"])
    empty = SelectionResult("total", (), 2)
    final = reconcile(NotApplicable("n/a"), empty, SelectionResult("logevent", (), 2), catch)
    assert final.species == ()
    assert final.pct_catch == 0.0
    assert catch_coverage(catch, ["A"]) == 0.0


def test_coverage_grows_as_total_threshold_loosens():
    catch = _catch()
    sweep = select_by_cumulative_total(catch)
    logevent = SelectionResult("logevent", (), 4)
    pcts = [
        reconcile(NotApplicable("n/a"), sweep.at(t), logevent, catch).pct_catch
        for t in sweep.thresholds
    ]
    assert all(b >= a for a, b in zip(pcts, pcts[1:]))
    assert pcts[-1] == pytest.approx(100.0)


def test_coverage_grows_as_logevent_threshold_loosens():
    catch = _catch()
    sweep = select_by_logevent_dominance(to_proportions(catch))
    total = SelectionResult("total", (), 4)
    pcts = [
        reconcile(NotApplicable("n/a"), total, sweep.at(t), catch).pct_catch
        for t in sorted(sweep.thresholds, reverse=True)
    ]
    assert all(b >= a for a, b in zip(pcts, pcts[1:]))
    # no species is ever the whole catch of an event
    assert pcts[0] == pytest.approx(0.0)
    assert pcts[-1] == pytest.approx(100.0)


def test_event_coverage_diagnostics():
    catch = pd.DataFrame({"A": [3.0, 0.0, 1.0], "B": [1.0, 0.0, 1.0]})
    cov = event_coverage(catch, ["A"])
    assert cov[0] == pytest.approx(75.0)
    assert math.isnan(cov[1])
    assert cov[2] == pytest.approx(50.0)
    assert median_event_coverage(catch, ["A"]) == pytest.approx(62.5)
    assert median_event_coverage(catch, []) == 0.0
