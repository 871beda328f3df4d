# mainspecies/viz/charts.py
from __future__ import annotations
import altair as alt
import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import dendrogram

from mainspecies.types import CoverageDiagnostics, HACOutcome, HACSelection, SpeciesExploration

METHOD_COLORS = alt.Scale(domain=["hac", "total", "logevent"], range=["#d62728", "#1f77b4", "#2ca02c"])
METHOD_LABELS = {"hac": "HAC", "total": "PerTotal", "logevent": "PerLogevent"}


def _empty(note: str) -> alt.Chart:
    return alt.Chart(pd.DataFrame({"note": [note]})).mark_text(size=16).encode(text="note")


def _hac_rule(hac: HACOutcome, value: float, field: str) -> alt.Chart | None:
    if not isinstance(hac, HACSelection) or pd.isna(value):
        return None
    df = pd.DataFrame({field: [value], "method": ["hac"]})
    return (
        alt.Chart(df)
        .mark_rule(strokeWidth=3)
        .encode(
            y=alt.Y(f"{field}:Q"),
            color=alt.Color("method:N", scale=METHOD_COLORS),
            tooltip=[alt.Tooltip(f"{field}:Q", title="HAC", format=",.1f")],
        )
    )


def threshold_counts_chart(exploration: SpeciesExploration) -> alt.Chart:
    """Number of main species against the percentage threshold, per method."""
    counts = (
        exploration.threshold_counts()
        .reset_index()
        .melt(id_vars="threshold", var_name="method", value_name="n_species")
    )
    lines = (
        alt.Chart(counts)
        .mark_line(point=True, strokeWidth=3)
        .encode(
            x=alt.X("threshold:Q", title="Threshold (%)", scale=alt.Scale(domain=[0, 100])),
            y=alt.Y("n_species:Q", title="Number of species"),
            color=alt.Color("method:N", scale=METHOD_COLORS, legend=alt.Legend(title="Method")),
            tooltip=["method:N", "threshold:Q", "n_species:Q"],
        )
    )
    hac = exploration.hac
    rule = _hac_rule(hac, hac.n_selected if isinstance(hac, HACSelection) else np.nan, "n_species")
    chart = lines + rule if rule is not None else lines
    return chart.properties(height=320, title="Number of main species").interactive()


def coverage_chart(coverage: CoverageDiagnostics | None, hac: HACOutcome) -> alt.Chart:
    """Median % of each event's catch represented by the main species."""
    if coverage is None:
        return _empty("Diagnostics not computed")
    df = (
        coverage.by_threshold
        .reset_index()
        .melt(id_vars="threshold", var_name="method", value_name="median_pct")
    )
    lines = (
        alt.Chart(df)
        .mark_line(point=True)
        .encode(
            x=alt.X("threshold:Q", title="Threshold (%)"),
            y=alt.Y("median_pct:Q", title="Median % of event catch", scale=alt.Scale(domain=[0, 100])),
            color=alt.Color("method:N", scale=METHOD_COLORS, legend=alt.Legend(title="Method")),
            tooltip=["method:N", "threshold:Q", alt.Tooltip("median_pct:Q", format=".1f")],
        )
    )
    rule = _hac_rule(hac, coverage.hac, "median_pct")
    chart = lines + rule if rule is not None else lines
    return chart.properties(height=320, title="Median percentage of catch represented by main species by logevent")


def cut_height(Z: np.ndarray, k: int) -> float:
    """A height at which the tree falls into exactly k clusters."""
    h = np.sort(Z[:, 2])
    n = len(h) + 1
    if k >= n:
        return 0.0
    if k <= 1:
        return float(h[-1]) * 1.05
    lower, upper = h[n - k - 1], h[n - k]
    if lower == upper:
        # tied merges cannot be split; draw just under them
        below = h[h < upper]
        lower = below[-1] if len(below) else 0.0
    return float((lower + upper) / 2)


def dendrogram_chart(hac: HACSelection, k: int | None = None, title: str = "HAC dendrogram") -> alt.Chart:
    """Species dendrogram with the cut at `k` clusters (the final cut by default)."""
    k = hac.k_final if k is None else k
    tree = dendrogram(hac.linkage, labels=list(hac.leaves), no_plot=True)

    segs = []
    for xs, ys in zip(tree["icoord"], tree["dcoord"]):
        for i in range(3):
            segs.append({"x": xs[i], "y": ys[i], "x2": xs[i + 1], "y2": ys[i + 1]})
    branches = (
        alt.Chart(pd.DataFrame(segs))
        .mark_rule(color="#444")
        .encode(
            x=alt.X("x:Q", axis=None),
            y=alt.Y("y:Q", title="Height"),
            x2="x2:Q",
            y2="y2:Q",
        )
    )

    residual = set(hac.residual)
    leaves = pd.DataFrame({
        "x": [5.0 + 10.0 * i for i in range(len(tree["ivl"]))],
        "y": 0.0,
        "species": tree["ivl"],
        "group": ["residual" if s in residual else "main" for s in tree["ivl"]],
    })
    labels = (
        alt.Chart(leaves)
        .mark_text(angle=270, align="right", dy=0, dx=-4, fontSize=9)
        .encode(
            x="x:Q",
            y="y:Q",
            text="species:N",
            color=alt.Color("group:N", scale=alt.Scale(domain=["main", "residual"], range=["#d62728", "#888"])),
        )
    )

    cut_line = (
        alt.Chart(pd.DataFrame({"y": [cut_height(hac.linkage, k)], "k": [k]}))
        .mark_rule(strokeDash=[6, 4], color="#1f77b4")
        .encode(y="y:Q", tooltip=["k:Q", alt.Tooltip("y:Q", title="Cut height", format=",.2f")])
    )
    return (branches + labels + cut_line).properties(height=360, title=f"{title} (k={k})")


def dendrogram_snapshots(hac: HACSelection) -> dict[str, alt.Chart]:
    """One dendrogram per recorded cut, keyed '<stage>_k<k>'."""
    return {
        f"{c.stage}_k{c.k}": dendrogram_chart(hac, c.k, title=f"HAC dendrogram - {c.stage.replace('_', ' ')}")
        for c in hac.cuts
    }
