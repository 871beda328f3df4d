# app.py
from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import plotly.express as px
import streamlit as st

from mainspecies.cleaning import prepare_catch_table, species_frame, standardize_headers
from mainspecies.config import EVENT_ID_COL, PROC_DIR
from mainspecies.debug import hac_doctor, numbers_doctor
from mainspecies.io import READERS, load_catch_table
from mainspecies.selection import select_main_species
from mainspecies.types import HACSelection
from mainspecies.ui.controls import multiselect_with_all
from mainspecies.viz.charts import coverage_chart, dendrogram_chart, threshold_counts_chart

# -----------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# -----------------------------------------------------------------------------
st.set_page_config(page_title="Main Species Explorer", layout="wide")

# -----------------------------------------------------------------------------
# Data loading
# -----------------------------------------------------------------------------
@st.cache_data(show_spinner=False)
def load_df(path: str, mtime: float) -> pd.DataFrame:
    """Load one catch table; `mtime` busts the cache when the file changes."""
    df = load_catch_table(path)
    return standardize_headers(df)


@st.cache_data(show_spinner="Selecting main species…")
def run_selection(df: pd.DataFrame, run_clustering: bool, diagnostics: bool):
    return select_main_species(df, run_clustering=run_clustering, diagnostics=diagnostics)


paths = sorted(p for p in Path(PROC_DIR).glob("*") if p.suffix.lower() in READERS)

st.title("Main Species Explorer")

# -----------------------------------------------------------------------------
# Sidebar (shared)
# -----------------------------------------------------------------------------
with st.sidebar:
    st.header("Catch table")
    if not paths:
        st.warning(f"No catch tables found in {PROC_DIR}/ (.csv, .parquet, .feather)")
        st.stop()
    chosen = st.selectbox("File", paths, format_func=lambda p: p.name)
    raw_df = load_df(str(chosen), chosen.stat().st_mtime)

    species_all = [c for c in raw_df.columns if c != EVENT_ID_COL]
    sb_species = multiselect_with_all("Species", species_all, key="species")
    sb_hac = st.toggle("Run HAC", value=True, help="Skip on very large species lists (memory).")
    sb_diag = st.toggle("Diagnostics", value=False, help="Median % of event catch covered by main species.")

df = raw_df[[EVENT_ID_COL, *sb_species]]
exploration = run_selection(df, sb_hac, sb_diag)
catch = species_frame(prepare_catch_table(df))

# -----------------------------------------------------------------------------
# Tabs
# -----------------------------------------------------------------------------
tabs = st.tabs(["Overview", "Thresholds", "HAC", "Report"])

with tabs[0]:
    st.subheader("Selected main species")
    final = exploration.final
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Events", f"{len(catch):,}")
    c2.metric("Species in table", f"{exploration.n_species}")
    c3.metric("Main species", f"{final.n_selected}")
    c4.metric("Share of total catch", f"{final.pct_catch:.1f}%")

    st.markdown(
        f"""
Union of the species retained by **HAC**, the species cumulating
**{exploration.total_reference}%** of the total catch, and the species making
**{exploration.logevent_reference}%** of the catch of at least one event.
        """
    )
    st.dataframe(final.method_summary(), use_container_width=True)
    st.write(", ".join(map(str, final.species)) or "No species selected.")

with tabs[1]:
    st.subheader("Number of species per threshold")
    st.altair_chart(threshold_counts_chart(exploration), use_container_width=True)
    st.dataframe(exploration.threshold_counts(), use_container_width=True)
    if exploration.coverage is not None:
        st.altair_chart(coverage_chart(exploration.coverage, exploration.hac), use_container_width=True)

with tabs[2]:
    st.subheader("HAC dendrogram")
    hac = exploration.hac
    if isinstance(hac, HACSelection):
        k = st.select_slider(
            "Cut level (k clusters)",
            options=sorted({c.k for c in hac.cuts}),
            value=hac.k_final,
        )
        st.altair_chart(dendrogram_chart(hac, k), use_container_width=True)
    hac_doctor(exploration)

with tabs[3]:
    st.subheader("Report")
    by_species = catch.sum(axis=0)
    if by_species.sum() > 0:
        kept = set(exploration.final.species)
        share = (
            by_species.rename("catch")
            .rename_axis("species")
            .reset_index()
            .assign(group=lambda x: x["species"].map(lambda s: s if s in kept else "Other"))
            .groupby("group", as_index=False)["catch"]
            .sum()
            .sort_values("catch", ascending=False)
        )
        pie = px.pie(share, names="group", values="catch", title="Share of total catch, main species vs other")
        st.plotly_chart(pie, use_container_width=True)
    else:
        st.info("No catch in the current selection.")

    numbers_doctor(catch, exploration)

    st.download_button(
        "Download summary (JSON)",
        data=json.dumps(exploration.to_dict(), indent=2),
        file_name=f"{chosen.stem}_main_species.json",
        mime="application/json",
    )
