# mainspecies/debug.py
from __future__ import annotations
import numpy as np
import pandas as pd
import streamlit as st

from mainspecies.selection.hac import scree
from mainspecies.types import HACSelection, SpeciesExploration


def hac_doctor(exploration: SpeciesExploration):
    with st.expander("🩺 Debug: HAC cuts"):
        hac = exploration.hac
        if not isinstance(hac, HACSelection):
            st.info(f"HAC not applicable: {hac.reason}")
            return

        c1, c2 = st.columns(2)
        with c1:
            st.caption("Scree test on merge heights")
            table = scree(hac.heights())
            st.dataframe(table, use_container_width=True)
            st.write("Initial k (first negative epsilon):", hac.k_initial)
        with c2:
            st.caption("Recorded cuts")
            cuts = pd.DataFrame(
                [{"stage": c.stage, "k": c.k, "n_residual": len(c.residual), "residual": ", ".join(map(str, c.residual))}
                 for c in hac.cuts]
            )
            st.dataframe(cuts, use_container_width=True)
            st.write("Refinement stabilised:", hac.stabilized)
            if not hac.stabilized:
                st.warning("Refinement hit its bound; the initial cut was kept.")


def numbers_doctor(catch: pd.DataFrame, exploration: SpeciesExploration):
    st.markdown("### 🧪 Numbers Doctor")
    st.caption("Sanity checks on the catch table behind the selection.")

    totals = catch.sum(axis=1)
    c1, c2, c3 = st.columns(3)
    with c1:
        st.write("Events / species", len(catch), "/", catch.shape[1])
    with c2:
        st.write("Events with no catch:", int((totals == 0).sum()))
    with c3:
        st.write("Species never caught:", int((catch.sum(axis=0) == 0).sum()))

    # Reconcile the final coverage against the column totals
    by_species = catch.sum(axis=0)
    grand = float(by_species.sum())
    if grand > 0:
        recomputed = float(by_species[list(exploration.final.species)].sum()) / grand * 100.0
        st.write(f"- Coverage reported: **{exploration.final.pct_catch:.2f}%**, recomputed: **{recomputed:.2f}%**")
        if not np.isclose(recomputed, exploration.final.pct_catch, rtol=1e-9, atol=1e-9):
            st.error("⚠️ Reported coverage does not match the column totals.")

    st.write("- Species ranked by share of total catch (total method):")
    ranking = pd.DataFrame({"species": list(exploration.total.ranking)})
    if grand > 0:
        ranking["share_pct"] = ranking["species"].map(by_species / grand * 100.0)
        ranking["cumulative_pct"] = ranking["share_pct"].cumsum()
    st.dataframe(ranking, use_container_width=True)
