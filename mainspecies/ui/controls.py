from __future__ import annotations
from typing import Iterable, List
import streamlit as st


def multiselect_with_all(
    label: str,
    options: Iterable[str],
    *,
    default: Iterable[str] | None = None,
    key: str | None = None,
    help: str | None = None,
    all_label: str = "All species",
) -> List[str]:
    """
    Streamlit multiselect with an 'All species' sentinel chip.
    - If the sentinel is selected OR nothing is selected, returns the full list.
    - Otherwise returns the explicit selection, in option order.
    """
    opts = [str(x) for x in options if str(x).strip()]
    display_opts = [all_label] + opts

    default = list(default) if default else []
    default_is_all = not default or set(default) == set(opts)
    default_display = [all_label] if default_is_all else default

    selected_display = st.multiselect(label, display_opts, default=default_display, key=key, help=help)

    if (all_label in selected_display) or (len(selected_display) == 0):
        return opts
    chosen = set(selected_display)
    return [o for o in opts if o in chosen]
