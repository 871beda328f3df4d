from __future__ import annotations
import logging
import time
from typing import Iterable

import pandas as pd

from mainspecies.cleaning import prepare_catch_table, species_frame, standardize_headers
from mainspecies.config import (
    EVENT_ID_COL,
    LOGEVENT_REFERENCE_THRESHOLD,
    THRESHOLDS,
    TOTAL_REFERENCE_THRESHOLD,
)
from mainspecies.selection.coverage import coverage_diagnostics
from mainspecies.selection.hac import select_by_clustering
from mainspecies.selection.logevent import select_by_logevent_dominance
from mainspecies.selection.proportions import to_proportions
from mainspecies.selection.reconcile import reconcile
from mainspecies.selection.total import select_by_cumulative_total
from mainspecies.types import NotApplicable, SpeciesExploration
from mainspecies.validators.schema import validate_catch_table

logger = logging.getLogger(__name__)


def select_main_species(
    table: pd.DataFrame,
    *,
    event_col: str = EVENT_ID_COL,
    run_clustering: bool = True,
    diagnostics: bool = False,
    thresholds: Iterable[int] = THRESHOLDS,
    total_reference: int = TOTAL_REFERENCE_THRESHOLD,
    logevent_reference: int = LOGEVENT_REFERENCE_THRESHOLD,
) -> SpeciesExploration:
    """
    Identify the main species of a catch table (one event per row, one
    column per species plus the event id) by crossing the HAC, total and
    logevent methods. The final list is the union of the HAC species, the
    species cumulating `total_reference`% of the total catch and the species
    reaching `logevent_reference`% of at least one event's catch.
    """
    thresholds = sorted(set(thresholds))
    for ref in (total_reference, logevent_reference):
        if ref not in thresholds:
            raise ValueError(f"Reference threshold {ref} is not among the swept thresholds {thresholds}")

    t0 = time.perf_counter()
    raw = standardize_headers(table, event_col)
    validate_catch_table(raw, event_col)
    catch = species_frame(prepare_catch_table(raw, event_col), event_col)
    n_species = catch.shape[1]
    logger.info(f"Catch table: {len(catch):,} events x {n_species} species")
    if n_species == 0 or float(catch.to_numpy().sum()) == 0.0:
        logger.warning("Degenerate catch table (no species or no catch); selections will be empty")

    logger.debug("Calculating proportions…")
    proportions = to_proportions(catch)

    if run_clustering:
        logger.info("Species exploration method 1: HAC")
        hac = select_by_clustering(proportions, catch)
        if isinstance(hac, NotApplicable):
            logger.warning(f"HAC not applicable: {hac.reason}")
        else:
            logger.info(f"HAC: {hac.n_selected} main species (k={hac.k_initial} -> {hac.k_final})")
    else:
        hac = NotApplicable("clustering disabled")
    logger.debug(f"Elapsed {time.perf_counter() - t0:.2f}s")

    logger.info("Species exploration method 2: total")
    total = select_by_cumulative_total(catch, thresholds)
    logger.info("Species exploration method 3: logevent")
    logevent = select_by_logevent_dominance(proportions, thresholds)
    logger.debug(f"Elapsed {time.perf_counter() - t0:.2f}s")

    final = reconcile(hac, total.at(total_reference), logevent.at(logevent_reference), catch)

    coverage = None
    if diagnostics:
        coverage = coverage_diagnostics(catch, hac, total, logevent)

    return SpeciesExploration(
        n_species=n_species,
        hac=hac,
        total=total,
        logevent=logevent,
        final=final,
        total_reference=total_reference,
        logevent_reference=logevent_reference,
        coverage=coverage,
        meta={"n_events": int(len(catch)), "run_clustering": run_clustering},
    )
