from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class SelectionResult:
    """Species retained by one method at one threshold."""
    method: str
    species: Tuple[str, ...]   # method order (ranked for "total")
    n_total: int

    @property
    def n_selected(self) -> int:
        return len(self.species)

    @property
    def pct_of_species(self) -> float:
        if self.n_total == 0:
            return 0.0
        return self.n_selected / self.n_total * 100.0

    def alphabetical(self) -> List[str]:
        return sorted(self.species)


@dataclass(frozen=True)
class NotApplicable:
    """HAC could not produce a partition (or was switched off)."""
    reason: str
    method: str = "hac"

    @property
    def species(self) -> Tuple[str, ...]:
        return ()


@dataclass(frozen=True)
class DendrogramCut:
    stage: str                  # "initial", "residual_split" or "final"
    k: int
    residual: Tuple[str, ...]


@dataclass(frozen=True)
class HACSelection(SelectionResult):
    k_initial: int
    k_final: int
    stabilized: bool
    linkage: np.ndarray = field(repr=False, compare=False)
    leaves: Tuple[str, ...] = ()
    cuts: Tuple[DendrogramCut, ...] = ()

    @property
    def residual(self) -> Tuple[str, ...]:
        main = set(self.species)
        return tuple(s for s in self.leaves if s not in main)

    def heights(self) -> np.ndarray:
        """Merge heights, decreasing."""
        return np.sort(self.linkage[:, 2])[::-1]


HACOutcome = Union[HACSelection, NotApplicable]


@dataclass(frozen=True)
class ThresholdSweep:
    """Selections of a threshold method across the swept percentages.

    ``baseline`` is the species count reported at threshold 0 so the sweep
    plots from 0 to 100 (0 for "total", every species for "logevent").
    """
    method: str
    selections: Dict[int, SelectionResult]
    baseline: int
    ranking: Tuple[str, ...] = ()

    def at(self, threshold: int) -> SelectionResult:
        if threshold not in self.selections:
            raise KeyError(f"Threshold {threshold} not swept for method '{self.method}'")
        return self.selections[threshold]

    @property
    def thresholds(self) -> List[int]:
        return sorted(self.selections)

    def counts(self) -> pd.Series:
        """Number of species selected per threshold, including threshold 0."""
        values = {0: self.baseline}
        values.update({t: self.selections[t].n_selected for t in self.thresholds})
        return pd.Series(values, name=self.method, dtype="int64").rename_axis("threshold")


@dataclass(frozen=True)
class FinalSelection:
    species: Tuple[str, ...]          # alphabetical
    pct_catch: float
    n_total: int
    methods: Tuple[SelectionResult | NotApplicable, ...] = ()

    @property
    def n_selected(self) -> int:
        return len(self.species)

    def method_summary(self) -> pd.DataFrame:
        rows = []
        for res in self.methods:
            if isinstance(res, NotApplicable):
                rows.append({"method": res.method, "n_selected": pd.NA, "pct_of_species": pd.NA})
            else:
                rows.append({"method": res.method, "n_selected": res.n_selected, "pct_of_species": res.pct_of_species})
        return pd.DataFrame(rows, columns=["method", "n_selected", "pct_of_species"])


@dataclass(frozen=True)
class CoverageDiagnostics:
    """Median % of each event's catch represented by the selected species."""
    hac: float
    by_threshold: pd.DataFrame   # index: threshold, columns: total, logevent


@dataclass
class SpeciesExploration:
    n_species: int
    hac: HACOutcome
    total: ThresholdSweep
    logevent: ThresholdSweep
    final: FinalSelection
    total_reference: int
    logevent_reference: int
    coverage: Optional[CoverageDiagnostics] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def threshold_counts(self) -> pd.DataFrame:
        return pd.concat([self.total.counts(), self.logevent.counts()], axis=1)

    def to_dict(self) -> Dict[str, Any]:
        total_ref = self.total.at(self.total_reference)
        logevent_ref = self.logevent.at(self.logevent_reference)
        hac_ok = isinstance(self.hac, HACSelection)
        out: Dict[str, Any] = {
            "nbAllSpecies": self.n_species,
            "propNbMainSpeciesHAC": self.hac.pct_of_species if hac_ok else None,
            "propNbMainSpeciesTotal": total_ref.pct_of_species,
            "propNbMainSpeciesLogevent": logevent_ref.pct_of_species,
            "nbMainSpeciesHAC": self.hac.n_selected if hac_ok else None,
            "nbMainSpeciesTotal": [int(v) for v in self.total.counts().tolist()],
            "nbMainSpeciesLogevent": [int(v) for v in self.logevent.counts().tolist()],
            "namesMainSpeciesHAC": self.hac.alphabetical() if hac_ok else None,
            "namesMainSpeciesTotalAlphabetical": total_ref.alphabetical(),
            "namesMainSpeciesTotalByImportance": list(total_ref.species),
            "namesMainSpeciesLogevent": logevent_ref.alphabetical(),
            "namesMainSpeciesAll": list(self.final.species),
            "propCatchMainSpeciesAll": self.final.pct_catch,
        }
        if not hac_ok:
            out["hacNotApplicable"] = self.hac.reason
        if self.coverage is not None:
            cov = self.coverage.by_threshold
            out["medianPourcentCatchMainSpeciesHAC"] = _nan_to_none(self.coverage.hac)
            out["medianPourcentCatchMainSpeciesTotal"] = [_nan_to_none(v) for v in cov["total"].tolist()]
            out["medianPourcentCatchMainSpeciesLogevent"] = [_nan_to_none(v) for v in cov["logevent"].tolist()]
        return out


def _nan_to_none(v: float) -> float | None:
    return None if pd.isna(v) else float(v)
