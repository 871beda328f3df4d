from .selection import select_main_species
from .types import FinalSelection, NotApplicable, SelectionResult, SpeciesExploration

__all__ = [
    "select_main_species",
    "FinalSelection",
    "NotApplicable",
    "SelectionResult",
    "SpeciesExploration",
]
