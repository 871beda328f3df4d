from .proportions import to_proportions
from .hac import select_by_clustering
from .total import select_by_cumulative_total
from .logevent import select_by_logevent_dominance
from .reconcile import reconcile
from .pipeline import select_main_species

__all__ = [
    "to_proportions",
    "select_by_clustering",
    "select_by_cumulative_total",
    "select_by_logevent_dominance",
    "reconcile",
    "select_main_species",
]
