"""Analysis helpers built on the solver layer."""

from .equivalence import check_equivalent, is_implied, prune_invariants

__all__ = [
    "check_equivalent",
    "is_implied",
    "prune_invariants",
]
