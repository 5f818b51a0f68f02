"""Solver abstraction layer: incremental sessions over unrolled state copies."""

from .base import Model, SolverBackend
from .result import CheckResult, SolverResult
from .z3_solver import Z3Solver, Z3Encoder
from .external import ExternalSolver
from .factory import make_solver
from .solver_runner import (
    SolverSpec,
    SolverRunResult,
    is_solver_available,
    parse_get_value_output,
    pick_solver,
    resolve_solver,
    run_solver,
)

__all__ = [
    "Model",
    "SolverBackend",
    "CheckResult",
    "SolverResult",
    "Z3Solver",
    "Z3Encoder",
    "ExternalSolver",
    "make_solver",
    "SolverSpec",
    "SolverRunResult",
    "is_solver_available",
    "parse_get_value_output",
    "pick_solver",
    "resolve_solver",
    "run_solver",
]
