"""
Backend selection.
"""
from ..config import EngineConfig
from .base import SolverBackend
from .external import ExternalSolver
from .z3_solver import Z3Solver


def make_solver(config: EngineConfig) -> SolverBackend:
    """Create a fresh solver session for `config`.

    `"z3"` selects the in-process bindings; any other name or path (including
    `"z3-smt2"`) runs an external SMT-LIBv2 process.
    """
    if config.solver == "z3":
        return Z3Solver(timeout_ms=config.timeout_ms)
    return ExternalSolver(config.solver, timeout_ms=config.timeout_ms)
