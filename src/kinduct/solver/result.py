"""
Solver check result types.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SolverResult(Enum):
    """Result from SMT solver check."""
    SAT = "sat"
    UNSAT = "unsat"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one `check_sat` call.

    Attributes:
        result: Raw solver result (SAT/UNSAT/UNKNOWN)
        reason: Why the result is UNKNOWN ("timeout", "cancelled", ...)
        time_ms: Time taken by the solver in milliseconds
        solver_name: Name of the solver backend used
    """
    result: SolverResult
    reason: Optional[str] = None
    time_ms: float = 0.0
    solver_name: str = "unknown"

    @property
    def is_sat(self) -> bool:
        return self.result is SolverResult.SAT

    @property
    def is_unsat(self) -> bool:
        return self.result is SolverResult.UNSAT

    @property
    def is_unknown(self) -> bool:
        return self.result is SolverResult.UNKNOWN

    def __str__(self) -> str:
        text = self.result.value
        if self.reason:
            text += f" ({self.reason})"
        return f"{text} [{self.solver_name}, {self.time_ms:.2f}ms]"
