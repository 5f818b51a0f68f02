"""
Abstract base interface for SMT solver backends.
"""
from typing import Dict, Protocol, Tuple

from ..term import Offsets, StateSignature, Term
from ..term.terms import Value
from .result import CheckResult

# (variable name, unrolling index) -> literal value
Model = Dict[Tuple[str, int], Value]


class SolverBackend(Protocol):
    """Protocol defining the interface for incremental solver sessions.

    A session holds copies of one state signature at integer unrolling
    indices. Formulas are asserted against an explicit pair of indices, so
    `(_ curr x)` and `(_ next x)` denote `x` at `offsets.curr` and
    `offsets.next`.
    """

    def declare_state(self, signature: StateSignature, offset: int) -> None:
        """Declare one copy of every signature variable at `offset`.

        Declaring the same offset twice is a no-op.
        """
        ...

    def assert_formula(self, term: Term, offsets: Offsets) -> None:
        """Assert a Bool term instantiated at `offsets` in the current scope."""
        ...

    def push(self) -> None:
        """Push a new assertion scope."""
        ...

    def pop(self) -> None:
        """Pop the most recent assertion scope.

        Raises:
            SolverError: No scope to pop
        """
        ...

    def check_sat(self) -> CheckResult:
        """Check satisfiability of the asserted formulas."""
        ...

    def get_model(self) -> Model:
        """Values of every declared state variable in the last SAT model.

        Raises:
            SolverError: The last check was not SAT
        """
        ...

    def evaluate(self, term: Term, offsets: Offsets) -> Value:
        """Value of `term` at `offsets` in the last SAT model."""
        ...

    def reset(self) -> None:
        """Drop all declarations, assertions and scopes."""
        ...

    def interrupt(self) -> None:
        """Ask an in-flight `check_sat` to stop; safe to call from any thread."""
        ...
