"""
Exception hierarchy for kinduct.

Structural errors (parse, reference, sort, composition) are fatal and raised
before any solver interaction. Solver-level problems are not raised: the
induction engine maps them to an Unknown verdict.
"""
from dataclasses import dataclass
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class SourceLocation:
    """Position of a form in an input file (1-based line and column)."""
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


class KinductError(Exception):
    """Base class for all kinduct errors.

    Attributes:
        location: Source location of the offending declaration, if known
    """

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def with_location(self, location: Optional[SourceLocation]) -> "KinductError":
        if self.location is None and location is not None:
            self.location = location
        return self

    def __str__(self) -> str:
        if self.location is not None:
            return f"{self.location}: {self.message}"
        return self.message


class ParseError(KinductError, ValueError):
    """Malformed s-expression, malformed form or unknown top-level keyword."""


class UnresolvedReferenceError(KinductError, LookupError):
    """Reference to an undeclared system, property, relation or variable."""

    def __init__(self, message: str, name: str = "",
                 location: Optional[SourceLocation] = None):
        super().__init__(message, location)
        self.name = name


class DuplicateDeclarationError(KinductError, ValueError):
    """A name was declared twice in the same namespace."""


class SortError(KinductError, TypeError):
    """Ill-sorted term.

    Attributes:
        term: The offending subterm, if available
    """

    def __init__(self, message: str, term: Any = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(message, location)
        self.term = term


class DomainError(SortError):
    """Statically detectable division by zero."""


class ArityError(SortError):
    """Wrong number of arguments to a macro or subsystem instantiation."""


class UnboundMacroError(UnresolvedReferenceError):
    """Application of a function symbol with no definition."""


class MacroCycleError(KinductError):
    """Macro expansion did not reach a fixed point within the depth bound."""


class CompositionCycleError(KinductError):
    """Cycle in the subsystem-reference graph.

    Attributes:
        cycle: System names along the cycle, first name repeated at the end
    """

    def __init__(self, cycle: Sequence[str], location: Optional[SourceLocation] = None):
        super().__init__(
            "subsystem cycle: " + " -> ".join(cycle), location)
        self.cycle = tuple(cycle)


class SolverError(KinductError, RuntimeError):
    """Misuse of a solver session (e.g. model requested after UNSAT)."""
