"""
k-induction model checker for symbolic transition systems.

This package reads declarative transition-system descriptions, flattens
subsystem composition and decides by k-induction over an SMT solver whether
named properties hold in every reachable state.
"""

__version__ = "0.1.0"

from .errors import (
    KinductError,
    ParseError,
    UnresolvedReferenceError,
    DuplicateDeclarationError,
    SortError,
    DomainError,
    ArityError,
    UnboundMacroError,
    MacroCycleError,
    CompositionCycleError,
    SolverError,
    SourceLocation,
)
from .config import EngineConfig
from .system import Context, System, Property, Relation, RelationMode, FlatSystem
from .parser import Script, VerifyCommand, parse_source, parse_file, serialize_context
from .solver import SolverResult, Z3Solver, ExternalSolver, make_solver
from .verification import (
    Assumed,
    CancellationToken,
    CounterexampleTrace,
    EngineEvent,
    EventKind,
    Holds,
    KInductionEngine,
    Unknown,
    VerificationReport,
    Violated,
    run_bmc,
    generate_invariants,
)
from .analysis import check_equivalent, prune_invariants
from .checker import (
    load_source,
    load_file,
    verify_system,
    verify_script,
    verify_source,
    verify_file,
    verify_all,
)

__all__ = [
    "KinductError",
    "ParseError",
    "UnresolvedReferenceError",
    "DuplicateDeclarationError",
    "SortError",
    "DomainError",
    "ArityError",
    "UnboundMacroError",
    "MacroCycleError",
    "CompositionCycleError",
    "SolverError",
    "SourceLocation",
    "EngineConfig",
    "Context",
    "System",
    "Property",
    "Relation",
    "RelationMode",
    "FlatSystem",
    "Script",
    "VerifyCommand",
    "parse_source",
    "parse_file",
    "serialize_context",
    "SolverResult",
    "Z3Solver",
    "ExternalSolver",
    "make_solver",
    "Assumed",
    "CancellationToken",
    "CounterexampleTrace",
    "EngineEvent",
    "EventKind",
    "Holds",
    "KInductionEngine",
    "Unknown",
    "VerificationReport",
    "Violated",
    "run_bmc",
    "generate_invariants",
    "check_equivalent",
    "prune_invariants",
    "load_source",
    "load_file",
    "verify_system",
    "verify_script",
    "verify_source",
    "verify_file",
    "verify_all",
]
