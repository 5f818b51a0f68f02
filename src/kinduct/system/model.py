"""
Transition system model.

Declarations are immutable dataclasses. Subsystem instantiations refer to the
instantiated system by name; references are resolved against a `Context`
when the system is flattened, so reference cycles can be represented and are
reported by the flattener.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from ..term import StateSignature, Term, TRUE


@dataclass(frozen=True)
class SubsystemInstance:
    """Instantiation of a subsystem inside a parent system.

    Attributes:
        system_name: Name of the instantiated system
        curr_args: Actuals for the subsystem's formals in the current state,
                   positionally matching its signature
        next_args: Actuals for the subsystem's formals in the next state
    """
    system_name: str
    curr_args: Tuple[Term, ...]
    next_args: Tuple[Term, ...]


@dataclass(frozen=True, eq=False)
class System:
    """A transition system declaration.

    Systems compare and hash by identity; flattening is memoized per object.

    Attributes:
        name: System name
        signature: State variables
        init: Initial-state predicate over current-state variables
        trans: Transition predicate over current and next-state variables
        subsystems: Ordered subsystem instantiations
        doc: Opaque documentation comment preceding the declaration
    """
    name: str
    signature: StateSignature
    init: Term = TRUE
    trans: Term = TRUE
    subsystems: Tuple[SubsystemInstance, ...] = ()
    doc: Optional[str] = field(default=None, compare=False)


class RelationMode(Enum):
    """Role of a relation in a verification task."""
    ASSUMED = "assumed"
    PROVED = "proved"


@dataclass(frozen=True)
class Property:
    """One-state invariant candidate owned by a system."""
    name: str
    system_name: str
    formula: Term
    doc: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class Relation:
    """Two-state step lemma owned by a system.

    An ASSUMED relation is a hypothesis at every step of the unrolling; a
    PROVED relation is a proof obligation treated like a property.
    """
    name: str
    system_name: str
    formula: Term
    mode: RelationMode = RelationMode.PROVED
    doc: Optional[str] = field(default=None, compare=False)

    @property
    def is_assumed(self) -> bool:
        return self.mode is RelationMode.ASSUMED


@dataclass(frozen=True)
class FlatSystem:
    """A closed system with no subsystem instantiations left."""
    name: str
    signature: StateSignature
    init: Term
    trans: Term
