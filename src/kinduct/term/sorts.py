"""
Sorts, variables and state signatures.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

from ..errors import DuplicateDeclarationError


class Sort(Enum):
    """Sort of a term."""
    BOOL = "Bool"
    INT = "Int"
    REAL = "Real"

    @property
    def is_arith(self) -> bool:
        return self in (Sort.INT, Sort.REAL)

    @classmethod
    def from_name(cls, name: str) -> "Sort":
        for sort in cls:
            if sort.value == name:
                return sort
        raise ValueError(f"Unknown sort: {name}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Variable:
    """A typed state variable or macro parameter."""
    name: str
    sort: Sort

    def __str__(self) -> str:
        return f"({self.name} {self.sort})"


@dataclass(frozen=True)
class StateSignature:
    """Ordered sequence of state variables with unique names."""
    variables: Tuple[Variable, ...] = ()

    def __post_init__(self):
        seen = set()
        for var in self.variables:
            if var.name in seen:
                raise DuplicateDeclarationError(
                    f"State variable '{var.name}' declared twice")
            seen.add(var.name)

    @classmethod
    def of(cls, *pairs: Tuple[str, Sort]) -> "StateSignature":
        """Build a signature from (name, sort) pairs."""
        return cls(tuple(Variable(name, sort) for name, sort in pairs))

    def __iter__(self) -> Iterator[Variable]:
        return iter(self.variables)

    def __len__(self) -> int:
        return len(self.variables)

    def __contains__(self, name: object) -> bool:
        return any(var.name == name for var in self.variables)

    def names(self) -> Tuple[str, ...]:
        return tuple(var.name for var in self.variables)

    def lookup(self, name: str) -> Optional[Variable]:
        for var in self.variables:
            if var.name == name:
                return var
        return None

    def sort_of(self, name: str) -> Optional[Sort]:
        var = self.lookup(name)
        return var.sort if var is not None else None

    def as_dict(self) -> Dict[str, Sort]:
        return {var.name: var.sort for var in self.variables}
