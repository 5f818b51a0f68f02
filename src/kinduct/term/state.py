"""
Timepoint tags and explicit state-row pairs.

A staged variable `(_ curr x)` / `(_ next x)` denotes `x` in one of two
adjacent rows of the global state. Formulas are always interpreted against an
explicit pair: `Offsets` names the two rows of an unrolling by index,
`StateRows` carries the two rows as concrete values.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class State(Enum):
    """Timepoint tag of a staged variable reference."""
    CURR = "curr"
    NEXT = "next"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Offsets:
    """Pair of unrolling indices a two-state formula is instantiated at."""
    curr: int
    next: int

    @classmethod
    def init(cls) -> "Offsets":
        return cls(0, 1)

    @classmethod
    def at(cls, k: int) -> "Offsets":
        return cls(k, k + 1)

    def nxt(self) -> "Offsets":
        return Offsets(self.curr + 1, self.next + 1)

    def __getitem__(self, state: State) -> int:
        return self.curr if state is State.CURR else self.next

    def __str__(self) -> str:
        return f"({self.curr}, {self.next})"


@dataclass(frozen=True)
class StateRows:
    """Concrete values for the current and (optionally) next state rows."""
    curr: Mapping[str, Any]
    next: Optional[Mapping[str, Any]] = None

    def row(self, state: State) -> Optional[Mapping[str, Any]]:
        return self.curr if state is State.CURR else self.next
