"""Counterexample trace representation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from ..term import StateSignature


@dataclass
class CounterexampleTrace:
    """A counterexample trace showing a property violation.

    Attributes:
        depth: Index of the violating state; the trace has depth+1 states
        states: Full-state assignments of X0..X(depth), in signature order
    """

    depth: int
    states: List[Dict[str, Any]]

    @classmethod
    def from_model(cls, model: Mapping[Tuple[str, int], Any],
                   signature: StateSignature, depth: int) -> "CounterexampleTrace":
        """Build a trace from a solver model over unrolling indices 0..depth."""
        states = [{var.name: model[(var.name, i)] for var in signature}
                  for i in range(depth + 1)]
        return cls(depth=depth, states=states)

    @property
    def violation_time(self) -> int:
        """Index of the state at which the formula fails."""
        return self.depth

    def __len__(self) -> int:
        return len(self.states)

    def value(self, name: str, time: int) -> Any:
        return self.states[time][name]

    def format_trace(self) -> str:
        lines: List[str] = []
        lines.append(f"Counterexample trace (length {len(self.states)}):")
        lines.append("")
        for k, st in enumerate(self.states):
            lines.append(f"Time {k}:")
            for sig, val in st.items():
                lines.append(f"  {sig} = {_format_value(val)}")
            lines.append("")
        lines.append(f"Property violated at time {self.violation_time}")
        return "\n".join(lines)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
