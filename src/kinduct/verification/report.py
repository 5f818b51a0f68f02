"""
Per-formula verdicts and the report of one `verify` invocation.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .trace import CounterexampleTrace


@dataclass(frozen=True)
class Holds:
    """The formula holds in every reachable state; proved at `depth`."""
    depth: int
    status = "holds"

    def __str__(self) -> str:
        return f"holds (k={self.depth})"


@dataclass(frozen=True)
class Violated:
    """A reachable state falsifies the formula; `trace` has depth+1 states."""
    depth: int
    trace: CounterexampleTrace = field(compare=False)
    status = "violated"

    def __str__(self) -> str:
        return f"violated at depth {self.depth}"


@dataclass(frozen=True)
class Unknown:
    """Neither proved nor falsified.

    Attributes:
        depth_reached: Deepest depth with an established base case, -1 if none
        reason: Why the search stopped ("max depth 20 reached", "timeout",
                "cancelled", ...)
    """
    depth_reached: int
    reason: str
    status = "unknown"

    def __str__(self) -> str:
        return f"unknown after depth {self.depth_reached}: {self.reason}"


@dataclass(frozen=True)
class Assumed:
    """An assumed relation: used as a hypothesis, never proved."""
    status = "assumed"

    def __str__(self) -> str:
        return "assumed"


Verdict = Union[Holds, Violated, Unknown, Assumed]


@dataclass
class VerificationReport:
    """Verdicts for the formulas of one verification task.

    Attributes:
        system_name: Verified system
        names: Submitted names, in submission order
        verdicts: Verdict per submitted name
        elapsed_ms: Wall-clock time of the whole task
    """
    system_name: str
    names: Tuple[str, ...]
    verdicts: Dict[str, Verdict]
    elapsed_ms: float = 0.0

    def __getitem__(self, name: str) -> Verdict:
        return self.verdicts[name]

    def __iter__(self):
        return ((name, self.verdicts[name]) for name in self.names)

    def _with(self, kind) -> List[str]:
        return [n for n in self.names if isinstance(self.verdicts[n], kind)]

    @property
    def holds(self) -> List[str]:
        return self._with(Holds)

    @property
    def violated(self) -> List[str]:
        return self._with(Violated)

    @property
    def unknown(self) -> List[str]:
        return self._with(Unknown)

    @property
    def all_hold(self) -> bool:
        """True when every non-assumed submitted formula holds."""
        return all(isinstance(v, (Holds, Assumed)) for v in self.verdicts.values())

    def trace(self, name: str) -> Optional[CounterexampleTrace]:
        verdict = self.verdicts[name]
        return verdict.trace if isinstance(verdict, Violated) else None

    def format_report(self, with_traces: bool = True) -> str:
        lines = [f"System {self.system_name}:"]
        width = max((len(n) for n in self.names), default=0)
        for name in self.names:
            lines.append(f"  {name.ljust(width)}  {self.verdicts[name]}")
        if with_traces:
            for name in self.violated:
                lines.append("")
                lines.append(f"{name}:")
                lines.extend("  " + line for line in self.trace(name).format_trace().splitlines())
        summary = (f"{len(self.holds)} hold, {len(self.violated)} violated, "
                   f"{len(self.unknown)} unknown")
        lines.append("")
        lines.append(f"{summary} ({self.elapsed_ms:.2f}ms)")
        return "\n".join(lines)
