"""
Bounded model checking: the base case of k-induction on its own.

BMC only falsifies. Targets without a counterexample within the bound end as
Unknown("no violation up to depth k").
"""
from typing import Dict, Optional, Sequence

from ..config import EngineConfig
from ..system import FlatSystem, Relation
from .events import EventListener
from .kinduction import CancellationToken, KInductionEngine, SolverFactory
from .report import Verdict
from .unrolling import Target


class BoundedModelChecker(KInductionEngine):
    """Searches for counterexamples of increasing length, never proves."""

    name = "bmc"
    with_step = False

    def _exhausted_reason(self) -> str:
        if self._base_reason is not None:
            return self._base_reason
        return f"no violation up to depth {self.config.max_depth}"


def run_bmc(system: FlatSystem, targets: Sequence[Target], max_depth: int,
            assumed: Sequence[Relation] = (),
            config: Optional[EngineConfig] = None,
            cancel: Optional[CancellationToken] = None,
            listener: Optional[EventListener] = None,
            solver_factory: Optional[SolverFactory] = None) -> Dict[str, Verdict]:
    """Look for violations of `targets` within `max_depth` transitions.

    Returns:
        Violated or Unknown per target
    """
    config = (config or EngineConfig()).with_overrides(max_depth=max_depth)
    engine = BoundedModelChecker(system, targets, assumed, config=config, cancel=cancel,
                                 listener=listener, solver_factory=solver_factory)
    return engine.run()
