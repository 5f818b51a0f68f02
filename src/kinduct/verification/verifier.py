"""
Verification of one task: engine run plus report assembly.
"""
import logging
import time
from typing import Optional

from ..config import EngineConfig
from ..system import VerificationTask
from .events import EventListener
from .invgen import generate_invariants
from .kinduction import CancellationToken, KInductionEngine, SolverFactory
from .report import Assumed, VerificationReport

logger = logging.getLogger(__name__)


class Verifier:
    """Runs k-induction on verification tasks.

    Args:
        config: Engine configuration; defaults from the environment
        listener: Optional event listener passed to every engine
        solver_factory: Solver session factory, `make_solver` by default
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 listener: Optional[EventListener] = None,
                 solver_factory: Optional[SolverFactory] = None):
        self.config = config if config is not None else EngineConfig.from_env()
        self.listener = listener
        self.solver_factory = solver_factory

    def verify(self, task: VerificationTask,
               cancel: Optional[CancellationToken] = None) -> VerificationReport:
        """Verify every submitted formula of `task` jointly."""
        start_time = time.time()
        invariants = []
        if self.config.generate_invariants:
            invariants = generate_invariants(task.system, task.assumed, config=self.config,
                                             solver_factory=self.solver_factory)
        engine = KInductionEngine.for_task(
            task, config=self.config, cancel=cancel, listener=self.listener,
            solver_factory=self.solver_factory, invariants=invariants)
        verdicts = engine.run()
        for rel in task.assumed:
            verdicts[rel.name] = Assumed()

        elapsed_ms = (time.time() - start_time) * 1000
        report = VerificationReport(task.system.name, task.names, verdicts, elapsed_ms)
        logger.info("verify %s: %d hold, %d violated, %d unknown", task.system.name,
                    len(report.holds), len(report.violated), len(report.unknown))
        return report
