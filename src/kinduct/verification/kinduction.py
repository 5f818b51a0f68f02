"""
k-induction over incremental solver sessions.

At depth k:

    base case:  Init(X0) /\\ Trans(X0,X1) /\\ ... /\\ Trans(X(k-1),Xk) /\\ ~Goal(Xk)
    step case:  Trans(X0,X1) /\\ ... /\\ Trans(Xk,X(k+1))
                /\\ Goal(X0) /\\ ... /\\ Goal(Xk) /\\ ~Goal(X(k+1))

Assumed relations hold on every adjacent pair of both unrollings. Supplied
invariants hold on every state of the step unrolling. Goals already shown by
the base case are kept as facts. All remaining targets are checked jointly,
so they strengthen each other in the step case. A satisfiable base case
yields a counterexample for every target the model falsifies; those targets
are dropped and the remaining ones re-checked at the same depth. An
unsatisfiable step case proves every remaining target, provided the base
case was established at every depth so far.
"""
from enum import Enum
import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence

from ..config import EngineConfig
from ..system import FlatSystem, Property, Relation, VerificationTask
from ..solver import SolverBackend, make_solver
from .events import EventEmitter, EventKind, EventListener
from .report import Holds, Unknown, Verdict, Violated
from .unrolling import Target, Unrolling, identify_violations

logger = logging.getLogger(__name__)

SolverFactory = Callable[[EngineConfig], SolverBackend]


class EngineState(Enum):
    INIT = "init"
    BASE_CHECKING = "base-checking"
    STEP_CHECKING = "step-checking"
    PROVED = "proved"
    VIOLATED = "violated"
    UNKNOWN = "unknown"


class CancellationToken:
    """Cooperative cancellation shared between a caller and running engines.

    Engines check the token between solver calls and register callbacks that
    interrupt in-flight solver calls.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()

    def register(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)


class _Cancelled(Exception):
    pass


class KInductionEngine:
    """Decides whether targets hold in every reachable state of a flat system.

    Args:
        system: Flattened system under verification
        targets: Properties and to-be-proved relations, in declaration order
        assumed: Assumed relations (hypotheses on every transition)
        config: Engine configuration (max depth, timeout, backend)
        cancel: Optional cancellation token
        listener: Optional event listener
        solver_factory: Creates solver sessions; `make_solver` by default
        invariants: Known invariants of the system, assumed by the step case
    """

    name = "k-induction"
    with_step = True

    def __init__(self, system: FlatSystem, targets: Sequence[Target],
                 assumed: Sequence[Relation] = (),
                 config: Optional[EngineConfig] = None,
                 cancel: Optional[CancellationToken] = None,
                 listener: Optional[EventListener] = None,
                 solver_factory: Optional[SolverFactory] = None,
                 invariants: Sequence[Property] = ()):
        for rel in assumed:
            if not rel.is_assumed:
                raise ValueError(f"relation '{rel.name}' is not declared :assumed")
        self.system = system
        self.targets = tuple(targets)
        self.assumed = tuple(assumed)
        self.invariants = tuple(invariants)
        self.config = config or EngineConfig()
        self.cancel_token = cancel
        self.events = EventEmitter(listener, self.name)
        self._make_solver = solver_factory or make_solver

        self.state = EngineState.INIT
        self.depth = 0
        self.depth_reached = -1
        self.results: Dict[str, Verdict] = {}
        self._remaining: List[Target] = list(self.targets)
        self._base_reason: Optional[str] = None
        self._step_reason: Optional[str] = None
        self._base: Optional[Unrolling] = None
        self._step: Optional[Unrolling] = None

    @classmethod
    def for_task(cls, task: VerificationTask, **kwargs) -> "KInductionEngine":
        return cls(task.system, task.obligations, task.assumed, **kwargs)

    @property
    def remaining(self) -> List[str]:
        return [t.name for t in self._remaining]

    def run(self) -> Dict[str, Verdict]:
        """Run to completion and return a verdict per target."""
        if self.state is not EngineState.INIT:
            return dict(self.results)

        start_time = time.time()
        logger.info("%s: verifying %s in %s (max depth %d)", self.name,
                    ", ".join(self.remaining) or "nothing", self.system.name,
                    self.config.max_depth)

        self._base = Unrolling(self.system, self.assumed,
                               self._make_solver(self.config), with_init=True)
        if self.with_step:
            self._step = Unrolling(self.system, self.assumed,
                                   self._make_solver(self.config), with_init=False,
                                   invariants=self.invariants)
        if self.cancel_token is not None:
            self.cancel_token.register(self._interrupt)

        try:
            self._search()
        except _Cancelled:
            self._finish_unknown("cancelled")
        finally:
            if self.cancel_token is not None:
                self.cancel_token.unregister(self._interrupt)
        self._settle_state()

        logger.info("%s: %s done in %.2fms", self.name, self.system.name,
                    (time.time() - start_time) * 1000)
        return dict(self.results)

    # Search

    def _search(self):
        for k in range(self.config.max_depth + 1):
            self.depth = k
            self.state = EngineState.BASE_CHECKING
            self._base_case(k)
            if not self._remaining:
                break
            if self._step_acceptable():
                self.state = EngineState.STEP_CHECKING
                if self._step_case(k):
                    return
        if self._remaining:
            self._finish_unknown(self._exhausted_reason())

    def _step_acceptable(self) -> bool:
        return self.with_step and self._base_reason is None

    def _base_case(self, k: int):
        base = self._base
        base.extend_to(k)
        while self._remaining:
            self._check_cancelled()
            result = base.check_violation(self._remaining, k)

            if result.is_sat:
                found = identify_violations(base, self._remaining, k)
                if not found:
                    self._base_unknown(k, "could not identify the violated formula")
                    return
                self._record_violations(found, k)
                continue

            base.close()
            if result.is_unknown:
                self._check_cancelled(result.reason)
                self._base_unknown(k, result.reason or "unknown")
                return

            base.assert_goal(self._remaining, k)
            if self._base_reason is None:
                self.depth_reached = k
                self.events.emit(EventKind.KTRUE, k, self.remaining)
            return

    def _record_violations(self, found, k: int):
        hit = {t.name for t, _ in found}
        for target, trace in found:
            self.results[target.name] = Violated(k, trace)
        names = [t.name for t in self._remaining if t.name in hit]
        self._remaining = [t for t in self._remaining if t.name not in hit]
        self.events.emit(EventKind.DISPROVED, k, names)
        if self._step is not None:
            self._rebuild_step(k)

    def _base_unknown(self, k: int, reason: str):
        if self._base_reason is None:
            self._base_reason = f"base case {reason} at depth {k}"
            self.events.log(k, self._base_reason)

    def _step_case(self, k: int) -> bool:
        step = self._step
        step.extend_to(k + 1)
        step.assert_goal(self._remaining, k)

        self._check_cancelled()
        result = step.check_violation(self._remaining, k + 1)
        step.close()

        if result.is_unsat:
            for target in self._remaining:
                self.results[target.name] = Holds(k)
            self.events.emit(EventKind.PROVED, k, self.remaining)
            self._remaining = []
            self.state = EngineState.PROVED
            return True

        if result.is_unknown:
            self._check_cancelled(result.reason)
            self._step_reason = f"step case {result.reason or 'unknown'} at depth {k}"
            self.events.log(k, self._step_reason)
        else:
            self._step_reason = None
            self.events.log(k, "step case has a counterexample to induction")
        return False

    def _rebuild_step(self, k: int):
        """Restart the step unrolling for the remaining targets."""
        step = self._step
        step.reset()
        step.extend_to(k)
        for j in range(k):
            step.assert_goal(self._remaining, j)

    # Termination

    def _exhausted_reason(self) -> str:
        if self._base_reason is not None:
            return self._base_reason
        if self._step_reason is not None:
            return self._step_reason
        return f"max depth {self.config.max_depth} reached"

    def _finish_unknown(self, reason: str):
        if self._remaining:
            for target in self._remaining:
                self.results[target.name] = Unknown(self.depth_reached, reason)
            self.events.emit(EventKind.UNKNOWN, self.depth, self.remaining, reason)
            self._remaining = []

    def _settle_state(self):
        verdicts = list(self.results.values())
        if any(isinstance(v, Unknown) for v in verdicts):
            self.state = EngineState.UNKNOWN
        elif any(isinstance(v, Violated) for v in verdicts):
            self.state = EngineState.VIOLATED
        else:
            self.state = EngineState.PROVED

    def _check_cancelled(self, reason: Optional[str] = None):
        if reason == "cancelled" or (self.cancel_token is not None
                                     and self.cancel_token.cancelled):
            raise _Cancelled()

    def _interrupt(self):
        for unrolling in (self._base, self._step):
            if unrolling is not None:
                unrolling.solver.interrupt()
