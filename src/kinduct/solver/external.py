"""
External SMT solver backend.

The session is kept in Python: declarations and scoped assertions are
recorded, and every `check_sat` writes one self-contained SMT-LIBv2 script
and runs the solver executable on it through `solver_runner`. Model values
come back through `(get-value ...)`.
"""
from fractions import Fraction
import logging
from pathlib import Path
import subprocess
import tempfile
import threading
from typing import Dict, List, Optional, Set, Tuple

from ..errors import ParseError, SolverError
from ..term import Offsets, Sort, StateRows, StateSignature, Term, Variable, evaluate
from ..term.terms import Value
from .base import Model
from .result import CheckResult, SolverResult
from .smt2 import (
    coerced_assert_smt2, declare_state_smt2, get_value_smt2, logic_for, state_symbol,
)
from .solver_runner import SolverSpec, parse_get_value_output, resolve_solver, run_solver

logger = logging.getLogger(__name__)


class ExternalSolver:
    """Solver session backed by an external SMT-LIBv2 executable.

    Args:
        solver: Solver name known to `solver_runner` or a path to an executable
        timeout_ms: Wall-clock limit for each solver process
    """

    def __init__(self, solver: str = "z3", timeout_ms: Optional[int] = None):
        self.spec: SolverSpec = resolve_solver(solver)
        self.name = self.spec.name
        self.timeout_ms = timeout_ms
        self._cancelled = threading.Event()
        self.reset()

    def reset(self) -> None:
        self._variables: Dict[Tuple[str, int], Variable] = {}
        self._declarations: List[str] = []
        self._frames: List[List[str]] = [[]]
        self._frame_sorts: List[Set[Sort]] = [set()]
        self._model: Optional[Model] = None

    def declare_state(self, signature: StateSignature, offset: int) -> None:
        fresh = [v for v in signature if (v.name, offset) not in self._variables]
        for var in fresh:
            self._variables[(var.name, offset)] = var
        self._declarations.extend(declare_state_smt2(StateSignature(tuple(fresh)), offset))

    def assert_formula(self, term: Term, offsets: Offsets) -> None:
        line, sorts = coerced_assert_smt2(term, offsets, self._signature())
        self._frames[-1].append(line)
        self._frame_sorts[-1].update(sorts)

    def push(self) -> None:
        self._frames.append([])
        self._frame_sorts.append(set())

    def pop(self) -> None:
        if len(self._frames) == 1:
            raise SolverError("pop without a matching push")
        self._frames.pop()
        self._frame_sorts.pop()
        self._model = None

    def script(self) -> str:
        """The SMT-LIBv2 script the next `check_sat` runs."""
        symbols = [state_symbol(name, offset) for name, offset in self._variables]
        lines = [
            "(set-option :produce-models true)",
            f"(set-logic {logic_for(self._sorts())})",
            *self._declarations,
        ]
        for frame in self._frames:
            lines.extend(frame)
        lines.append("(check-sat)")
        if symbols:
            lines.append(get_value_smt2(symbols))
        return "\n".join(lines) + "\n"

    def check_sat(self) -> CheckResult:
        self._model = None
        if self._cancelled.is_set():
            return CheckResult(SolverResult.UNKNOWN, reason="cancelled", solver_name=self.name)

        timeout_s = self.timeout_ms / 1000.0 if self.timeout_ms is not None else None
        with tempfile.TemporaryDirectory(prefix="kinduct-") as tmp:
            smt2_path = Path(tmp) / "check.smt2"
            smt2_path.write_text(self.script())
            try:
                run = run_solver(self.spec, smt2_path, timeout_s=timeout_s)
            except subprocess.TimeoutExpired:
                logger.debug("%s timed out after %sms", self.name, self.timeout_ms)
                return CheckResult(SolverResult.UNKNOWN, reason="timeout",
                                   time_ms=float(self.timeout_ms or 0), solver_name=self.name)
            except OSError as e:
                logger.warning("could not run %s: %s", self.name, e)
                return CheckResult(SolverResult.UNKNOWN, reason=f"solver failed: {e}",
                                   solver_name=self.name)

        if run.result is SolverResult.SAT:
            try:
                self._model = self._read_model(run.stdout)
            except ParseError as e:
                logger.warning("%s returned an unreadable model: %s", self.name, e)
                return CheckResult(SolverResult.UNKNOWN, reason="unreadable model",
                                   time_ms=run.time_ms, solver_name=self.name)
            return CheckResult(SolverResult.SAT, time_ms=run.time_ms, solver_name=self.name)

        reason = None
        if run.result is SolverResult.UNKNOWN:
            reason = "unknown" if run.returncode == 0 else f"solver exited with {run.returncode}"
        return CheckResult(run.result, reason=reason, time_ms=run.time_ms, solver_name=self.name)

    def get_model(self) -> Model:
        if self._model is None:
            raise SolverError("no model available: the last check was not SAT")
        return dict(self._model)

    def evaluate(self, term: Term, offsets: Offsets) -> Value:
        model = self.get_model()
        rows = StateRows(self._row(model, offsets.curr), self._row(model, offsets.next))
        return evaluate(term, rows)

    def interrupt(self) -> None:
        # A running process is left to finish; later checks return UNKNOWN.
        self._cancelled.set()

    def _signature(self) -> StateSignature:
        by_name = {name: var for (name, _), var in self._variables.items()}
        return StateSignature(tuple(by_name.values()))

    def _sorts(self) -> Set[Sort]:
        sorts = {var.sort for var in self._variables.values()}
        for frame in self._frame_sorts:
            sorts.update(frame)
        return sorts

    def _row(self, model: Model, offset: int) -> Dict[str, Value]:
        return {name: value for (name, idx), value in model.items() if idx == offset}

    def _read_model(self, stdout: str) -> Model:
        values = parse_get_value_output(stdout)
        model: Model = {}
        for key, var in self._variables.items():
            symbol = state_symbol(*key)
            if symbol not in values:
                raise ParseError(f"no value for '{symbol}' in solver output")
            value = values[symbol]
            if var.sort is Sort.REAL:
                value = Fraction(value)
            elif var.sort is Sort.INT:
                value = int(value)
            model[key] = value
        return model
