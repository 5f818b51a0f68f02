"""External SMT-LIBv2 solvers run as subprocesses.

A solver is invoked once per script, with the script file as its last
argument. It must print the `(check-sat)` verdict on a line of its own and
may follow it with `(get-value ...)` responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import os
import shutil
import subprocess
import time

from ..errors import ParseError
from ..parser.sexpr import Atom, SList, read_all
from .result import SolverResult

logger = logging.getLogger(__name__)

SOLVER_ENV = "KINDUCT_SMT_SOLVER"


@dataclass(frozen=True)
class SolverSpec:
    """Command line of an external SMT-LIBv2 solver.

    Attributes:
        name: Short name used in results and log messages
        argv: Executable followed by the options selecting SMT-LIBv2 input
    """

    name: str
    argv: Tuple[str, ...]

    @property
    def executable(self) -> str:
        return self.argv[0]

    def command(self, smt2_path: Path, extra_args: Sequence[str] = ()) -> List[str]:
        return [*self.argv, *extra_args, str(smt2_path)]


@dataclass(frozen=True)
class SolverRunResult:
    solver_name: str
    result: SolverResult
    stdout: str
    stderr: str
    returncode: int
    time_ms: float


_KNOWN_SOLVERS = {
    "z3": SolverSpec("z3", ("z3", "-smt2")),
    "z3-smt2": SolverSpec("z3", ("z3", "-smt2")),
    "cvc5": SolverSpec("cvc5", ("cvc5", "--lang", "smt2")),
    "cvc4": SolverSpec("cvc4", ("cvc4", "--lang", "smt2")),
    "yices": SolverSpec("yices", ("yices-smt2",)),
    "yices-smt2": SolverSpec("yices-smt2", ("yices-smt2",)),
    "mathsat": SolverSpec("mathsat", ("mathsat",)),
}

_VERDICTS = {
    "sat": SolverResult.SAT,
    "unsat": SolverResult.UNSAT,
    "unknown": SolverResult.UNKNOWN,
}


def resolve_solver(name_or_path: str) -> SolverSpec:
    """Map a known solver name to its command line.

    Anything else is taken as the path of an executable that accepts an
    SMT-LIBv2 file argument.
    """
    known = _KNOWN_SOLVERS.get(name_or_path)
    if known is not None:
        return known
    return SolverSpec(Path(name_or_path).name or name_or_path, (name_or_path,))


def is_solver_available(name_or_path: str) -> bool:
    exe = resolve_solver(name_or_path).executable
    if os.path.dirname(exe):
        return os.path.isfile(exe) and os.access(exe, os.X_OK)
    return shutil.which(exe) is not None


def pick_solver(preferred: Sequence[str] = ("z3", "cvc5", "yices-smt2")) -> Optional[SolverSpec]:
    """First runnable solver, trying $KINDUCT_SMT_SOLVER before `preferred`.

    An override of "z3" names the in-process bindings and is not considered.
    """
    candidates = list(preferred)
    override = os.environ.get(SOLVER_ENV)
    if override and override != "z3":
        candidates.insert(0, override)

    for candidate in candidates:
        if is_solver_available(candidate):
            return resolve_solver(candidate)
    return None


def parse_solver_result(stdout: str) -> SolverResult:
    """Verdict of the first `(check-sat)`; UNKNOWN when none was printed."""
    for line in stdout.splitlines():
        text = line.strip()
        if text in _VERDICTS:
            return _VERDICTS[text]
        if text.startswith("(error"):
            logger.debug("solver error before the verdict: %s", text)
            return SolverResult.UNKNOWN
    return SolverResult.UNKNOWN


def run_solver(
    solver: SolverSpec,
    smt2_file: str | Path,
    *,
    timeout_s: Optional[float] = None,
    extra_args: Sequence[str] = (),
) -> SolverRunResult:
    """Run `solver` on one SMT-LIBv2 file and collect its output.

    Raises:
        subprocess.TimeoutExpired: The solver ran longer than `timeout_s`
        OSError: The executable could not be started
    """
    smt2_path = Path(smt2_file)

    start_time = time.time()
    proc = subprocess.run(solver.command(smt2_path, extra_args),
                          capture_output=True, text=True, timeout=timeout_s)
    elapsed_ms = (time.time() - start_time) * 1000

    result = parse_solver_result(proc.stdout)
    logger.debug("%s %s -> %s (%.2fms)", solver.name, smt2_path.name, result.value, elapsed_ms)
    return SolverRunResult(solver.name, result, proc.stdout, proc.stderr,
                           proc.returncode, elapsed_ms)


def parse_get_value_output(stdout: str) -> Dict[str, object]:
    """Parse SMT-LIB `(get-value ...)` output into symbol -> literal.

    Everything before the first parenthesized response (the sat/unsat line)
    is skipped. Values are returned as bool, int or Fraction; a Real numeral
    such as `2.0` becomes `Fraction(2)`.
    """
    start = stdout.find("(")
    if start < 0:
        return {}

    out: Dict[str, object] = {}
    for top in read_all(stdout[start:], "<solver output>"):
        response = top.form
        if not isinstance(response, SList):
            continue
        if response.items and isinstance(response[0], Atom) and response[0].text == "error":
            raise ParseError(f"solver reported {response}", response.loc)
        for pair in response.items:
            if isinstance(pair, SList) and len(pair) == 2 and isinstance(pair[0], Atom):
                out[pair[0].text] = _literal(pair[1])
    return out


def _literal(expr) -> object:
    if isinstance(expr, Atom):
        text = expr.text
        if text == "true":
            return True
        if text == "false":
            return False
        if "." in text:
            return Fraction(text)
        try:
            return int(text)
        except ValueError:
            raise ParseError(f"unsupported value literal '{text}'", expr.loc) from None

    head = expr[0].text if expr.items and isinstance(expr[0], Atom) else None
    if head == "-" and len(expr) == 2:
        return -_literal(expr[1])
    if head == "/" and len(expr) == 3:
        return Fraction(_literal(expr[1])) / Fraction(_literal(expr[2]))
    raise ParseError(f"unsupported value literal '{expr}'", expr.loc)
