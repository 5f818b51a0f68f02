"""
Z3 SMT solver backend implementation.

Each session owns a private `z3.Context`, so independent sessions can run on
separate threads and be interrupted individually.
"""
from fractions import Fraction
from functools import reduce
import logging
import time
from typing import Dict, List, Optional, Tuple
import operator
import threading

import z3

from ..errors import SolverError, SortError, UnresolvedReferenceError
from ..term import App, Const, Ite, Let, Offsets, Op, Sort, StateSignature, Term, Var
from ..term.terms import Value
from .base import Model
from .smt2 import state_symbol
from .result import CheckResult, SolverResult

logger = logging.getLogger(__name__)


class Z3Encoder:
    """Translates terms to Z3 expressions over declared state copies."""

    def __init__(self, ctx: z3.Context, consts: Dict[Tuple[str, int], z3.ExprRef]):
        self.ctx = ctx
        self.consts = consts

    def encode(self, term: Term, offsets: Offsets) -> z3.ExprRef:
        return self._encode(term, offsets, {})

    def _encode(self, term: Term, offsets: Offsets, env: Dict[str, z3.ExprRef]) -> z3.ExprRef:
        if isinstance(term, Const):
            return self._const(term)
        if isinstance(term, Var):
            if not term.is_staged:
                if term.name not in env:
                    raise UnresolvedReferenceError(
                        f"Unbound local name '{term.name}'", name=term.name)
                return env[term.name]
            key = (term.name, offsets[term.state])
            if key not in self.consts:
                raise SolverError(
                    f"'{term.name}' is not declared at index {key[1]}")
            return self.consts[key]
        if isinstance(term, Ite):
            return z3.If(self._encode(term.cond, offsets, env),
                         self._encode(term.then, offsets, env),
                         self._encode(term.else_, offsets, env), self.ctx)
        if isinstance(term, Let):
            inner = dict(env)
            for name, value in term.bindings:
                inner[name] = self._encode(value, offsets, env)
            return self._encode(term.body, offsets, inner)
        if isinstance(term, Op):
            args = [self._encode(a, offsets, env) for a in term.args]
            return self._op(term, args)
        if isinstance(term, App):
            raise UnresolvedReferenceError(
                f"un-inlined application of '{term.name}'", name=term.name)
        raise TypeError(f"Not a term: {term!r}")

    def _const(self, term: Const) -> z3.ExprRef:
        if term.sort is Sort.BOOL:
            return z3.BoolVal(bool(term.value), self.ctx)
        if term.sort is Sort.INT:
            return z3.IntVal(int(term.value), self.ctx)
        return z3.RealVal(str(Fraction(term.value)), self.ctx)

    def _op(self, term: Op, args: List[z3.ExprRef]) -> z3.ExprRef:
        name = term.op
        if name == "not":
            return z3.Not(args[0], self.ctx)
        if name == "and":
            return z3.And(*args)
        if name == "or":
            return z3.Or(*args)
        if name == "xor":
            return reduce(lambda a, b: z3.Xor(a, b, self.ctx), args)
        if name == "=>":
            return reduce(lambda acc, a: z3.Implies(a, acc, self.ctx), reversed(args[:-1]), args[-1])
        if name == "=":
            return self._chain(args, operator.eq)
        if name == "distinct":
            return z3.Distinct(*args)
        if name == "<":
            return self._chain(args, operator.lt)
        if name == "<=":
            return self._chain(args, operator.le)
        if name == ">":
            return self._chain(args, operator.gt)
        if name == ">=":
            return self._chain(args, operator.ge)
        if name == "+":
            return reduce(operator.add, args)
        if name == "-":
            if len(args) == 1:
                return -args[0]
            return reduce(operator.sub, args)
        if name == "*":
            return reduce(operator.mul, args)
        if name == "/":
            return reduce(operator.truediv, [self._to_real(a) for a in args])
        if name == "div":
            return args[0] / args[1]
        if name == "mod":
            return args[0] % args[1]
        if name == "abs":
            zero = z3.IntVal(0, self.ctx) if z3.is_int(args[0]) else z3.RealVal(0, self.ctx)
            return z3.If(args[0] >= zero, args[0], -args[0], self.ctx)
        if name == "to_real":
            return z3.ToReal(args[0])
        if name == "to_int":
            return z3.ToInt(self._to_real(args[0]))
        if name == "is_int":
            return z3.IsInt(self._to_real(args[0]))
        raise SortError(f"Unknown operator '{name}'", term)

    def _to_real(self, expr: z3.ExprRef) -> z3.ExprRef:
        return z3.ToReal(expr) if z3.is_int(expr) else expr

    def _chain(self, args: List[z3.ExprRef], cmp) -> z3.ExprRef:
        pairs = [cmp(a, b) for a, b in zip(args, args[1:])]
        if len(pairs) == 1:
            return pairs[0]
        return z3.And(*pairs)


def to_python(value: z3.ExprRef) -> Value:
    """Convert a Z3 model value to a Python literal."""
    if z3.is_true(value):
        return True
    if z3.is_false(value):
        return False
    if z3.is_int_value(value):
        return value.as_long()
    if z3.is_rational_value(value):
        return Fraction(value.numerator_as_long(), value.denominator_as_long())
    if z3.is_algebraic_value(value):
        approx = value.approx(20)
        return Fraction(approx.numerator_as_long(), approx.denominator_as_long())
    raise SolverError(f"Unsupported model value: {value}")


class Z3Solver:
    """Z3 solver backend wrapper.

    Args:
        timeout_ms: Per-check timeout passed to Z3, None for no limit
    """

    name = "z3"

    def __init__(self, timeout_ms: Optional[int] = None):
        self.ctx = z3.Context()
        self.timeout_ms = timeout_ms
        # Set once interrupt() is called; survives reset().
        self._cancelled = threading.Event()
        self._init_solver()

    def _init_solver(self):
        self.solver = z3.Solver(ctx=self.ctx)
        if self.timeout_ms is not None:
            self.solver.set("timeout", int(self.timeout_ms))
        self._consts: Dict[Tuple[str, int], z3.ExprRef] = {}
        self._encoder = Z3Encoder(self.ctx, self._consts)
        self._scopes = 0
        self._model: Optional[z3.ModelRef] = None

    def declare_state(self, signature: StateSignature, offset: int) -> None:
        for var in signature:
            key = (var.name, offset)
            if key in self._consts:
                continue
            symbol = state_symbol(var.name, offset)
            if var.sort is Sort.BOOL:
                const = z3.Bool(symbol, self.ctx)
            elif var.sort is Sort.INT:
                const = z3.Int(symbol, self.ctx)
            else:
                const = z3.Real(symbol, self.ctx)
            self._consts[key] = const

    def assert_formula(self, term: Term, offsets: Offsets) -> None:
        self.solver.add(self._encoder.encode(term, offsets))

    def push(self) -> None:
        self.solver.push()
        self._scopes += 1

    def pop(self) -> None:
        if self._scopes == 0:
            raise SolverError("pop without a matching push")
        self.solver.pop()
        self._scopes -= 1
        self._model = None

    def check_sat(self) -> CheckResult:
        if self._cancelled.is_set():
            self._model = None
            return CheckResult(SolverResult.UNKNOWN, reason="cancelled", solver_name=self.name)

        start_time = time.time()
        result = self.solver.check()
        elapsed_ms = (time.time() - start_time) * 1000

        if result == z3.sat:
            self._model = self.solver.model()
            return CheckResult(SolverResult.SAT, time_ms=elapsed_ms, solver_name=self.name)

        self._model = None
        if result == z3.unsat:
            return CheckResult(SolverResult.UNSAT, time_ms=elapsed_ms, solver_name=self.name)

        reason = self._unknown_reason(self.solver.reason_unknown())
        logger.debug("z3 returned unknown: %s", reason)
        return CheckResult(SolverResult.UNKNOWN, reason=reason, time_ms=elapsed_ms,
                           solver_name=self.name)

    def get_model(self) -> Model:
        model = self._require_model()
        return {key: to_python(model.eval(const, model_completion=True))
                for key, const in self._consts.items()}

    def evaluate(self, term: Term, offsets: Offsets) -> Value:
        model = self._require_model()
        return to_python(model.eval(self._encoder.encode(term, offsets), model_completion=True))

    def reset(self) -> None:
        self._init_solver()

    def interrupt(self) -> None:
        self._cancelled.set()
        self.ctx.interrupt()

    def _require_model(self) -> z3.ModelRef:
        if self._model is None:
            raise SolverError("no model available: the last check was not SAT")
        return self._model

    def _unknown_reason(self, reason: str) -> str:
        """Map Z3's reason_unknown() onto the engine's reason vocabulary.

        Z3 reports both an expired timeout and ctx.interrupt() as "canceled",
        so "cancelled" is only reported once interrupt() has been called on
        this session.
        """
        if self._cancelled.is_set():
            return "cancelled"
        if "timeout" in reason:
            return "timeout"
        if reason in ("canceled", "cancelled") and self.timeout_ms is not None:
            return "timeout"
        return reason or "unknown"
