"""
Concrete evaluation of terms over a pair of state rows.

Semantics follow SMT-LIB: `div`/`mod` are Euclidean, Real arithmetic is exact
rational. Division by zero is left uninterpreted by SMT-LIB, so it raises
DomainError here.
"""
from fractions import Fraction
import math
from typing import Dict, Optional

from ..errors import DomainError, SortError, UnresolvedReferenceError
from .state import StateRows
from .terms import App, Const, Ite, Let, Op, Term, Value, Var


def evaluate(term: Term, rows: StateRows, env: Optional[Dict[str, Value]] = None) -> Value:
    """Evaluate `term` with staged references read from `rows`."""
    return _eval(term, rows, dict(env or {}))


def _eval(term: Term, rows: StateRows, env: Dict[str, Value]) -> Value:
    if isinstance(term, Const):
        return term.value
    if isinstance(term, Var):
        return _lookup(term, rows, env)
    if isinstance(term, Ite):
        if _eval(term.cond, rows, env):
            return _eval(term.then, rows, env)
        return _eval(term.else_, rows, env)
    if isinstance(term, Let):
        inner = dict(env)
        for name, value in term.bindings:
            inner[name] = _eval(value, rows, env)
        return _eval(term.body, rows, inner)
    if isinstance(term, Op):
        return _eval_op(term, rows, env)
    if isinstance(term, App):
        raise UnresolvedReferenceError(
            f"cannot evaluate un-inlined application of '{term.name}'", name=term.name)
    raise TypeError(f"Not a term: {term!r}")


def _lookup(var: Var, rows: StateRows, env: Dict[str, Value]) -> Value:
    if not var.is_staged:
        if var.name not in env:
            raise UnresolvedReferenceError(f"Unbound local name '{var.name}'", name=var.name)
        return env[var.name]
    row = rows.row(var.state)
    if row is None or var.name not in row:
        raise UnresolvedReferenceError(
            f"No value for '{var.name}' in the {var.state} row", name=var.name)
    return row[var.name]


def _eval_op(term: Op, rows: StateRows, env: Dict[str, Value]) -> Value:
    name = term.op

    # Short-circuit boolean connectives.
    if name == "and":
        return all(_eval(a, rows, env) for a in term.args)
    if name == "or":
        return any(_eval(a, rows, env) for a in term.args)

    args = [_eval(a, rows, env) for a in term.args]

    if name == "not":
        return not args[0]
    if name == "xor":
        result = False
        for a in args:
            result = result != bool(a)
        return result
    if name == "=>":
        # Right associative: a => (b => c)
        result = bool(args[-1])
        for a in reversed(args[:-1]):
            result = (not a) or result
        return result
    if name == "=":
        return all(a == args[0] for a in args[1:])
    if name == "distinct":
        return len(set(args)) == len(args)
    if name in ("<", "<=", ">", ">="):
        cmp = _COMPARATORS[name]
        return all(cmp(x, y) for x, y in zip(args, args[1:]))
    if name == "+":
        return sum(args[1:], args[0])
    if name == "-":
        if len(args) == 1:
            return -args[0]
        result = args[0]
        for a in args[1:]:
            result = result - a
        return result
    if name == "*":
        result = args[0]
        for a in args[1:]:
            result = result * a
        return result
    if name == "/":
        result = Fraction(args[0])
        for a in args[1:]:
            if a == 0:
                raise DomainError("division by zero", term)
            result = result / Fraction(a)
        return result
    if name in ("div", "mod"):
        m, n = args
        if n == 0:
            raise DomainError(f"'{name}' by zero", term)
        q = euclidean_div(m, n)
        return q if name == "div" else m - n * q
    if name == "abs":
        return abs(args[0])
    if name == "to_real":
        return Fraction(args[0])
    if name == "to_int":
        return math.floor(args[0])
    if name == "is_int":
        return Fraction(args[0]).denominator == 1
    raise SortError(f"Unknown operator '{name}'", term)


def euclidean_div(m: int, n: int) -> int:
    """SMT-LIB integer division: the remainder is always non-negative."""
    if n > 0:
        return m // n
    return -(m // -n)


_COMPARATORS = {
    "<": lambda x, y: x < y,
    "<=": lambda x, y: x <= y,
    ">": lambda x, y: x > y,
    ">=": lambda x, y: x >= y,
}
