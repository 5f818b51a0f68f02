"""
Symbolic term representation.

Terms are immutable, hashable trees. Variants:

- `Const`: Bool / Int / Real literal (Real values are exact `Fraction`s)
- `Var`: staged state-variable reference (`state` is CURR or NEXT) or a
  local reference to a let-bound name or macro parameter (`state` is None)
- `Op`: builtin operator application
- `Ite`: if-then-else
- `Let`: parallel let-binding
- `App`: application of a user-defined macro (removed by inlining)
"""
from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable, Optional, Tuple, Union

from .sorts import Sort
from .state import State

Value = Union[bool, int, Fraction]


# Builtin operators with their (minimum, maximum) argument counts; None is
# unbounded.
OPERATORS = {
    "not": (1, 1),
    "and": (1, None),
    "or": (1, None),
    "xor": (2, None),
    "=>": (2, None),
    "=": (2, None),
    "distinct": (2, None),
    "+": (1, None),
    "-": (1, None),
    "*": (2, None),
    "/": (2, None),
    "div": (2, 2),
    "mod": (2, 2),
    "abs": (1, 1),
    "<": (2, None),
    "<=": (2, None),
    ">": (2, None),
    ">=": (2, None),
    "to_real": (1, 1),
    "to_int": (1, 1),
    "is_int": (1, 1),
}

BOOL_OPS = frozenset(["not", "and", "or", "xor", "=>"])
EQUALITY_OPS = frozenset(["=", "distinct"])
ARITH_OPS = frozenset(["+", "-", "*", "/", "div", "mod", "abs"])
COMPARISON_OPS = frozenset(["<", "<=", ">", ">="])


@dataclass(frozen=True)
class Const:
    value: Value
    sort: Sort

    def __str__(self) -> str:
        from .printer import to_sexpr
        return to_sexpr(self)


@dataclass(frozen=True)
class Var:
    name: str
    state: Optional[State] = None

    @property
    def is_staged(self) -> bool:
        return self.state is not None

    def __str__(self) -> str:
        from .printer import to_sexpr
        return to_sexpr(self)


@dataclass(frozen=True)
class Op:
    op: str
    args: Tuple["Term", ...]

    def __str__(self) -> str:
        from .printer import to_sexpr
        return to_sexpr(self)


@dataclass(frozen=True)
class Ite:
    cond: "Term"
    then: "Term"
    else_: "Term"

    def __str__(self) -> str:
        from .printer import to_sexpr
        return to_sexpr(self)


@dataclass(frozen=True)
class Let:
    bindings: Tuple[Tuple[str, "Term"], ...]
    body: "Term"

    def __str__(self) -> str:
        from .printer import to_sexpr
        return to_sexpr(self)


@dataclass(frozen=True)
class App:
    name: str
    args: Tuple["Term", ...] = ()

    def __str__(self) -> str:
        from .printer import to_sexpr
        return to_sexpr(self)


Term = Union[Const, Var, Op, Ite, Let, App]

TRUE = Const(True, Sort.BOOL)
FALSE = Const(False, Sort.BOOL)


def bool_const(value: bool) -> Const:
    return TRUE if value else FALSE


def int_const(value: int) -> Const:
    return Const(int(value), Sort.INT)


def real_const(value) -> Const:
    return Const(Fraction(value), Sort.REAL)


def curr(name: str) -> Var:
    return Var(name, State.CURR)


def nxt(name: str) -> Var:
    return Var(name, State.NEXT)


def op(name: str, *args: Term) -> Op:
    return Op(name, tuple(args))


def conjunction(terms: Iterable[Term]) -> Term:
    """Conjoin terms, dropping literal `true` and flattening nested `and`."""
    parts = []
    for term in terms:
        if term == TRUE:
            continue
        if isinstance(term, Op) and term.op == "and":
            parts.extend(term.args)
        else:
            parts.append(term)
    if not parts:
        return TRUE
    if len(parts) == 1:
        return parts[0]
    return Op("and", tuple(parts))


def negate(term: Term) -> Term:
    if isinstance(term, Const) and term.sort is Sort.BOOL:
        return bool_const(not term.value)
    if isinstance(term, Op) and term.op == "not":
        return term.args[0]
    return Op("not", (term,))


def children(term: Term) -> Tuple[Term, ...]:
    """Direct subterms of a term (let values before the body)."""
    if isinstance(term, (Op, App)):
        return term.args
    if isinstance(term, Ite):
        return (term.cond, term.then, term.else_)
    if isinstance(term, Let):
        return tuple(value for _, value in term.bindings) + (term.body,)
    return ()
