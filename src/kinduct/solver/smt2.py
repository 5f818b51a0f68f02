"""SMT-LIBv2 rendering of terms over unrolled state copies.

Solver-independent: only emits text and does not require the Python Z3
bindings. Variable `x` at unrolling index `i` is the constant `x@i`.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Tuple

from ..term import (
    Offsets, Sort, StateSignature, Term, Var, coerce_reals, quote_symbol, to_sexpr,
)


def state_symbol(name: str, offset: int) -> str:
    """Solver-level name of variable `name` at unrolling index `offset`."""
    return f"{name}@{offset}"


def declare_state_smt2(signature: StateSignature, offset: int) -> List[str]:
    """`declare-const` lines for every signature variable at `offset`."""
    return [f"(declare-const {quote_symbol(state_symbol(v.name, offset))} {v.sort})"
            for v in signature]


def term_smt2(term: Term, offsets: Offsets) -> str:
    """Render `term` with staged references bound to `offsets`."""
    def render_var(var: Var) -> str:
        return quote_symbol(state_symbol(var.name, offsets[var.state]))

    return to_sexpr(term, render_var)


def assert_smt2(term: Term, offsets: Offsets) -> str:
    return f"(assert {term_smt2(term, offsets)})"


def coerced_assert_smt2(term: Term, offsets: Offsets,
                        signature: StateSignature) -> Tuple[str, FrozenSet[Sort]]:
    """Assertion of `term` with every Int to Real promotion made explicit.

    Returns:
        The `(assert ...)` line and the sorts of all subterms, for `logic_for`
    """
    coerced, sorts = coerce_reals(term, signature)
    return assert_smt2(coerced, offsets), sorts


def get_value_smt2(symbols: Iterable[str]) -> str:
    return "(get-value (" + " ".join(quote_symbol(s) for s in symbols) + "))"


def logic_for(sorts: Iterable[Sort]) -> str:
    """Pick the narrowest standard logic covering `sorts`.

    Nonlinear terms are allowed, so the arithmetic logics are the nonlinear
    ones.
    """
    sorts = set(sorts)
    if Sort.INT in sorts and Sort.REAL in sorts:
        return "QF_NIRA"
    if Sort.REAL in sorts:
        return "QF_NRA"
    if Sort.INT in sorts:
        return "QF_NIA"
    return "QF_UF"
