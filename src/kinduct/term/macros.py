"""
Macro definitions and the inlining pre-pass.

Macros (`define-fun`) are expanded before any system is built, so solver
queries only ever see fully substituted terms.
"""
from dataclasses import dataclass
from typing import Mapping, Tuple

from ..errors import ArityError, MacroCycleError, UnboundMacroError
from .sorts import Sort, Variable
from .substitute import substitute
from .terms import App, Const, Ite, Let, Op, Term, Var

# Bound on nested expansions before inlining is declared non-terminating.
MAX_INLINE_DEPTH = 64


@dataclass(frozen=True)
class Macro:
    """A named 0-ary constant or n-ary function macro.

    Attributes:
        name: Macro name
        params: Formal parameters, referenced in `body` as local variables
        sort: Declared return sort
        body: Definition body
    """
    name: str
    params: Tuple[Variable, ...]
    sort: Sort
    body: Term

    @property
    def arity(self) -> int:
        return len(self.params)


def inline_macros(term: Term, macros: Mapping[str, Macro],
                  max_depth: int = MAX_INLINE_DEPTH) -> Term:
    """Replace every macro application by its instantiated body.

    Expansion is repeated until no application remains.

    Raises:
        UnboundMacroError: An applied name has no definition
        ArityError: Wrong number of arguments
        MacroCycleError: Expansion nests deeper than `max_depth`
    """
    return _inline(term, macros, 0, max_depth, ())


def _inline(term: Term, macros: Mapping[str, Macro], depth: int,
            max_depth: int, chain: Tuple[str, ...]) -> Term:
    if isinstance(term, (Const, Var)):
        return term
    if isinstance(term, Op):
        return Op(term.op, tuple(_inline(a, macros, depth, max_depth, chain)
                                 for a in term.args))
    if isinstance(term, Ite):
        return Ite(_inline(term.cond, macros, depth, max_depth, chain),
                   _inline(term.then, macros, depth, max_depth, chain),
                   _inline(term.else_, macros, depth, max_depth, chain))
    if isinstance(term, Let):
        return Let(tuple((name, _inline(value, macros, depth, max_depth, chain))
                         for name, value in term.bindings),
                   _inline(term.body, macros, depth, max_depth, chain))
    if isinstance(term, App):
        macro = macros.get(term.name)
        if macro is None:
            raise UnboundMacroError(f"Undefined function '{term.name}'", name=term.name)
        if len(term.args) != macro.arity:
            raise ArityError(
                f"'{term.name}' expects {macro.arity} argument(s), got {len(term.args)}",
                term)
        if depth >= max_depth:
            raise MacroCycleError(
                f"macro expansion exceeded depth {max_depth}: "
                + " -> ".join(chain + (term.name,)))

        args = [_inline(a, macros, depth, max_depth, chain) for a in term.args]
        body = substitute(macro.body, {Var(p.name): a for p, a in zip(macro.params, args)})
        return _inline(body, macros, depth + 1, max_depth, chain + (term.name,))
    raise TypeError(f"Not a term: {term!r}")
