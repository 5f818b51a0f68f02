"""
Substitution and variable-set queries over terms.
"""
from itertools import count
from typing import Dict, FrozenSet, Iterable, Mapping, Set

from ..errors import SortError
from .state import State
from .terms import App, Const, Ite, Let, Op, Term, Var, children


def substitute(term: Term, mapping: Mapping[Var, Term]) -> Term:
    """Replace variable references by terms.

    Keys of `mapping` are staged (`Var(x, State.CURR)`) or local (`Var(x)`)
    references. A let binding of `x` hides the local key `Var(x)` within its
    body. Binders that would capture a free local name of a replacement term
    are renamed to a fresh name.

    Args:
        term: Term to rewrite
        mapping: Variable reference to replacement term

    Returns:
        Rewritten term (the same object when nothing matched)
    """
    if not mapping:
        return term
    return _subst(term, dict(mapping))


def _subst(term: Term, mapping: Dict[Var, Term]) -> Term:
    if isinstance(term, Var):
        return mapping.get(term, term)
    if isinstance(term, Const):
        return term
    if isinstance(term, Op):
        return Op(term.op, tuple(_subst(arg, mapping) for arg in term.args))
    if isinstance(term, App):
        return App(term.name, tuple(_subst(arg, mapping) for arg in term.args))
    if isinstance(term, Ite):
        return Ite(_subst(term.cond, mapping),
                   _subst(term.then, mapping),
                   _subst(term.else_, mapping))
    if isinstance(term, Let):
        return _subst_let(term, mapping)
    raise TypeError(f"Not a term: {term!r}")


def _subst_let(term: Let, mapping: Dict[Var, Term]) -> Term:
    # Parallel let: values live in the outer scope.
    values = [_subst(value, mapping) for _, value in term.bindings]
    bound = {name for name, _ in term.bindings}

    inner = {key: value for key, value in mapping.items()
             if key.state is not None or key.name not in bound}
    if not inner:
        return Let(tuple(zip((n for n, _ in term.bindings), values)), term.body)

    incoming: Set[str] = set()
    for value in inner.values():
        incoming |= free_locals(value)

    names = []
    for name, _ in term.bindings:
        if name in incoming:
            avoid = incoming | bound | free_locals(term.body) | _bound_names(term.body)
            fresh = fresh_name(name, avoid)
            inner[Var(name)] = Var(fresh)
            names.append(fresh)
        else:
            names.append(name)

    return Let(tuple(zip(names, values)), _subst(term.body, inner))


def fresh_name(base: str, avoid: Iterable[str]) -> str:
    """Return `base!n` for the smallest n not in `avoid`."""
    avoid = set(avoid)
    for n in count(1):
        candidate = f"{base}!{n}"
        if candidate not in avoid:
            return candidate
    raise AssertionError("unreachable")


def _bound_names(term: Term) -> Set[str]:
    names: Set[str] = set()
    stack = [term]
    while stack:
        t = stack.pop()
        if isinstance(t, Let):
            names.update(name for name, _ in t.bindings)
        stack.extend(children(t))
    return names


def free_locals(term: Term) -> FrozenSet[str]:
    """Names of local references not bound by an enclosing let."""
    if isinstance(term, Var):
        return frozenset() if term.is_staged else frozenset([term.name])
    if isinstance(term, Let):
        result = set()
        for _, value in term.bindings:
            result |= free_locals(value)
        bound = {name for name, _ in term.bindings}
        result |= free_locals(term.body) - bound
        return frozenset(result)
    result = set()
    for child in children(term):
        result |= free_locals(child)
    return frozenset(result)


def staged_variables(term: Term) -> FrozenSet[Var]:
    """All staged variable references in a term."""
    result = set()
    stack = [term]
    while stack:
        t = stack.pop()
        if isinstance(t, Var) and t.is_staged:
            result.add(t)
        stack.extend(children(t))
    return frozenset(result)


def has_next(term: Term) -> bool:
    return any(v.state is State.NEXT for v in staged_variables(term))


def bump(term: Term) -> Term:
    """Shift a current-state term to the next state.

    Raises:
        SortError: If the term already references the next state
    """
    staged = staged_variables(term)
    if any(v.state is State.NEXT for v in staged):
        raise SortError("cannot bump a term that references the next state", term)
    return substitute(term, {v: Var(v.name, State.NEXT) for v in staged})
