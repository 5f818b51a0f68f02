"""
S-expression rendering of terms.
"""
from fractions import Fraction
import re
from typing import Callable, Optional

from .sorts import Sort
from .terms import App, Const, Ite, Let, Op, Term, Var

_SIMPLE_SYMBOL = re.compile(r"^[A-Za-z~!@$%^&*_+=<>.?/\-][A-Za-z0-9~!@$%^&*_+=<>.?/\-]*$")


def quote_symbol(name: str) -> str:
    """Quote a symbol with |...| when it is not a simple SMT-LIB symbol."""
    if _SIMPLE_SYMBOL.match(name):
        return name
    return f"|{name}|"


def format_value(value, sort: Sort) -> str:
    """Render a literal in SMT-LIB syntax (negatives as `(- n)`)."""
    if sort is Sort.BOOL:
        return "true" if value else "false"
    if sort is Sort.INT:
        value = int(value)
        return str(value) if value >= 0 else f"(- {-value})"

    value = Fraction(value)
    if value.denominator == 1:
        text = f"{abs(value.numerator)}.0"
    else:
        text = f"(/ {abs(value.numerator)}.0 {value.denominator}.0)"
    return text if value >= 0 else f"(- {text})"


def _default_var(var: Var) -> str:
    if var.is_staged:
        return f"(_ {var.state.value} {quote_symbol(var.name)})"
    return quote_symbol(var.name)


def to_sexpr(term: Term, render_var: Optional[Callable[[Var], str]] = None) -> str:
    """Render a term.

    Args:
        term: Term to render
        render_var: Renders staged references; defaults to `(_ curr x)` syntax.
                    Local references are always rendered by name.
    """
    def render(t: Term) -> str:
        if isinstance(t, Const):
            return format_value(t.value, t.sort)
        if isinstance(t, Var):
            if t.is_staged and render_var is not None:
                return render_var(t)
            return _default_var(t)
        if isinstance(t, Op):
            return f"({t.op} {' '.join(render(a) for a in t.args)})"
        if isinstance(t, Ite):
            return f"(ite {render(t.cond)} {render(t.then)} {render(t.else_)})"
        if isinstance(t, Let):
            binds = " ".join(f"({quote_symbol(n)} {render(v)})" for n, v in t.bindings)
            return f"(let ({binds}) {render(t.body)})"
        if isinstance(t, App):
            if not t.args:
                return quote_symbol(t.name)
            return f"({quote_symbol(t.name)} {' '.join(render(a) for a in t.args)})"
        raise TypeError(f"Not a term: {t!r}")

    return render(term)
