"""
Serializes declarations back to the input syntax.

Output is re-readable by `parse_source`. Declarations are emitted in their
stored (macro-inlined) form, so re-reading yields the same semantics, not
necessarily the same text.
"""
from typing import List, Optional

from ..system import Context, Property, Relation, RelationMode, System
from ..term import Macro, Term, quote_symbol, to_sexpr
from .reader import VerifyCommand


def _doc_lines(doc: Optional[str]) -> List[str]:
    if not doc:
        return []
    return [f";{line}" if line.startswith(" ") or not line else f"; {line}"
            for line in doc.split("\n")]


def _bindings(variables) -> str:
    return "(" + " ".join(f"({quote_symbol(v.name)} {v.sort})" for v in variables) + ")"


def serialize_term(term: Term) -> str:
    return to_sexpr(term)


def serialize_macro(macro: Macro) -> str:
    return (f"(define-fun {quote_symbol(macro.name)} {_bindings(macro.params)} "
            f"{macro.sort} {to_sexpr(macro.body)})")


def serialize_system(system: System) -> str:
    lines = _doc_lines(system.doc)
    head = f"(define-sys {quote_symbol(system.name)} {_bindings(system.signature)}"
    body = [f"  {to_sexpr(system.init)}", f"  {to_sexpr(system.trans)}"]
    if system.subsystems:
        insts = []
        for inst in system.subsystems:
            c_args = " ".join(to_sexpr(a) for a in inst.curr_args)
            n_args = " ".join(to_sexpr(a) for a in inst.next_args)
            insts.append(f"({quote_symbol(inst.system_name)} ({c_args}) ({n_args}))")
        body.append("  (" + "\n   ".join(insts) + ")")
    lines.append(head)
    lines.extend(body)
    lines[-1] += ")"
    return "\n".join(lines)


def serialize_property(prop: Property) -> str:
    lines = _doc_lines(prop.doc)
    lines.append(f"(define-prop {quote_symbol(prop.name)} {quote_symbol(prop.system_name)} "
                 f"{to_sexpr(prop.formula)})")
    return "\n".join(lines)


def serialize_relation(rel: Relation) -> str:
    lines = _doc_lines(rel.doc)
    flag = " :assumed" if rel.mode is RelationMode.ASSUMED else ""
    lines.append(f"(define-rel {quote_symbol(rel.name)} {quote_symbol(rel.system_name)} "
                 f"{to_sexpr(rel.formula)}{flag})")
    return "\n".join(lines)


def serialize_command(cmd: VerifyCommand) -> str:
    names = " ".join(quote_symbol(n) for n in cmd.names)
    return f"(verify {quote_symbol(cmd.system_name)} ({names}))"


def serialize_context(context: Context, commands=()) -> str:
    """Render every declaration of `context`, followed by `commands`."""
    parts = [serialize_macro(m) for m in context.macros.values()]
    parts.extend(serialize_system(s) for s in context.systems.values())

    formulas = list(context.properties.values()) + list(context.relations.values())
    formulas.sort(key=lambda f: context.declaration_index(f.name))
    for formula in formulas:
        if isinstance(formula, Property):
            parts.append(serialize_property(formula))
        else:
            parts.append(serialize_relation(formula))

    parts.extend(serialize_command(c) for c in commands)
    return "\n\n".join(parts) + "\n"
