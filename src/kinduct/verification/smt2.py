"""SMT-LIBv2 problem generation for BMC and k-induction.

This is solver-independent: it only emits SMT-LIBv2 and does not require the
Python Z3 bindings. Each function writes one standalone query for a single
depth, mirroring what the incremental engine asks its solver session.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from ..system import FlatSystem, Relation
from ..solver.smt2 import (
    coerced_assert_smt2, declare_state_smt2, get_value_smt2, logic_for, state_symbol,
)
from ..term import Offsets, Sort, Term, negate
from .unrolling import Target, goal_at


class _Script:
    """Collects the assertions of one query and the sorts they use."""

    def __init__(self, system: FlatSystem):
        self.system = system
        self.asserts: list[str] = []
        self.sorts: set[Sort] = {v.sort for v in system.signature}

    def add(self, term: Term, offsets: Offsets):
        line, sorts = coerced_assert_smt2(term, offsets, self.system.signature)
        self.asserts.append(line)
        self.sorts.update(sorts)

    def render(self, title: str, n: int, get_model: bool) -> str:
        lines = [
            f"; {title}",
            "(set-option :produce-models true)",
            f"(set-logic {logic_for(self.sorts)})",
            "",
        ]
        for i in range(n + 1):
            lines.extend(declare_state_smt2(self.system.signature, i))
        lines.extend(self.asserts)
        lines.append("(check-sat)")
        if get_model:
            lines.append(get_value_smt2(
                state_symbol(v.name, i) for i in range(n + 1) for v in self.system.signature))
        return "\n".join(lines) + "\n"


def _unroll(script: _Script, assumed: Sequence[Relation], n: int):
    for i in range(n):
        script.add(script.system.trans, Offsets.at(i))
        for rel in assumed:
            script.add(rel.formula, Offsets.at(i))


def generate_base_smt2(system: FlatSystem, targets: Sequence[Target], *, k: int,
                       assumed: Sequence[Relation] = (), get_model: bool = True) -> str:
    """Generate SMT2 for the base case at depth k.

    SAT means some target fails in a state reachable in exactly k steps.
    Earlier goals are not asserted, so the query stands on its own.
    """
    script = _Script(system)
    _unroll(script, assumed, k)
    script.add(system.init, Offsets.at(0))
    term, offsets = goal_at(targets, k)
    script.add(negate(term), offsets)
    return script.render(f"base case for {system.name} k={k}", k, get_model)


def generate_step_smt2(system: FlatSystem, targets: Sequence[Target], *, k: int,
                       assumed: Sequence[Relation] = (), get_model: bool = True) -> str:
    """Generate SMT2 for the inductive step at depth k.

    UNSAT means the inductive step holds (i.e. no counterexample to induction).
    SAT means induction fails (not necessarily that a target is false).
    """
    script = _Script(system)
    _unroll(script, assumed, k + 1)
    for j in range(k + 1):
        term, offsets = goal_at(targets, j)
        script.add(term, offsets)
    term, offsets = goal_at(targets, k + 1)
    script.add(negate(term), offsets)
    return script.render(f"k-induction inductive step for {system.name} k={k}", k + 1,
                         get_model)


def write_base_smt2(system: FlatSystem, targets: Sequence[Target], out_file: str | Path,
                    *, k: int, assumed: Sequence[Relation] = (), get_model: bool = True) -> Path:
    out_path = Path(out_file)
    out_path.write_text(generate_base_smt2(system, targets, k=k, assumed=assumed,
                                           get_model=get_model))
    return out_path


def write_step_smt2(system: FlatSystem, targets: Sequence[Target], out_file: str | Path,
                    *, k: int, assumed: Sequence[Relation] = (), get_model: bool = True) -> Path:
    out_path = Path(out_file)
    out_path.write_text(generate_step_smt2(system, targets, k=k, assumed=assumed,
                                           get_model=get_model))
    return out_path
