"""
Incremental unrollings of a flat system for the base and step cases.

Positions are unrolling indices: state Xj is the copy of the signature at
index j. The goal at position j is every target property at Xj and, for
j >= 1, every to-be-proved relation at (X(j-1), Xj). Properties are shifted
to the next state so the whole goal is one formula over a single pair of
indices.
"""
import logging
from typing import List, Optional, Sequence, Tuple, Union

from ..errors import DomainError, SolverError
from ..system import FlatSystem, Property, Relation
from ..term import Offsets, Term, TRUE, bump, conjunction, negate
from ..solver import CheckResult, SolverBackend
from .trace import CounterexampleTrace

logger = logging.getLogger(__name__)

Target = Union[Property, Relation]


def target_at(target: Target, j: int) -> Optional[Tuple[Term, Offsets]]:
    """The target's part of Goal(j), or None when it has none at j."""
    if isinstance(target, Property):
        if j == 0:
            return target.formula, Offsets.at(0)
        return bump(target.formula), Offsets.at(j - 1)
    if j == 0:
        return None
    return target.formula, Offsets.at(j - 1)


def goal_at(targets: Sequence[Target], j: int) -> Tuple[Term, Offsets]:
    """Goal(j) of `targets` as one formula with its offsets."""
    parts = [p for p in (target_at(t, j) for t in targets) if p is not None]
    offsets = Offsets.at(0) if j == 0 else Offsets.at(j - 1)
    return conjunction(term for term, _ in parts), offsets


class Unrolling:
    """A solver session over X0..Xn of a flat system.

    Args:
        system: Flattened system
        assumed: Assumed relations, asserted on every adjacent pair
        solver: Fresh solver session owned by this unrolling
        with_init: Constrain X0 by the initial predicate (base case)
        invariants: Known invariants, asserted on every state
    """

    def __init__(self, system: FlatSystem, assumed: Sequence[Relation],
                 solver: SolverBackend, with_init: bool,
                 invariants: Sequence[Property] = ()):
        self.system = system
        self.assumed = tuple(assumed)
        self.invariants = tuple(invariants)
        self.solver = solver
        self.with_init = with_init
        self.last = -1
        self._start()

    def _start(self):
        self.last = 0
        self.solver.declare_state(self.system.signature, 0)
        if self.with_init:
            self.solver.assert_formula(self.system.init, Offsets.at(0))
        for inv in self.invariants:
            self.solver.assert_formula(inv.formula, Offsets.at(0))

    def reset(self):
        self.solver.reset()
        self._start()

    def extend_to(self, n: int):
        """Unroll the transition relation up to Xn."""
        while self.last < n:
            pair = Offsets.at(self.last)
            self.solver.declare_state(self.system.signature, pair.next)
            self.solver.assert_formula(self.system.trans, pair)
            for rel in self.assumed:
                self.solver.assert_formula(rel.formula, pair)
            for inv in self.invariants:
                self.solver.assert_formula(bump(inv.formula), pair)
            self.last = pair.next

    def assert_goal(self, targets: Sequence[Target], j: int):
        term, offsets = goal_at(targets, j)
        if term != TRUE:
            self.solver.assert_formula(term, offsets)

    def check_violation(self, targets: Sequence[Target], j: int) -> CheckResult:
        """Check whether some target can fail at position j.

        The negated goal is pushed in its own scope, which stays open so a
        model can be inspected; call `close()` after every check.
        """
        term, offsets = goal_at(targets, j)
        self.solver.push()
        self.solver.assert_formula(negate(term), offsets)
        return self.solver.check_sat()

    def close(self):
        self.solver.pop()

    def falsified(self, targets: Sequence[Target], j: int) -> List[Target]:
        """Targets the current model falsifies at position j."""
        result = []
        for target in targets:
            part = target_at(target, j)
            if part is None:
                continue
            if not self.solver.evaluate(*part):
                result.append(target)
        return result

    def trace(self, depth: int) -> CounterexampleTrace:
        return CounterexampleTrace.from_model(
            self.solver.get_model(), self.system.signature, depth)


def identify_violations(unrolling: Unrolling, targets: Sequence[Target],
                        depth: int) -> List[Tuple[Target, CounterexampleTrace]]:
    """Targets falsified at `depth`, each with a counterexample.

    Expects the scope left open by a SAT `check_violation` and closes it. When
    the model cannot be evaluated, each target is checked on its own.
    """
    try:
        hit = unrolling.falsified(targets, depth)
        trace = unrolling.trace(depth) if hit else None
    except (DomainError, SolverError) as e:
        logger.debug("model evaluation failed at depth %d: %s", depth, e)
        hit = []
        trace = None
    unrolling.close()

    if hit:
        return [(t, trace) for t in hit]

    found = []
    for target in targets:
        if target_at(target, depth) is None:
            continue
        result = unrolling.check_violation([target], depth)
        if result.is_sat:
            found.append((target, unrolling.trace(depth)))
        unrolling.close()
    return found
