"""
Solver-backed term analyses: equivalence and invariant pruning.
"""
import logging
from typing import List, Optional, Sequence

from ..config import EngineConfig
from ..system import FlatSystem, Property
from ..solver import make_solver
from ..term import Offsets, StateSignature, Term, conjunction, negate, op

logger = logging.getLogger(__name__)


def check_equivalent(a: Term, b: Term, signature: StateSignature,
                     config: Optional[EngineConfig] = None) -> Optional[bool]:
    """Decide whether `a` and `b` agree on every pair of states.

    Both terms are read over (curr, next) of `signature` and must have
    compatible sorts.

    Returns:
        True if equivalent, False if some assignment tells them apart, None
        when the solver gives up
    """
    solver = make_solver(config or EngineConfig())
    offsets = Offsets.init()
    solver.declare_state(signature, offsets.curr)
    solver.declare_state(signature, offsets.next)
    solver.assert_formula(op("distinct", a, b), offsets)

    result = solver.check_sat()
    if result.is_unknown:
        logger.warning("equivalence check inconclusive: %s", result.reason)
        return None
    return result.is_unsat


def is_implied(hypotheses: Sequence[Term], goal: Term, signature: StateSignature,
               config: Optional[EngineConfig] = None) -> Optional[bool]:
    """Decide whether the conjunction of `hypotheses` implies `goal`."""
    solver = make_solver(config or EngineConfig())
    offsets = Offsets.init()
    solver.declare_state(signature, offsets.curr)
    solver.declare_state(signature, offsets.next)
    solver.assert_formula(conjunction(list(hypotheses) + [negate(goal)]), offsets)

    result = solver.check_sat()
    if result.is_unknown:
        return None
    return result.is_unsat


def prune_invariants(system: FlatSystem, candidates: Sequence[Property],
                     config: Optional[EngineConfig] = None) -> List[Property]:
    """Drop candidate invariants implied by the other surviving candidates.

    Candidates are visited in order; a candidate is dropped when the ones
    still kept, together with those not yet visited, imply it. Inconclusive
    checks keep the candidate.

    Returns:
        Surviving candidates, in their original order
    """
    kept = list(candidates)
    for candidate in list(candidates):
        others = [p.formula for p in kept if p is not candidate]
        if is_implied(others, candidate.formula, system.signature, config):
            logger.debug("%s: dropping '%s', implied by the other invariants",
                         system.name, candidate.name)
            kept = [p for p in kept if p is not candidate]
    return kept
