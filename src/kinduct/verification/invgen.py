"""
Template-based invariant generation.

Candidates are instances of simple templates over the state variables of a
flat system:

    Bool variables         b, (not b), (= a b)
    same-sort arithmetic   (<= a b), (>= a b), (= a b)
    numerals of Init       (>= x c), (<= x c)

A candidate survives when no run of up to `depth` transitions falsifies it
(bounded model checking) and the survivors are jointly inductive for one
transition: candidates broken by a step from a state satisfying all of them
are dropped until the rest is closed under the step. Survivors implied by the
others are pruned. The result holds in every reachable state and can be
assumed by the step case of k-induction.
"""
from itertools import combinations
import logging
from typing import List, Optional, Sequence

from ..analysis.equivalence import prune_invariants
from ..config import EngineConfig
from ..system import FlatSystem, Property, Relation
from ..solver import make_solver
from ..term import Const, Sort, Term, curr, op, to_sexpr
from ..term.terms import children
from .bmc import run_bmc
from .kinduction import SolverFactory
from .report import Unknown
from .unrolling import Unrolling, identify_violations

logger = logging.getLogger(__name__)


def candidate_invariants(system: FlatSystem) -> List[Property]:
    """Instantiate the templates over the signature of `system`."""
    formulas: List[Term] = []
    bools = [v for v in system.signature if v.sort is Sort.BOOL]
    for var in bools:
        formulas.append(curr(var.name))
        formulas.append(op("not", curr(var.name)))
    for a, b in combinations(bools, 2):
        formulas.append(op("=", curr(a.name), curr(b.name)))

    for sort in (Sort.INT, Sort.REAL):
        arith = [v for v in system.signature if v.sort is sort]
        for a, b in combinations(arith, 2):
            for name in ("<=", ">=", "="):
                formulas.append(op(name, curr(a.name), curr(b.name)))
        for var in arith:
            for const in _init_numerals(system.init, sort):
                formulas.append(op(">=", curr(var.name), const))
                formulas.append(op("<=", curr(var.name), const))

    seen = set()
    candidates = []
    for formula in formulas:
        if formula in seen:
            continue
        seen.add(formula)
        candidates.append(Property(to_sexpr(formula), system.name, formula))
    return candidates


def _init_numerals(init: Term, sort: Sort) -> List[Const]:
    found: List[Const] = []
    stack = [init]
    while stack:
        term = stack.pop()
        if isinstance(term, Const) and term.sort is sort and term not in found:
            found.append(term)
        stack.extend(children(term))
    return sorted(found, key=lambda c: c.value)


def generate_invariants(system: FlatSystem, assumed: Sequence[Relation] = (),
                        config: Optional[EngineConfig] = None, depth: int = 2,
                        solver_factory: Optional[SolverFactory] = None) -> List[Property]:
    """Discover invariants of `system` from the candidate templates.

    Args:
        system: Flattened system
        assumed: Assumed relations, hypotheses on every transition
        config: Engine configuration for the solver sessions
        depth: Bound of the counterexample search that filters candidates
        solver_factory: Solver session factory, `make_solver` by default

    Returns:
        Invariants in candidate order; empty when a check is inconclusive
    """
    if depth < 0:
        raise ValueError(f"depth must be >= 0, got {depth}")
    config = config or EngineConfig()
    candidates = candidate_invariants(system)
    if not candidates:
        return []

    verdicts = run_bmc(system, candidates, depth, assumed=assumed, config=config,
                       solver_factory=solver_factory)
    survivors = [c for c in candidates
                 if isinstance(verdicts[c.name], Unknown)
                 and verdicts[c.name].reason.startswith("no violation")]
    logger.debug("%s: %d of %d candidate(s) survive %d step(s) of BMC", system.name,
                 len(survivors), len(candidates), depth)

    survivors = _inductive_subset(system, survivors, assumed, config, solver_factory)
    invariants = prune_invariants(system, survivors, config)
    logger.info("%s: generated %d invariant(s)", system.name, len(invariants))
    return invariants


def _inductive_subset(system: FlatSystem, candidates: List[Property],
                      assumed: Sequence[Relation], config: EngineConfig,
                      solver_factory: Optional[SolverFactory]) -> List[Property]:
    """Largest subset of `candidates` preserved by one transition."""
    make = solver_factory or make_solver
    unrolling = Unrolling(system, assumed, make(config), with_init=False)
    kept = list(candidates)
    while kept:
        unrolling.extend_to(1)
        unrolling.assert_goal(kept, 0)
        result = unrolling.check_violation(kept, 1)
        if not result.is_sat:
            unrolling.close()
            if result.is_unknown:
                logger.warning("%s: invariant step check inconclusive: %s",
                               system.name, result.reason)
                return []
            return kept

        found = identify_violations(unrolling, kept, 1)
        if not found:
            return []
        broken = {c.name for c, _ in found}
        kept = [c for c in kept if c.name not in broken]
        unrolling.reset()
    return kept
