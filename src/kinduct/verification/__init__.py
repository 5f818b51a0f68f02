"""Verification engines (k-induction, BMC), results and traces."""

from .trace import CounterexampleTrace
from .events import EngineEvent, EventKind, EventListener
from .report import Assumed, Holds, Unknown, Verdict, VerificationReport, Violated
from .unrolling import Unrolling, goal_at
from .kinduction import CancellationToken, EngineState, KInductionEngine
from .bmc import BoundedModelChecker, run_bmc
from .invgen import candidate_invariants, generate_invariants
from .verifier import Verifier
from .smt2 import generate_base_smt2, generate_step_smt2, write_base_smt2, write_step_smt2

__all__ = [
    "CounterexampleTrace",
    "EngineEvent",
    "EventKind",
    "EventListener",
    "Assumed",
    "Holds",
    "Unknown",
    "Verdict",
    "VerificationReport",
    "Violated",
    "Unrolling",
    "goal_at",
    "CancellationToken",
    "EngineState",
    "KInductionEngine",
    "BoundedModelChecker",
    "run_bmc",
    "candidate_invariants",
    "generate_invariants",
    "Verifier",
    "generate_base_smt2",
    "generate_step_smt2",
    "write_base_smt2",
    "write_step_smt2",
]
