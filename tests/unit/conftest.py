"""
Pytest configuration and fixtures for kinduct tests.
"""
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from kinduct.config import EngineConfig  # noqa: E402
from kinduct.parser import parse_source  # noqa: E402


COUNTER_SRC = """
; Counts the cycles in which `in` is high.
(define-sys counter ((in Bool) (out Int))
  (= (_ curr out) (ite (_ curr in) 1 0))
  (= (_ next out) (ite (_ next in) (+ (_ curr out) 1) (_ curr out))))

(define-prop nonneg counter (>= (_ curr out) 0))
(define-rel mono counter (>= (_ next out) (_ curr out)))

(verify counter (nonneg mono))
"""

TOGGLE_SRC = """
; Counts the changes of `in`.
(define-sys toggle ((in Bool) (out Int))
  (= (_ curr out) 0)
  (= (_ next out) (ite (distinct (_ next in) (_ curr in)) (+ (_ curr out) 1) (_ curr out))))

(define-prop nonneg toggle (>= (_ curr out) 0))
(define-prop small toggle (<= (_ curr out) 2))
(define-prop bounded toggle (<= (_ curr out) 10))
(define-rel stays toggle (= (_ next out) (_ curr out)))
"""

STRENGTHEN_SRC = """
(define-sys follow ((x Int) (y Int))
  (and (= (_ curr x) 0) (= (_ curr y) 0))
  (and (= (_ next x) (_ curr y)) (= (_ next y) (_ curr y))))

(define-prop x_nonneg follow (>= (_ curr x) 0))
(define-prop y_nonneg follow (>= (_ curr y) 0))
(define-rel y_hint follow (>= (_ curr y) 0) :assumed)
"""

COMPOSED_SRC = """
(define-sys latch ((d Int) (q Int))
  (= (_ curr q) 0)
  (= (_ next q) (_ curr d)))

; `b` lags `a` by one step.
(define-sys top ((a Int) (b Int))
  (>= (_ curr a) 0)
  (= (_ next a) (+ (_ curr a) 1))
  ((latch ((_ curr a) (_ curr b)) ((_ next a) (_ next b)))))

(define-sys top_short ((a Int) (b Int))
  (>= (_ curr a) 0)
  (= (_ next a) (+ (_ curr a) 1))
  ((latch ((_ curr a) (_ curr b)))))

(define-prop b_le_a top (<= (_ curr b) (_ curr a)))
"""


@pytest.fixture
def config():
    """In-process Z3 configuration independent of the environment."""
    return EngineConfig(max_depth=20, solver="z3")


@pytest.fixture
def counter_script():
    return parse_source(COUNTER_SRC, "counter.kind")


@pytest.fixture
def toggle_script():
    return parse_source(TOGGLE_SRC, "toggle.kind")


@pytest.fixture
def strengthen_script():
    return parse_source(STRENGTHEN_SRC, "follow.kind")


@pytest.fixture
def composed_script():
    return parse_source(COMPOSED_SRC, "composed.kind")
