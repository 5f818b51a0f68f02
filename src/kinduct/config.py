"""
Engine configuration.

Defaults can be overridden from the environment:

    KINDUCT_MAX_DEPTH     maximum induction depth
    KINDUCT_TIMEOUT_MS    per solver call timeout in milliseconds
    KINDUCT_SMT_SOLVER    "z3" (in-process) or an external solver name/path
    KINDUCT_MAX_WORKERS   worker threads for independent tasks
    KINDUCT_INVGEN        "1" to generate invariants before each task
"""
from dataclasses import dataclass, replace
from typing import Mapping, Optional
import os


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the induction engine.

    Attributes:
        max_depth: Deepest induction depth attempted (K_max)
        timeout_ms: Timeout for each solver call, None for no limit
        solver: Solver backend; "z3" selects the in-process Python bindings,
                anything else is run as an external SMT-LIB process
        max_workers: Thread pool size used by verify_all
        generate_invariants: Discover template invariants and assume them in
                             the step case
    """
    max_depth: int = 20
    timeout_ms: Optional[int] = None
    solver: str = "z3"
    max_workers: int = 4
    generate_invariants: bool = False

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.timeout_ms is not None and self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @property
    def timeout_s(self) -> Optional[float]:
        if self.timeout_ms is None:
            return None
        return self.timeout_ms / 1000.0

    def with_overrides(self, **kwargs) -> "EngineConfig":
        return replace(self, **kwargs)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from defaults overridden by KINDUCT_* variables."""
        env = os.environ if env is None else env
        overrides = {}

        if env.get("KINDUCT_MAX_DEPTH"):
            overrides["max_depth"] = _parse_int(env, "KINDUCT_MAX_DEPTH")
        if env.get("KINDUCT_TIMEOUT_MS"):
            overrides["timeout_ms"] = _parse_int(env, "KINDUCT_TIMEOUT_MS")
        if env.get("KINDUCT_SMT_SOLVER"):
            overrides["solver"] = env["KINDUCT_SMT_SOLVER"]
        if env.get("KINDUCT_MAX_WORKERS"):
            overrides["max_workers"] = _parse_int(env, "KINDUCT_MAX_WORKERS")
        if env.get("KINDUCT_INVGEN"):
            overrides["generate_invariants"] = _parse_bool(env, "KINDUCT_INVGEN")

        return cls(**overrides)


def _parse_int(env: Mapping[str, str], key: str) -> int:
    try:
        return int(env[key])
    except ValueError:
        raise ValueError(f"${key} must be an integer, got {env[key]!r}") from None


def _parse_bool(env: Mapping[str, str], key: str) -> bool:
    value = env[key].strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"${key} must be a boolean, got {env[key]!r}")
