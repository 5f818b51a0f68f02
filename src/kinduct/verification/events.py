"""
Progress events emitted by the verification engines.
"""
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)


class EventKind(Enum):
    KTRUE = "k-true"
    PROVED = "proved"
    DISPROVED = "disproved"
    UNKNOWN = "unknown"
    LOG = "log"


@dataclass(frozen=True)
class EngineEvent:
    """One progress notification.

    Attributes:
        kind: Event kind
        depth: Induction depth the event refers to
        names: Formula names concerned, in declaration order
        message: Free-form detail (reason of an UNKNOWN, text of a LOG)

    A KTRUE event at depth k means the named formulas hold in every state
    reachable within k steps.
    """
    kind: EventKind
    depth: int
    names: Tuple[str, ...] = ()
    message: str = ""

    def __str__(self) -> str:
        text = f"[{self.kind.value}] depth {self.depth}"
        if self.names:
            text += ": " + ", ".join(self.names)
        if self.message:
            text += f" ({self.message})"
        return text


EventListener = Callable[[EngineEvent], None]


class EventEmitter:
    """Delivers events to an optional listener and mirrors them to the log."""

    def __init__(self, listener: Optional[EventListener] = None, source: str = "engine"):
        self.listener = listener
        self.source = source

    def emit(self, kind: EventKind, depth: int, names=(), message: str = "") -> EngineEvent:
        event = EngineEvent(kind, depth, tuple(names), message)
        if kind is EventKind.LOG:
            logger.debug("%s: %s", self.source, event)
        else:
            logger.info("%s: %s", self.source, event)
        if self.listener is not None:
            self.listener(event)
        return event

    def log(self, depth: int, message: str) -> EngineEvent:
        return self.emit(EventKind.LOG, depth, message=message)
