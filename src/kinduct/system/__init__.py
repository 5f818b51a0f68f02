"""
Transition system model, composition and the declaration store.
"""

from .model import (
    System,
    SubsystemInstance,
    FlatSystem,
    Property,
    Relation,
    RelationMode,
)
from .flatten import Flattener, flatten
from .context import Context, VerificationTask

__all__ = [
    "System",
    "SubsystemInstance",
    "FlatSystem",
    "Property",
    "Relation",
    "RelationMode",
    "Flattener",
    "flatten",
    "Context",
    "VerificationTask",
]
