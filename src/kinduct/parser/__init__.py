"""
Reading and writing transition-system descriptions.
"""

from .sexpr import Atom, SList, TopLevelForm, read_all
from .reader import Reader, Script, VerifyCommand, parse_source, parse_file
from .serializer import (
    serialize_term,
    serialize_macro,
    serialize_system,
    serialize_property,
    serialize_relation,
    serialize_command,
    serialize_context,
)

__all__ = [
    "Atom",
    "SList",
    "TopLevelForm",
    "read_all",
    "Reader",
    "Script",
    "VerifyCommand",
    "parse_source",
    "parse_file",
    "serialize_term",
    "serialize_macro",
    "serialize_system",
    "serialize_property",
    "serialize_relation",
    "serialize_command",
    "serialize_context",
]
