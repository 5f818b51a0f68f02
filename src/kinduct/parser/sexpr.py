"""
S-expression scanner with source locations.

Comments (`;` to end of line) that precede a top-level form are collected
verbatim and handed to the caller as opaque documentation; they are never
interpreted.
"""
from bisect import bisect_right
from dataclasses import dataclass, field
import re
from typing import List, Optional, Union

from ..errors import ParseError, SourceLocation


@dataclass(frozen=True)
class Atom:
    text: str
    loc: SourceLocation
    quoted: bool = False

    def __str__(self) -> str:
        return f"|{self.text}|" if self.quoted else self.text


@dataclass(frozen=True)
class SList:
    items: List["SExpr"] = field(default_factory=list)
    loc: Optional[SourceLocation] = None

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    def __str__(self) -> str:
        return "(" + " ".join(str(i) for i in self.items) + ")"


SExpr = Union[Atom, SList]


@dataclass(frozen=True)
class TopLevelForm:
    """A top-level s-expression with the comment block preceding it."""
    form: SExpr
    doc: Optional[str] = None


_TOKEN = re.compile(r"""
    (?P<ws>\s+)
  | (?P<comment>;[^\n]*)
  | (?P<lpar>\()
  | (?P<rpar>\))
  | (?P<quoted>\|[^|]*\|)
  | (?P<string>"(?:[^"]|"")*")
  | (?P<atom>[^\s()|";]+)
""", re.VERBOSE)


class _Locator:
    """Maps character offsets to line/column positions."""

    def __init__(self, text: str, filename: str):
        self.filename = filename
        self.line_starts = [0] + [m.end() for m in re.finditer(r"\n", text)]

    def __call__(self, pos: int) -> SourceLocation:
        line = bisect_right(self.line_starts, pos)
        column = pos - self.line_starts[line - 1] + 1
        return SourceLocation(self.filename, line, column)


def read_all(text: str, filename: str = "<string>") -> List[TopLevelForm]:
    """Read every top-level s-expression in `text`.

    Raises:
        ParseError: Unbalanced parentheses or an unterminated token
    """
    locate = _Locator(text, filename)
    forms: List[TopLevelForm] = []
    stack: List[tuple] = []
    comments: List[str] = []
    doc: Optional[str] = None
    pos = 0

    while pos < len(text):
        m = _TOKEN.match(text, pos)
        if m is None:
            raise ParseError(f"unterminated token {text[pos:pos + 10]!r}", locate(pos))
        kind = m.lastgroup
        tok = m.group(kind)
        pos = m.end()

        if kind == "ws":
            continue
        if kind == "comment":
            if not stack:
                comments.append(tok[1:].rstrip())
            continue

        loc = locate(m.start())
        if not stack:
            doc = "\n".join(comments) if comments else None
            comments = []

        if kind == "lpar":
            stack.append((loc, []))
            continue

        if kind == "rpar":
            if not stack:
                raise ParseError("unexpected ')'", loc)
            start, items = stack.pop()
            expr: SExpr = SList(items, start)
        elif kind == "quoted":
            expr = Atom(tok[1:-1], loc, quoted=True)
        elif kind == "string":
            expr = Atom(tok, loc)
        else:
            expr = Atom(tok, loc)

        if stack:
            stack[-1][1].append(expr)
        else:
            forms.append(TopLevelForm(expr, doc))
            doc = None

    if stack:
        raise ParseError("unbalanced '(': missing ')'", stack[-1][0])
    return forms
