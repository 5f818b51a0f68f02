"""
Reader for transition-system descriptions.

Top-level forms:

    (define-fun name ((p Sort) ...) Sort body)
    (define-sys name ((v Sort) ...) init trans ((sub (curr-args...) (next-args...)) ...))
    (define-prop name system formula)
    (define-rel  name system formula [:assumed | :proved])
    (verify system (name ...))

Staged references are written `(_ curr v)` / `(_ next v)`. A subsystem
instantiation may omit its next-state actuals, in which case they are the
current-state actuals shifted to the next state.
"""
from dataclasses import dataclass, field
from fractions import Fraction
import logging
from pathlib import Path
import re
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from ..errors import KinductError, ParseError, SourceLocation
from ..system import Context, Property, Relation, RelationMode, SubsystemInstance, System
from ..term import (
    App, Const, Ite, Let, Macro, Op, Sort, State, StateSignature, Term, Var, Variable,
    bump, bool_const,
)
from ..term.terms import OPERATORS
from .sexpr import Atom, SExpr, SList, TopLevelForm, read_all

logger = logging.getLogger(__name__)

_NUMERAL = re.compile(r"^[0-9]+$")
_DECIMAL = re.compile(r"^[0-9]+\.[0-9]+$")


@dataclass(frozen=True)
class VerifyCommand:
    """A `verify` form: check the named formulas of a system jointly."""
    system_name: str
    names: Tuple[str, ...]
    location: Optional[SourceLocation] = None


@dataclass
class Script:
    """Result of reading one input: declarations plus verify commands."""
    context: Context
    commands: List[VerifyCommand] = field(default_factory=list)


class Reader:
    """Reads top-level forms into a Context.

    Args:
        context: Context to extend; a fresh one by default
        filename: Name used in source locations
    """

    def __init__(self, context: Optional[Context] = None, filename: str = "<string>"):
        self.context = context if context is not None else Context()
        self.filename = filename
        self._system_locations: Dict[str, SourceLocation] = {}

    def read(self, text: str) -> Script:
        """Read all forms of `text`.

        Raises:
            ParseError: Malformed form or unknown keyword
            KinductError: Reference, sort or composition error, annotated with
                          the location of the offending declaration
        """
        script = Script(self.context)
        for top in read_all(text, self.filename):
            try:
                self._read_form(top, script)
            except KinductError as e:
                raise e.with_location(top.form.loc)

        for name, loc in self._system_locations.items():
            try:
                self.context.flatten(name)
            except KinductError as e:
                raise e.with_location(loc)

        logger.info("read %s: %d system(s), %d verify command(s)",
                    self.filename, len(self.context.systems), len(script.commands))
        return script

    def _read_form(self, top: TopLevelForm, script: Script):
        form = top.form
        if not isinstance(form, SList) or not form.items or not isinstance(form[0], Atom):
            raise ParseError(f"expected a top-level form, got {form}", form.loc)

        keyword = form[0].text
        if keyword == "define-fun":
            self.context.add_macro(self._define_fun(form))
        elif keyword == "define-sys":
            system = self._define_sys(form, top.doc)
            self.context.add_system(system)
            self._system_locations[system.name] = form.loc
        elif keyword == "define-prop":
            self.context.add_property(self._define_prop(form, top.doc))
        elif keyword == "define-rel":
            self.context.add_relation(self._define_rel(form, top.doc))
        elif keyword == "verify":
            cmd = self._verify(form)
            # Resolve names now so unknown references fail at the command.
            self.context.task(cmd.system_name, cmd.names)
            script.commands.append(cmd)
        else:
            raise ParseError(f"unknown top-level keyword '{keyword}'", form[0].loc)

    # Forms

    def _define_fun(self, form: SList) -> Macro:
        self._expect_len(form, 5, "(define-fun name (params) Sort body)")
        name = self._symbol(form[1])
        params = self._bindings(form[2], "parameter")
        sort = self._sort(form[3])
        scope = frozenset(p.name for p in params)
        return Macro(name, params, sort, self._term(form[4], scope))

    def _define_sys(self, form: SList, doc: Optional[str]) -> System:
        if len(form) not in (5, 6):
            raise ParseError(
                "expected (define-sys name ((var Sort)...) init trans (instances...))",
                form.loc)
        name = self._symbol(form[1])
        signature = StateSignature(self._bindings(form[2], "state variable"))
        init = self._term(form[3])
        trans = self._term(form[4])

        subsystems: Tuple[SubsystemInstance, ...] = ()
        if len(form) == 6:
            insts = self._list(form[5], "subsystem instantiation list")
            subsystems = tuple(self._instance(i) for i in insts.items)

        return System(name, signature, init, trans, subsystems, doc=doc)

    def _instance(self, expr: SExpr) -> SubsystemInstance:
        inst = self._list(expr, "subsystem instantiation")
        if len(inst) not in (2, 3):
            raise ParseError(
                "expected (system (curr-args...) [(next-args...)])", inst.loc)
        name = self._symbol(inst[0])
        curr_args = tuple(self._term(a) for a in self._list(inst[1], "argument list").items)
        if len(inst) == 3:
            next_args = tuple(self._term(a) for a in self._list(inst[2], "argument list").items)
        else:
            next_args = tuple(bump(a) for a in curr_args)
        return SubsystemInstance(name, curr_args, next_args)

    def _define_prop(self, form: SList, doc: Optional[str]) -> Property:
        self._expect_len(form, 4, "(define-prop name system formula)")
        return Property(self._symbol(form[1]), self._symbol(form[2]),
                        self._term(form[3]), doc=doc)

    def _define_rel(self, form: SList, doc: Optional[str]) -> Relation:
        if len(form) not in (4, 5):
            raise ParseError(
                "expected (define-rel name system formula [:assumed | :proved])", form.loc)
        mode = RelationMode.PROVED
        if len(form) == 5:
            flag = self._symbol(form[4])
            if flag == ":assumed":
                mode = RelationMode.ASSUMED
            elif flag != ":proved":
                raise ParseError(f"unknown relation mode '{flag}'", form[4].loc)
        return Relation(self._symbol(form[1]), self._symbol(form[2]),
                        self._term(form[3]), mode=mode, doc=doc)

    def _verify(self, form: SList) -> VerifyCommand:
        self._expect_len(form, 3, "(verify system (names...))")
        names = tuple(self._symbol(n) for n in self._list(form[2], "name list").items)
        return VerifyCommand(self._symbol(form[1]), names, form.loc)

    # Terms

    def _term(self, expr: SExpr, scope: FrozenSet[str] = frozenset()) -> Term:
        if isinstance(expr, Atom):
            return self._atom(expr, scope)

        if not expr.items:
            raise ParseError("empty application '()'", expr.loc)
        head = expr[0]
        if not isinstance(head, Atom):
            raise ParseError("application head must be a symbol", expr.loc)

        if head.text == "_" and not head.quoted:
            return self._staged(expr)
        if head.text == "ite" and not head.quoted:
            self._expect_len(expr, 4, "(ite cond then else)")
            return Ite(self._term(expr[1], scope), self._term(expr[2], scope),
                       self._term(expr[3], scope))
        if head.text == "let" and not head.quoted:
            return self._let(expr, scope)

        args = tuple(self._term(a, scope) for a in expr.items[1:])
        if head.text in OPERATORS and not head.quoted:
            return Op(head.text, args)
        return App(head.text, args)

    def _atom(self, atom: Atom, scope: FrozenSet[str]) -> Term:
        text = atom.text
        if not atom.quoted:
            if text in ("true", "false"):
                return bool_const(text == "true")
            if _NUMERAL.match(text):
                return Const(int(text), Sort.INT)
            if _DECIMAL.match(text):
                return Const(Fraction(text), Sort.REAL)
            if text.startswith('"'):
                raise ParseError("string literals are not supported", atom.loc)
        if text in scope:
            return Var(text)
        return App(text)

    def _staged(self, expr: SList) -> Var:
        self._expect_len(expr, 3, "(_ curr name) or (_ next name)")
        tag = self._symbol(expr[1])
        try:
            state = State(tag)
        except ValueError:
            raise ParseError(f"unknown timepoint '{tag}', expected curr or next",
                             expr[1].loc) from None
        return Var(self._symbol(expr[2]), state)

    def _let(self, expr: SList, scope: FrozenSet[str]) -> Let:
        self._expect_len(expr, 3, "(let ((name value)...) body)")
        bindings = []
        for b in self._list(expr[1], "let bindings").items:
            pair = self._list(b, "let binding")
            self._expect_len(pair, 2, "(name value)")
            bindings.append((self._symbol(pair[0]), self._term(pair[1], scope)))
        if not bindings:
            raise ParseError("let with no bindings", expr.loc)
        inner = scope | {name for name, _ in bindings}
        return Let(tuple(bindings), self._term(expr[2], inner))

    # Helpers

    def _bindings(self, expr: SExpr, what: str) -> Tuple[Variable, ...]:
        result = []
        for item in self._list(expr, f"{what} list").items:
            pair = self._list(item, what)
            self._expect_len(pair, 2, f"({what} Sort)")
            result.append(Variable(self._symbol(pair[0]), self._sort(pair[1])))
        return tuple(result)

    def _sort(self, expr: SExpr) -> Sort:
        name = self._symbol(expr)
        try:
            return Sort.from_name(name)
        except ValueError:
            raise ParseError(f"unknown sort '{name}'", expr.loc) from None

    def _symbol(self, expr: SExpr) -> str:
        if not isinstance(expr, Atom):
            raise ParseError(f"expected a symbol, got {expr}", expr.loc)
        return expr.text

    def _list(self, expr: SExpr, what: str) -> SList:
        if not isinstance(expr, SList):
            raise ParseError(f"expected {what}, got '{expr}'", expr.loc)
        return expr

    def _expect_len(self, form: SList, n: int, shape: str):
        if len(form) != n:
            raise ParseError(f"expected {shape}", form.loc)


def parse_source(text: str, filename: str = "<string>",
                 context: Optional[Context] = None) -> Script:
    """Read a transition-system description from a string."""
    return Reader(context, filename).read(text)


def parse_file(path: Union[str, Path], context: Optional[Context] = None) -> Script:
    """Read a transition-system description from a file."""
    path = Path(path)
    return Reader(context, str(path)).read(path.read_text())
