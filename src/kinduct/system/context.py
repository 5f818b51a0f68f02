"""
Declaration store: macros, systems, properties and relations.

Every term entering the store goes through the closed macro pre-pass
(inlining, then sort checking), so the store only holds fully substituted,
well-sorted terms.
"""
from dataclasses import dataclass, replace
import logging
from typing import Dict, Iterable, List, Tuple, Union

from ..errors import DuplicateDeclarationError, SortError, UnresolvedReferenceError
from ..term import (
    Macro, Sort, StateSignature, Term, TypeChecker,
    expect_sort, inline_macros, type_check,
)
from .flatten import Flattener
from .model import FlatSystem, Property, Relation, SubsystemInstance, System

logger = logging.getLogger(__name__)

Formula = Union[Property, Relation]


@dataclass(frozen=True)
class VerificationTask:
    """Formulas submitted together to one `verify` invocation.

    Attributes:
        system: Flattened system under verification
        names: Submitted names, in submission order
        properties: Submitted properties, in declaration order
        relations: Submitted relations (both modes), in declaration order
    """
    system: FlatSystem
    names: Tuple[str, ...]
    properties: Tuple[Property, ...]
    relations: Tuple[Relation, ...]

    @property
    def assumed(self) -> Tuple[Relation, ...]:
        return tuple(r for r in self.relations if r.is_assumed)

    @property
    def obligations(self) -> Tuple[Formula, ...]:
        """Properties and to-be-proved relations, in declaration order."""
        return self.properties + tuple(r for r in self.relations if not r.is_assumed)


class Context:
    """Holds all declarations of one input, in declaration order."""

    def __init__(self):
        self.macros: Dict[str, Macro] = {}
        self.systems: Dict[str, System] = {}
        self.properties: Dict[str, Property] = {}
        self.relations: Dict[str, Relation] = {}
        self._order: Dict[str, int] = {}
        self._flattener = Flattener(self.system)

    # Declarations

    def add_macro(self, macro: Macro) -> Macro:
        """Inline and sort-check a macro body, then store it."""
        if macro.name in self.macros:
            raise DuplicateDeclarationError(f"Function '{macro.name}' defined twice")

        body = inline_macros(macro.body, self.macros)
        params = {p.name: p.sort for p in macro.params}
        sort = TypeChecker(None, params=params).check(body)
        if sort is not macro.sort and not (sort is Sort.INT and macro.sort is Sort.REAL):
            raise SortError(
                f"'{macro.name}' is declared {macro.sort} but its body has sort {sort}", body)

        macro = replace(macro, body=body)
        self.macros[macro.name] = macro
        return macro

    def add_system(self, system: System) -> System:
        if system.name in self.systems:
            raise DuplicateDeclarationError(f"System '{system.name}' declared twice")

        sig = system.signature
        init = self._prepare(system.init, sig, allow_next=False, what=f"init of '{system.name}'")
        trans = self._prepare(system.trans, sig, allow_next=True, what=f"trans of '{system.name}'")
        subsystems = tuple(self._prepare_instance(inst, sig) for inst in system.subsystems)

        system = replace(system, init=init, trans=trans, subsystems=subsystems)
        self.systems[system.name] = system
        logger.debug("declared system %s with %d state variable(s)", system.name, len(sig))
        return system

    def add_property(self, prop: Property) -> Property:
        self._check_fresh_formula(prop.name)
        owner = self.system(prop.system_name)
        formula = self._prepare(prop.formula, owner.signature, allow_next=False,
                                what=f"property '{prop.name}'")
        prop = replace(prop, formula=formula)
        self._order[prop.name] = len(self._order)
        self.properties[prop.name] = prop
        return prop

    def add_relation(self, rel: Relation) -> Relation:
        self._check_fresh_formula(rel.name)
        owner = self.system(rel.system_name)
        formula = self._prepare(rel.formula, owner.signature, allow_next=True,
                                what=f"relation '{rel.name}'")
        rel = replace(rel, formula=formula)
        self._order[rel.name] = len(self._order)
        self.relations[rel.name] = rel
        return rel

    # Lookup

    def system(self, name: str) -> System:
        try:
            return self.systems[name]
        except KeyError:
            raise UnresolvedReferenceError(f"Unknown system '{name}'", name=name) from None

    def formula(self, name: str) -> Formula:
        if name in self.properties:
            return self.properties[name]
        if name in self.relations:
            return self.relations[name]
        raise UnresolvedReferenceError(f"Unknown property or relation '{name}'", name=name)

    def declaration_index(self, name: str) -> int:
        return self._order[name]

    # Composition

    def flatten(self, system_name: str) -> FlatSystem:
        return self._flattener.flatten(self.system(system_name))

    def validate(self) -> None:
        """Flatten every system so composition errors surface per declaration."""
        for system in self.systems.values():
            self._flattener.flatten(system)

    def task(self, system_name: str, names: Iterable[str]) -> VerificationTask:
        """Build the verification task of a `verify` command.

        Raises:
            UnresolvedReferenceError: Unknown name, or a formula owned by
                                      another system
            DuplicateDeclarationError: A name is submitted twice
        """
        flat = self.flatten(system_name)
        names = tuple(names)
        if len(set(names)) != len(names):
            raise DuplicateDeclarationError(
                f"verify {system_name}: a name is submitted more than once")

        formulas: List[Formula] = []
        for name in names:
            formula = self.formula(name)
            if formula.system_name != system_name:
                raise UnresolvedReferenceError(
                    f"'{name}' belongs to system '{formula.system_name}', "
                    f"not '{system_name}'", name=name)
            formulas.append(formula)

        formulas.sort(key=lambda f: self._order[f.name])
        return VerificationTask(
            system=flat,
            names=names,
            properties=tuple(f for f in formulas if isinstance(f, Property)),
            relations=tuple(f for f in formulas if isinstance(f, Relation)),
        )

    # Helpers

    def _check_fresh_formula(self, name: str):
        if name in self.properties or name in self.relations:
            raise DuplicateDeclarationError(f"Property or relation '{name}' declared twice")

    def _prepare(self, term: Term, signature: StateSignature, allow_next: bool,
                 what: str) -> Term:
        term = inline_macros(term, self.macros)
        expect_sort(term, Sort.BOOL, signature, allow_next=allow_next, what=what)
        return term

    def _prepare_instance(self, inst: SubsystemInstance,
                          signature: StateSignature) -> SubsystemInstance:
        curr_args = tuple(inline_macros(a, self.macros) for a in inst.curr_args)
        next_args = tuple(inline_macros(a, self.macros) for a in inst.next_args)
        for arg in curr_args:
            type_check(arg, signature, allow_next=False)
        for arg in next_args:
            type_check(arg, signature, allow_next=True)
        return replace(inst, curr_args=curr_args, next_args=next_args)
