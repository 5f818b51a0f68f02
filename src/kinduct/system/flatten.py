"""
Subsystem composition (flattening).

A system with subsystem instantiations is turned into one closed Init/Trans
pair over the parent's own signature:

    Init  = ownInit  /\\ subInit[curr actuals]             (for each instance)
    Trans = ownTrans /\\ subTrans[curr and next actuals]   (for each instance)

Each instantiation binds every formal of the subsystem, so no subsystem
variable survives. Substitution is simultaneous, so actuals that mention
parent variables sharing a name with a subsystem formal are never rewritten
twice.
"""
import logging
from typing import Callable, Dict, List

from ..errors import ArityError, CompositionCycleError, SortError
from ..term import State, Var, assignable, conjunction, substitute, type_check
from .model import FlatSystem, SubsystemInstance, System

logger = logging.getLogger(__name__)

SystemResolver = Callable[[str], System]


class Flattener:
    """Flattens systems, memoizing the result per system object.

    Args:
        resolve: Maps a subsystem name to its System; raises
                 UnresolvedReferenceError for unknown names
    """

    def __init__(self, resolve: SystemResolver):
        self._resolve = resolve
        self._cache: Dict[System, FlatSystem] = {}

    def flatten(self, system: System) -> FlatSystem:
        """Flatten `system` and every transitively instantiated subsystem.

        Raises:
            CompositionCycleError: The subsystem-reference graph has a cycle
            ArityError: An instantiation has the wrong number of actuals
            SortError: An actual's sort differs from the formal's sort
            UnresolvedReferenceError: An instantiated system is unknown
        """
        return self._flatten(system, [])

    def is_cached(self, system: System) -> bool:
        return system in self._cache

    def clear(self) -> None:
        self._cache.clear()

    def _flatten(self, system: System, visiting: List[System]) -> FlatSystem:
        cached = self._cache.get(system)
        if cached is not None:
            return cached

        for idx, seen in enumerate(visiting):
            if seen is system:
                path = [s.name for s in visiting[idx:]] + [system.name]
                raise CompositionCycleError(path)

        visiting.append(system)
        try:
            init_parts = [system.init]
            trans_parts = [system.trans]
            for inst in system.subsystems:
                sub = self._resolve(inst.system_name)
                flat_sub = self._flatten(sub, visiting)
                self._check_instance(system, inst, sub)

                curr_map = {Var(v.name, State.CURR): arg
                            for v, arg in zip(sub.signature, inst.curr_args)}
                next_map = {Var(v.name, State.NEXT): arg
                            for v, arg in zip(sub.signature, inst.next_args)}

                init_parts.append(substitute(flat_sub.init, curr_map))
                trans_parts.append(substitute(flat_sub.trans, {**curr_map, **next_map}))
        finally:
            visiting.pop()

        flat = FlatSystem(
            name=system.name,
            signature=system.signature,
            init=conjunction(init_parts),
            trans=conjunction(trans_parts),
        )
        self._cache[system] = flat
        logger.debug("flattened system %s (%d subsystem instance(s))",
                     system.name, len(system.subsystems))
        return flat

    def _check_instance(self, parent: System, inst: SubsystemInstance, sub: System):
        arity = len(sub.signature)
        for label, args in (("current", inst.curr_args), ("next", inst.next_args)):
            if len(args) != arity:
                raise ArityError(
                    f"'{parent.name}' instantiates '{sub.name}' with {len(args)} "
                    f"{label}-state argument(s), expected {arity}")

        for formal, c_arg, n_arg in zip(sub.signature, inst.curr_args, inst.next_args):
            c_sort = type_check(c_arg, parent.signature, allow_next=False)
            n_sort = type_check(n_arg, parent.signature, allow_next=True)
            for label, arg, sort in (("current", c_arg, c_sort), ("next", n_arg, n_sort)):
                if not assignable(sort, formal.sort):
                    raise SortError(
                        f"'{parent.name}' passes a {sort} {label}-state actual for "
                        f"'{sub.name}.{formal.name}' of sort {formal.sort}", arg)


def flatten(system: System, resolve: SystemResolver) -> FlatSystem:
    """Flatten a system without sharing a cache."""
    return Flattener(resolve).flatten(system)
