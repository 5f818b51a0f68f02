"""
Main verification API.

Provides high-level functions for reading transition-system descriptions and
running their `verify` commands.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .config import EngineConfig
from .parser import Script, VerifyCommand, parse_file, parse_source
from .system import Context, VerificationTask
from .verification import CancellationToken, EventListener, VerificationReport, Verifier

logger = logging.getLogger(__name__)

Request = Union[VerifyCommand, Tuple[str, Sequence[str]]]


def load_source(text: str, filename: str = "<string>") -> Script:
    """Read a description from a string, raising on the first structural error."""
    return parse_source(text, filename)


def load_file(path: Union[str, Path]) -> Script:
    """Read a description from a file, raising on the first structural error."""
    return parse_file(path)


def verify_system(context: Context, system_name: str, names: Iterable[str],
                  config: Optional[EngineConfig] = None,
                  cancel: Optional[CancellationToken] = None,
                  listener: Optional[EventListener] = None) -> VerificationReport:
    """Verify the named properties and relations of one system jointly.

    Args:
        context: Declarations to resolve names against
        system_name: System to verify
        names: Properties and relations submitted together
        config: Engine configuration; defaults from the environment
        cancel: Optional cancellation token
        listener: Optional event listener

    Returns:
        VerificationReport with one verdict per submitted name

    Raises:
        UnresolvedReferenceError: Unknown system or formula name
        CompositionCycleError: The system's subsystem graph has a cycle

    Example:
        >>> script = load_source(SOURCE)
        >>> report = verify_system(script.context, "counter", ["nonneg"])
        >>> report.all_hold
        True
    """
    task = context.task(system_name, names)
    return Verifier(config, listener).verify(task, cancel)


def verify_script(script: Script, config: Optional[EngineConfig] = None,
                  cancel: Optional[CancellationToken] = None,
                  listener: Optional[EventListener] = None) -> List[VerificationReport]:
    """Run every `verify` command of a script, in order."""
    return [verify_system(script.context, cmd.system_name, cmd.names,
                          config=config, cancel=cancel, listener=listener)
            for cmd in script.commands]


def verify_source(text: str, filename: str = "<string>",
                  config: Optional[EngineConfig] = None,
                  cancel: Optional[CancellationToken] = None,
                  listener: Optional[EventListener] = None) -> List[VerificationReport]:
    """Read a description and run its `verify` commands."""
    return verify_script(load_source(text, filename), config, cancel, listener)


def verify_file(path: Union[str, Path],
                config: Optional[EngineConfig] = None,
                cancel: Optional[CancellationToken] = None,
                listener: Optional[EventListener] = None) -> List[VerificationReport]:
    """Read a description file and run its `verify` commands."""
    return verify_script(load_file(path), config, cancel, listener)


def verify_all(context: Context, requests: Sequence[Request],
               config: Optional[EngineConfig] = None,
               max_workers: Optional[int] = None,
               cancel: Optional[CancellationToken] = None,
               listener: Optional[EventListener] = None) -> List[VerificationReport]:
    """Verify independent tasks on a thread pool.

    Every task gets its own solver sessions, so nothing mutable is shared
    between workers. The listener, if any, is called from worker threads.

    Args:
        context: Declarations to resolve names against
        requests: `VerifyCommand`s or `(system_name, names)` pairs
        config: Engine configuration; defaults from the environment
        max_workers: Pool size; `config.max_workers` by default
        cancel: Token cancelling every task at once
        listener: Optional event listener

    Returns:
        One report per request, in request order
    """
    config = config if config is not None else EngineConfig.from_env()
    workers = max_workers or config.max_workers
    tasks: List[VerificationTask] = [context.task(*_unpack(r)) for r in requests]
    verifier = Verifier(config, listener)

    reports: List[Optional[VerificationReport]] = [None] * len(tasks)
    if workers > 1 and len(tasks) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(verifier.verify, task, cancel): idx
                for idx, task in enumerate(tasks)
            }

            for future in as_completed(futures):
                idx = futures[future]
                reports[idx] = future.result()
                logger.debug("task %d (%s) finished", idx, tasks[idx].system.name)
    else:
        for idx, task in enumerate(tasks):
            reports[idx] = verifier.verify(task, cancel)

    return reports


def _unpack(request: Request) -> Tuple[str, Sequence[str]]:
    if isinstance(request, VerifyCommand):
        return request.system_name, request.names
    system_name, names = request
    return system_name, names
