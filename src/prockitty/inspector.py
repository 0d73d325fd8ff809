"""Process inspection: listing, attribute extraction, comparison, parentage and memory filtering."""

import logging
import time
from collections.abc import Callable

from prockitty.errors import InvalidInputError, NotFoundError, UnboundedChainError
from prockitty.models import (
    AttributeKind,
    ChainLink,
    ComparisonResult,
    MemoryHit,
    Outcome,
    ParentageChain,
    ProcessEntry,
    ProcessRecord,
)
from prockitty.provider import ProcessProvider

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20

# Root of every parentage chain
ROOT_PID = 0

ATTRIBUTE_FORMATTERS: dict[AttributeKind, Callable[[ProcessRecord], str]] = {
    AttributeKind.CPU_USAGE: lambda r: f"{r.cpu_percent:.1f}",
    AttributeKind.RSS: lambda r: str(r.rss_kb),
    AttributeKind.VSZ: lambda r: str(r.vsz_kb),
    AttributeKind.STATE: lambda r: r.status,
    AttributeKind.NLWP: lambda r: str(r.threads),
    AttributeKind.START_TIME: lambda r: time.ctime(r.start_time),
    AttributeKind.CPU_TIME: lambda r: f"{r.cpu_time:.2f}",
    AttributeKind.PRIORITY: lambda r: str(r.priority),
    AttributeKind.NICE: lambda r: str(r.nice),
}


def parse_pid(text: str) -> int:
    """Parse a PID typed by the user."""
    text = text.strip()
    if not (text.isascii() and text.isdigit()) or int(text) <= 0:
        raise InvalidInputError(f"Invalid PID: {text!r}")
    return int(text)


def read_process(provider: ProcessProvider, pid: int) -> ProcessRecord:
    """Return the record of ``pid`` or raise NotFoundError."""
    record = provider.get_record(pid)
    if record is None:
        raise NotFoundError(pid)
    return record


def list_processes(provider: ProcessProvider, limit: int = DEFAULT_LIST_LIMIT) -> list[ProcessEntry]:
    """Return the first ``limit`` processes as PID and command line."""
    entries: list[ProcessEntry] = []
    for record in provider.iter_records():
        if len(entries) >= limit:
            break
        entries.append(ProcessEntry(pid=record.pid, command_line=record.command_line))
    return entries


def extract_attribute(record: ProcessRecord | None, kind: AttributeKind) -> str | None:
    """
    Return one attribute of a record as trimmed text.

    None means the process could not be read, which is distinct from a value
    of "0".
    """
    if record is None:
        return None
    return ATTRIBUTE_FORMATTERS[kind](record).strip()


def compare_values(kind: AttributeKind, value_a: str | None, value_b: str | None) -> Outcome:
    """
    Compare two extracted values of the same attribute.

    Raises:
        InvalidInputError: If a numeric attribute holds text that is not a number.
    """
    if not value_a or not value_b or not value_a.strip() or not value_b.strip():
        return Outcome.UNAVAILABLE
    if not kind.numeric:
        return Outcome.NOT_NUMERIC

    try:
        number_a = float(value_a)
        number_b = float(value_b)
    except ValueError as exc:
        raise InvalidInputError(
            f"Cannot compare {kind.value}: non-numeric values {value_a!r} and {value_b!r}"
        ) from exc

    if number_a > number_b:
        return Outcome.FIRST_GREATER
    if number_a < number_b:
        return Outcome.SECOND_GREATER
    return Outcome.EQUAL


def compare_processes(
    provider: ProcessProvider,
    pid_a: int,
    pid_b: int,
    kind: AttributeKind,
) -> ComparisonResult:
    """Read two processes and compare one attribute between them."""
    value_a = extract_attribute(provider.get_record(pid_a), kind)
    value_b = extract_attribute(provider.get_record(pid_b), kind)
    outcome = compare_values(kind, value_a, value_b)
    logger.info("compared %s of %d and %d: %s", kind.value, pid_a, pid_b, outcome.value)
    return ComparisonResult(
        kind=kind,
        pid_a=pid_a,
        pid_b=pid_b,
        value_a=value_a,
        value_b=value_b,
        outcome=outcome,
    )


def walk_parentage(
    provider: ProcessProvider,
    pid: int,
    max_depth: int | None = None,
) -> ParentageChain:
    """
    Follow parent PIDs from ``pid`` up to PID 0.

    Args:
        provider: Process table to read.
        pid: Starting PID.
        max_depth: Maximum number of processes in the chain, PID 0 excluded.
            Defaults to the number of processes in the table, which no
            acyclic chain can exceed.

    Raises:
        InvalidInputError: If ``pid`` is negative.
        NotFoundError: If the starting process does not exist.
        UnboundedChainError: If a PID repeats or the bound is exceeded.
    """
    if pid < 0:
        raise InvalidInputError(f"Invalid PID: {pid}")
    if pid == ROOT_PID:
        return ParentageChain(links=(ChainLink(ROOT_PID, ""),), complete=True)

    record = read_process(provider, pid)
    if max_depth is None:
        max_depth = max(provider.process_count(), 1)

    links = [ChainLink(record.pid, record.name)]
    seen = {record.pid}
    while True:
        parent = record.ppid
        if parent == ROOT_PID:
            links.append(ChainLink(ROOT_PID, ""))
            return ParentageChain(links=tuple(links), complete=True)

        partial = ParentageChain(links=tuple(links), complete=False)
        if parent in seen:
            raise UnboundedChainError(f"Cycle detected: PID {parent} is its own ancestor", partial)
        if len(links) >= max_depth:
            raise UnboundedChainError(f"Parentage chain exceeds {max_depth} levels", partial)

        record = provider.get_record(parent)
        if record is None:
            logger.info("pid %d exited during parentage walk from %d", parent, pid)
            return ParentageChain(links=tuple(links), complete=False)
        links.append(ChainLink(record.pid, record.name))
        seen.add(record.pid)


def parse_threshold(text: str) -> int:
    """Parse a memory threshold in KB typed by the user."""
    text = text.strip()
    if not text:
        raise InvalidInputError("Memory threshold is required.")
    if not (text.isascii() and text.isdigit()):
        raise InvalidInputError(f"Memory threshold must be a non-negative number of KB: {text!r}")
    return int(text)


def filter_by_memory(provider: ProcessProvider, threshold_kb: int) -> list[MemoryHit]:
    """Return processes whose virtual memory size is strictly above ``threshold_kb``."""
    if threshold_kb < 0:
        raise InvalidInputError(f"Memory threshold must not be negative: {threshold_kb}")
    return [
        MemoryHit(pid=record.pid, vsz_kb=record.vsz_kb, name=record.name)
        for record in provider.iter_records()
        if record.vsz_kb > threshold_kb
    ]
