"""Checks that the host exposes the data sources prockitty reads."""

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass

import psutil

from prockitty.errors import PrerequisiteMissingError

logger = logging.getLogger(__name__)

PROCESS_TABLE = "process table"
MEMORY_STATS = "memory statistics"
CPU_STATS = "CPU statistics"
DISK_IO = "disk I/O counters"
ROOT = "root privileges"


@dataclass(slots=True, frozen=True)
class Prerequisite:
    """Availability of one data source."""

    name: str
    available: bool
    detail: str
    required: bool = True


def _read_process_table() -> str:
    return f"{len(psutil.pids())} processes visible"


def _read_memory() -> str:
    return f"{psutil.virtual_memory().total // 1024} KB total"


def _read_cpu() -> str:
    return f"{psutil.cpu_count() or 0} logical CPUs"


def _read_disks() -> str:
    counters = psutil.disk_io_counters(perdisk=True)
    if not counters:
        raise RuntimeError("no disks report I/O counters")
    return f"{len(counters)} disks"


SOURCE_READERS: dict[str, Callable[[], str]] = {
    PROCESS_TABLE: _read_process_table,
    MEMORY_STATS: _read_memory,
    CPU_STATS: _read_cpu,
    DISK_IO: _read_disks,
}

OPTIONAL = {DISK_IO}


def _check(name: str) -> Prerequisite:
    try:
        detail = SOURCE_READERS[name]()
    except (OSError, RuntimeError, psutil.Error) as exc:
        logger.warning("%s unavailable: %s", name, exc)
        return Prerequisite(name, False, str(exc), name not in OPTIONAL)
    return Prerequisite(name, True, detail, name not in OPTIONAL)


def check_prerequisites() -> list[Prerequisite]:
    """Check every data source, plus whether we run as root."""
    results = [_check(name) for name in SOURCE_READERS]
    is_root = hasattr(os, "geteuid") and os.geteuid() == 0
    results.append(
        Prerequisite(
            ROOT,
            is_root,
            "running as root" if is_root else "some attributes of other users' processes may be unreadable",
            required=False,
        )
    )
    return results


def require(name: str) -> None:
    """
    Ensure a data source is available.

    Raises:
        PrerequisiteMissingError: If the source cannot be read.
    """
    result = _check(name)
    if not result.available:
        raise PrerequisiteMissingError(f"{name} unavailable: {result.detail}")


def render_prerequisites(results: list[Prerequisite]) -> str:
    """Lay out check results, one source per line."""
    lines = []
    for result in results:
        if result.available:
            mark = "ok"
        elif result.required:
            mark = "MISSING"
        else:
            mark = "no"
        lines.append(f"{result.name:<20} {mark:<8} {result.detail}")
    missing = [r for r in results if r.required and not r.available]
    if missing:
        lines.append("Some required data sources are unavailable.")
    else:
        lines.append("All required data sources are available.")
    return "\n".join(lines)
