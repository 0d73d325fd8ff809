"""Process table providers.

The inspection functions only talk to a :class:`ProcessProvider`, so the live
psutil-backed table and an in-memory table are interchangeable:

* :class:`PsutilProvider` reads the running system.
* :class:`StaticProvider` serves a fixed list of records (tests, replays).
"""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from typing import Any

import psutil

from prockitty.models import ProcessRecord

logger = logging.getLogger(__name__)

# psutil status names mapped to the single-letter codes ps prints. Not every
# psutil release defines every status, so missing names are skipped.
_STATUS_NAMES = {
    "STATUS_RUNNING": "R",
    "STATUS_SLEEPING": "S",
    "STATUS_DISK_SLEEP": "D",
    "STATUS_STOPPED": "T",
    "STATUS_TRACING_STOP": "t",
    "STATUS_ZOMBIE": "Z",
    "STATUS_DEAD": "X",
    "STATUS_WAKE_KILL": "K",
    "STATUS_WAKING": "W",
    "STATUS_IDLE": "I",
    "STATUS_LOCKED": "L",
    "STATUS_WAITING": "W",
    "STATUS_SUSPENDED": "T",
    "STATUS_PARKED": "P",
}
STATUS_CODES = {
    getattr(psutil, name): code for name, code in _STATUS_NAMES.items() if hasattr(psutil, name)
}

# Placeholder psutil stores for fields it was not allowed to read
_DENIED = object()

# Kernel priority of a normal (non real-time) task on Linux
BASE_PRIORITY = 20


class ProcessProvider(ABC):
    """Read-only view of the process table."""

    @abstractmethod
    def get_record(self, pid: int) -> ProcessRecord | None:
        """Return the record for ``pid``, or None if it is not in the table."""

    @abstractmethod
    def iter_records(self) -> Iterator[ProcessRecord]:
        """Yield a record for every process, in the table's natural order."""

    @abstractmethod
    def process_count(self) -> int:
        """Number of processes currently in the table."""


class PsutilProvider(ProcessProvider):
    """
    Provider backed by the live process table through psutil.

    Each call re-reads the table; nothing is cached. Processes that exit or
    deny access while being read are reported as absent.
    """

    # Attributes to fetch in oneshot
    ATTRS = [
        "pid",
        "ppid",
        "name",
        "cmdline",
        "status",
        "cpu_times",
        "memory_info",
        "num_threads",
        "create_time",
        "nice",
    ]

    def get_record(self, pid: int) -> ProcessRecord | None:
        if pid <= 0:
            return None
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                info = proc.as_dict(attrs=self.ATTRS, ad_value=_DENIED)
        except psutil.NoSuchProcess:
            # Includes ZombieProcess raised before the dict could be built
            logger.debug("pid %d vanished before it could be read", pid)
            return None
        except psutil.AccessDenied:
            logger.warning("access denied reading pid %d", pid)
            return None
        return self._build_record(info)

    def iter_records(self) -> Iterator[ProcessRecord]:
        for proc in psutil.process_iter(attrs=self.ATTRS, ad_value=_DENIED):
            try:
                with proc.oneshot():
                    info = proc.info
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                # Process died mid-scan or cannot be read, skip it
                continue
            record = self._build_record(info)
            if record is not None:
                yield record

    def process_count(self) -> int:
        return len(psutil.pids())

    @staticmethod
    def _build_record(info: dict[str, Any]) -> ProcessRecord | None:
        """
        Create a record from psutil's attribute dict.

        Returns None when a field other than the command line was denied, so
        an unreadable value is never mistaken for zero. A denied command line
        falls back to the bracketed name, as ps does for kernel threads.
        """
        denied = [key for key, value in info.items() if value is _DENIED and key != "cmdline"]
        if denied:
            logger.warning("access denied reading %s of pid %s", ", ".join(sorted(denied)), info.get("pid"))
            return None

        name = info.get("name") or ""
        cmdline = info.get("cmdline")
        if cmdline is _DENIED:
            cmdline = None
        command_line = " ".join(cmdline) if cmdline else f"[{name}]"

        mem_info = info.get("memory_info")
        cpu_times = info.get("cpu_times")
        cpu_time = (cpu_times.user + cpu_times.system) if cpu_times else 0.0
        start_time = info.get("create_time") or 0.0
        nice = info.get("nice") or 0

        # Same definition as ps %cpu: CPU time over lifetime
        elapsed = time.time() - start_time if start_time else 0.0
        cpu_percent = cpu_time / elapsed * 100.0 if elapsed > 0 else 0.0

        return ProcessRecord(
            pid=info.get("pid", 0),
            ppid=info.get("ppid") or 0,
            name=name,
            command_line=command_line,
            status=STATUS_CODES.get(info.get("status"), "?"),
            cpu_percent=round(cpu_percent, 1),
            rss_kb=mem_info.rss // 1024 if mem_info else 0,
            vsz_kb=mem_info.vms // 1024 if mem_info else 0,
            threads=info.get("num_threads") or 1,
            start_time=start_time,
            cpu_time=cpu_time,
            priority=BASE_PRIORITY + nice,
            nice=nice,
        )


class StaticProvider(ProcessProvider):
    """Provider serving a fixed set of records in the order given."""

    def __init__(self, records: Iterable[ProcessRecord]) -> None:
        self._records: dict[int, ProcessRecord] = {}
        for record in records:
            self._records[record.pid] = record

    def get_record(self, pid: int) -> ProcessRecord | None:
        return self._records.get(pid)

    def iter_records(self) -> Iterator[ProcessRecord]:
        return iter(list(self._records.values()))

    def process_count(self) -> int:
        return len(self._records)

    def remove(self, pid: int) -> None:
        """Drop a record, as if the process had exited."""
        self._records.pop(pid, None)
