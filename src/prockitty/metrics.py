"""System-wide metrics for prockitty."""

import logging
import time
from dataclasses import dataclass

import psutil

from prockitty.errors import PrerequisiteMissingError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DiskIO:
    """Cumulative I/O counters of one disk."""

    name: str
    read_count: int
    write_count: int
    read_bytes: int
    write_bytes: int


@dataclass(slots=True, frozen=True)
class TopProcess:
    """A process ranked by CPU usage."""

    pid: int
    name: str
    cpu_percent: float
    memory_percent: float


@dataclass(slots=True)
class SystemMetrics:
    """Snapshot of overall system state."""

    cpu_percent_per_core: list[float]
    cpu_times_percent: dict[str, float]
    memory_total: int
    memory_used: int
    memory_free: int
    memory_available: int
    memory_percent: float
    swap_total: int
    swap_used: int
    swap_free: int
    swap_percent: float
    load_avg: tuple[float, float, float]
    uptime_seconds: float
    disks: list[DiskIO] | None  # None when the host exposes no disk counters
    top_processes: list[TopProcess]


def format_bytes(size: float) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{int(size):5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_uptime(seconds: float) -> str:
    """Format an uptime as 'D days, HH:MM:SS'."""
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if days > 0:
        return f"{days} days, {hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def collect_metrics(sample_interval: float = 1.0, top_n: int = 20) -> SystemMetrics:
    """
    Collect a snapshot of the current system state.

    CPU usage and the CPU time split are sampled over ``sample_interval``
    seconds; ``0`` compares against the previous call instead of blocking.

    Raises:
        PrerequisiteMissingError: If psutil cannot read memory or CPU statistics.
    """
    # Prime CPU counters so every percentage covers the same sample window
    psutil.cpu_percent(percpu=True)
    procs = []
    for proc in psutil.process_iter(attrs=["pid", "name"]):
        try:
            proc.cpu_percent(interval=None)
            procs.append(proc)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue

    try:
        cpu_times = psutil.cpu_times_percent(interval=sample_interval)
        cpu_percents = psutil.cpu_percent(percpu=True)
        mem = psutil.virtual_memory()
        swap = psutil.swap_memory()
        load_avg = psutil.getloadavg()
        uptime = time.time() - psutil.boot_time()
    except (OSError, RuntimeError, AttributeError) as exc:
        raise PrerequisiteMissingError(f"System metrics are unavailable: {exc}") from exc

    return SystemMetrics(
        cpu_percent_per_core=cpu_percents,
        cpu_times_percent=cpu_times._asdict(),
        memory_total=mem.total,
        memory_used=mem.used,
        memory_free=mem.free,
        memory_available=mem.available,
        memory_percent=mem.percent,
        swap_total=swap.total,
        swap_used=swap.used,
        swap_free=swap.free,
        swap_percent=swap.percent,
        load_avg=load_avg,
        uptime_seconds=uptime,
        disks=_collect_disks(),
        top_processes=_rank_processes(procs, top_n),
    )


def _collect_disks() -> list[DiskIO] | None:
    """Per-disk I/O counters, or None when the host does not expose them."""
    try:
        counters = psutil.disk_io_counters(perdisk=True)
    except (OSError, RuntimeError) as exc:
        logger.warning("disk I/O counters unavailable: %s", exc)
        return None
    if not counters:
        return None
    return [
        DiskIO(
            name=name,
            read_count=io.read_count,
            write_count=io.write_count,
            read_bytes=io.read_bytes,
            write_bytes=io.write_bytes,
        )
        for name, io in sorted(counters.items())
    ]


def _rank_processes(procs: list[psutil.Process], top_n: int) -> list[TopProcess]:
    """Rank primed processes by CPU usage over the sample window."""
    ranked: list[TopProcess] = []
    for proc in procs:
        try:
            with proc.oneshot():
                ranked.append(
                    TopProcess(
                        pid=proc.pid,
                        name=proc.info.get("name") or "",
                        cpu_percent=proc.cpu_percent(interval=None),
                        memory_percent=proc.memory_percent(),
                    )
                )
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            # Process died during the sample window or cannot be read
            continue
    ranked.sort(key=lambda p: p.cpu_percent, reverse=True)
    return ranked[:top_n]


def render_metrics(metrics: SystemMetrics) -> str:
    """Lay out a metrics snapshot as plain text."""
    lines = ["Memory and Swap Usage:"]
    lines.append(f"{'':6}{'total':>10}{'used':>10}{'free':>10}{'use%':>8}")
    lines.append(
        f"{'Mem:':6}{format_bytes(metrics.memory_total):>10}{format_bytes(metrics.memory_used):>10}"
        f"{format_bytes(metrics.memory_free):>10}{metrics.memory_percent:>7.1f}%"
    )
    lines.append(
        f"{'Swap:':6}{format_bytes(metrics.swap_total):>10}{format_bytes(metrics.swap_used):>10}"
        f"{format_bytes(metrics.swap_free):>10}{metrics.swap_percent:>7.1f}%"
    )
    lines.append("")

    lines.append("CPU Statistics:")
    split = "  ".join(f"{name} {value:.1f}%" for name, value in metrics.cpu_times_percent.items())
    lines.append(split)
    for i, usage in enumerate(metrics.cpu_percent_per_core):
        lines.append(f"CPU{i:<2} {usage:5.1f}%")
    load = metrics.load_avg
    lines.append(f"Load average: {load[0]:.2f} {load[1]:.2f} {load[2]:.2f}")
    lines.append(f"Uptime: {format_uptime(metrics.uptime_seconds)}")
    lines.append("")

    lines.append("Top Processes (by CPU usage):")
    lines.append(f"{'PID':>8} {'CPU%':>6} {'MEM%':>6}  COMMAND")
    for proc in metrics.top_processes:
        lines.append(f"{proc.pid:>8} {proc.cpu_percent:>6.1f} {proc.memory_percent:>6.1f}  {proc.name}")
    lines.append("")

    if metrics.disks is None:
        lines.append("Disk I/O counters not available, skipping Disk I/O statistics.")
    else:
        lines.append("Disk I/O Statistics:")
        lines.append(f"{'Device':<12}{'reads':>10}{'writes':>10}{'read':>10}{'written':>10}")
        for disk in metrics.disks:
            lines.append(
                f"{disk.name:<12}{disk.read_count:>10}{disk.write_count:>10}"
                f"{format_bytes(disk.read_bytes):>10}{format_bytes(disk.write_bytes):>10}"
            )
    return "\n".join(lines)
