"""Shared fixtures for prockitty tests."""

import pytest

from prockitty.models import ProcessRecord
from prockitty.provider import StaticProvider


def make_record(pid: int, ppid: int = 1, **overrides) -> ProcessRecord:
    """Build a ProcessRecord with plausible defaults."""
    fields = {
        "pid": pid,
        "ppid": ppid,
        "name": f"proc{pid}",
        "command_line": f"/usr/bin/proc{pid} --serve",
        "status": "S",
        "cpu_percent": 0.0,
        "rss_kb": 1024,
        "vsz_kb": 4096,
        "threads": 1,
        "start_time": 1708700000.0,
        "cpu_time": 0.0,
        "priority": 20,
        "nice": 0,
    }
    fields.update(overrides)
    return ProcessRecord(**fields)


@pytest.fixture
def table() -> StaticProvider:
    """A small process tree: 1 <- 100 <- 200 <- 300, and 2 <- 400."""
    return StaticProvider(
        [
            make_record(1, ppid=0, name="init", command_line="/sbin/init"),
            make_record(2, ppid=0, name="kthreadd", command_line="[kthreadd]", vsz_kb=0, rss_kb=0),
            make_record(100, ppid=1, name="sshd", cpu_percent=12.5, vsz_kb=500),
            make_record(200, ppid=100, name="bash", cpu_percent=12.5, vsz_kb=1500, status="R"),
            make_record(300, ppid=200, name="python3", cpu_percent=40.0, vsz_kb=1000, threads=4),
            make_record(400, ppid=2, name="kworker/0:1", command_line="[kworker/0:1]", vsz_kb=0, rss_kb=0),
        ]
    )
