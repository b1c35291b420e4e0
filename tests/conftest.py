"""Shared test fixtures for sysinspect."""

import logging
from pathlib import Path

import pytest
import structlog

from sysinspect.procfs import ProcFS

CPUINFO = """\
processor\t: 0
vendor_id\t: GenuineIntel
model name\t: Intel(R) Core(TM) i7-8650U CPU @ 1.90GHz
cpu MHz\t\t: 2112.000

processor\t: 1
vendor_id\t: GenuineIntel
model name\t: Intel(R) Core(TM) i7-8650U CPU @ 1.90GHz
cpu MHz\t\t: 2112.000
"""

MEMINFO = """\
MemTotal:        2000 kB
MemFree:          500 kB
MemAvailable:    1200 kB
Buffers:          100 kB
"""


def make_status(
    pid: int,
    name: str = "bash",
    state: str = "S (sleeping)",
    uid: int = 0,
    threads: int = 1,
) -> str:
    """Create the text of a `<pid>/status` file."""
    return (
        f"Name:\t{name}\n"
        "Umask:\t0022\n"
        f"State:\t{state}\n"
        f"Tgid:\t{pid}\n"
        f"Pid:\t{pid}\n"
        "PPid:\t1\n"
        f"Uid:\t{uid}\t{uid}\t{uid}\t{uid}\n"
        f"Gid:\t{uid}\t{uid}\t{uid}\t{uid}\n"
        f"Threads:\t{threads}\n"
    )


def write_status(root: Path, pid: int, **kwargs) -> Path:
    """Create `<root>/<pid>/status`."""
    directory = root / str(pid)
    directory.mkdir(parents=True, exist_ok=True)
    status = directory / "status"
    status.write_text(make_status(pid, **kwargs))
    return status


def write_uptime(root: Path, total: float, idle: float) -> None:
    (root / "uptime").write_text(f"{total:.2f} {idle:.2f}\n")


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    """A synthetic procfs tree with two processes and some non-process entries."""
    root = tmp_path / "proc"
    root.mkdir()
    write_uptime(root, 3665.42, 7000.10)
    (root / "meminfo").write_text(MEMINFO)
    (root / "cpuinfo").write_text(CPUINFO)
    (root / "loadavg").write_text("0.52 0.58 0.59 1/345 12345\n")
    (root / "version").write_text(
        "Linux version 6.1.0-test (builder@host) (gcc 12.2.0) #1 SMP PREEMPT_DYNAMIC\n"
    )
    (root / "sys" / "kernel").mkdir(parents=True)
    (root / "sys" / "kernel" / "hostname").write_text("testhost\n")

    write_status(root, 1, name="systemd", state="S (sleeping)", uid=0, threads=1)
    write_status(root, 42, name="worker", state="R (running)", uid=0, threads=4)

    (root / "acpi").mkdir()
    (root / "self").mkdir()
    (root / "1234").write_text("numeric file, not a process directory\n")
    return root


@pytest.fixture
def procfs(proc_root: Path) -> ProcFS:
    return ProcFS(proc_root)


def fixed_owner(uid: int) -> str:
    """Owner lookup that does not depend on the host's user database."""
    return {0: "root", 1000: "alice"}.get(uid, str(uid))


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration done by the code under test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
