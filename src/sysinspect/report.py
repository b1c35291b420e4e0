"""Assemble the one-shot report from the selected sections."""

import time
from collections.abc import Callable
from typing import TypeVar

import structlog

from sysinspect.metrics import (
    count_tasks,
    memory_usage,
    read_cpuinfo,
    read_hostname,
    read_kernel_version,
    read_loadavg,
    read_memory,
    read_uptime,
    sample_cpu_usage,
)
from sysinspect.models import CpuInfo, ViewOptions
from sysinspect.processes import OwnerLookup, collect_processes, lookup_owner
from sysinspect.procfs import DataUnavailable, ProcFS
from sysinspect.render import BAR_WIDTH, render_hardware, render_system, render_tasks

log = structlog.get_logger()

T = TypeVar("T")


def attempt(read: Callable[[ProcFS], T], procfs: ProcFS) -> T | None:
    """Run an extractor, turning DataUnavailable into None."""
    try:
        return read(procfs)
    except DataUnavailable as e:
        log.warning("source_unavailable", source=e.source, reason=e.reason)
        return None


def cpu_count_for(cpu_info: CpuInfo | None, normalize: bool) -> int:
    """Logical units to divide idle time by."""
    if not normalize or cpu_info is None or cpu_info.logical_unit_count < 1:
        return 1
    return cpu_info.logical_unit_count


def build_report(
    procfs: ProcFS,
    options: ViewOptions,
    *,
    interval: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    normalize_cpu: bool = True,
    bar_width: int = BAR_WIDTH,
    owner_lookup: OwnerLookup = lookup_owner,
) -> str:
    """
    Render the system, hardware and task sections that `options` selects.

    The CPU usage sample blocks for `interval` seconds and is taken at most
    once, shared by the system and hardware sections. A source that cannot
    be read is shown as unavailable without affecting the other fields.
    """
    sections: list[str] = []

    cpu_info = None
    if options.hardware or (options.system and normalize_cpu):
        cpu_info = attempt(read_cpuinfo, procfs)

    cpu = None
    if options.system or options.hardware:
        cpu_count = cpu_count_for(cpu_info, normalize_cpu)
        cpu = attempt(lambda fs: sample_cpu_usage(fs, interval, sleep, cpu_count), procfs)

    if options.system:
        sections.append(
            render_system(
                attempt(read_hostname, procfs),
                attempt(read_kernel_version, procfs),
                attempt(read_uptime, procfs),
                cpu,
                bar_width,
            )
        )

    if options.hardware:
        memory_snapshot = attempt(read_memory, procfs)
        memory = memory_usage(memory_snapshot) if memory_snapshot is not None else None
        sections.append(
            render_hardware(
                cpu_info,
                attempt(read_loadavg, procfs),
                cpu,
                memory_snapshot,
                memory,
                bar_width,
            )
        )

    if options.tasks:
        task_count = attempt(count_tasks, procfs)
        records = attempt(lambda fs: collect_processes(fs, owner_lookup), procfs) or []
        sections.append(render_tasks(task_count, records))

    return "\n".join(sections)
