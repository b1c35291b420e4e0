"""System-wide metric extractors.

parse_* functions work on lines that were already read and never touch the
file system. read_* functions open their source through ProcFS and delegate.
"""

import math
import time
from collections.abc import Callable, Iterable

import structlog

from sysinspect.models import (
    CpuInfo,
    LoadAverage,
    MemorySnapshot,
    UptimeSample,
    UsageReading,
    UsageStatus,
)
from sysinspect.procfs import DataUnavailable, ProcFS, tokenize

log = structlog.get_logger()

UPTIME = "uptime"
MEMINFO = "meminfo"
CPUINFO = "cpuinfo"
LOADAVG = "loadavg"
VERSION = "version"
HOSTNAME = "sys/kernel/hostname"


def _numeric_fields(line: str, source: str, count: int) -> list[float]:
    """Parse the first `count` whitespace separated fields of a line as floats."""
    fields = [field for field in tokenize(line, " \t") if field]
    if len(fields) < count:
        raise DataUnavailable(source, f"expected {count} fields, got {len(fields)}")
    try:
        values = [float(field) for field in fields[:count]]
    except ValueError as e:
        raise DataUnavailable(source, f"malformed value: {e}") from e
    if not all(math.isfinite(value) for value in values):
        raise DataUnavailable(source, "non-finite value")
    return values


def _first_line(lines: Iterable[str], source: str) -> str:
    for line in lines:
        return line
    raise DataUnavailable(source, "empty")


def _bounded(raw: float) -> UsageReading:
    if raw < 0.0:
        return UsageReading(0.0, UsageStatus.CLAMPED)
    if raw > 1.0:
        return UsageReading(1.0, UsageStatus.CLAMPED)
    return UsageReading(raw)


# Uptime / CPU


def parse_uptime(lines: Iterable[str]) -> UptimeSample:
    """Parse `<total seconds> <idle seconds>`."""
    total, idle = _numeric_fields(_first_line(lines, UPTIME), UPTIME, 2)
    return UptimeSample(total_seconds=total, idle_seconds=idle)


def read_uptime(procfs: ProcFS) -> UptimeSample:
    with procfs.lines(UPTIME) as lines:
        return parse_uptime(lines)


def cpu_usage(first: UptimeSample, second: UptimeSample, cpu_count: int = 1) -> UsageReading:
    """
    Fraction of elapsed time that was not idle between two uptime samples.

    usage = 1 - (Δidle / cpu_count) / Δtotal

    The kernel sums idle time over every logical CPU, so passing the number of
    logical units keeps the ratio meaningful on multi-core machines. With the
    default of 1 the idle delta is used as is.

    Args:
        first: Earlier sample.
        second: Later sample.
        cpu_count: Logical processing units the idle counter is summed over.

    Returns:
        NO_DATA with ratio 0 when no time elapsed. Results outside [0, 1]
        are clamped to the nearest bound and marked CLAMPED.
    """
    delta_total = second.total_seconds - first.total_seconds
    if delta_total <= 0:
        return UsageReading(0.0, UsageStatus.NO_DATA)

    delta_idle = (second.idle_seconds - first.idle_seconds) / max(1, cpu_count)
    reading = _bounded(1.0 - delta_idle / delta_total)
    if reading.status is UsageStatus.CLAMPED:
        log.debug(
            "cpu_usage_clamped",
            delta_total=delta_total,
            delta_idle=delta_idle,
            cpu_count=cpu_count,
        )
    return reading


def sample_cpu_usage(
    procfs: ProcFS,
    interval: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    cpu_count: int = 1,
) -> UsageReading:
    """Take two uptime samples `interval` seconds apart and compare them."""
    first = read_uptime(procfs)
    sleep(interval)
    second = read_uptime(procfs)
    return cpu_usage(first, second, cpu_count)


# Memory


def parse_meminfo(lines: Iterable[str]) -> MemorySnapshot:
    """
    Extract MemTotal and MemFree from `Key:   value kB` lines.

    Malformed lines are skipped and missing keys are reported as 0;
    memory_usage turns a zero total into a NO_DATA reading.
    """
    values: dict[str, float] = {}
    for line in lines:
        fields = tokenize(line, ":")
        if len(fields) < 2:
            continue
        key = fields[0].strip()
        if key not in ("MemTotal", "MemFree"):
            continue
        amount = [part for part in tokenize(fields[1], " \t") if part]
        if not amount:
            continue
        try:
            value = float(amount[0])
        except ValueError:
            value = math.nan
        if not math.isfinite(value):
            log.debug("meminfo_malformed_line", line=line)
            continue
        values[key] = value

    return MemorySnapshot(
        total_kb=values.get("MemTotal", 0.0),
        free_kb=values.get("MemFree", 0.0),
    )


def read_memory(procfs: ProcFS) -> MemorySnapshot:
    with procfs.lines(MEMINFO) as lines:
        return parse_meminfo(lines)


def memory_usage(snapshot: MemorySnapshot) -> UsageReading:
    """Return (total - free) / total, never below 0."""
    if snapshot.total_kb <= 0:
        return UsageReading(0.0, UsageStatus.NO_DATA)
    return _bounded((snapshot.total_kb - snapshot.free_kb) / snapshot.total_kb)


# CPU model / load average


def parse_cpuinfo(lines: Iterable[str]) -> CpuInfo:
    """
    Scan per-core blocks for the model name and the number of processors.

    Only the first `model name` line is used; the same line repeats once per
    logical unit.
    """
    model_name = ""
    found = False
    count = 0
    for line in lines:
        tokens = tokenize(line, " :\t")
        if not tokens:
            continue
        if not found and len(tokens) >= 2 and tokens[0] == "model" and tokens[1] == "name":
            model_name = " ".join(token for token in tokens[2:] if token)
            found = True
        if tokens[0] == "processor":
            count += 1
    return CpuInfo(model_name=model_name, logical_unit_count=count)


def read_cpuinfo(procfs: ProcFS) -> CpuInfo:
    with procfs.lines(CPUINFO) as lines:
        return parse_cpuinfo(lines)


def parse_loadavg(lines: Iterable[str]) -> LoadAverage:
    one, five, fifteen = _numeric_fields(_first_line(lines, LOADAVG), LOADAVG, 3)
    return LoadAverage(one=one, five=five, fifteen=fifteen)


def read_loadavg(procfs: ProcFS) -> LoadAverage:
    with procfs.lines(LOADAVG) as lines:
        return parse_loadavg(lines)


# Host identity


def read_hostname(procfs: ProcFS) -> str:
    hostname = procfs.read_first_line(HOSTNAME).strip()
    if not hostname:
        raise DataUnavailable(HOSTNAME, "empty")
    return hostname


def read_kernel_version(procfs: ProcFS) -> str:
    """Return the third token of `Linux version <release> ...`."""
    tokens = tokenize(procfs.read_first_line(VERSION), " ")
    if len(tokens) < 3 or not tokens[2]:
        raise DataUnavailable(VERSION, "no release field")
    return tokens[2]


def count_tasks(procfs: ProcFS) -> int:
    """Number of process directories; only purely numeric names count."""
    return len(procfs.pids())
