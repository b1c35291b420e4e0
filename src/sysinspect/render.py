"""Plain-text report layouts."""

import math
from collections.abc import Iterable

from sysinspect.models import (
    CpuInfo,
    LoadAverage,
    MemorySnapshot,
    ProcessRecord,
    UptimeSample,
    UsageReading,
)

SECONDS_PER_YEAR = 31_536_000
SECONDS_PER_DAY = 86_400
SECONDS_PER_HOUR = 3_600
SECONDS_PER_MINUTE = 60

BAR_WIDTH = 20
RULE = "-" * 20
UNAVAILABLE = "unavailable"

TABLE_HEADER = f"{'PID':>5} | {'State':>12} | {'Task Name':>25} | {'User':>15} | Tasks"
TABLE_RULE = "------+--------------+---------------------------+-----------------+-------"


def format_uptime(total_seconds: float) -> str:
    """
    Break an uptime into years, days, hours, minutes and seconds.

    Fractions of a second are truncated. Years, days and hours are left out
    when zero; minutes and seconds are always shown.

    >>> format_uptime(125)
    '2 minutes, 5 seconds'
    """
    remaining = max(0, int(total_seconds))
    years, remaining = divmod(remaining, SECONDS_PER_YEAR)
    days, remaining = divmod(remaining, SECONDS_PER_DAY)
    hours, remaining = divmod(remaining, SECONDS_PER_HOUR)
    minutes, seconds = divmod(remaining, SECONDS_PER_MINUTE)

    parts = []
    if years:
        parts.append(f"{years} years")
    if days:
        parts.append(f"{days} days")
    if hours:
        parts.append(f"{hours} hours")
    parts.append(f"{minutes} minutes")
    parts.append(f"{seconds} seconds")
    return ", ".join(parts)


def percentage_bar(ratio: float, width: int = BAR_WIDTH) -> str:
    """
    Render a ratio as `[####----] 12.5%`.

    Each cell stands for 100 / width percent; partially covered cells stay
    empty. The cell count is kept within [0, width].
    """
    filled = math.floor(ratio * 100 / (100 / width))
    filled = min(max(filled, 0), width)
    return "[" + "#" * filled + "-" * (width - filled) + "]" + f" {ratio * 100:.1f}%"


def usage_bar(reading: UsageReading | None, width: int = BAR_WIDTH) -> str:
    """Bar for a reading; missing or NO_DATA readings show an empty bar and n/a."""
    if reading is None or not reading.available:
        return "[" + "-" * width + "] n/a"
    return percentage_bar(reading.ratio, width)


def format_load(load: LoadAverage | None) -> str:
    if load is None:
        return UNAVAILABLE
    return f"{load.one:.2f} {load.five:.2f} {load.fifteen:.2f}"


def format_memory_amount(snapshot: MemorySnapshot) -> str:
    used_gb = snapshot.used_kb / (1024 * 1024)
    total_gb = snapshot.total_kb / (1024 * 1024)
    return f"({used_gb:.1f} GB / {total_gb:.1f} GB)"


def process_table_row(record: ProcessRecord) -> str:
    threads = "" if record.thread_count is None else str(record.thread_count)
    return (
        f"{record.pid:>5} | {record.state.value[:12]:>12} | {record.name[:25]:>25} | "
        f"{record.owner[:15]:>15} | {threads}"
    )


def _section(title: str, lines: list[str]) -> str:
    return "\n".join([title, RULE, *lines]) + "\n"


def render_system(
    hostname: str | None,
    kernel_version: str | None,
    uptime: UptimeSample | None,
    cpu: UsageReading | None,
    bar_width: int = BAR_WIDTH,
) -> str:
    uptime_text = format_uptime(uptime.total_seconds) if uptime is not None else UNAVAILABLE
    return _section(
        "System Information",
        [
            f"Hostname: {hostname or UNAVAILABLE}",
            f"Kernel Version: {kernel_version or UNAVAILABLE}",
            f"Uptime: {uptime_text}",
            f"CPU Usage: {usage_bar(cpu, bar_width)}",
        ],
    )


def render_hardware(
    cpu_info: CpuInfo | None,
    load: LoadAverage | None,
    cpu: UsageReading | None,
    memory_snapshot: MemorySnapshot | None,
    memory: UsageReading | None,
    bar_width: int = BAR_WIDTH,
) -> str:
    if cpu_info is not None:
        model = cpu_info.model_name or UNAVAILABLE
        units = str(cpu_info.logical_unit_count)
    else:
        model = units = UNAVAILABLE

    memory_line = f"Memory Usage: {usage_bar(memory, bar_width)}"
    if memory_snapshot is not None and memory_snapshot.total_kb > 0:
        memory_line += " " + format_memory_amount(memory_snapshot)

    return _section(
        "Hardware Information",
        [
            f"CPU Model: {model}",
            f"Processing Units: {units}",
            f"Load Average (1/5/15 min): {format_load(load)}",
            f"CPU Usage:    {usage_bar(cpu, bar_width)}",
            memory_line,
        ],
    )


def render_tasks(task_count: int | None, records: Iterable[ProcessRecord]) -> str:
    count = UNAVAILABLE if task_count is None else str(task_count)
    rows = [process_table_row(record) for record in records]
    return _section(
        "Task Information",
        [f"Tasks Running: {count}", "", TABLE_HEADER, TABLE_RULE, *rows],
    )
