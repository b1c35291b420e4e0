"""Continuously refreshing CPU and memory view."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TextIO

import structlog

from sysinspect.metrics import cpu_usage, memory_usage, read_loadavg, read_memory, read_uptime
from sysinspect.models import LoadAverage, UptimeSample, UsageReading, UsageStatus
from sysinspect.procfs import DataUnavailable, ProcFS
from sysinspect.render import BAR_WIDTH, RULE, format_load, usage_bar

log = structlog.get_logger()

HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
CLEAR_TO_EOL = "\033[K"
FRAME_LINES = 3

_NO_DATA = UsageReading(0.0, UsageStatus.NO_DATA)


@dataclass(slots=True, frozen=True)
class LiveFrame:
    """One refresh of the live view."""

    load: LoadAverage | None
    cpu: UsageReading
    memory: UsageReading


def _smooth(previous: UsageReading | None, current: UsageReading) -> UsageReading:
    """Mean of two memory readings, falling back to whichever one has data."""
    if previous is None or not previous.available:
        return current
    if not current.available:
        return previous
    return UsageReading((previous.ratio + current.ratio) / 2, current.status)


class LiveLoop:
    """
    Repeatedly samples load, CPU and memory usage.

    CPU usage is measured against a single baseline taken by start(), so each
    frame shows the average utilization since the loop began rather than the
    rate over the last interval. Memory usage is the mean of the current and
    the previous reading.
    """

    def __init__(
        self,
        procfs: ProcFS,
        *,
        interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        cpu_count: int = 1,
        bar_width: int = BAR_WIDTH,
    ) -> None:
        """
        Initialize the LiveLoop.

        Args:
            procfs: Where to read uptime, meminfo and loadavg from.
            interval: Pause between frames, in seconds.
            sleep: Blocking pause function.
            cpu_count: Logical units the kernel idle counter is summed over.
            bar_width: Cells per percentage bar.
        """
        self._procfs = procfs
        self._interval = interval
        self._sleep = sleep
        self._cpu_count = cpu_count
        self._bar_width = bar_width
        self._baseline: UptimeSample | None = None
        self._previous_memory: UsageReading | None = None
        self._frames = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def frames(self) -> int:
        """Frames drawn by run() so far."""
        return self._frames

    @property
    def started(self) -> bool:
        return self._baseline is not None

    def start(self) -> None:
        """Take the baseline memory and uptime samples."""
        self._previous_memory = self._memory()
        self._baseline = read_uptime(self._procfs)

    def _memory(self) -> UsageReading:
        try:
            return memory_usage(read_memory(self._procfs))
        except DataUnavailable as e:
            log.warning("source_unavailable", source=e.source, reason=e.reason)
            return _NO_DATA

    def step(self) -> LiveFrame:
        """Sample once; start() must have been called."""
        if self._baseline is None:
            raise RuntimeError("LiveLoop.step() called before start()")

        try:
            load = read_loadavg(self._procfs)
        except DataUnavailable as e:
            log.warning("source_unavailable", source=e.source, reason=e.reason)
            load = None

        try:
            cpu = cpu_usage(self._baseline, read_uptime(self._procfs), self._cpu_count)
        except DataUnavailable as e:
            log.warning("source_unavailable", source=e.source, reason=e.reason)
            cpu = _NO_DATA

        current = self._memory()
        memory = _smooth(self._previous_memory, current)
        self._previous_memory = current
        return LiveFrame(load=load, cpu=cpu, memory=memory)

    def render_frame(self, frame: LiveFrame) -> list[str]:
        return [
            f"Load Average (1/5/15 min): {format_load(frame.load)}",
            f"CPU Usage:    {usage_bar(frame.cpu, self._bar_width)}",
            f"Memory Usage: {usage_bar(frame.memory, self._bar_width)}",
        ]

    def run(self, out: TextIO, iterations: int | None = None) -> int:
        """
        Draw frames in place until interrupted.

        The cursor is hidden while running and moved back to the first line
        of the frame after each draw, so the next frame overwrites it.

        Args:
            out: Terminal stream to write to.
            iterations: Stop after this many frames; None runs forever.

        Returns:
            Number of frames drawn.
        """
        if not self.started:
            self.start()

        out.write(HIDE_CURSOR)
        out.write(f"Live View/Memory View\n{RULE}\n")
        out.flush()
        drawn = 0
        try:
            while iterations is None or drawn < iterations:
                self._sleep(self._interval)
                lines = self.render_frame(self.step())
                out.write("\n".join(line + CLEAR_TO_EOL for line in lines))
                out.write(f"\r\033[{FRAME_LINES - 1}A")
                out.flush()
                drawn += 1
                self._frames += 1
        finally:
            if drawn:
                out.write("\n" * FRAME_LINES)
            out.write(SHOW_CURSOR)
            out.flush()
        return drawn
