"""Data models for sysinspect."""

from dataclasses import dataclass
from enum import Enum


@dataclass(slots=True, frozen=True)
class UptimeSample:
    """Immutable reading of the uptime counters."""

    total_seconds: float
    idle_seconds: float  # Summed over all logical CPUs by the kernel


@dataclass(slots=True, frozen=True)
class MemorySnapshot:
    """Immutable reading of meminfo, in kB."""

    total_kb: float
    free_kb: float

    @property
    def used_kb(self) -> float:
        """Total minus free, never negative."""
        return max(0.0, self.total_kb - self.free_kb)


@dataclass(slots=True, frozen=True)
class CpuInfo:
    """CPU model and number of logical processing units."""

    model_name: str
    logical_unit_count: int


@dataclass(slots=True, frozen=True)
class LoadAverage:
    """1, 5 and 15 minute load averages."""

    one: float
    five: float
    fifteen: float


class UsageStatus(Enum):
    """How a utilization ratio was obtained."""

    OK = "ok"
    CLAMPED = "clamped"  # Raw value fell outside [0, 1]
    NO_DATA = "no_data"  # Zero time delta or zero total memory


@dataclass(slots=True, frozen=True)
class UsageReading:
    """A utilization ratio in [0, 1] plus the status it was derived with."""

    ratio: float
    status: UsageStatus = UsageStatus.OK

    @property
    def available(self) -> bool:
        return self.status is not UsageStatus.NO_DATA


class ProcessState(Enum):
    """Normalized process state."""

    RUNNING = "running"
    SLEEPING = "sleeping"
    IDLE = "idle"
    ACTIVE = "active"
    ZOMBIE = "zombie"
    DEAD = "dead"
    DISK_SLEEP = "disk sleep"
    UNKNOWN = "unknown"


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable record built from a process status stream."""

    pid: int
    name: str
    state: ProcessState
    owner: str
    thread_count: int | None


@dataclass(slots=True, frozen=True)
class ViewOptions:
    """Which report sections to produce."""

    hardware: bool = False
    system: bool = False
    tasks: bool = False
    live: bool = False

    @classmethod
    def all(cls) -> "ViewOptions":
        """Hardware, system and tasks; the default selection."""
        return cls(hardware=True, system=True, tasks=True)
