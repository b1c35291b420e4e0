"""Per-process records built from `<pid>/status` streams."""

import pwd
from collections.abc import Callable, Iterable
from functools import lru_cache

import structlog

from sysinspect.models import ProcessRecord, ProcessState
from sysinspect.procfs import DataUnavailable, ProcFS, tokenize

log = structlog.get_logger()

OwnerLookup = Callable[[int], str]

STATE_CODES: dict[str, ProcessState] = {
    "R (running)": ProcessState.RUNNING,
    "S (sleeping)": ProcessState.SLEEPING,
    "I (idle)": ProcessState.IDLE,
    "A (active)": ProcessState.ACTIVE,
    "Z (zombie)": ProcessState.ZOMBIE,
    "X (dead)": ProcessState.DEAD,
    "D (disk sleep)": ProcessState.DISK_SLEEP,
}


def parse_state(value: str, current: ProcessState = ProcessState.UNKNOWN) -> ProcessState:
    """
    Map a `State:` value such as "S (sleeping)" to a ProcessState.

    Only exact matches (after trimming) are recognized; anything else returns
    `current` unchanged.
    """
    return STATE_CODES.get(value.strip(), current)


@lru_cache(maxsize=512)
def lookup_owner(uid: int) -> str:
    """Resolve a numeric user id to a login name, or its decimal string."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _parse_int(value: str) -> int | None:
    fields = [field for field in tokenize(value, " \t") if field]
    if not fields:
        return None
    try:
        return int(fields[0])
    except ValueError:
        return None


def build_process_record(
    lines: Iterable[str],
    owner_lookup: OwnerLookup = lookup_owner,
) -> ProcessRecord | None:
    """
    Build a record from the lines of a status stream.

    Reads the Name, State, Pid, Uid and Threads keys. Lines without a colon
    and values that do not parse are ignored.

    Args:
        lines: Lines of the status stream, consumed until exhausted.
        owner_lookup: Resolves the real user id to a display name.

    Returns:
        The record, or None if no Pid line was found.
    """
    pid: int | None = None
    name = ""
    state = ProcessState.UNKNOWN
    owner = ""
    threads: int | None = None

    for line in lines:
        fields = tokenize(line, ":")
        if len(fields) < 2:
            continue
        key = fields[0].strip()
        value = ":".join(fields[1:]).strip()

        if key == "Name":
            name = value
        elif key == "State":
            state = parse_state(value, state)
        elif key == "Pid":
            pid = _parse_int(value)
        elif key == "Uid":
            uid = _parse_int(value)  # real uid; effective/saved/fs follow
            if uid is not None:
                owner = owner_lookup(uid)
        elif key == "Threads":
            threads = _parse_int(value)

    if pid is None:
        return None
    return ProcessRecord(pid=pid, name=name, state=state, owner=owner, thread_count=threads)


def read_process_record(
    procfs: ProcFS,
    pid: int,
    owner_lookup: OwnerLookup = lookup_owner,
) -> ProcessRecord | None:
    """Read `<pid>/status` under the procfs root."""
    with procfs.lines(f"{pid}/status") as lines:
        return build_process_record(lines, owner_lookup)


def collect_processes(
    procfs: ProcFS,
    owner_lookup: OwnerLookup = lookup_owner,
) -> list[ProcessRecord]:
    """
    Build records for every process directory, ordered by directory name.

    Processes that exit between listing and reading are skipped. Each pid is
    listed once; a later status file repeating a Pid already seen is dropped.
    """
    records: list[ProcessRecord] = []
    seen: set[int] = set()
    for pid in procfs.pids():
        try:
            record = read_process_record(procfs, pid, owner_lookup)
        except DataUnavailable as e:
            log.debug("process_vanished", pid=pid, reason=e.reason)
            continue
        if record is None:
            log.debug("process_without_pid", directory=pid)
            continue
        if record.pid in seen:
            log.debug("duplicate_pid", directory=pid, pid=record.pid)
            continue
        seen.add(record.pid)
        records.append(record)
    return records
