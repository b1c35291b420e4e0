"""sysinspect - Textual live dashboard."""

from enum import Enum

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.css.query import NoMatches
from textual.widgets import DataTable, Footer, Static

from sysinspect.live import LiveFrame, LiveLoop
from sysinspect.metrics import read_uptime
from sysinspect.models import ProcessRecord
from sysinspect.processes import OwnerLookup, collect_processes, lookup_owner
from sysinspect.procfs import DataUnavailable, ProcFS
from sysinspect.render import BAR_WIDTH, format_load, format_uptime, usage_bar
from sysinspect.report import attempt


class SortKey(Enum):
    """Sort keys for the process table; values are column keys."""

    PID = "pid"
    NAME = "name"
    USER = "user"
    THREADS = "threads"


class HeaderStats(Static):
    """Header widget showing CPU and memory bars, load and uptime."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 4;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, bar_width: int = BAR_WIDTH, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._bar_width = bar_width
        self._frame: LiveFrame | None = None
        self._uptime_seconds: float | None = None

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_usage_info(), id="usage-info"),
            Static(self._get_system_info(), id="system-info"),
        )

    def update_stats(self, frame: LiveFrame, uptime_seconds: float | None) -> None:
        """Update the statistics from a live frame."""
        self._frame = frame
        self._uptime_seconds = uptime_seconds
        try:
            self.query_one("#usage-info", Static).update(self._get_usage_info())
            self.query_one("#system-info", Static).update(self._get_system_info())
        except NoMatches:
            pass  # Not mounted yet; compose() renders the stored values

    def _get_usage_info(self) -> str:
        if self._frame is None:
            return "Waiting for first sample..."
        cpu = escape(usage_bar(self._frame.cpu, self._bar_width))
        mem = escape(usage_bar(self._frame.memory, self._bar_width))
        return f"[bold]CPU[/bold] {cpu}\n[bold]Mem[/bold] {mem}"

    def _get_system_info(self) -> str:
        if self._frame is None:
            return ""
        uptime = "unavailable"
        if self._uptime_seconds is not None:
            uptime = format_uptime(self._uptime_seconds)
        return f"Load average: {format_load(self._frame.load)}\nUptime: {uptime}"


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()
        self._sort_key: SortKey = SortKey.PID
        self._sort_reverse: bool = False

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        self._sort_key = keys[(keys.index(self._sort_key) + 1) % len(keys)]
        # Most threads first; everything else ascending
        self._sort_reverse = self._sort_key is SortKey.THREADS
        self._apply_sort()
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=7)
        table.add_column("State", key="state", width=12)
        table.add_column("Task Name", key="name", width=25)
        table.add_column("User", key="user", width=15)
        table.add_column("Tasks", key="threads", width=6)

    def update_processes(self, records: list[ProcessRecord]) -> None:
        """
        Update the process table with new records.

        Existing rows are updated cell by cell; rows for processes that are
        gone are removed.
        """
        table = self.query_one("#process-table", DataTable)
        new_pids = {record.pid for record in records}

        for pid in self._current_pids - new_pids:
            table.remove_row(str(pid))

        for record in records:
            if record.pid in self._current_pids:
                self._update_row(table, record)
            else:
                table.add_row(*self._cells(record), key=str(record.pid))

        self._current_pids = new_pids
        self._apply_sort()

    @staticmethod
    def _cells(record: ProcessRecord) -> tuple[int, str, str, str, int]:
        threads = record.thread_count if record.thread_count is not None else 0
        # Names are plain text, not markup
        name = escape(record.name[:25])
        owner = escape(record.owner[:15])
        return (record.pid, record.state.value, name, owner, threads)

    def _update_row(self, table: DataTable, record: ProcessRecord) -> None:
        row_key = str(record.pid)
        for column, value in zip(("pid", "state", "name", "user", "threads"), self._cells(record)):
            table.update_cell(row_key, column, value)

    def _apply_sort(self) -> None:
        table = self.query_one("#process-table", DataTable)
        table.sort(self._sort_key.value, reverse=self._sort_reverse)


class InspectorApp(App):
    """Full screen live view of a procfs root."""

    TITLE = "sysinspect"
    SUB_TITLE = "Live View"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 4;
    }

    Horizontal {
        height: auto;
    }

    #usage-info {
        width: 1fr;
        padding-right: 2;
    }

    #system-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(
        self,
        procfs: ProcFS,
        *,
        interval: float = 1.0,
        cpu_count: int = 1,
        bar_width: int = BAR_WIDTH,
        owner_lookup: OwnerLookup = lookup_owner,
    ) -> None:
        """
        Initialize the InspectorApp.

        Args:
            procfs: Root to read from.
            interval: Seconds between refreshes.
            cpu_count: Logical units the kernel idle counter is summed over.
            bar_width: Cells per percentage bar.
            owner_lookup: Resolves user ids for the process table.
        """
        super().__init__()
        self._procfs = procfs
        self._interval = interval
        self._bar_width = bar_width
        self._owner_lookup = owner_lookup
        # Frames are driven by the interval timer, never by the loop's own sleep
        self._live_loop = LiveLoop(procfs, interval=interval, cpu_count=cpu_count, bar_width=bar_width)

    @property
    def loop(self) -> LiveLoop:
        return self._live_loop

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats", bar_width=self._bar_width)
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        """Take the baseline sample and start refreshing."""
        try:
            self._live_loop.start()
        except DataUnavailable as e:
            self.notify(f"{e.source} unavailable: {e.reason}", severity="error")
            return
        self.set_interval(self._interval, self.refresh_stats)

    def refresh_stats(self) -> None:
        """Sample once and update every widget."""
        frame = self._live_loop.step()
        uptime = attempt(read_uptime, self._procfs)
        header = self.query_one("#header-stats", HeaderStats)
        header.update_stats(frame, uptime.total_seconds if uptime is not None else None)

        records = attempt(lambda fs: collect_processes(fs, self._owner_lookup), self._procfs)
        self.query_one(ProcessTable).update_processes(records or [])

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        new_sort_key = self.query_one(ProcessTable).cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")
