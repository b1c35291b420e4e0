"""Configuration for sysinspect."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit

from sysinspect.procfs import DEFAULT_ROOT

LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass
class SamplingConfig:
    """How CPU usage is sampled."""

    interval: float = 1.0  # Seconds between the two samples / live frames
    normalize_cpu: bool = True  # Divide idle time by the number of logical units


@dataclass
class DisplayConfig:
    """Report layout settings."""

    bar_width: int = 20  # Cells per percentage bar


@dataclass
class LoggingConfig:
    """Diagnostic logging, written to stderr and optionally a JSON Lines file."""

    level: str = "warning"
    file: str = ""  # Empty disables the file log


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    procfs_root: str = DEFAULT_ROOT
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "sysinspect"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def log_path(self) -> Path | None:
        """JSON log file, if enabled."""
        return Path(self.logging.file).expanduser() if self.logging.file else None

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        doc.add("procfs_root", self.procfs_root)
        doc.add(tomlkit.nl())
        for name in ("sampling", "display", "logging"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        Raises:
            ValueError: If the file cannot be parsed or holds an invalid value.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            procfs_root=str(data.get("procfs_root", defaults.procfs_root)),
            sampling=_load_sampling_config(data.get("sampling", {})),
            display=_load_display_config(data.get("display", {})),
            logging=_load_logging_config(data.get("logging", {})),
        )


def _load_sampling_config(data: dict) -> SamplingConfig:
    """Load sampling config from TOML data, using dataclass defaults for missing fields."""
    defaults = SamplingConfig()
    interval = float(data.get("interval", defaults.interval))
    if interval <= 0:
        raise ValueError(f"sampling.interval must be > 0, got {interval}")
    return SamplingConfig(
        interval=interval,
        normalize_cpu=bool(data.get("normalize_cpu", defaults.normalize_cpu)),
    )


def _load_display_config(data: dict) -> DisplayConfig:
    """Load display config from TOML data, using dataclass defaults for missing fields."""
    defaults = DisplayConfig()
    bar_width = int(data.get("bar_width", defaults.bar_width))
    if bar_width < 1:
        raise ValueError(f"display.bar_width must be >= 1, got {bar_width}")
    return DisplayConfig(bar_width=bar_width)


def _load_logging_config(data: dict) -> LoggingConfig:
    """Load logging config from TOML data, using dataclass defaults for missing fields."""
    defaults = LoggingConfig()
    level = str(data.get("level", defaults.level)).lower()
    if level not in LOG_LEVELS:
        raise ValueError(f"Invalid logging.level: {level!r}. Must be one of {LOG_LEVELS}")
    return LoggingConfig(level=level, file=str(data.get("file", defaults.file)))
