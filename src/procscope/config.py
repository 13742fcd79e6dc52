"""Configuration system for procscope."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit


@dataclass
class RefreshConfig:
    """How often each kind of data is re-sampled, in seconds."""

    tick: float = 1.5  # Interval of the background tick source
    io: float = 1.0
    details: float = 2.0  # Env, net, maps, files, limits, mem, tasks, tree
    pipes: float = 10.0  # Host-wide pipe peer scan
    cgroups: float = 10.0


@dataclass
class DisplayConfig:
    """Display settings."""

    sparkline_length: int = 400  # Samples kept for each sparkline
    poll_interval: float = 0.25  # How often the app drains the tick queue
    start_pruned: bool = False  # Open the Tree tab in its pruned view


@dataclass
class LogConfig:
    """Log file settings."""

    level: str = "info"
    max_bytes: int = 1024 * 1024
    backup_count: int = 2


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


def _load_section(cls: type, data: dict) -> object:
    """Build a section dataclass, using its defaults for missing keys."""
    defaults = cls()
    return cls(**{f.name: data.get(f.name, getattr(defaults, f.name)) for f in fields(cls)})


@dataclass
class Config:
    """Main configuration container."""

    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "procscope"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "procscope"

    @property
    def log_path(self) -> Path:
        """Log file path. The terminal belongs to the TUI, so logs go here."""
        return self.state_dir / "procscope.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("refresh", "display", "log"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values."""
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f).unwrap()
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            refresh=_load_section(RefreshConfig, data.get("refresh", {})),
            display=_load_section(DisplayConfig, data.get("display", {})),
            log=_load_section(LogConfig, data.get("log", {})),
        )
