"""Configuration management for nudgebox."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


def get_config_path() -> Path:
    """Get the path to the nudgebox config file."""
    xdg_config = Path.home() / ".config"
    return xdg_config / "nudgebox" / "config.toml"


def get_default_config() -> str:
    """Return the default config file contents."""
    return """\
# nudgebox configuration

# Write DEBUG lines to /tmp/nudgebox.log
verbose_logging = false

[server]
# Base URL of the backend REST API (the push channel lives at <base_url>/events)
base_url = "http://localhost:5000/api"
# Bearer token sent with every request
token = ""
# Whose reminders to follow (can also be passed as --user)
user_id = ""
# Web app root used for click-through navigation
app_url = "http://localhost:5173"

[polling]
calendar_interval = 10
document_interval = 30
default_lead_minutes = 15
# How long an item stays due after its start
trailing_window_minutes = 60
# Notify about every record the API returns, not only ones you attend or own
show_all = false

[stream]
retry_floor_ms = 2000
retry_ceiling_ms = 30000
# Give up after this many consecutive failures (unset = retry forever)
# max_attempts = 20

[notify]
desktop = true
bell = true
"""


@dataclass
class ServerConfig:
    """Where the backend lives and who we are."""

    base_url: str = "http://localhost:5000/api"
    token: str = ""
    user_id: str = ""
    app_url: str = "http://localhost:5173"


@dataclass
class PollingConfig:
    """Reminder polling cadence and due-window settings."""

    calendar_interval: float = 10.0  # seconds, also used for meetings
    document_interval: float = 30.0
    default_lead_minutes: int = 15
    trailing_window_minutes: int = 60
    show_all: bool = False


@dataclass
class StreamConfig:
    """Reconnect policy for the push channel."""

    retry_floor_ms: int = 2000
    retry_ceiling_ms: int = 30000
    max_attempts: int | None = None  # None = unbounded


@dataclass
class HistoryConfig:
    """Capacity limits for persisted and in-memory state."""

    history_cap: int = 200
    seen_cap: int = 500
    projection_cap: int = 50


@dataclass
class NotifyConfig:
    """Platform notification and attention cue switches."""

    desktop: bool = True
    bell: bool = True


@dataclass
class KeybindingsConfig:
    """Configuration for TUI keybindings.

    Each command field is a string where each character is a valid key binding.
    For example, quit="qQ" means both 'q' and 'Q' will quit.

    The up_down field is a 2-character string: up, down.
    For vim: "kj". Empty string means use default arrow keys only.
    """

    quit: str = "q"
    open: str = "o"  # Additional keys for opening (Enter always works)
    mark_read: str = "m"
    mark_all_read: str = "M"
    clear: str = "C"
    up_down: str = ""


@dataclass
class TuiConfig:
    """Configuration for the TUI."""

    transparent: bool = False  # Use ANSI colors for terminal transparency
    keybindings: KeybindingsConfig = field(default_factory=KeybindingsConfig)


@dataclass
class Config:
    """nudgebox configuration."""

    verbose_logging: bool = False
    server: ServerConfig = field(default_factory=ServerConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    tui: TuiConfig = field(default_factory=TuiConfig)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file, or return defaults."""
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return Config()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        # Log warning but return defaults
        print(f"Warning: Could not load config from {config_path}: {e}")
        return Config()

    return _parse_config(data)


def _section(cls: type, data: dict[str, Any]) -> Any:
    """Build a dataclass section, using its defaults for unspecified keys."""
    defaults = cls()
    return cls(
        **{name: data.get(name, getattr(defaults, name)) for name in defaults.__dataclass_fields__}
    )


def _parse_config(data: dict[str, Any]) -> Config:
    """Parse config dict into Config object."""
    tui_data = data.get("tui", {})
    tui = TuiConfig(
        transparent=tui_data.get("transparent", False),
        keybindings=_section(KeybindingsConfig, tui_data.get("keybindings", {})),
    )

    return Config(
        verbose_logging=bool(data.get("verbose_logging", False)),
        server=_section(ServerConfig, data.get("server", {})),
        polling=_section(PollingConfig, data.get("polling", {})),
        stream=_section(StreamConfig, data.get("stream", {})),
        history=_section(HistoryConfig, data.get("history", {})),
        notify=_section(NotifyConfig, data.get("notify", {})),
        tui=tui,
    )


def ensure_config_exists() -> Path:
    """Ensure the config file exists, creating with defaults if needed."""
    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(get_default_config())

    return config_path
