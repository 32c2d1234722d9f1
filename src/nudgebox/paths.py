"""Path utilities for nudgebox."""

from pathlib import Path


def get_data_dir() -> Path:
    """Get the directory for nudgebox state.

    Uses XDG data directory: ~/.local/share/nudgebox/
    """
    data_dir = Path.home() / ".local" / "share" / "nudgebox"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_db_path() -> Path:
    """Get the path to the nudgebox key-value database."""
    return get_data_dir() / "nudgebox.db"
