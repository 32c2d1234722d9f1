"""Platform notifications and the attention cue.

Desktop notifications go through the platform's command-line notifier:
notify-send on Linux, osascript on macOS. No notifier (or notifications
switched off in config) counts as permission denied.
"""

from __future__ import annotations

import platform
import shutil
import subprocess
import sys
import threading
from collections.abc import Callable

from .errors import PermissionDenied
from .log import get_logger

APP_NAME = "nudgebox"

_log = get_logger("desktop")


def _applescript_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DesktopNotifier:
    def __init__(self, enabled: bool = True, system: str | None = None) -> None:
        self.enabled = enabled
        self.system = system or platform.system()

    def _command(self) -> str | None:
        if self.system == "Darwin":
            return shutil.which("osascript")
        if self.system == "Linux":
            return shutil.which("notify-send")
        return None

    def permission(self) -> bool:
        """Whether desktop notifications can be shown right now."""
        return self.enabled and self._command() is not None

    def notify(
        self,
        title: str,
        body: str,
        tag: str,
        on_click: Callable[[], None] | None = None,
    ) -> None:
        """Show a notification. Raises PermissionDenied when none can be shown.

        Notifications with the same tag replace each other where the platform
        supports it. ``on_click`` runs on a background thread when the user
        activates the notification (Linux only).
        """
        command = self._command() if self.enabled else None
        if command is None:
            raise PermissionDenied(f"no desktop notifier on {self.system}")

        if self.system == "Darwin":
            script = (
                f"display notification {_applescript_string(body)} "
                f"with title {_applescript_string(title)}"
            )
            argv = [command, "-e", script]
        else:
            argv = [
                command,
                f"--app-name={APP_NAME}",
                f"--hint=string:x-canonical-private-synchronous:{tag}",
                "--action=default=Open",
                "--wait",
                title,
                body,
            ]

        threading.Thread(target=self._run, args=(argv, on_click), daemon=True).start()

    def _run(self, argv: list[str], on_click: Callable[[], None] | None) -> None:
        try:
            result = subprocess.run(argv, capture_output=True, text=True)
        except OSError as e:
            _log.warning("notifier failed: %s", e)
            return

        if result.returncode != 0:
            _log.debug("notifier exited %d: %s", result.returncode, result.stderr.strip())
            return
        if on_click is not None and result.stdout.strip() == "default":
            on_click()


def ring_bell() -> None:
    """Short attention cue: the terminal bell."""
    sys.stdout.write("\a")
    sys.stdout.flush()
