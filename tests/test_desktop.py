"""Tests for desktop notifications and click-through navigation."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from nudgebox.desktop import DesktopNotifier, ring_bell
from nudgebox.errors import PermissionDenied
from nudgebox.handlers import build_url, open_item
from nudgebox.models import NotificationItem

ITEM = NotificationItem(
    id="meeting_m1_5",
    title="Meeting starting soon",
    message="Sync at 10:05",
    timestamp="2024-05-01T10:00:00+00:00",
    category="meeting",
    navigation_path="/meetings",
)


def completed(stdout: str = "", returncode: int = 0) -> MagicMock:
    return MagicMock(returncode=returncode, stdout=stdout, stderr="")


# --- permission ---


@patch("nudgebox.desktop.shutil.which", return_value="/usr/bin/notify-send")
def test_permission_linux(mock_which):
    assert DesktopNotifier(system="Linux").permission()
    assert not DesktopNotifier(enabled=False, system="Linux").permission()


@patch("nudgebox.desktop.shutil.which", return_value=None)
def test_no_notifier_is_denied(mock_which):
    notifier = DesktopNotifier(system="Linux")
    assert not notifier.permission()
    with pytest.raises(PermissionDenied):
        notifier.notify("t", "b", tag="x")


def test_unsupported_platform_is_denied():
    assert not DesktopNotifier(system="Windows").permission()


# --- notify ---


@patch("nudgebox.desktop.subprocess.run")
@patch("nudgebox.desktop.shutil.which", return_value="/usr/bin/notify-send")
def test_linux_click_runs_callback(mock_which, mock_run):
    mock_run.return_value = completed(stdout="default\n")
    clicked = []
    notifier = DesktopNotifier(system="Linux")

    notifier._run(["notify-send", "t", "b"], lambda: clicked.append(1))

    assert clicked == [1]


@patch("nudgebox.desktop.subprocess.run")
def test_dismissed_notification_does_not_click(mock_run):
    mock_run.return_value = completed(stdout="")
    clicked = []
    DesktopNotifier(system="Linux")._run(["notify-send"], lambda: clicked.append(1))
    assert clicked == []


@patch("nudgebox.desktop.subprocess.run", side_effect=OSError("gone"))
def test_notifier_crash_is_logged(mock_run):
    DesktopNotifier(system="Linux")._run(["notify-send"], None)


@patch("nudgebox.desktop.threading.Thread")
@patch("nudgebox.desktop.shutil.which", return_value="/usr/bin/notify-send")
def test_linux_argv(mock_which, mock_thread):
    DesktopNotifier(system="Linux").notify("Title", "Body", tag="meeting_m1_5")

    argv = mock_thread.call_args.kwargs["args"][0]
    assert argv[0] == "/usr/bin/notify-send"
    assert "--hint=string:x-canonical-private-synchronous:meeting_m1_5" in argv
    assert "--wait" in argv
    assert argv[-2:] == ["Title", "Body"]
    mock_thread.return_value.start.assert_called_once()


@patch("nudgebox.desktop.threading.Thread")
@patch("nudgebox.desktop.shutil.which", return_value="/usr/bin/osascript")
def test_macos_argv_escapes_quotes(mock_which, mock_thread):
    DesktopNotifier(system="Darwin").notify('Say "hi"', "Body", tag="x")

    argv = mock_thread.call_args.kwargs["args"][0]
    assert argv[:2] == ["/usr/bin/osascript", "-e"]
    assert argv[2] == 'display notification "Body" with title "Say \\"hi\\""'


def test_ring_bell(capsys):
    ring_bell()
    assert capsys.readouterr().out == "\a"


# --- click-through ---


def test_build_url():
    assert build_url("http://localhost:5173/", "/meetings") == "http://localhost:5173/meetings"
    assert build_url("http://localhost:5173", "calendar") == "http://localhost:5173/calendar"


@patch("nudgebox.handlers.platform.system", return_value="Linux")
@patch("nudgebox.handlers.subprocess.run")
def test_open_item(mock_run, mock_system):
    assert open_item("http://app.test", ITEM) is True
    assert mock_run.call_args.args[0] == ["xdg-open", "http://app.test/meetings"]


@patch("nudgebox.handlers.platform.system", return_value="Darwin")
@patch(
    "nudgebox.handlers.subprocess.run",
    side_effect=subprocess.CalledProcessError(1, ["open"]),
)
def test_open_item_failure(mock_run, mock_system):
    assert open_item("http://app.test", ITEM) is False
    assert mock_run.call_args.args[0][0] == "open"
