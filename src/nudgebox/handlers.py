"""Click-through navigation for notifications."""

import platform
import subprocess

from .log import get_logger
from .models import NotificationItem

_log = get_logger("handlers")


def build_url(app_url: str, navigation_path: str) -> str:
    """Join the web app root and an item's navigation path."""
    path = navigation_path if navigation_path.startswith("/") else f"/{navigation_path}"
    return f"{app_url.rstrip('/')}{path}"


def _opener() -> list[str]:
    if platform.system() == "Darwin":
        return ["open"]
    return ["xdg-open"]


def open_item(app_url: str, item: NotificationItem) -> bool:
    """Bring the web app to the front at the item's page.

    Returns True if the opener ran successfully.
    """
    url = build_url(app_url, item.navigation_path)
    try:
        subprocess.run([*_opener(), url], check=True, capture_output=True)
    except (subprocess.CalledProcessError, OSError) as e:
        _log.warning("could not open %s: %s", url, e)
        return False

    _log.info("opened %s for %s", url, item.id)
    return True
