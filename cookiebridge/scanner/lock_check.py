"""Running-browser detection used to explain unreadable cookie stores."""

from __future__ import annotations

import logging

import psutil

from cookiebridge.scanner.browser_paths import BROWSERS_BY_NAME

logger = logging.getLogger(__name__)


def get_running_browsers(browser_name: str) -> list[str]:
    """
    Get the running process names that belong to a browser.

    Args:
        browser_name: Browser key ("chrome", "edge", "firefox", "safari")

    Returns:
        Sorted, de-duplicated process names (e.g., ["chrome.exe"])
    """
    config = BROWSERS_BY_NAME.get(browser_name)
    if config is None:
        return []

    running = set()
    try:
        for proc in psutil.process_iter(["name"]):
            try:
                name = proc.info["name"]
                if name and name.lower() in config.executable_names:
                    running.add(name)
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
    except psutil.Error as e:
        logger.warning("Error enumerating processes: %s", e)

    return sorted(running)


def describe_snapshot_failure(browser_name: str, display_name: str, error: Exception) -> str:
    """
    Build the warning for a store that could not be copied.

    Names any running browser processes, since a live browser holding an
    exclusive lock is the usual cause.
    """
    message = f"Failed to copy {display_name} cookie DB: {error}"
    running = get_running_browsers(browser_name)
    if running:
        message += f" ({display_name} is running: {', '.join(running)})"
    return message
