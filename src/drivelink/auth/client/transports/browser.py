"""System web browser launcher built on the stdlib ``webbrowser`` module."""

from __future__ import annotations

import logging
import webbrowser

from drivelink.auth.client.transports.base import BrowserLauncher, BrowserWindow

logger = logging.getLogger(__name__)


class SystemBrowserWindow(BrowserWindow):
    """Handle for a tab opened in the user's browser.

    The system browser does not report when a tab closes, so ``closed`` only
    turns true through ``close()``. Popup sign-in then ends on the callback
    or on the configured timeout.
    """

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True


class SystemBrowserLauncher(BrowserLauncher):
    """Opens the authorization URL in the user's default browser."""

    def open_popup(self, url: str) -> BrowserWindow | None:
        try:
            opened = webbrowser.open(url, new=1)
        except webbrowser.Error as e:
            logger.warning(f"Could not open browser: {e}")
            return None

        if not opened:
            return None
        return SystemBrowserWindow()

    def navigate(self, url: str) -> None:
        webbrowser.open(url, new=0)
