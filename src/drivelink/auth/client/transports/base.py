"""Delivery of authorization results back to the waiting sign-in.

Two transports exist: the in-process MessageChannel used by popup sign-in,
and plain URL resumption where the caller hands the callback URL to
``handle_auth_callback`` after a redirect.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from drivelink.auth.client.services.security import origin_of

logger = logging.getLogger(__name__)

AUTH_SUCCESS_MESSAGE = "GOOGLE_AUTH_SUCCESS"


class BrowserWindow(ABC):
    """A browsing context opened for sign-in."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once the user (or the page itself) closed the window."""

    @abstractmethod
    def close(self) -> None:
        """Close the window if it is still open."""


class BrowserLauncher(ABC):
    """Opens the authorization URL for the user."""

    @abstractmethod
    def open_popup(self, url: str) -> BrowserWindow | None:
        """Open ``url`` in a new browsing context.

        Returns:
            The opened window, or None if it could not be opened (blocked)
        """

    @abstractmethod
    def navigate(self, url: str) -> None:
        """Send the current browsing context to ``url``."""


@dataclass(frozen=True)
class ChannelMessage:
    """A message posted to a MessageChannel, tagged with its sender's origin."""

    origin: str
    data: dict[str, Any]


MessageListener = Callable[[ChannelMessage], None]


class MessageChannel:
    """In-process message bus bound to one origin.

    Stands in for ``window.postMessage``: the callback page posts the
    callback URL here, and the waiting sign-in listens. The channel itself
    delivers every message; listeners decide which origins they accept.
    """

    def __init__(self, origin: str):
        self.origin = origin_of(origin)
        self._listeners: list[MessageListener] = []

    def add_listener(self, listener: MessageListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: MessageListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def post_message(self, data: dict[str, Any], origin: str) -> None:
        message = ChannelMessage(origin=origin_of(origin), data=data)
        for listener in list(self._listeners):
            listener(message)

    def post_auth_success(self, callback_url: str) -> None:
        """Post the success message for ``callback_url`` from this channel's origin."""
        logger.debug("Posting authorization callback to waiting sign-in")
        self.post_message(
            {"type": AUTH_SUCCESS_MESSAGE, "url": callback_url}, self.origin
        )
