from unittest.mock import AsyncMock

import pytest

from drivelink.auth.client.models.config import AuthConfig
from drivelink.auth.client.models.tokens import TokenResponse
from drivelink.auth.client.services.profile import ProfileService
from drivelink.auth.client.services.tokens import OAuth2TokenManager
from drivelink.auth.client.storage.base import InMemoryCredentialStore
from drivelink.auth.client.transports.base import BrowserLauncher, BrowserWindow

START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class FakeWindow(BrowserWindow):
    def __init__(self):
        self._closed = False
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self.close_calls += 1
        self._closed = True

    def user_closes(self) -> None:
        self._closed = True


class FakeLauncher(BrowserLauncher):
    def __init__(self, block_popups: bool = False):
        self.block_popups = block_popups
        self.popup_urls: list[str] = []
        self.navigated_urls: list[str] = []
        self.windows: list[FakeWindow] = []

    def open_popup(self, url: str) -> BrowserWindow | None:
        self.popup_urls.append(url)
        if self.block_popups:
            return None
        window = FakeWindow()
        self.windows.append(window)
        return window

    def navigate(self, url: str) -> None:
        self.navigated_urls.append(url)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def config() -> AuthConfig:
    return AuthConfig(
        client_id="client-456",
        redirect_uri="http://localhost:8080/callback",
        popup_timeout=1.0,
        popup_poll_interval=0.01,
    )


@pytest.fixture
def token_manager() -> AsyncMock:
    manager = AsyncMock(spec=OAuth2TokenManager)
    manager.exchange_code_for_token.return_value = TokenResponse(
        access_token="access-token-xyz",
        token_type="Bearer",
        expires_in=3600,
        refresh_token="refresh-token-abc",
        scope="https://www.googleapis.com/auth/drive.file",
    )
    return manager


@pytest.fixture
def profile_service() -> AsyncMock:
    service = AsyncMock(spec=ProfileService)
    service.fetch_user_email.return_value = "user@example.com"
    return service
