"""Sign-in orchestration for the Drive OAuth PKCE flow.

Coordinates PKCE generation, popup or redirect sign-in, callback
validation, token exchange and credential storage, and exposes a simple
authenticated/unauthenticated view of the session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from types import TracebackType
from typing import Self

from drivelink.auth.client.models.config import AuthConfig
from drivelink.auth.client.models.errors import (
    AuthTimeoutError,
    ClientNotInitializedError,
    PopupBlockedError,
    RevocationError,
    TokenRefreshError,
    UserAuthCancelledError,
)
from drivelink.auth.client.models.session import AuthSession, AuthStatus
from drivelink.auth.client.models.tokens import (
    RefreshTokenRequest,
    RevocationRequest,
    TokenRequest,
)
from drivelink.auth.client.services.credentials import SessionCredentials, now_ms
from drivelink.auth.client.services.flow import OAuth2FlowManager
from drivelink.auth.client.services.pkce_store import PKCEStore
from drivelink.auth.client.services.profile import ProfileService
from drivelink.auth.client.services.tokens import OAuth2TokenManager
from drivelink.auth.client.storage.base import CredentialStore, InMemoryCredentialStore
from drivelink.auth.client.transports.base import (
    AUTH_SUCCESS_MESSAGE,
    BrowserLauncher,
    BrowserWindow,
    ChannelMessage,
    MessageChannel,
)
from drivelink.auth.client.transports.browser import SystemBrowserLauncher

logger = logging.getLogger(__name__)


def _log_revoke_error(error: Exception) -> None:
    logger.warning(f"Failed to revoke token: {error}")


class DriveAuthClient:
    """OAuth 2.0 Authorization Code + PKCE client for a public (browser) app.

    State machine: ``SIGNED_OUT -> SIGNING_IN -> SIGNED_IN``. A failed or
    cancelled sign-in returns to ``SIGNED_OUT``; sign-out or a detected
    expiry moves ``SIGNED_IN`` back to ``SIGNED_OUT``.

    The callback reaches the client through one of two transports:

    - Popup: ``sign_in(use_popup=True)`` waits for a same-origin success
      message on ``channel`` (see LoopbackCallbackServer).
    - Redirect: ``sign_in(use_popup=False)`` navigates away; whoever
      receives the redirect calls ``handle_auth_callback(url)``, possibly
      on a new client sharing the same credential store.
    """

    def __init__(
        self,
        config: AuthConfig | None,
        store: CredentialStore | None = None,
        launcher: BrowserLauncher | None = None,
        channel: MessageChannel | None = None,
        token_manager: OAuth2TokenManager | None = None,
        profile_service: ProfileService | None = None,
        clock: Callable[[], int] = now_ms,
        on_revoke_error: Callable[[Exception], None] | None = None,
    ):
        """Initialize the client and restore any session left in ``store``.

        Args:
            config: Client configuration
            store: Session-scoped credential store (in-memory by default)
            launcher: Opens the authorization URL (system browser by default)
            channel: Delivers popup callbacks; bound to the redirect origin
            token_manager: Token endpoint client
            profile_service: Userinfo endpoint client
            clock: Returns the current time in epoch milliseconds
            on_revoke_error: Called with the error when revocation fails
                during sign-out

        Raises:
            ClientNotInitializedError: If no config is given
        """
        if config is None:
            raise ClientNotInitializedError(
                "DriveAuthClient requires an AuthConfig with a client id"
            )

        store = store if store is not None else InMemoryCredentialStore()
        self.config = config
        self.credentials = SessionCredentials(store, clock)
        self.flow_manager = OAuth2FlowManager(PKCEStore(store))
        self.token_manager = token_manager or OAuth2TokenManager(
            timeout=config.http_timeout
        )
        self.profile_service = profile_service or ProfileService(
            config.userinfo_endpoint, timeout=config.http_timeout
        )
        self.launcher = launcher or SystemBrowserLauncher()
        self.channel = channel or MessageChannel(config.redirect_uri)
        self._on_revoke_error = on_revoke_error or _log_revoke_error

        # Refresh tokens stay in memory; they never reach the credential store
        self._refresh_token: str | None = None
        self._session = self._restore_session()
        self._status = (
            AuthStatus.SIGNED_IN if self._session.is_authenticated else AuthStatus.SIGNED_OUT
        )

    @property
    def status(self) -> AuthStatus:
        return self._status

    def get_auth_state(self) -> AuthSession:
        """Return the current session snapshot.

        A token inside the expiry buffer is detected here first, so the
        snapshot never reports an authenticated session it would not honor.
        """
        self.is_authenticated()
        return self._session

    def is_authenticated(self) -> bool:
        """True if signed in and the token is outside the expiry buffer.

        Detecting a token inside the buffer signs the session out.
        """
        if not self._session.is_authenticated:
            return False

        if self.credentials.is_token_expired(self.config.expiry_buffer_seconds):
            logger.info("Access token is expired or about to expire")
            self._expire_session()
            return False

        return True

    async def sign_in(self, use_popup: bool = True) -> None:
        """Start a sign-in attempt.

        Popup mode resolves once the callback has been handled. Redirect mode
        returns right after navigating; the flow resumes in
        ``handle_auth_callback``.

        Raises:
            PopupBlockedError: The popup could not be opened
            UserAuthCancelledError: The popup was closed before completion
            AuthTimeoutError: No callback arrived within ``popup_timeout``
            OAuth2Error: Any failure from ``handle_auth_callback``
        """
        auth_url, _ = self.flow_manager.start_authorization_flow(
            self.config.client_id,
            self.config.redirect_uri,
            self.config.scopes,
            self.config.authorization_endpoint,
        )
        self._status = AuthStatus.SIGNING_IN

        if not use_popup:
            logger.info("Redirecting to authorization endpoint")
            self.launcher.navigate(auth_url)
            return

        window = self.launcher.open_popup(auth_url)
        if window is None:
            self.flow_manager.discard()
            self._settle_status()
            raise PopupBlockedError("Popup blocked. Please allow popups for this site.")

        try:
            callback_url = await self._wait_for_popup(window)
            await self.handle_auth_callback(callback_url)
        except BaseException:
            self.flow_manager.discard()
            self._settle_status()
            raise

    async def _wait_for_popup(self, window: BrowserWindow) -> str:
        """Wait for the success message, the popup closing, or the timeout."""
        loop = asyncio.get_running_loop()
        received: asyncio.Future[str] = loop.create_future()

        def resolve(url: str) -> None:
            if not received.done():
                received.set_result(url)

        def on_message(message: ChannelMessage) -> None:
            # Messages from any other origin are dropped, not inspected
            if message.origin != self.channel.origin:
                return
            if message.data.get("type") != AUTH_SUCCESS_MESSAGE:
                return
            url = message.data.get("url")
            if isinstance(url, str):
                loop.call_soon_threadsafe(resolve, url)

        self.channel.add_listener(on_message)
        watcher = asyncio.create_task(self._watch_popup(window))
        try:
            await asyncio.wait(
                {received, watcher},
                timeout=self.config.popup_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            watcher.cancel()
            self.channel.remove_listener(on_message)

        # A message that arrived together with the close still wins
        if received.done():
            return received.result()
        received.cancel()

        if watcher.done() and not watcher.cancelled():
            raise UserAuthCancelledError("Sign-in popup was closed")

        window.close()
        raise AuthTimeoutError(
            f"Sign-in did not complete within {self.config.popup_timeout:g} seconds"
        )

    async def _watch_popup(self, window: BrowserWindow) -> None:
        while not window.closed:
            await asyncio.sleep(self.config.popup_poll_interval)

    async def handle_auth_callback(self, callback_url: str) -> None:
        """Finish sign-in from the URL the provider redirected to.

        Validation (error parameter, missing code or state, missing PKCE
        parameters, state mismatch) happens before any network call. PKCE
        parameters are gone once this returns or raises: a failed validation
        discards them and a successful one consumes them.

        Raises:
            AuthorizationError: The provider reported an error
            AuthorizationResponseError: Code or state is missing
            MissingPKCEParametersError: No sign-in attempt is in flight
            StateValidationError: State mismatch (possible CSRF)
            TokenExchangeError: The token endpoint rejected the code
        """
        try:
            auth_response, pkce_params = self.flow_manager.validate_callback(
                callback_url
            )
        except BaseException:
            self.flow_manager.discard()
            self._settle_status()
            raise

        try:
            token_response = await self.token_manager.exchange_code_for_token(
                TokenRequest(
                    token_endpoint=self.config.token_endpoint,
                    code=auth_response.code,
                    redirect_uri=self.config.redirect_uri,
                    client_id=self.config.client_id,
                    code_verifier=pkce_params.code_verifier,
                )
            )

            expires_at = self.credentials.store_auth_tokens(
                token_response.access_token, token_response.expires_in
            )
            user_email = await self.profile_service.fetch_user_email(
                token_response.access_token
            )
            if user_email:
                self.credentials.store_user_email(user_email)

            if token_response.refresh_token:
                self._refresh_token = token_response.refresh_token
            self._session = AuthSession(
                is_authenticated=True,
                access_token=token_response.access_token,
                expires_at=expires_at,
                user_email=user_email,
            )
            self._status = AuthStatus.SIGNED_IN
            logger.info("Sign-in completed")
        except BaseException:
            self._settle_status()
            raise

    async def sign_out(self) -> None:
        """Revoke the token if there is one and clear the local session.

        Local sign-out always succeeds; a failed revocation is reported to
        ``on_revoke_error`` and otherwise ignored.
        """
        token = self._session.access_token
        if token:
            try:
                await self.token_manager.revoke_token(
                    RevocationRequest(self.config.revoke_endpoint, token)
                )
            except RevocationError as e:
                self._on_revoke_error(e)

        self.credentials.clear_auth_tokens()
        self._refresh_token = None
        self._session = AuthSession.signed_out()
        self._status = AuthStatus.SIGNED_OUT
        logger.info("Signed out")

    async def refresh_session(self, user_email: str | None = None) -> str:
        """Get a new access token with the in-memory refresh token.

        Args:
            user_email: Email to keep with the new token; defaults to the
                current session's email

        Returns:
            The new access token

        Raises:
            TokenRefreshError: No refresh token, or the provider refused it
        """
        if not self._refresh_token:
            raise TokenRefreshError("No refresh token available; sign in again")

        user_email = (
            user_email
            or self._session.user_email
            or self.credentials.get_stored_user_email()
        )
        token_response = await self.token_manager.refresh_access_token(
            RefreshTokenRequest(
                token_endpoint=self.config.token_endpoint,
                refresh_token=self._refresh_token,
                client_id=self.config.client_id,
            )
        )

        expires_at = self.credentials.store_auth_tokens(
            token_response.access_token, token_response.expires_in, user_email
        )
        if token_response.refresh_token:
            self._refresh_token = token_response.refresh_token
        self._session = AuthSession(
            is_authenticated=True,
            access_token=token_response.access_token,
            expires_at=expires_at,
            user_email=user_email,
        )
        self._status = AuthStatus.SIGNED_IN
        return token_response.access_token

    async def get_access_token(self) -> str | None:
        """Return a usable access token, refreshing it when possible.

        Returns None (and leaves the client signed out) when the token is
        expired or about to expire and cannot be refreshed.
        """
        # Detecting expiry clears the session, email included
        user_email = self._session.user_email
        if self.is_authenticated():
            return self._session.access_token

        if not self._refresh_token:
            return None

        try:
            return await self.refresh_session(user_email)
        except TokenRefreshError as e:
            logger.warning(f"Could not refresh access token: {e}")
            self.credentials.clear_auth_tokens()
            self._refresh_token = None
            self._session = AuthSession.signed_out()
            self._status = AuthStatus.SIGNED_OUT
            return None

    def _restore_session(self) -> AuthSession:
        access_token = self.credentials.get_stored_access_token()
        if not access_token:
            return AuthSession.signed_out()

        if self.credentials.is_token_expired(self.config.expiry_buffer_seconds):
            logger.info("Stored access token is about to expire; not restoring it")
            self.credentials.clear_auth_tokens()
            return AuthSession.signed_out()

        return AuthSession(
            is_authenticated=True,
            access_token=access_token,
            expires_at=self.credentials.get_expires_at(),
            user_email=self.credentials.get_stored_user_email(),
        )

    def _expire_session(self) -> None:
        self.credentials.clear_auth_tokens()
        self._session = AuthSession.signed_out()
        self._status = AuthStatus.SIGNED_OUT

    def _settle_status(self) -> None:
        self._status = (
            AuthStatus.SIGNED_IN if self._session.is_authenticated else AuthStatus.SIGNED_OUT
        )

    async def close(self) -> None:
        """Close all service connections."""
        await self.token_manager.close()
        await self.profile_service.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
