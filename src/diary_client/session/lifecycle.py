from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

import httpx
from loguru import logger

from diary_client.errors import ApiStatusError, DiaryClientError
from diary_client.navigation import DEFAULT_EXEMPT_PATHS, LOGIN_PATH, Navigator
from diary_client.session.models import Session
from diary_client.session.token_store import TokenStore
from diary_client.session.tokens import token_expiry_ms

if TYPE_CHECKING:
    from diary_client.http.api_client import ApiClient

SESSION_EXPIRED_NOTICE = "Login session has expired."

_SIGN_IN_PATH = "/api/member/login"
_SIGN_OUT_PATH = "/api/member/logout"


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionLifecycle:
    """Login/logout transitions and the auto-logout timer.

    The timer follows the token store: any write (login, or a token refreshed by
    the interceptor) cancels the armed timer and arms one for the new expiry;
    clearing the store cancels it.
    """

    def __init__(
        self,
        token_store: TokenStore,
        navigator: Navigator,
        *,
        login_path: str = LOGIN_PATH,
        exempt_paths: Iterable[str] = DEFAULT_EXEMPT_PATHS,
        clock: Callable[[], int] = _now_ms,
    ):
        self._token_store = token_store
        self._navigator = navigator
        self._login_path = login_path
        self._exempt_paths = frozenset(exempt_paths)
        self._clock = clock
        self._timer: asyncio.Handle | None = None
        self._unsubscribe = token_store.subscribe(self._on_session_changed)

    @property
    def is_logged_in(self) -> bool:
        return self._token_store.get() is not None

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    def close(self) -> None:
        self._cancel_timer()
        self._unsubscribe()

    def login(
        self,
        token: str,
        expires_at_ms: int | None = None,
        *,
        member_id: int | None = None,
        nickname: str | None = None,
        role: str | None = None,
    ) -> Session:
        if expires_at_ms is None:
            expires_at_ms = token_expiry_ms(token)
        session = Session(
            access_token=token,
            expires_at_ms=expires_at_ms,
            member_id=member_id,
            nickname=nickname,
            role=role,
        )
        self._token_store.replace(session)
        if expires_at_ms is None:
            logger.error("Access token carries no readable expiry; logging out")
            self._timer = self._schedule(0, self._on_expired)
        else:
            logger.info(f"Logged in as {nickname or member_id}")
        return session

    def restore(self) -> Session | None:
        session = self._token_store.session()
        if session is not None:
            logger.info("Restored stored session")
            self._arm(session)
        return session

    def logout(self) -> None:
        self._cancel_timer()
        if self._token_store.session() is not None:
            logger.info("Logging out")
        self._token_store.clear()
        self._navigator.redirect(self._login_path)

    def force_logout(self, reason: str = "") -> None:
        """Session could not be renewed: drop it and send the user to login.

        On exempt destinations (root, login, signup) nothing is shown and no
        redirect happens, so those pages cannot loop.
        """
        self._cancel_timer()
        self._token_store.clear()
        current = self._navigator.current_path()
        if current in self._exempt_paths:
            logger.info(f"Session ended on exempt path {current}: {reason}")
            return
        logger.warning(f"Session ended: {reason}")
        self._navigator.notify(SESSION_EXPIRED_NOTICE)
        self._navigator.redirect(self._login_path)

    async def sign_in(self, api: ApiClient, username: str, password: str) -> Session:
        response = await api.post(_SIGN_IN_PATH, form={"username": username, "password": password})
        data = response.json()
        access = data.get("access") if isinstance(data, dict) else None
        if not access:
            raise DiaryClientError("Login response carried no access token")
        member_id = data.get("id")
        return self.login(
            access,
            member_id=int(member_id) if member_id is not None else None,
            nickname=data.get("nickname"),
            role=data.get("role"),
        )

    async def sign_out(self, api: ApiClient) -> None:
        try:
            await api.post(_SIGN_OUT_PATH)
        except (ApiStatusError, httpx.TransportError) as ex:
            logger.warning(f"Server logout failed: {ex}")
        finally:
            self.logout()

    def _on_session_changed(self, session: Session | None) -> None:
        self._cancel_timer()
        if session is not None:
            self._arm(session)

    def _arm(self, session: Session) -> None:
        self._cancel_timer()
        if session.expires_at_ms is None:
            return
        delay_ms = session.expires_at_ms - self._clock()
        self._timer = self._schedule(max(0, delay_ms), self._on_expired)

    def _schedule(self, delay_ms: int, callback: Callable[[], None]) -> asyncio.Handle:
        loop = asyncio.get_running_loop()
        if delay_ms <= 0:
            return loop.call_soon(callback)
        return loop.call_later(delay_ms / 1000, callback)

    def _on_expired(self) -> None:
        self._timer = None
        logger.info("Access token expired; logging out")
        self.logout()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
