from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable

import httpx
from loguru import logger

from diary_client.errors import ReissueError, UnauthorizedError
from diary_client.http.reissue import TokenReissuer
from diary_client.http.requests import PendingRequest
from diary_client.session.token_store import TokenStore
from diary_client.session.tokens import token_expiry_ms

SendFn = Callable[[PendingRequest], Awaitable[httpx.Response]]
SessionEndedFn = Callable[[str], None]

DEFAULT_SESSION_INVALID_MARKERS = (
    "refresh token expired",
    "invalid refresh token",
    "refresh token null",
)


class AuthInterceptor:
    """Middleware around a ``send`` capability that keeps requests authenticated.

    Each request gets the current bearer token. A 401 on a request that has not
    been retried yet triggers one reissue; on success the request is replayed
    once with the new token and the caller gets the replay's response. A 401 on
    the replay, or a failed reissue, is raised as :class:`UnauthorizedError`.
    Reissue failures also clear the token store and call ``on_session_ended``.

    Concurrent 401s are not coalesced: each one runs its own reissue.
    """

    def __init__(
        self,
        send: SendFn,
        token_store: TokenStore,
        reissuer: TokenReissuer,
        *,
        on_session_ended: SessionEndedFn | None = None,
        session_invalid_markers: Iterable[str] = DEFAULT_SESSION_INVALID_MARKERS,
    ):
        self._send = send
        self._token_store = token_store
        self._reissuer = reissuer
        self.on_session_ended = on_session_ended
        self._markers = tuple(m.lower() for m in session_invalid_markers if m)

    async def __call__(self, request: PendingRequest) -> httpx.Response:
        request.set_bearer(self._token_store.get())
        generation = self._token_store.generation
        response = await self._send(request)

        if response.status_code != httpx.codes.UNAUTHORIZED:
            return response

        if request.retried:
            logger.warning(f"Retried request still unauthorized: {request.describe()}")
            raise self._unauthorized(request, response)

        body = response.text
        if self._is_session_invalid(body):
            logger.warning(f"Session rejected by server: {request.describe()}")
            self._end_session("session invalid")
            raise self._unauthorized(request, response)

        request.retried = True
        logger.info(f"Unauthorized response, reissuing token: {request.describe()}")
        try:
            new_token = await self._reissuer.reissue()
        except ReissueError as ex:
            logger.warning(f"Token reissue failed: {ex}")
            self._end_session(str(ex))
            raise self._unauthorized(request, response) from ex

        if self._token_store.get() is None and self._token_store.generation != generation:
            # Logged out while the reissue was in flight; the new token is not applied.
            logger.info(f"Session ended during reissue, dropping retry: {request.describe()}")
            raise self._unauthorized(request, response)

        self._token_store.set(new_token, token_expiry_ms(new_token))
        return await self(request)

    def _is_session_invalid(self, body: str) -> bool:
        if not self._markers or not body:
            return False
        lowered = body.lower()
        return any(marker in lowered for marker in self._markers)

    def _end_session(self, reason: str) -> None:
        try:
            self._token_store.clear()
        except Exception:
            logger.exception("Failed to clear token store")
        if self.on_session_ended is None:
            return
        try:
            self.on_session_ended(reason)
        except Exception:
            logger.exception("Session-ended handler failed")

    @staticmethod
    def _unauthorized(request: PendingRequest, response: httpx.Response) -> UnauthorizedError:
        return UnauthorizedError(response.text, method=request.method, url=request.url)
