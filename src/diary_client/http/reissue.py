from __future__ import annotations

from collections.abc import Awaitable, Callable

import httpx
from loguru import logger

from diary_client.errors import ReissueError
from diary_client.http.requests import PendingRequest

DEFAULT_REISSUE_PATH = "/api/member/reissue"
ACCESS_HEADER = "access"

SendFn = Callable[[PendingRequest], Awaitable[httpx.Response]]


class TokenReissuer:
    """Exchanges the refresh cookie for a new access token.

    ``send`` must be the raw transport, not the intercepted one: the reissue
    call never carries the stale bearer token.
    """

    def __init__(self, send: SendFn, *, path: str = DEFAULT_REISSUE_PATH):
        self._send = send
        self._path = path

    async def reissue(self) -> str:
        request = PendingRequest.create("POST", self._path)
        try:
            response = await self._send(request)
        except httpx.TransportError as ex:
            raise ReissueError(f"Reissue request failed: {ex}") from ex

        if not response.is_success:
            raise ReissueError(f"Reissue rejected: HTTP {response.status_code} {response.text.strip()}".rstrip())

        token = response.headers.get(ACCESS_HEADER)
        if not token:
            raise ReissueError("Reissue response carried no access token")

        logger.info("Access token reissued")
        return token
