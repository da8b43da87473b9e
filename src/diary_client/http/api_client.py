from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import httpx
from loguru import logger

from diary_client.errors import ApiStatusError
from diary_client.http.interceptor import DEFAULT_SESSION_INVALID_MARKERS, AuthInterceptor, SessionEndedFn
from diary_client.http.reissue import DEFAULT_REISSUE_PATH, TokenReissuer
from diary_client.http.requests import FileValue, PendingRequest
from diary_client.session.token_store import TokenStore

_TIMEOUT_SECONDS = 30.0


class ApiClient:
    """HTTP client for the diary API.

    Normal traffic goes through :class:`AuthInterceptor`; the reissue call uses
    the raw transport of the same ``httpx.AsyncClient`` so it shares the cookie
    jar (the refresh cookie) but never carries a bearer token.
    """

    def __init__(
        self,
        base_url: str,
        token_store: TokenStore,
        *,
        timeout: float = _TIMEOUT_SECONDS,
        reissue_path: str = DEFAULT_REISSUE_PATH,
        on_session_ended: SessionEndedFn | None = None,
        session_invalid_markers: Iterable[str] = DEFAULT_SESSION_INVALID_MARKERS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._token_store = token_store
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )
        self._reissuer = TokenReissuer(self._transport_send, path=reissue_path)
        self._send = AuthInterceptor(
            self._transport_send,
            token_store,
            self._reissuer,
            on_session_ended=on_session_ended,
            session_invalid_markers=session_invalid_markers,
        )

    @property
    def token_store(self) -> TokenStore:
        return self._token_store

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, *, params: Mapping[str, Any] | None = None) -> httpx.Response:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        *,
        json: Any = None,
        form: Mapping[str, Any] | None = None,
        files: Mapping[str, FileValue] | None = None,
    ) -> httpx.Response:
        return await self.request("POST", path, json=json, form=form, files=files)

    async def put(self, path: str, *, json: Any = None) -> httpx.Response:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> httpx.Response:
        return await self.request("DELETE", path)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        form: Mapping[str, Any] | None = None,
        files: Mapping[str, FileValue] | None = None,
    ) -> httpx.Response:
        pending = PendingRequest.create(method, path, params=params, json=json, form=form, files=files)
        response = await self._send(pending)
        if not response.is_success:
            raise ApiStatusError(response.status_code, response.text, method=pending.method, url=pending.url)
        return response

    async def _transport_send(self, request: PendingRequest) -> httpx.Response:
        logger.debug(f"HTTP {request.describe()} (retry={request.retried})")
        response = await self._client.send(request.build(self._client))
        logger.debug(f"HTTP {request.describe()} -> {response.status_code}")
        return response
