from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, BinaryIO

import httpx

AUTHORIZATION = "Authorization"


@dataclass(frozen=True)
class FormPart:
    name: str
    value: bytes
    filename: str | None = None
    content_type: str | None = None


FileValue = bytes | str | BinaryIO | tuple


def _to_part(name: str, value: FileValue) -> FormPart:
    if isinstance(value, tuple):
        filename = value[0]
        content_type = value[2] if len(value) > 2 else None
        return FormPart(name, _read_bytes(value[1]), filename, content_type)
    if isinstance(value, (bytes, str)):
        return FormPart(name, _read_bytes(value))
    return FormPart(name, _read_bytes(value), getattr(value, "name", None) or name)


def _read_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    # File-like payloads can only be read once; buffer them so every send gets the same bytes.
    data = value.read()
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


@dataclass
class PendingRequest:
    """An outbound request kept in a form that can be sent more than once.

    ``retried`` is the one-shot marker of the reissue cycle: it is set before the
    retry goes out and checked before any retry is considered.
    """

    method: str
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    params: dict[str, Any] | None = None
    json: Any = None
    content: bytes | None = None
    parts: tuple[FormPart, ...] = ()
    retried: bool = False

    @classmethod
    def create(
        cls,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        content: bytes | str | None = None,
        form: Mapping[str, Any] | None = None,
        files: Mapping[str, FileValue] | Iterable[tuple[str, FileValue]] | None = None,
    ) -> PendingRequest:
        parts: list[FormPart] = []
        for name, value in (form or {}).items():
            parts.append(FormPart(name, str(value).encode("utf-8")))
        if files is not None:
            items = files.items() if isinstance(files, Mapping) else files
            for name, value in items:
                parts.append(_to_part(name, value))

        if isinstance(content, str):
            content = content.encode("utf-8")

        return cls(
            method=method.upper(),
            url=url,
            headers=httpx.Headers(headers or {}),
            params={k: v for k, v in params.items() if v is not None} if params else None,
            json=json,
            content=content,
            parts=tuple(parts),
        )

    @property
    def is_multipart(self) -> bool:
        return bool(self.parts)

    def set_bearer(self, token: str | None) -> None:
        if token:
            self.headers[AUTHORIZATION] = f"Bearer {token}"
        elif AUTHORIZATION in self.headers:
            del self.headers[AUTHORIZATION]

    def build(self, client: httpx.AsyncClient) -> httpx.Request:
        files = None
        if self.parts:
            # Rebuilt field by field for every send; a rendered multipart stream is not replayable.
            files = [(p.name, (p.filename, p.value, p.content_type)) for p in self.parts]
        return client.build_request(
            self.method,
            self.url,
            headers=httpx.Headers(self.headers),
            params=self.params,
            json=self.json,
            content=self.content,
            files=files,
        )

    def describe(self) -> str:
        return f"{self.method} {self.url}"
