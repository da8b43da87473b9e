from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace


def _optional_int(value: object) -> int | None:
    return int(value) if value is not None else None


@dataclass(frozen=True)
class Session:
    access_token: str
    expires_at_ms: int | None = None
    member_id: int | None = None
    nickname: str | None = None
    role: str | None = None

    def with_token(self, access_token: str, expires_at_ms: int | None) -> Session:
        return replace(self, access_token=access_token, expires_at_ms=expires_at_ms)

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=True)

    @classmethod
    def from_json(cls, raw: str) -> Session | None:
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        token = data.get("access_token")
        if not isinstance(token, str) or not token:
            return None
        try:
            return cls(
                access_token=token,
                expires_at_ms=_optional_int(data.get("expires_at_ms")),
                member_id=_optional_int(data.get("member_id")),
                nickname=data.get("nickname"),
                role=data.get("role"),
            )
        except (TypeError, ValueError):
            return None
