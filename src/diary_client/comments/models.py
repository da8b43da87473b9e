from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class Comment:
    id: int
    parent_id: int | None
    author_id: int
    body: str
    created_at: datetime | None = None
    diary_id: int | None = None
    nickname: str = ""
    profile_image: str | None = None
    reply_count: int = 0

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Comment:
        return cls(
            id=int(data["id"]),
            parent_id=_optional_int(data.get("replyCommentId")),
            author_id=int(data.get("memberId") or 0),
            body=str(data.get("comment") or ""),
            created_at=_parse_timestamp(data.get("inserted")),
            diary_id=_optional_int(data.get("diaryId")),
            nickname=str(data.get("nickname") or ""),
            profile_image=data.get("profileImage") or None,
            reply_count=int(data.get("replyCount") or 0),
        )

    def with_body(self, body: str) -> Comment:
        return replace(self, body=body)

    def with_reply_count(self, reply_count: int) -> Comment:
        return replace(self, reply_count=reply_count)


@dataclass(frozen=True)
class CommentNode:
    comment: Comment
    children: tuple[CommentNode, ...] = field(default_factory=tuple)

    @property
    def id(self) -> int:
        return self.comment.id
