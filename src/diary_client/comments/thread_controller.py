from __future__ import annotations

from typing import Any

from loguru import logger

from diary_client.comments.display import DEFAULT_REPLY_LIMIT, ReplyDisplayState
from diary_client.comments.models import Comment, CommentNode
from diary_client.comments.pagination import PageInfo
from diary_client.comments.tree import build_forest, render_thread
from diary_client.errors import DiaryClientError, NotAuthenticatedError
from diary_client.http.api_client import ApiClient
from diary_client.id_codec import require_account_id
from diary_client.session.models import Session
from diary_client.session.token_store import TokenStore

DEFAULT_PAGE_SIZE = 5
SEARCH_TYPES = ("all", "writer", "content")


class ThreadViewController:
    """Guestbook thread of one diary: a page of root comments plus every reply.

    The forest is re-derived from the loaded records after every fetch or
    mutation; display state (which roots are expanded) survives rebuilds.
    """

    def __init__(
        self,
        api: ApiClient,
        token_store: TokenStore,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        reply_limit: int = DEFAULT_REPLY_LIMIT,
    ):
        self._api = api
        self._token_store = token_store
        self._page_size = page_size
        self.display = ReplyDisplayState(reply_limit)

        self.diary_id: int | None = None
        self.owner_id: int | None = None
        self.public_id: str | None = None
        self.search_type = "all"
        self.keyword = ""
        self.page_info = PageInfo(current=1, last=1)

        self._page_roots: list[Comment] = []
        self._all_comments: list[Comment] = []
        self._forest: list[CommentNode] = []

    @property
    def forest(self) -> list[CommentNode]:
        return self._forest

    @property
    def page_roots(self) -> list[Comment]:
        return list(self._page_roots)

    @property
    def all_comments(self) -> list[Comment]:
        return list(self._all_comments)

    async def open_diary(self, public_id: str) -> int:
        owner_id = require_account_id(public_id)
        response = await self._api.get(f"/api/diary/byMember/{public_id}")
        data = response.json()
        self.public_id = public_id
        self.owner_id = owner_id
        self.diary_id = int(data["id"])
        logger.info(f"Opened diary {self.diary_id} ({public_id})")
        return self.diary_id

    async def refresh(self) -> list[CommentNode]:
        await self.load_page(self.page_info.current)
        await self.load_all()
        return self._forest

    async def load_page(
        self,
        page: int,
        search_type: str | None = None,
        keyword: str | None = None,
    ) -> list[Comment]:
        diary_id = self._require_diary()
        if search_type is not None:
            if search_type not in SEARCH_TYPES:
                raise ValueError(f"Unknown search type: {search_type!r}")
            self.search_type = search_type
        if keyword is not None:
            self.keyword = keyword.strip()

        response = await self._api.get(
            "/api/diaryComment/list",
            params={
                "diaryId": diary_id,
                "page": max(1, page),
                "pageSize": self._page_size,
                "type": self.search_type,
                "keyword": self.keyword,
            },
        )
        data = response.json()
        comments = [Comment.from_api(c) for c in data.get("comments") or []]
        self._page_roots = [c for c in comments if c.is_root]
        self.page_info = PageInfo(current=max(1, page), last=max(1, int(data.get("totalPages") or 1)))
        self._rebuild()
        return self.page_roots

    async def load_all(self) -> list[Comment]:
        diary_id = self._require_diary()
        response = await self._api.get("/api/diaryComment/all", params={"diaryId": diary_id})
        self._all_comments = [Comment.from_api(c) for c in response.json() or []]
        self._rebuild()
        return self.all_comments

    async def go_to_page(self, page: int) -> list[CommentNode]:
        if not 1 <= page <= self.page_info.last:
            raise ValueError(f"Page {page} is out of range 1..{self.page_info.last}")
        await self.load_page(page)
        return self._forest

    async def search(self, search_type: str, keyword: str) -> list[CommentNode]:
        await self.load_page(1, search_type, keyword)
        return self._forest

    async def submit_comment(self, body: str) -> Comment:
        return await self._submit(body, None)

    async def submit_reply(self, parent_id: int, body: str) -> Comment:
        return await self._submit(body, parent_id)

    async def edit_comment(self, comment_id: int, body: str) -> Comment:
        text = body.strip()
        if not text:
            raise ValueError("Comment body must not be empty")
        existing = self._find(comment_id)
        if existing is None:
            raise DiaryClientError(f"Comment {comment_id} is not loaded")
        await self._api.put(
            "/api/diaryComment/edit",
            json={"id": comment_id, "diaryId": self._require_diary(), "comment": text},
        )
        updated = existing.with_body(text)
        self._replace(updated)
        return updated

    async def delete_comment(self, comment_id: int) -> None:
        await self._api.delete(f"/api/diaryComment/{comment_id}")
        logger.info(f"Deleted comment {comment_id}")
        await self.refresh()

    def toggle_replies(self, comment_id: int) -> bool:
        return self.display.toggle(comment_id)

    def render(self) -> list[str]:
        return render_thread(self._forest, self.display)

    async def _submit(self, body: str, parent_id: int | None) -> Comment:
        text = body.strip()
        if not text:
            raise ValueError("Comment body must not be empty")
        author = self._require_session()
        payload: dict[str, Any] = {
            "diaryId": self._require_diary(),
            "memberId": author.member_id,
            "nickname": author.nickname or "",
            "comment": text,
        }
        if parent_id is not None:
            payload["replyCommentId"] = parent_id

        response = await self._api.post("/api/diaryComment/add", json=payload)
        data = response.json()
        if not isinstance(data, dict) or "id" not in data:
            raise DiaryClientError("Server did not return the saved comment")
        created = Comment.from_api(data)

        self._all_comments.append(created)
        if created.is_root:
            self._page_roots.insert(0, created)
        else:
            self._page_roots = [
                c.with_reply_count(c.reply_count + 1) if c.id == created.parent_id else c
                for c in self._page_roots
            ]
        self._rebuild()
        return created

    def _rebuild(self) -> None:
        # Page roots in page order, plus every reply; replies under roots on
        # other pages have no parent here and drop out as orphans.
        replies = [c for c in self._all_comments if not c.is_root]
        self._forest = build_forest([*self._page_roots, *replies])

    def _find(self, comment_id: int) -> Comment | None:
        for comment in [*self._page_roots, *self._all_comments]:
            if comment.id == comment_id:
                return comment
        return None

    def _replace(self, updated: Comment) -> None:
        self._page_roots = [updated if c.id == updated.id else c for c in self._page_roots]
        self._all_comments = [updated if c.id == updated.id else c for c in self._all_comments]
        self._rebuild()

    def _require_diary(self) -> int:
        if self.diary_id is None:
            raise DiaryClientError("No diary is open")
        return self.diary_id

    def _require_session(self) -> Session:
        session = self._token_store.session()
        if session is None or session.member_id is None:
            raise NotAuthenticatedError("Log in to write comments")
        return session
