from __future__ import annotations

from diary_client.comments.models import CommentNode

DEFAULT_REPLY_LIMIT = 3


class ReplyDisplayState:
    """Which replies are shown; the forest itself is never touched.

    Top-level comments show their first ``limit`` direct replies until toggled
    open. Replies deeper down are always shown in full.
    """

    def __init__(self, limit: int = DEFAULT_REPLY_LIMIT):
        if limit < 0:
            raise ValueError("limit must be >= 0")
        self._limit = limit
        self._expanded: set[int] = set()

    @property
    def limit(self) -> int:
        return self._limit

    def is_expanded(self, comment_id: int) -> bool:
        return comment_id in self._expanded

    def toggle(self, comment_id: int) -> bool:
        """Flip a root comment between truncated and fully shown. Returns the new state."""
        if comment_id in self._expanded:
            self._expanded.discard(comment_id)
            return False
        self._expanded.add(comment_id)
        return True

    def reset(self) -> None:
        self._expanded.clear()

    def visible_children(self, node: CommentNode, depth: int = 0) -> tuple[CommentNode, ...]:
        if depth > 0 or node.id in self._expanded:
            return node.children
        return node.children[: self._limit]

    def hidden_count(self, node: CommentNode, depth: int = 0) -> int:
        return len(node.children) - len(self.visible_children(node, depth))
