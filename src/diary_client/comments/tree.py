"""Reply trees built from flat comment lists.

Comments arrive as a flat list where each reply names its parent. The forest is
derived from that list on every change and never edited in place. Replies
whose parent is not in the list (it may live on another page) are left out,
along with everything below them.

Both building and walking use explicit stacks, so reply depth is not bounded
by the interpreter's recursion limit.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from loguru import logger

from diary_client.comments.display import ReplyDisplayState
from diary_client.comments.models import Comment, CommentNode


def build_forest(comments: Iterable[Comment]) -> list[CommentNode]:
    by_id: dict[int, Comment] = {}
    roots: list[Comment] = []
    children: dict[int, list[Comment]] = {}

    for comment in comments:
        if comment.id in by_id:
            logger.debug(f"Ignoring duplicate comment id {comment.id}")
            continue
        by_id[comment.id] = comment
        if comment.parent_id is None:
            roots.append(comment)
        else:
            children.setdefault(comment.parent_id, []).append(comment)

    built: dict[int, CommentNode] = {}
    reached = 0
    for root in roots:
        # Post-order: a node is built once all of its children are.
        stack: list[tuple[Comment, bool]] = [(root, False)]
        while stack:
            comment, expanded = stack.pop()
            kids = children.get(comment.id, [])
            if not expanded:
                stack.append((comment, True))
                stack.extend((kid, False) for kid in reversed(kids))
                continue
            built[comment.id] = CommentNode(comment, tuple(built[kid.id] for kid in kids))
            reached += 1

    dropped = len(by_id) - reached
    if dropped:
        logger.debug(f"Dropped {dropped} orphaned comment(s) from the thread")

    return [built[root.id] for root in roots]


def walk(forest: Iterable[CommentNode]) -> Iterator[tuple[CommentNode, int]]:
    """Yield ``(node, depth)`` in display order (pre-order, roots at depth 0)."""
    stack = [(node, 0) for node in reversed(list(forest))]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        stack.extend((child, depth + 1) for child in reversed(node.children))


def count_nodes(forest: Iterable[CommentNode]) -> int:
    return sum(1 for _ in walk(forest))


def find_node(forest: Iterable[CommentNode], comment_id: int) -> CommentNode | None:
    for node, _ in walk(forest):
        if node.id == comment_id:
            return node
    return None


def _format_comment(comment: Comment) -> str:
    date = comment.created_at.strftime("%Y.%m.%d") if comment.created_at else "Unknown date"
    author = comment.nickname or f"member {comment.author_id}"
    return f"[{comment.id}] {author}: {comment.body} ({date})"


def render_thread(
    forest: Iterable[CommentNode],
    display: ReplyDisplayState | None = None,
    *,
    indent: str = "  ",
) -> list[str]:
    """Render the visible part of a forest as indented text lines."""
    display = display or ReplyDisplayState()
    lines: list[str] = []
    # Entries are either a node to print or a "show more" marker for a hidden remainder.
    stack: list[tuple[CommentNode, int, bool]] = [(node, 0, False) for node in reversed(list(forest))]
    while stack:
        node, depth, is_marker = stack.pop()
        if is_marker:
            hidden = display.hidden_count(node, depth)
            lines.append(f"{indent * (depth + 1)}... {hidden} more repl{'y' if hidden == 1 else 'ies'} (/more {node.id})")
            continue
        lines.append(f"{indent * depth}{_format_comment(node.comment)}")
        if display.hidden_count(node, depth):
            stack.append((node, depth, True))
        visible = display.visible_children(node, depth)
        stack.extend((child, depth + 1, False) for child in reversed(visible))
    return lines
