from diary_client.comments.display import ReplyDisplayState
from diary_client.comments.models import Comment, CommentNode
from diary_client.comments.pagination import PageInfo, page_window
from diary_client.comments.tree import build_forest, count_nodes, render_thread, walk

__all__ = [
    "Comment",
    "CommentNode",
    "PageInfo",
    "ReplyDisplayState",
    "build_forest",
    "count_nodes",
    "page_window",
    "render_thread",
    "walk",
]
