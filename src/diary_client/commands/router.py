from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_page: Callable[[str], Awaitable[None]],
        on_more: Callable[[str], Awaitable[None]],
        on_post: Callable[[str], Awaitable[None]],
        on_reply: Callable[[str], Awaitable[None]],
        on_edit: Callable[[str], Awaitable[None]],
        on_delete: Callable[[str], Awaitable[None]],
        on_search: Callable[[str], Awaitable[None]],
        on_login: Callable[[str], Awaitable[None]],
        on_logout: Callable[[str], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._routes: list[tuple[str, Callable[[str], Awaitable[None]]]] = [
            ("/page", on_page),
            ("/more", on_more),
            ("/post", on_post),
            ("/reply", on_reply),
            ("/edit", on_edit),
            ("/delete", on_delete),
            ("/search", on_search),
            ("/login", on_login),
            ("/logout", on_logout),
        ]
        self._on_help = on_help
        self._on_unknown = on_unknown

    async def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        if trimmed == "/help":
            await self._on_help()
            return True

        command, _, _ = trimmed.partition(" ")
        for prefix, handler in self._routes:
            if command == prefix:
                await handler(trimmed)
                return True

        self._on_unknown(trimmed)
        return True
