from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MAX_PAGE_BUTTONS = 5


@dataclass(frozen=True)
class PageInfo:
    current: int
    last: int

    @property
    def prev(self) -> int | None:
        return self.current - 1 if self.current > 1 else None

    @property
    def next(self) -> int | None:
        return self.current + 1 if self.current < self.last else None

    def window(self, max_buttons: int = DEFAULT_MAX_PAGE_BUTTONS) -> list[int]:
        return page_window(self.current, self.last, max_buttons)


def page_window(current: int, last: int, max_buttons: int = DEFAULT_MAX_PAGE_BUTTONS) -> list[int]:
    """Page numbers of the fixed group containing ``current`` (1-5, 6-10, ...)."""
    if max_buttons < 1:
        raise ValueError("max_buttons must be >= 1")
    last = max(1, last)
    current = min(max(1, current), last)
    group = (current - 1) // max_buttons
    start = group * max_buttons + 1
    end = min(start + max_buttons - 1, last)
    return list(range(start, end + 1))
