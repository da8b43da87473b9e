from typing import Protocol, runtime_checkable

from loguru import logger

ROOT_PATH = "/"
LOGIN_PATH = "/member/login"
SIGNUP_PATH = "/member/signup"

DEFAULT_EXEMPT_PATHS = (ROOT_PATH, LOGIN_PATH, SIGNUP_PATH)


@runtime_checkable
class Navigator(Protocol):
    def current_path(self) -> str: ...

    def redirect(self, path: str) -> None: ...

    def notify(self, message: str) -> None: ...


class ConsoleNavigator:
    """Navigator for the console front end: tracks a path and prints notices."""

    def __init__(self, path: str = ROOT_PATH, *, line_prefix: str = ""):
        self._path = path
        self._line_prefix = line_prefix

    def current_path(self) -> str:
        return self._path

    def go(self, path: str) -> None:
        self._path = path

    def redirect(self, path: str) -> None:
        if path != self._path:
            logger.info(f"Redirecting {self._path} -> {path}")
        self._path = path

    def notify(self, message: str) -> None:
        print(f"{self._line_prefix}{message}")
