from __future__ import annotations


class DiaryClientError(Exception):
    pass


class ApiStatusError(DiaryClientError):
    def __init__(self, status_code: int, body: str = "", *, method: str = "", url: str = ""):
        self.status_code = status_code
        self.body = body
        self.method = method
        self.url = url
        target = f" {method} {url}" if method else ""
        super().__init__(f"HTTP {status_code}{target}")


class UnauthorizedError(ApiStatusError):
    """A 401 that could not be recovered by reissuing the access token."""

    def __init__(self, body: str = "", *, method: str = "", url: str = ""):
        super().__init__(401, body, method=method, url=url)


class ReissueError(DiaryClientError):
    pass


class InvalidResourceError(DiaryClientError):
    pass


class NotAuthenticatedError(DiaryClientError):
    pass
