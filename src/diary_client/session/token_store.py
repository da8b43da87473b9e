from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from diary_client.session.models import Session
from diary_client.session.storage import SessionStorage

SESSION_STORAGE_KEY = "memberInfo"

SessionListener = Callable[[Session | None], None]


class TokenStore:
    """Holder of the client's single live session.

    Every write goes to durable storage first and only then replaces the
    in-memory value, so a failed storage write leaves both sides unchanged.
    Values are whole ``Session`` objects; nothing is patched in place.
    """

    def __init__(self, storage: SessionStorage, *, key: str = SESSION_STORAGE_KEY):
        self._storage = storage
        self._key = key
        self._session: Session | None = None
        self._listeners: list[SessionListener] = []
        self._generation = 0
        self._load()

    @property
    def generation(self) -> int:
        return self._generation

    def get(self) -> str | None:
        session = self._session
        return session.access_token if session is not None else None

    def session(self) -> Session | None:
        return self._session

    def set(self, token: str, expires_at_ms: int | None) -> Session:
        """Store a new access token, keeping the member fields of the current session."""
        if not token:
            raise ValueError("token must be a non-empty string")
        current = self._session
        if current is None:
            session = Session(access_token=token, expires_at_ms=expires_at_ms)
        else:
            session = current.with_token(token, expires_at_ms)
        self._write(session)
        return session

    def replace(self, session: Session) -> None:
        self._write(session)

    def clear(self) -> None:
        self._storage.delete(self._key)
        had_session = self._session is not None
        self._session = None
        self._generation += 1
        if had_session:
            logger.debug("Session cleared")
        self._notify(None)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _write(self, session: Session) -> None:
        self._storage.put(self._key, session.to_json())
        self._session = session
        self._generation += 1
        self._notify(session)

    def _notify(self, session: Session | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                logger.exception("Session listener failed")

    def _load(self) -> None:
        raw = self._storage.get(self._key)
        if raw is None:
            return
        session = Session.from_json(raw)
        if session is None:
            logger.warning("Discarding unreadable stored session")
            self._storage.delete(self._key)
            return
        self._session = session
