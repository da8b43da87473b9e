from diary_client.session.lifecycle import SessionLifecycle
from diary_client.session.models import Session
from diary_client.session.storage import SessionStorage
from diary_client.session.token_store import TokenStore

__all__ = [
    "Session",
    "SessionLifecycle",
    "SessionStorage",
    "TokenStore",
]
