from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from diary_client.comments.display import DEFAULT_REPLY_LIMIT
from diary_client.comments.thread_controller import DEFAULT_PAGE_SIZE
from diary_client.http.interceptor import DEFAULT_SESSION_INVALID_MARKERS
from diary_client.http.reissue import DEFAULT_REISSUE_PATH
from diary_client.navigation import DEFAULT_EXEMPT_PATHS, LOGIN_PATH


@dataclass
class RuntimeEnv:
    username: str | None
    password: str | None


@dataclass
class AppConfig:
    base_url: str
    request_timeout_seconds: float
    reissue_path: str
    login_path: str
    exempt_paths: list[str]
    session_invalid_markers: list[str]
    storage_db_path: str
    comment_page_size: int
    reply_preview_limit: int
    log_level: str
    log_consumers: list | None


def load_json_config() -> dict:
    config_path = Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_str_list(value: object, default: tuple[str, ...]) -> list[str]:
    if value is None:
        return list(default)
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(v) for v in value]


def parse_app_config(config: dict) -> AppConfig:
    return AppConfig(
        base_url=str(config.get("BaseUrl", "http://localhost:8080")).rstrip("/"),
        request_timeout_seconds=float(config.get("RequestTimeoutSeconds", 30.0)),
        reissue_path=str(config.get("ReissuePath", DEFAULT_REISSUE_PATH)),
        login_path=str(config.get("LoginPath", LOGIN_PATH)),
        exempt_paths=_to_str_list(config.get("ExemptPaths"), DEFAULT_EXEMPT_PATHS),
        session_invalid_markers=_to_str_list(config.get("SessionInvalidMarkers"), DEFAULT_SESSION_INVALID_MARKERS),
        storage_db_path=str(config.get("StorageDbPath", ".diary_client/storage.db")),
        comment_page_size=int(config.get("CommentPageSize", DEFAULT_PAGE_SIZE)),
        reply_preview_limit=int(config.get("ReplyPreviewLimit", DEFAULT_REPLY_LIMIT)),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env() -> RuntimeEnv:
    return RuntimeEnv(
        username=os.environ.get("DIARY_USERNAME") or None,
        password=os.environ.get("DIARY_PASSWORD") or None,
    )
