"""Loguru sinks for the diary client.

Sinks are described in config as ``{"type": "console" | "file", ...}``. Every
record passes through a patcher that masks JWTs and bearer credentials, so
access tokens never reach a sink whatever a call site formats into a message.
"""

import re
import sys
from pathlib import Path
from typing import Any

from loguru import logger

_JWT = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]*")
_BEARER = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)
_MASK = "<redacted>"

_CONSOLE_FORMAT = "<level>{level:<8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}"

_DEFAULT_SINKS = [
    {"type": "console", "level": "WARNING"},
    {"type": "file", "path": ".diary_client/diary_client.log"},
]


def redact_tokens(text: str) -> str:
    text = _BEARER.sub(rf"\g<1>{_MASK}", text)
    return _JWT.sub(_MASK, text)


def _redact_record(record: dict[str, Any]) -> None:
    record["message"] = redact_tokens(record["message"])


def _add_console(level: str, **_: Any) -> str:
    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT)
    return f"console (stderr, {level})"


def _add_file(
    level: str,
    path: str = "diary_client.log",
    rotation: str = "10 MB",
    retention: int = 3,
    **_: Any,
) -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    logger.add(path, level=level, format=_FILE_FORMAT, rotation=rotation, retention=retention)
    return f"file ({path}, {level})"


_SINK_BUILDERS = {
    "console": _add_console,
    "file": _add_file,
}


def setup_logging(level: str = "INFO", consumers: list[dict[str, Any]] | None = None) -> list[str]:
    """Replace all loguru sinks with the configured ones. Returns one description per sink."""
    logger.remove()
    logger.configure(patcher=_redact_record)

    descriptions: list[str] = []
    for sink in consumers if consumers is not None else _DEFAULT_SINKS:
        sink_type = sink.get("type", "")
        builder = _SINK_BUILDERS.get(sink_type)
        if builder is None:
            logger.warning(f"Unknown log consumer type: {sink_type!r}")
            continue
        options = {k: v for k, v in sink.items() if k not in ("type", "level")}
        descriptions.append(builder(sink.get("level", level), **options))
    return descriptions
