from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from diary_client.app_config import AppConfig, RuntimeEnv
from diary_client.comments.thread_controller import ThreadViewController
from diary_client.http.api_client import ApiClient
from diary_client.logging_config import setup_logging
from diary_client.navigation import ROOT_PATH, ConsoleNavigator
from diary_client.session import SessionLifecycle, SessionStorage, TokenStore


@dataclass
class AppRuntime:
    api: ApiClient
    storage: SessionStorage
    token_store: TokenStore
    lifecycle: SessionLifecycle
    navigator: ConsoleNavigator
    thread: ThreadViewController
    log_descriptions: list[str]

    async def aclose(self) -> None:
        self.lifecycle.close()
        await self.api.aclose()
        self.storage.close()


async def bootstrap_runtime(app: AppConfig, env: RuntimeEnv) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    db_path = app.storage_db_path
    if db_path != ":memory:" and not Path(db_path).is_absolute():
        db_path = str(Path.cwd() / db_path)
    storage = SessionStorage(db_path)
    token_store = TokenStore(storage)

    navigator = ConsoleNavigator(ROOT_PATH, line_prefix="diary> ")
    lifecycle = SessionLifecycle(
        token_store,
        navigator,
        login_path=app.login_path,
        exempt_paths=app.exempt_paths,
    )
    api = ApiClient(
        app.base_url,
        token_store,
        timeout=app.request_timeout_seconds,
        reissue_path=app.reissue_path,
        on_session_ended=lifecycle.force_logout,
        session_invalid_markers=app.session_invalid_markers,
    )

    if lifecycle.restore() is None and env.username and env.password:
        navigator.go(app.login_path)
        try:
            await lifecycle.sign_in(api, env.username, env.password)
        except Exception:
            lifecycle.close()
            await api.aclose()
            storage.close()
            raise
        logger.info("Signed in from environment credentials")

    thread = ThreadViewController(
        api,
        token_store,
        page_size=app.comment_page_size,
        reply_limit=app.reply_preview_limit,
    )

    return AppRuntime(
        api=api,
        storage=storage,
        token_store=token_store,
        lifecycle=lifecycle,
        navigator=navigator,
        thread=thread,
        log_descriptions=log_descriptions,
    )
