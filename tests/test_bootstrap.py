import asyncio
import unittest
from unittest.mock import AsyncMock, patch

from loguru import logger

from diary_client.app_config import RuntimeEnv, parse_app_config
from diary_client.errors import ApiStatusError
from diary_client.http.api_client import ApiClient
from diary_client.bootstrap import bootstrap_runtime
from diary_client.navigation import ConsoleNavigator
from diary_client.session import SessionLifecycle
from diary_client.session.storage import SessionStorage


class BootstrapTests(unittest.TestCase):
    def setUp(self) -> None:
        self.app = parse_app_config({"StorageDbPath": ":memory:", "LogConsumers": [], "ReplyPreviewLimit": 2})

    def tearDown(self) -> None:
        logger.remove()
        logger.configure(patcher=None)

    def test_builds_runtime_without_credentials(self) -> None:
        async def scenario():
            runtime = await bootstrap_runtime(self.app, RuntimeEnv(username=None, password=None))
            try:
                return runtime.token_store.get(), runtime.thread.display.limit, runtime.navigator.current_path()
            finally:
                await runtime.aclose()

        token, limit, path = asyncio.run(scenario())

        self.assertIsNone(token)
        self.assertEqual(2, limit)
        self.assertEqual("/", path)

    def test_signs_in_from_environment_when_nothing_is_stored(self) -> None:
        sign_in = AsyncMock()

        async def scenario():
            with patch.object(SessionLifecycle, "sign_in", sign_in):
                runtime = await bootstrap_runtime(self.app, RuntimeEnv(username="alice", password="pw"))
            try:
                return runtime.api, runtime.navigator.current_path()
            finally:
                await runtime.aclose()

        api, path = asyncio.run(scenario())

        sign_in.assert_awaited_once_with(api, "alice", "pw")
        self.assertEqual("/member/login", path)

    def test_failed_sign_in_releases_resources(self) -> None:
        closed: list[str] = []
        close_storage = SessionStorage.close
        close_api = ApiClient.aclose

        def recording_close(storage: SessionStorage) -> None:
            closed.append("storage")
            close_storage(storage)

        async def recording_aclose(api: ApiClient) -> None:
            closed.append("api")
            await close_api(api)

        sign_in = AsyncMock(side_effect=ApiStatusError(400, "bad credentials"))

        async def scenario() -> None:
            with (
                patch.object(SessionLifecycle, "sign_in", sign_in),
                patch.object(SessionStorage, "close", recording_close),
                patch.object(ApiClient, "aclose", recording_aclose),
            ):
                await bootstrap_runtime(self.app, RuntimeEnv(username="alice", password="wrong"))

        with self.assertRaises(ApiStatusError):
            asyncio.run(scenario())

        self.assertEqual(["api", "storage"], closed)


class ConsoleNavigatorTests(unittest.TestCase):
    def test_redirect_moves_current_path(self) -> None:
        navigator = ConsoleNavigator("/diary/DIARY-17-ID")

        navigator.redirect("/member/login")

        self.assertEqual("/member/login", navigator.current_path())


if __name__ == "__main__":
    unittest.main()
