import asyncio
import unittest

import httpx

from diary_client.errors import ApiStatusError, UnauthorizedError
from diary_client.session.lifecycle import SESSION_EXPIRED_NOTICE, SessionLifecycle
from tests.http_client.fakes import (
    FakeDiaryServer,
    RecordingNavigator,
    make_client,
    make_store,
    make_token,
)


class AuthInterceptorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.server = FakeDiaryServer()
        self.server.json_route("GET", "/api/diaryComment/all", [])
        self.store = make_store()
        self.ended: list[str] = []

    def _client(self, **kwargs):
        kwargs.setdefault("on_session_ended", self.ended.append)
        return make_client(self.server, self.store, **kwargs)

    def _fetch_all(self, client=None) -> httpx.Response:
        async def scenario() -> httpx.Response:
            async with client or self._client() as api:
                return await api.get("/api/diaryComment/all", params={"diaryId": 1})

        return asyncio.run(scenario())

    # -- token attachment --

    def test_attaches_current_token(self) -> None:
        token = make_token()
        self.server.valid_tokens.add(token)
        self.store.set(token, None)

        response = self._fetch_all()

        self.assertEqual(200, response.status_code)
        self.assertEqual(f"Bearer {token}", self.server.requests[0].headers["Authorization"])
        self.assertEqual(0, self.server.reissue_calls)

    def test_sends_unauthenticated_without_token(self) -> None:
        self.server.public_paths.add("/api/diaryComment/all")

        self._fetch_all()

        self.assertNotIn("Authorization", self.server.requests[0].headers)

    # -- reissue and retry --

    def test_unauthorized_then_reissue_retries_exactly_once(self) -> None:
        self.store.set(make_token("stale"), None)

        response = self._fetch_all()

        self.assertEqual(200, response.status_code)
        self.assertEqual(1, self.server.reissue_calls)
        calls = self.server.requests_to("/api/diaryComment/all")
        self.assertEqual(2, len(calls))
        new_token = self.server.issued_tokens[0]
        self.assertEqual(f"Bearer {new_token}", calls[1].headers["Authorization"])
        self.assertEqual(new_token, self.store.get())
        self.assertEqual([], self.ended)

    def test_reissued_token_expiry_comes_from_claims(self) -> None:
        self.store.set(make_token("stale"), None)

        self._fetch_all()

        session = self.store.session()
        self.assertIsNotNone(session)
        self.assertIsNotNone(session.expires_at_ms)

    def test_reissue_call_never_carries_bearer_token(self) -> None:
        self.store.set(make_token("stale"), None)

        self._fetch_all()

        self.assertNotIn("Authorization", self.server.reissue_requests[0].headers)
        self.assertEqual("POST", self.server.reissue_requests[0].method)

    def test_persistently_rejected_token_reissues_only_once(self) -> None:
        self.server.accept_reissued_tokens = False
        self.store.set(make_token("stale"), None)

        with self.assertRaises(UnauthorizedError) as ctx:
            self._fetch_all()

        self.assertEqual(401, ctx.exception.status_code)
        self.assertEqual(1, self.server.reissue_calls)
        self.assertEqual(2, len(self.server.requests_to("/api/diaryComment/all")))

    def test_non_auth_errors_are_not_intercepted(self) -> None:
        token = make_token()
        self.server.valid_tokens.add(token)
        self.store.set(token, None)
        self.server.json_route("GET", "/api/diaryComment/all", {"message": "boom"}, status=500)

        with self.assertRaises(ApiStatusError) as ctx:
            self._fetch_all()

        self.assertEqual(500, ctx.exception.status_code)
        self.assertNotIsInstance(ctx.exception, UnauthorizedError)
        self.assertEqual(0, self.server.reissue_calls)
        self.assertEqual(token, self.store.get())

    # -- reissue failure --

    def test_reissue_failure_clears_store_and_rejects(self) -> None:
        self.server.reissue_status = 400
        self.server.reissue_body = "refresh token expired"
        self.store.set(make_token("stale"), None)

        with self.assertRaises(UnauthorizedError):
            self._fetch_all()

        self.assertIsNone(self.store.get())
        self.assertEqual(1, len(self.ended))
        self.assertIn("refresh token expired", self.ended[0])
        self.assertEqual(1, len(self.server.requests_to("/api/diaryComment/all")))

    def test_reissue_without_access_header_is_a_failure(self) -> None:
        self.server.reissue_sends_token = False
        self.store.set(make_token("stale"), None)

        with self.assertRaises(UnauthorizedError):
            self._fetch_all()

        self.assertIsNone(self.store.get())
        self.assertEqual(1, len(self.ended))

    def test_session_ended_handler_errors_do_not_escape(self) -> None:
        self.server.reissue_status = 400

        def exploding(reason: str) -> None:
            raise RuntimeError("handler broke")

        self.store.set(make_token("stale"), None)

        with self.assertRaises(UnauthorizedError):
            self._fetch_all(self._client(on_session_ended=exploding))

    def test_session_invalid_marker_skips_reissue(self) -> None:
        self.server.unauthorized_body = "invalid refresh token"
        self.store.set(make_token("stale"), None)

        with self.assertRaises(UnauthorizedError):
            self._fetch_all()

        self.assertEqual(0, self.server.reissue_calls)
        self.assertIsNone(self.store.get())
        self.assertEqual(["session invalid"], self.ended)

    def test_logout_during_reissue_discards_new_token(self) -> None:
        self.store.set(make_token("stale"), None)
        original_reissue = self.server._reissue

        def reissue_then_logout(request: httpx.Request) -> httpx.Response:
            response = original_reissue(request)
            self.store.clear()
            return response

        self.server._reissue = reissue_then_logout

        with self.assertRaises(UnauthorizedError):
            self._fetch_all()

        self.assertIsNone(self.store.get())
        self.assertEqual(1, len(self.server.requests_to("/api/diaryComment/all")))

    # -- concurrency --

    def test_concurrent_unauthorized_requests_each_reissue(self) -> None:
        self.server.latency = 0.01
        self.store.set(make_token("stale"), None)

        async def scenario() -> list[httpx.Response]:
            async with self._client() as api:
                return await asyncio.gather(
                    api.get("/api/diaryComment/all", params={"diaryId": 1}),
                    api.get("/api/diaryComment/all", params={"diaryId": 2}),
                )

        responses = asyncio.run(scenario())

        self.assertEqual([200, 200], [r.status_code for r in responses])
        self.assertEqual(2, self.server.reissue_calls)


class ForcedLogoutTests(unittest.TestCase):
    def setUp(self) -> None:
        self.server = FakeDiaryServer()
        self.server.json_route("GET", "/api/diaryComment/all", [])
        self.server.reissue_status = 400
        self.server.reissue_body = "refresh token expired"
        self.store = make_store()

    def _run(self, navigator: RecordingNavigator) -> None:
        async def scenario() -> None:
            lifecycle = SessionLifecycle(self.store, navigator)
            lifecycle.login(make_token("stale"))
            async with make_client(self.server, self.store, on_session_ended=lifecycle.force_logout) as api:
                with self.assertRaises(UnauthorizedError):
                    await api.get("/api/diaryComment/all")
            self.assertFalse(lifecycle.timer_armed)
            lifecycle.close()

        asyncio.run(scenario())

    def test_redirects_to_login_with_notice(self) -> None:
        navigator = RecordingNavigator("/diary/DIARY-17-ID")

        self._run(navigator)

        self.assertEqual([SESSION_EXPIRED_NOTICE], navigator.notices)
        self.assertEqual(["/member/login"], navigator.redirects)
        self.assertIsNone(self.store.get())

    def test_exempt_destinations_are_left_alone(self) -> None:
        for path in ("/", "/member/login", "/member/signup"):
            with self.subTest(path=path):
                navigator = RecordingNavigator(path)

                self._run(navigator)

                self.assertEqual([], navigator.notices)
                self.assertEqual([], navigator.redirects)
                self.assertIsNone(self.store.get())


if __name__ == "__main__":
    unittest.main()
