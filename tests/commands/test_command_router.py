import asyncio
import unittest

from diary_client.commands.router import CommandRouter


class CommandRouterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calls: list[tuple[str, str]] = []

        def handler(name: str):
            async def handle(command: str = "") -> None:
                self.calls.append((name, command))

            return handle

        self.router = CommandRouter(
            on_help=handler("help"),
            on_page=handler("page"),
            on_more=handler("more"),
            on_post=handler("post"),
            on_reply=handler("reply"),
            on_edit=handler("edit"),
            on_delete=handler("delete"),
            on_search=handler("search"),
            on_login=handler("login"),
            on_logout=handler("logout"),
            on_unknown=lambda command: self.calls.append(("unknown", command)),
        )

    def _handle(self, message: str) -> bool:
        return asyncio.run(self.router.try_handle(message))

    def test_routes_by_command_word(self) -> None:
        self.assertTrue(self._handle("  /reply 4 nice post  "))
        self.assertTrue(self._handle("/delete 9"))

        self.assertEqual([("reply", "/reply 4 nice post"), ("delete", "/delete 9")], self.calls)

    def test_help_takes_no_argument(self) -> None:
        self.assertTrue(self._handle("/help"))

        self.assertEqual([("help", "")], self.calls)

    def test_prefix_of_a_command_is_unknown(self) -> None:
        self.assertTrue(self._handle("/pages 2"))

        self.assertEqual([("unknown", "/pages 2")], self.calls)

    def test_plain_text_is_not_a_command(self) -> None:
        self.assertFalse(self._handle("hello"))

        self.assertEqual([], self.calls)


if __name__ == "__main__":
    unittest.main()
