import asyncio
import sys

import httpx
from dotenv import load_dotenv
from loguru import logger

from diary_client.app_config import load_json_config, parse_app_config, resolve_runtime_env
from diary_client.bootstrap import AppRuntime, bootstrap_runtime
from diary_client.commands.router import CommandRouter
from diary_client.errors import DiaryClientError
from diary_client.id_codec import decode_diary_id

_PREFIX = "diary> "

_HELP = """\
Commands:
  /page <n>                   show page n of the guestbook
  /more <id>                  show or hide all replies of a top-level comment
  /post <text>                write a comment
  /reply <id> <text>          reply to a comment
  /edit <id> <text>           change one of your comments
  /delete <id>                delete one of your comments
  /search <all|writer|content> <keyword>
  /login <username> <password>
  /logout
  exit"""


def _print_thread(runtime: AppRuntime) -> None:
    thread = runtime.thread
    lines = thread.render()
    if not lines:
        print(f"{_PREFIX}The guestbook is empty.")
    for line in lines:
        print(f"{_PREFIX}{line}")
    info = thread.page_info
    pages = " ".join(f"[{n}]" if n == info.current else str(n) for n in info.window())
    print(f"{_PREFIX}Page {info.current}/{info.last}: {pages}")


def _build_router(runtime: AppRuntime) -> CommandRouter:
    thread = runtime.thread

    async def on_help() -> None:
        print(_HELP)

    async def on_page(command: str) -> None:
        _, _, arg = command.partition(" ")
        await thread.go_to_page(int(arg))
        _print_thread(runtime)

    async def on_more(command: str) -> None:
        _, _, arg = command.partition(" ")
        thread.toggle_replies(int(arg))
        _print_thread(runtime)

    async def on_post(command: str) -> None:
        _, _, text = command.partition(" ")
        await thread.submit_comment(text)
        _print_thread(runtime)

    async def on_reply(command: str) -> None:
        parts = command.split(" ", 2)
        if len(parts) < 3:
            print(f"{_PREFIX}Usage: /reply <id> <text>")
            return
        await thread.submit_reply(int(parts[1]), parts[2])
        _print_thread(runtime)

    async def on_edit(command: str) -> None:
        parts = command.split(" ", 2)
        if len(parts) < 3:
            print(f"{_PREFIX}Usage: /edit <id> <text>")
            return
        await thread.edit_comment(int(parts[1]), parts[2])
        _print_thread(runtime)

    async def on_delete(command: str) -> None:
        _, _, arg = command.partition(" ")
        await thread.delete_comment(int(arg))
        _print_thread(runtime)

    async def on_search(command: str) -> None:
        parts = command.split(" ", 2)
        search_type = parts[1] if len(parts) > 1 else "all"
        keyword = parts[2] if len(parts) > 2 else ""
        await thread.search(search_type, keyword)
        _print_thread(runtime)

    async def on_login(command: str) -> None:
        parts = command.split(" ", 2)
        if len(parts) < 3:
            print(f"{_PREFIX}Usage: /login <username> <password>")
            return
        runtime.navigator.go("/member/login")
        session = await runtime.lifecycle.sign_in(runtime.api, parts[1], parts[2])
        runtime.navigator.go(f"/diary/{thread.public_id}")
        print(f"{_PREFIX}Logged in as {session.nickname}")

    async def on_logout(command: str) -> None:
        await runtime.lifecycle.sign_out(runtime.api)
        print(f"{_PREFIX}Logged out")

    def on_unknown(command: str) -> None:
        print(f"{_PREFIX}Unknown command: {command} (try /help)")

    return CommandRouter(
        on_help=on_help,
        on_page=on_page,
        on_more=on_more,
        on_post=on_post,
        on_reply=on_reply,
        on_edit=on_edit,
        on_delete=on_delete,
        on_search=on_search,
        on_login=on_login,
        on_logout=on_logout,
        on_unknown=on_unknown,
    )


async def main() -> None:
    load_dotenv()

    if len(sys.argv) != 2:
        print("usage: python -m diary_client <public-diary-id>")
        sys.exit(2)
    public_id = sys.argv[1]
    if decode_diary_id(public_id) is None:
        print(f"Invalid diary id: {public_id}")
        sys.exit(2)

    app = parse_app_config(load_json_config())
    runtime = await bootstrap_runtime(app, resolve_runtime_env())
    try:
        runtime.navigator.go(f"/diary/{public_id}")
        await runtime.thread.open_diary(public_id)
        await runtime.thread.refresh()

        print("diary-client (type 'exit' to quit, '/help' for commands)")
        if runtime.log_descriptions:
            print(f"Logging: {', '.join(runtime.log_descriptions)}")
        _print_thread(runtime)

        router = _build_router(runtime)
        while True:
            try:
                user_input = await asyncio.to_thread(input, "you> ")
            except (EOFError, KeyboardInterrupt):
                break

            trimmed = user_input.strip()
            if trimmed in ("exit", "quit"):
                break
            if not trimmed:
                continue

            try:
                if not await router.try_handle(trimmed):
                    print(f"{_PREFIX}Commands start with '/' (try /help)")
            except (DiaryClientError, ValueError) as ex:
                print(f"{_PREFIX}{ex}")
            except httpx.TransportError as ex:
                logger.error(f"Network error: {ex}")
                print(f"{_PREFIX}Network error: {ex}")
    finally:
        await runtime.aclose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
