# __main__.py
"""Interactive terminal chat client: ``python -m visionchat``."""
from __future__ import annotations

import argparse
import asyncio
import logging
import shlex
from collections.abc import Callable

from dotenv import load_dotenv

# Endpoint settings are read at import time
load_dotenv()

from visionchat import settings  # noqa: E402
from visionchat.chat_service import ChatBusyError, ChatService  # noqa: E402
from visionchat.chat_store import ChatStore  # noqa: E402
from visionchat.errors import RemoteAPIError  # noqa: E402
from visionchat.models import Chat, ImageAttachment  # noqa: E402
from visionchat.storage import ChatRepository  # noqa: E402
from visionchat.summarization import build_context, format_context_preview  # noqa: E402

logger = logging.getLogger("visionchat")

HELP_TEXT = """Commands:
  /new [title]            start a new chat
  /list                   list chats
  /switch <n>             switch to chat number n from /list
  /models                 list available models
  /model <key>            change the current chat's model
  /image <url> [question] analyze an image
  /summary                show the running summary
  /context                show what the next request will carry
  /search <text>          search chats
  /star                   toggle star on the current chat
  /rename <title>         rename the current chat
  /delete                 delete the current chat
  /help                   show this help
  /quit                   exit
Anything else is sent to the model."""


class ChatREPL:
    """Line-oriented front end over a :class:`ChatService`."""

    def __init__(self, service: ChatService, out: Callable[[str], None] = print) -> None:
        self.service = service
        self.store = service.store
        self.out = out

    def _current(self) -> Chat:
        chat = self.store.get_current_chat()
        if chat is None:
            chat = self.store.create_chat()
            self.out(f"Started new chat ({chat.model_config.model})")
        return chat

    async def handle(self, line: str) -> bool:
        """Process one input line. Returns False when the user quits."""
        line = line.strip()
        if not line:
            return True
        if not line.startswith("/"):
            await self._send(line)
            return True

        try:
            parts = shlex.split(line)
        except ValueError:
            parts = line.split()
        command, args = parts[0].lower(), parts[1:]

        if command in ("/quit", "/exit"):
            return False
        if command == "/help":
            self.out(HELP_TEXT)
        elif command == "/new":
            chat = self.store.create_chat(" ".join(args) or "New Chat")
            self.out(f"Started new chat ({chat.model_config.model})")
        elif command == "/list":
            self._list_chats()
        elif command == "/switch":
            self._switch(args)
        elif command == "/models":
            for label, models in settings.grouped_models():
                self.out(f"{label}:")
                for info in models:
                    self.out(f"  {info.key:<28} {info.name}")
        elif command == "/model":
            self._set_model(args)
        elif command == "/image":
            if not args:
                self.out("Usage: /image <url> [question]")
            else:
                await self._send(" ".join(args[1:]), [ImageAttachment(url=args[0])])
        elif command == "/summary":
            chat = self._current()
            if chat.summary is None:
                self.out("No summary yet.")
            else:
                self.out(f"Summary through message {chat.last_summarized_index}:\n{chat.summary}")
        elif command == "/context":
            chat = self._current()
            entries = build_context(chat.messages, chat.summary, chat.last_summarized_index)
            self.out(format_context_preview(chat.messages, chat.summary))
            self.out(f"({len(entries)} context entries)")
        elif command == "/search":
            for chat in self.store.search_chats(" ".join(args)):
                self.out(f"  {chat.title}")
        elif command == "/star":
            chat = self.store.star_chat(self._current().id)
            self.out("Starred." if chat.is_starred else "Unstarred.")
        elif command == "/rename":
            self.store.rename_chat(self._current().id, " ".join(args) or "New Chat")
        elif command == "/delete":
            self.store.delete_chat(self._current().id)
            self.out("Chat deleted.")
        else:
            self.out(f"Unknown command {command}; try /help")
        return True

    def _list_chats(self) -> None:
        chats = self.store.list_chats()
        if not chats:
            self.out("No chats yet.")
        for i, chat in enumerate(chats, start=1):
            marker = "*" if chat.id == self.store.current_chat_id else " "
            star = " [starred]" if chat.is_starred else ""
            self.out(f"{marker}{i:>3}. {chat.title} ({len(chat.messages)} messages){star}")

    def _switch(self, args: list[str]) -> None:
        chats = self.store.list_chats()
        if not args or not args[0].isdigit() or not 1 <= int(args[0]) <= len(chats):
            self.out("Usage: /switch <n> (see /list)")
            return
        chat = self.store.set_current_chat(chats[int(args[0]) - 1].id)
        self.out(f"Switched to {chat.title}")

    def _set_model(self, args: list[str]) -> None:
        if not args:
            self.out("Usage: /model <key> (see /models)")
            return
        try:
            info = settings.get_model_info(args[0])
        except ValueError as exc:
            self.out(str(exc))
            return
        self.store.update_model_config(self._current().id, model=info.key, provider=info.provider.value)
        self.out(f"Switched to {info.name}")

    async def _send(self, content: str, images: list[ImageAttachment] | None = None) -> None:
        chat = self._current()
        try:
            reply = await self.service.send_message(chat.id, content, images)
        except (RemoteAPIError, ChatBusyError, ValueError) as exc:
            self.out(f"Error: {exc}")
            return
        self.out(reply.content)


async def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="visionchat", description=__doc__)
    parser.add_argument("--db", default=str(settings.DB_PATH), help="SQLite file for chat history")
    parser.add_argument("--model", default=None, help="Model key for new chats (see /models)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.model:
        settings.get_model_info(args.model)
    store = ChatStore.load(ChatRepository(args.db), default_model=args.model)
    repl = ChatREPL(ChatService(store))
    print("visionchat - type /help for commands")

    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        if not await repl.handle(line):
            break
    logger.info("exiting")


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
