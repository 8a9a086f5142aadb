"""CLI entry point for switchboard."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from switchboard.app import SwitchboardApp
from switchboard.chat.events import ndjson_stream
from switchboard.chat.service import User
from switchboard.config import AppConfig, load_config
from switchboard.errors import error_payload
from switchboard.log import setup_logging

DEFAULT_USER = "local"


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
    parser.add_argument("-e", "--env", default=".env", help="Path to .env file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="switchboard",
        description="Conversational assistant with keyword-routed agents",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    chat_parser = subparsers.add_parser("chat", help="Send one message")
    _add_config_args(chat_parser)
    chat_parser.add_argument("prompt", help="Message text")
    chat_parser.add_argument("-u", "--user", default=DEFAULT_USER, help="Owner id")
    chat_parser.add_argument("--conversation", default=None, help="Continue this conversation id")
    chat_parser.add_argument(
        "--stream", action="store_true", help="Print NDJSON stream events as they arrive"
    )

    list_parser = subparsers.add_parser("conversations", help="List conversations")
    _add_config_args(list_parser)
    list_parser.add_argument("-u", "--user", default=DEFAULT_USER, help="Owner id")

    show_parser = subparsers.add_parser("show", help="Show a conversation with its messages")
    _add_config_args(show_parser)
    show_parser.add_argument("conversation_id", help="Conversation id")
    show_parser.add_argument("-u", "--user", default=DEFAULT_USER, help="Owner id")

    check_parser = subparsers.add_parser("config-check", help="Validate configuration")
    _add_config_args(check_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "config-check":
        _check_config(args.config, args.env)
        return

    config = _load_or_exit(args.config, args.env)
    setup_logging(config.log_level)

    if args.command == "chat":
        code = asyncio.run(_chat(config, args.user, args.prompt, args.conversation, args.stream))
    elif args.command == "conversations":
        code = asyncio.run(_conversations(config, args.user))
    else:
        code = asyncio.run(_show(config, args.user, args.conversation_id))
    sys.exit(code)


def _load_or_exit(config_path: str, env_path: str) -> AppConfig:
    try:
        return load_config(config_path, env_path)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Copy config.example.yaml to config.yaml and edit it", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _check_config(config_path: str, env_path: str) -> None:
    """Validate configuration and print summary."""
    config = _load_or_exit(config_path, env_path)
    model = config.claude_code.model if config.gateway.backend == "claude_code" else config.gateway.model
    print(f"Configuration valid: {config_path}")
    print(f"  Gateway       : {config.gateway.backend} ({model})")
    print(f"  Search        : {config.search.endpoint}")
    print(f"  Search key    : {'set' if config.search.api_key else '(missing, search will fall back)'}")
    print(f"  Code execution: {config.code_execution.backend}")
    print(f"  Storage       : {config.storage.db_path}")
    print(f"  History limit : {config.chat.history_limit}")


def _print_error(exc: Exception) -> int:
    status, body = error_payload(exc)
    print(json.dumps({"status": status, **body}), file=sys.stderr)
    return 1


async def _chat(
    config: AppConfig, user_id: str, prompt: str, conversation_id: str | None, stream: bool
) -> int:
    user = User(id=user_id, username=user_id)
    async with SwitchboardApp(config) as app:
        if stream:
            failed = False
            events = app.chat_service.process_message_stream(user, prompt, conversation_id)
            async for line in ndjson_stream(events):
                sys.stdout.write(line)
                sys.stdout.flush()
                failed = failed or json.loads(line)["type"] == "error"
            return 1 if failed else 0

        try:
            response = await app.chat_service.process_message(user, prompt, conversation_id)
        except Exception as e:
            return _print_error(e)
        print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))
        return 0


async def _conversations(config: AppConfig, user_id: str) -> int:
    async with SwitchboardApp(config) as app:
        try:
            conversations = await app.chat_service.list_conversations(User(id=user_id))
        except Exception as e:
            return _print_error(e)
        if not conversations:
            print("No conversations.")
        for conv in conversations:
            print(f"{conv.conversation_id}  {conv.updated_at:%Y-%m-%d %H:%M}  {conv.title}")
        return 0


async def _show(config: AppConfig, user_id: str, conversation_id: str) -> int:
    async with SwitchboardApp(config) as app:
        try:
            detail = await app.chat_service.get_conversation_with_messages(
                User(id=user_id), conversation_id
            )
        except Exception as e:
            return _print_error(e)
        print(json.dumps(detail.to_dict(), ensure_ascii=False, indent=2))
        return 0


if __name__ == "__main__":
    main()
