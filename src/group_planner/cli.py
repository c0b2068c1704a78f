"""CLI for group-planner: run, auth-server, config, and chat-id commands."""

import argparse
import asyncio
import sys

from dotenv import load_dotenv
from rich.console import Console

from .config import Config, load_config, parse_roster
from .errors import GroupPlannerError
from .logging_config import setup_logging


def _apply_args(config: Config, args: argparse.Namespace) -> Config:
	"""Command-line flags win over env vars and config.toml."""
	if getattr(args, "city", None):
		config.city = args.city
	if getattr(args, "roster", None):
		config.roster = parse_roster(args.roster)
	if getattr(args, "chat_id", None):
		config.chat_id = args.chat_id
	if getattr(args, "oauth", False):
		config.use_oauth = True
	if getattr(args, "port", None):
		config.auth_port = args.port
	return config


def _require(config: Config, *fields: str) -> None:
	missing = [f for f in fields if not getattr(config, f)]
	if missing:
		hints = {
			"telegram_token": "TELEGRAM_BOT_TOKEN",
			"chat_id": "GROUP_PLANNER_CHAT_ID or --chat-id",
			"roster": "GROUP_PLANNER_ROSTER or --roster",
		}
		for f in missing:
			print(f"Missing {f}: set {hints.get(f, f)}")
		sys.exit(1)


async def _run_session(config: Config) -> None:
	from .channel.telegram import TelegramChannel
	from .render import render_session
	from .session import PlanningSession

	channel = TelegramChannel(config.telegram_token)
	await channel.start()
	try:
		session = PlanningSession(config, channel, config.chat_id)
		result = await session.run(config.roster)
	finally:
		await channel.stop()
	render_session(result)


def cmd_run(args: argparse.Namespace) -> None:
	"""Plan one outing in the configured Telegram group."""
	config = _apply_args(load_config(), args)
	_require(config, "telegram_token", "chat_id", "roster")
	setup_logging(level=config.log_level, log_dir=config.log_dir)

	try:
		asyncio.run(_run_session(config))
	except GroupPlannerError as e:
		Console().print(f"[red]Session failed:[/red] {e}")
		sys.exit(1)
	except KeyboardInterrupt:
		print("Interrupted.")


def cmd_auth_server(args: argparse.Namespace) -> None:
	"""Serve the calendar connection pages without running a session."""
	from .web import run_auth_server

	config = _apply_args(load_config(), args)
	_require(config, "roster")
	setup_logging(level=config.log_level, log_dir=config.log_dir)
	if not config.client_secrets_file.exists():
		print(f"Warning: {config.client_secrets_file} not found, Google sign-in will fail")
	run_auth_server(config, config.roster)


def cmd_config(args: argparse.Namespace) -> None:
	"""Print the resolved configuration."""
	from .render import render_config

	render_config(load_config())


def cmd_chat_id(args: argparse.Namespace) -> None:
	"""Start the bot and report chat ids as /start arrives."""
	config = load_config()
	_require(config, "telegram_token")
	setup_logging(level=config.log_level)

	from .channel.telegram import TelegramChannel, run_until_cancelled

	channel = TelegramChannel(config.telegram_token)
	print("Send /start in your group chat. Press Ctrl+C when done.")
	try:
		asyncio.run(run_until_cancelled(channel))
	except KeyboardInterrupt:
		pass

	for chat_id, title in channel.seen_chats.items():
		print(f"  {chat_id}  {title}")
	if not channel.seen_chats:
		print("No /start received.")


def main() -> None:
	"""CLI entry point."""
	load_dotenv()

	parser = argparse.ArgumentParser(
		prog="group-planner",
		description="Plan a group outing through replies in a shared chat",
	)
	subparsers = parser.add_subparsers(dest="command")

	# run
	run_parser = subparsers.add_parser("run", help="Plan an outing in the Telegram group")
	run_parser.add_argument("--city", type=str, default=None, help="City to plan in")
	run_parser.add_argument("--roster", type=str, default=None, help="Comma-separated participants (e.g. @ana,@ben)")
	run_parser.add_argument("--chat-id", type=str, default=None, help="Telegram group chat ID")
	run_parser.add_argument("--oauth", action="store_true", help="Ask participants to connect Google Calendar first")
	run_parser.set_defaults(func=cmd_run)

	# auth-server
	auth_parser = subparsers.add_parser("auth-server", help="Serve the calendar connection pages")
	auth_parser.add_argument("--roster", type=str, default=None, help="Comma-separated participants")
	auth_parser.add_argument("--port", type=int, default=None, help="Server port (default: 3000)")
	auth_parser.set_defaults(func=cmd_auth_server)

	# config
	config_parser = subparsers.add_parser("config", help="Show resolved configuration")
	config_parser.set_defaults(func=cmd_config)

	# chat-id
	chat_parser = subparsers.add_parser("chat-id", help="Print chat IDs as /start arrives")
	chat_parser.set_defaults(func=cmd_chat_id)

	args = parser.parse_args()

	if not args.command:
		parser.print_help()
		sys.exit(1)

	args.func(args)


if __name__ == "__main__":
	main()
