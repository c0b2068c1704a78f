"""
Telegram group chat channel.

The bot must be a member of the group. With Telegram's default privacy mode a
bot only sees commands and replies to its own messages; disable privacy mode
through BotFather so plain replies reach the planner.

Commands:
	/start - Reply with the chat ID (use it as GROUP_PLANNER_CHAT_ID)
"""

import asyncio
import logging
from typing import Optional

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import (
	Application,
	CommandHandler,
	ContextTypes,
	MessageHandler,
	filters,
)

from ..errors import ChannelSendError
from ..models import InboundMessage
from .base import MessageCallback, Subscription, SubscriptionRegistry

logger = logging.getLogger(__name__)

# Telegram rejects messages longer than this
MAX_MESSAGE_LENGTH = 4096


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
	"""Split text into chunks under the limit, preferring line boundaries."""
	if len(text) <= limit:
		return [text]

	chunks: list[str] = []
	current = ""
	for line in text.splitlines(keepends=True):
		while len(line) > limit:
			if current:
				chunks.append(current)
				current = ""
			chunks.append(line[:limit])
			line = line[limit:]
		if len(current) + len(line) > limit:
			chunks.append(current)
			current = ""
		current += line
	if current:
		chunks.append(current)
	return chunks


def sender_identity(update: Update) -> str:
	"""Identity string for the author of an update: @username, else numeric id."""
	user = update.effective_user
	if user is None:
		return "unknown"
	if user.username:
		return f"@{user.username}"
	return str(user.id)


class TelegramChannel:
	"""MessageChannel backed by a Telegram bot using long polling."""

	def __init__(self, token: str):
		self.token = token
		self.app: Optional[Application] = None
		self._registry = SubscriptionRegistry()
		self._running = False
		self.seen_chats: dict[str, str] = {}

	# ==================== Lifecycle ====================

	async def start(self) -> None:
		"""Initialize the bot and start polling for updates."""
		self.app = Application.builder().token(self.token).build()

		self.app.add_handler(CommandHandler("start", self._cmd_start))
		self.app.add_handler(
			MessageHandler(filters.TEXT & ~filters.COMMAND, self._handle_message)
		)

		await self.app.initialize()
		await self.app.start()
		if self.app.updater:
			await self.app.updater.start_polling(drop_pending_updates=True)

		self._running = True
		logger.info("Telegram channel started as @%s", self.app.bot.username)

	async def stop(self) -> None:
		"""Stop polling and shut the bot down."""
		self._running = False
		if self.app:
			if self.app.updater and self.app.updater.running:
				await self.app.updater.stop()
			await self.app.stop()
			await self.app.shutdown()
		logger.info("Telegram channel stopped")

	@property
	def running(self) -> bool:
		return self._running

	# ==================== MessageChannel ====================

	async def send(self, channel_id: str, text: str) -> None:
		if not self.app:
			raise ChannelSendError(channel_id, "Telegram channel not started")

		for chunk in split_message(text):
			try:
				await self.app.bot.send_message(chat_id=int(channel_id), text=chunk)
			except (TelegramError, ValueError) as e:
				logger.error("Failed to send to chat %s: %s", channel_id, e)
				raise ChannelSendError(channel_id, str(e)) from e

	def subscribe(self, channel_id: str, on_message: MessageCallback) -> Subscription:
		subscription = self._registry.add(str(channel_id), on_message)
		logger.debug("Subscribed %s to chat %s", subscription.id, channel_id)
		return subscription

	def unsubscribe(self, subscription: Subscription) -> None:
		self._registry.remove(subscription)
		logger.debug("Unsubscribed %s from chat %s", subscription.id, subscription.channel_id)

	# ==================== Handlers ====================

	async def _cmd_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
		"""Handle /start - Report the chat ID."""
		chat = update.effective_chat
		if not chat or not update.effective_message:
			return
		chat_id = str(chat.id)
		self.seen_chats[chat_id] = chat.title or chat.full_name or chat_id
		await update.effective_message.reply_text(
			"Group Planner is listening here.\n\n"
			f"Chat ID: {chat_id}\n\n"
			"Set GROUP_PLANNER_CHAT_ID to this value to plan an outing in this chat."
		)

	async def _handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
		"""Forward a text message to subscriptions for its chat."""
		message = update.effective_message
		chat = update.effective_chat
		if not message or not chat or message.text is None:
			return

		user = update.effective_user
		is_self = bool(user and self.app and user.id == self.app.bot.id)

		inbound = InboundMessage(
			channel_id=str(chat.id),
			sender=sender_identity(update),
			text=message.text,
			is_self=is_self,
		)
		delivered = self._registry.dispatch(inbound)
		if not delivered:
			logger.debug("No subscriber for chat %s, dropping message", chat.id)


async def run_until_cancelled(channel: TelegramChannel) -> None:
	"""Keep the channel polling until the surrounding task is cancelled."""
	await channel.start()
	try:
		while channel.running:
			await asyncio.sleep(1)
	finally:
		await channel.stop()
