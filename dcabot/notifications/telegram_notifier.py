#!/usr/bin/env python3
"""
Telegram Bot Notifier

Sends bot notifications to a fixed list of Telegram chats. Sends are
scheduled as background tasks on the running event loop; delivery problems
are logged and otherwise ignored.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Set

from telegram import Bot as TelegramBot
from telegram.error import BadRequest, Forbidden, NetworkError, TimedOut

from ..models import Bot
from .message_templates import BotMessageTemplates
from .notifier import BotNotifier, bot_label, market_base

logger = logging.getLogger(__name__)


class TelegramBotNotifier(BotNotifier):
    """Notifier delivering messages through python-telegram-bot"""

    def __init__(self, bot_token: str, chat_ids: List[str], templates: BotMessageTemplates = None):
        """
        Args:
            bot_token: Telegram bot token
            chat_ids: Chats receiving the notifications
            templates: Message templates (defaults to BotMessageTemplates)
        """
        self.bot = TelegramBot(token=bot_token)
        self.chat_ids = list(chat_ids)
        self.templates = templates or BotMessageTemplates()
        self.failed_chats: Set[str] = set()
        self._pending: Set[asyncio.Task] = set()
        logger.info(f"Telegram notifier initialized for {len(self.chat_ids)} chats")

    def notify_below_minimum(self, bot: Bot, amount: float, minimum: float, base: Optional[str] = None):
        super().notify_below_minimum(bot, amount, minimum, base)
        market = f"{base or market_base(bot)}/{bot.settings.quote}"
        self._dispatch(self.templates.render(
            'below_minimum', bot_label=bot_label(bot), market=market, exchange=bot.exchange,
            amount=amount, minimum=minimum, quote=bot.settings.quote,
        ))

    def notify_error(self, bot: Bot, error: str):
        super().notify_error(bot, error)
        self._dispatch(self.templates.render('error', bot_label=bot_label(bot), error_message=error))

    def notify_scheduled(self, bot: Bot, run_at: datetime):
        logger.debug(f"Bot {bot.id} scheduled at {run_at.isoformat()}")
        self._dispatch(self.templates.render(
            'scheduled', bot_label=bot_label(bot), run_at=run_at.strftime('%Y-%m-%d %H:%M UTC'),
        ))

    def _dispatch(self, message_data: Dict[str, str]):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, Telegram notification dropped")
            return
        task = loop.create_task(self.send(message_data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def send(self, message_data: Dict[str, str]) -> Dict[str, int]:
        """
        Send a message to every configured chat

        Returns:
            Dict with ``sent`` and ``failed`` counts
        """
        results = {'sent': 0, 'failed': 0}
        for chat_id in self.chat_ids:
            try:
                await self.bot.send_message(
                    chat_id=chat_id,
                    text=message_data['text'],
                    parse_mode=message_data.get('parse_mode', 'Markdown'),
                    disable_web_page_preview=True
                )
                results['sent'] += 1
                self.failed_chats.discard(chat_id)
            except Forbidden as e:
                logger.warning(f"Bot blocked by chat {chat_id}: {e}")
                results['failed'] += 1
                self.failed_chats.add(chat_id)
            except BadRequest as e:
                logger.error(f"Bad request for chat {chat_id}: {e}")
                results['failed'] += 1
                self.failed_chats.add(chat_id)
            except (TimedOut, NetworkError) as e:
                logger.warning(f"Network error for chat {chat_id}: {e}")
                results['failed'] += 1
        return results

    async def drain(self):
        """Wait for notifications still in flight (used on shutdown)"""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
