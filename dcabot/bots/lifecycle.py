#!/usr/bin/env python3
"""
Bot Lifecycle

User-facing state changes: start, stop and settings updates. Each runs
under the bot's lock so it never interleaves with a running action.
"""

import logging
from typing import Any, Dict

from ..context import BotContext
from ..errors import MissingExchangeError
from ..interval_clock import interval_span
from ..models import ACTIVE_STATUSES, Bot, BotStatus
from ..scheduler.action_scheduler import ActionScheduler
from . import build_bot

logger = logging.getLogger(__name__)


class BotLifecycle:
    """Starts, stops and reconfigures bots"""

    def __init__(self, context: BotContext, scheduler: ActionScheduler):
        self.context = context
        self.scheduler = scheduler

    def _load(self, bot_id: str) -> Bot:
        bot = self.context.store.get_bot(bot_id)
        if bot is None:
            raise KeyError(f"Bot {bot_id} not found")
        return bot

    async def start(self, bot_id: str) -> Bot:
        """
        Start (or restart) a bot

        Clears the missed amount, restarts the interval grid at now and
        enqueues the first action immediately.
        """
        async with self.context.locks(bot_id):
            bot = self._load(bot_id)
            if not self.context.exchanges.has(bot.exchange):
                raise MissingExchangeError(f"Bot {bot.id} has no usable exchange ({bot.exchange!r})")

            now = self.context.now()
            bot.missed_quote_amount = 0.0
            bot.buffer_anchor_at = None
            bot.started_at = now
            bot.status = BotStatus.STARTED
            self.context.store.save_bot(bot)

            self.scheduler.schedule(bot, now)
            bot.status = BotStatus.SCHEDULED
            self.context.store.save_bot(bot)
            self.scheduler.broadcast(bot, now)

        logger.info(f"🚀 Bot {bot.id} started")
        self.context.telemetry.increment('bots.started')
        return bot

    async def stop(self, bot_id: str) -> Bot:
        async with self.context.locks(bot_id):
            bot = self._load(bot_id)
            self.scheduler.cancel_scheduled_action_jobs(bot)
            bot.status = BotStatus.STOPPED
            self.context.store.save_bot(bot)

        logger.info(f"🛑 Bot {bot.id} stopped")
        self.context.telemetry.increment('bots.stopped')
        return bot

    async def update_settings(self, bot_id: str, changes: Dict[str, Any]) -> Bot:
        """
        Change a bot's settings without losing its buffered amount

        The pending amount is snapshotted into ``missed_quote_amount`` before
        the new settings apply. A scheduled bot is moved to the next
        checkpoint of its new interval.

        Args:
            bot_id: Bot to update
            changes: Settings fields to overwrite

        Returns:
            The updated bot
        """
        async with self.context.locks(bot_id):
            bot = self._load(bot_id)
            new_settings = bot.settings.merge(changes)
            interval_span(new_settings.interval)

            now = self.context.now()
            recurring_bot = build_bot(bot, self.context)
            if bot.started_at is not None:
                missed = recurring_bot.set_missed_quote_amount(now)
                logger.info(f"🔧 Bot {bot.id}: {missed} {bot.settings.quote} carried over to new settings")
            bot.settings = new_settings
            self.context.store.save_bot(bot)

            if bot.status in ACTIVE_STATUSES and self.scheduler.next_action_job_at(bot) is not None:
                run_at = self.scheduler.schedule_next(recurring_bot, now)
                self.scheduler.broadcast(bot, run_at)
        return bot
