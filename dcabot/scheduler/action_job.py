#!/usr/bin/env python3
"""
Action Job

Runs one due action of a bot and moves it through its lifecycle:

    scheduled/retrying --success--> scheduled (next task enqueued)
    scheduled/retrying --failure--> retrying  (no task, repair sweep picks it up)
    scheduled/retrying --raised error--> retrying, error re-raised to the runner
    scheduled/retrying --limit reached--> unchanged, nothing enqueued

Stopped and started bots are skipped without touching their state.
"""

import logging
import time
from typing import Optional

from ..bots import build_bot
from ..context import BotContext
from ..errors import ActionAlreadyScheduledError, DCABotError
from ..models import ACTIVE_STATUSES, Bot, BotStatus
from ..result import Result
from .action_scheduler import ActionScheduler

logger = logging.getLogger(__name__)


class ActionJob:
    """Executes due bot actions"""

    def __init__(self, context: BotContext, scheduler: ActionScheduler):
        self.context = context
        self.scheduler = scheduler

    async def run_due_action(self, bot_id: str) -> Optional[Result]:
        """
        Execute the due action of a bot under its lock

        Args:
            bot_id: Id of the bot whose task came due

        Returns:
            The action result, or None when the bot was skipped

        Raises:
            ActionAlreadyScheduledError: The bot still has an outstanding task
            DCABotError: The action could not run (e.g. no exchange or ticker);
                the bot is left retrying
        """
        async with self.context.locks(bot_id):
            return await self._run(bot_id)

    async def _run(self, bot_id: str) -> Optional[Result]:
        store = self.context.store
        telemetry = self.context.telemetry

        bot = store.get_bot(bot_id)
        if bot is None:
            logger.warning(f"⚠️  Due action for unknown bot {bot_id} dropped")
            return None

        if bot.status not in ACTIVE_STATUSES:
            logger.info(f"⏭️  Bot {bot.id} is {bot.status.value}, skipping its action")
            telemetry.increment('actions.skipped')
            return None

        next_action_job_at = self.scheduler.next_action_job_at(bot)
        if next_action_job_at is not None:
            raise ActionAlreadyScheduledError(bot.id, next_action_job_at)

        started = time.monotonic()
        try:
            recurring_bot = build_bot(bot, self.context)
            result = await recurring_bot.execute_action()
        except DCABotError as e:
            self._mark_failed(bot, str(e))
            raise
        telemetry.record_timing('actions.duration', time.monotonic() - started)

        if result.failure():
            self._mark_failed(bot, result.message)
            return result

        if result.break_reschedule:
            telemetry.increment('actions.paused')
            return result

        now = self.context.now()
        bot.last_action_job_at = now
        bot.status = BotStatus.SCHEDULED
        store.save_bot(bot)
        run_at = self.scheduler.schedule_next(recurring_bot, now)
        self.scheduler.broadcast(bot, run_at)

        telemetry.increment('actions.executed')
        telemetry.record_event('action', {'bot_id': bot.id, 'next_action_job_at': run_at.isoformat()})
        return result

    def _mark_failed(self, bot: Bot, message: str):
        """Leave the bot retrying without a task; the repair sweep reschedules it"""
        bot.status = BotStatus.RETRYING
        self.context.store.save_bot(bot)
        try:
            self.context.notifier.notify_error(bot, message)
        except Exception as e:
            logger.warning(f"⚠️  Error notification for bot {bot.id} failed: {e}")
        self.context.telemetry.increment('actions.failed')
        self.context.telemetry.record_error('action', message, {'bot_id': bot.id})
        logger.error(f"❌ Bot {bot.id} action failed: {message}")
