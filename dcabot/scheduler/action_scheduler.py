#!/usr/bin/env python3
"""
Action Scheduler

Registers, cancels and inspects the delayed action task of a bot. The
queue holds at most one task per bot, and scheduling always cancels first.
"""

import logging
from datetime import datetime
from typing import Optional

from ..models import Bot
from ..notifications import BotNotifier
from .action_queue import ActionQueue, ActionTask

logger = logging.getLogger(__name__)


class ActionScheduler:
    """Thin scheduling layer over the delayed-task queue"""

    def __init__(self, queue: ActionQueue, notifier: BotNotifier):
        self.queue = queue
        self.notifier = notifier

    def next_action_job_at(self, bot: Bot) -> Optional[datetime]:
        """Run time of the bot's outstanding task, None when it has none"""
        return self.queue.next_run_at(bot.id)

    def cancel_scheduled_action_jobs(self, bot: Bot) -> int:
        cancelled = self.queue.cancel_all(bot.id)
        if cancelled:
            logger.debug(f"Cancelled {cancelled} action task(s) of bot {bot.id}")
        return cancelled

    def schedule(self, bot: Bot, run_at: datetime) -> ActionTask:
        self.cancel_scheduled_action_jobs(bot)
        task = self.queue.enqueue(bot.id, run_at)
        logger.info(f"⏰ Bot {bot.id} scheduled at {run_at.isoformat()}")
        return task

    def schedule_next(self, recurring_bot, now: Optional[datetime] = None) -> datetime:
        """
        Schedule the bot at its next interval checkpoint

        Args:
            recurring_bot: RecurringBot wrapping the stored bot
            now: Reference time, defaults to the bot context clock

        Returns:
            The run time of the new task
        """
        run_at = recurring_bot.next_interval_checkpoint_at(now)
        self.schedule(recurring_bot.bot, run_at)
        return run_at

    def broadcast(self, bot: Bot, run_at: datetime):
        """Tell subscribers about the bot's new schedule (fire-and-forget)"""
        try:
            self.notifier.notify_scheduled(bot, run_at)
        except Exception as e:
            logger.warning(f"⚠️  Schedule notification for bot {bot.id} failed: {e}")
