#!/usr/bin/env python3
"""
Orphan Repair Sweep

Finds active bots that lost their action task (queue flushed, failed action,
crash between steps) and puts them back on their interval grid.
"""

import logging
from typing import Any, Dict, List

from ..bots import build_bot
from ..context import BotContext
from ..models import ACTIVE_STATUSES, Bot
from .action_scheduler import ActionScheduler

logger = logging.getLogger(__name__)


class RepairSweep:
    """Low priority maintenance job rescheduling orphaned bots"""

    def __init__(self, context: BotContext, scheduler: ActionScheduler):
        self.context = context
        self.scheduler = scheduler

    def find_orphaned_bots(self) -> List[Bot]:
        candidates = self.context.store.list_bots(ACTIVE_STATUSES)
        return [bot for bot in candidates
                if bot.exchange and self.scheduler.next_action_job_at(bot) is None]

    def repair_bot(self, bot: Bot):
        logger.warning(f"Repairing orphaned bot {bot.id}")
        self.scheduler.cancel_scheduled_action_jobs(bot)
        run_at = self.scheduler.schedule_next(build_bot(bot, self.context))
        self.scheduler.broadcast(bot, run_at)
        logger.info(f"Bot {bot.id} rescheduled")

    def repair_orphaned_bots(self) -> Dict[str, Any]:
        """
        Reschedule every orphaned bot

        A failure on one bot is logged and the sweep moves on.

        Returns:
            Summary with found / repaired / failed counts and failed bot ids
        """
        orphaned = self.find_orphaned_bots()
        summary: Dict[str, Any] = {'found': len(orphaned), 'repaired': 0, 'failed': 0, 'failed_bot_ids': []}
        if not orphaned:
            return summary

        logger.info(f"Found {len(orphaned)} orphaned bot(s)")
        for bot in orphaned:
            try:
                self.repair_bot(bot)
                summary['repaired'] += 1
                self.context.telemetry.increment('repair.rescheduled')
            except Exception as e:
                logger.error(f"Failed to repair bot {bot.id}: {e}")
                summary['failed'] += 1
                summary['failed_bot_ids'].append(bot.id)
                self.context.telemetry.record_error('repair', str(e), {'bot_id': bot.id})
        return summary
