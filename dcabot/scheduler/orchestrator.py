#!/usr/bin/env python3
"""
DCA Orchestrator

Task runner of the scheduler process: claims due action tasks and runs them
concurrently, polls submitted orders for fills and runs the orphan repair
sweep on its own slower cadence.
"""

import asyncio
import logging
import signal
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..bots.lifecycle import BotLifecycle
from ..config import SchedulerSettings
from ..context import BotContext
from ..errors import ActionAlreadyScheduledError, DCABotError
from .action_job import ActionJob
from .action_queue import ActionQueue, ActionTask
from .action_scheduler import ActionScheduler
from .fill_reporter import FillReporter
from .repair_sweep import RepairSweep

logger = logging.getLogger(__name__)


class DCAOrchestrator:
    """
    Runs recurring bot actions with shared infrastructure

    Features:
    - Concurrent execution across bots, one action at a time per bot
    - Error isolation (one bot failing doesn't stop the others)
    - Periodic orphan repair and fill polling
    """

    def __init__(self, context: BotContext, queue: ActionQueue, settings: SchedulerSettings):
        """
        Args:
            context: Shared bot collaborators
            queue: Delayed action queue
            settings: Poll, repair and fill cadences
        """
        self.context = context
        self.queue = queue
        self.settings = settings

        if context.fill_reporter is None:
            context.fill_reporter = FillReporter(context)
        self.fill_reporter: FillReporter = context.fill_reporter

        self.scheduler = ActionScheduler(queue, context.notifier)
        self.action_job = ActionJob(context, self.scheduler)
        self.repair_sweep = RepairSweep(context, self.scheduler)
        self.lifecycle = BotLifecycle(context, self.scheduler)

        self.running = False
        self.last_repair_at: Optional[datetime] = None
        self.last_fill_poll_at: Optional[datetime] = None

        logger.info("🚀 DCA Orchestrator initialized")

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals gracefully"""
        logger.info(f"🛑 Received signal {signum}. Shutting down gracefully...")
        self.running = False

    def install_signal_handlers(self):
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    async def _run_task_safe(self, task: ActionTask) -> Dict[str, Any]:
        """
        Run one claimed task with error isolation

        Returns:
            Outcome dict with bot_id, status and optional error
        """
        outcome = {'bot_id': task.bot_id, 'task_id': task.task_id}
        try:
            result = await self.action_job.run_due_action(task.bot_id)
        except ActionAlreadyScheduledError as e:
            logger.error(f"❌ {e}")
            self.context.telemetry.record_error('double_schedule', str(e), {'bot_id': task.bot_id})
            return {**outcome, 'status': 'rejected', 'error': str(e)}
        except DCABotError as e:
            logger.error(f"❌ Action of bot {task.bot_id} failed: {e}")
            return {**outcome, 'status': 'failed', 'error': str(e)}
        except Exception as e:
            logger.exception(f"❌ Fatal error running action of bot {task.bot_id}: {e}")
            self.context.telemetry.record_error('action_crash', str(e), {'bot_id': task.bot_id})
            return {**outcome, 'status': 'crashed', 'error': str(e)}

        if result is None:
            return {**outcome, 'status': 'skipped'}
        if result.failure():
            return {**outcome, 'status': 'failed', 'error': result.message}
        if result.break_reschedule:
            return {**outcome, 'status': 'paused'}
        return {**outcome, 'status': 'executed'}

    async def run_due_actions(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Claim every due task and run them concurrently"""
        now = now or self.context.now()
        tasks = self.queue.claim_due(now)
        if not tasks:
            return []

        logger.info(f"⏰ {len(tasks)} due action(s) at {now.isoformat()}")
        outcomes = await asyncio.gather(*(self._run_task_safe(task) for task in tasks))

        counts: Dict[str, int] = {}
        for outcome in outcomes:
            counts[outcome['status']] = counts.get(outcome['status'], 0) + 1
        logger.info("📊 Actions: " + ', '.join(f"{k}={v}" for k, v in sorted(counts.items())))
        return list(outcomes)

    def _is_due(self, last_run: Optional[datetime], every: timedelta, now: datetime) -> bool:
        return last_run is None or now - last_run >= every

    async def poll_fills_if_due(self, now: datetime) -> int:
        if not self._is_due(self.last_fill_poll_at, timedelta(seconds=self.settings.fill_poll_seconds), now):
            return 0
        self.last_fill_poll_at = now
        return len(await self.fill_reporter.poll())

    def repair_if_due(self, now: datetime) -> Optional[Dict[str, Any]]:
        every = timedelta(minutes=self.settings.repair_interval_minutes)
        if not self._is_due(self.last_repair_at, every, now):
            return None
        self.last_repair_at = now
        summary = self.repair_sweep.repair_orphaned_bots()
        if summary['found']:
            logger.info(f"🔧 Repair sweep: {summary['repaired']}/{summary['found']} rescheduled")
        return summary

    async def tick(self) -> Dict[str, Any]:
        """One pass of the main loop"""
        now = self.context.now()
        outcomes = await self.run_due_actions(now)
        filled = await self.poll_fills_if_due(now)
        repair = self.repair_if_due(now)
        self.context.telemetry.persist()
        return {'actions': outcomes, 'filled': filled, 'repair': repair}

    async def start(self):
        """Run the scheduler loop until stopped"""
        logger.info(f"🎯 Starting DCA scheduler (poll every {self.settings.poll_seconds}s, "
                    f"repair every {self.settings.repair_interval_minutes} min)")
        logger.info("Press Ctrl+C to stop gracefully...")

        self.running = True
        try:
            while self.running:
                try:
                    await self.tick()
                except Exception as e:
                    logger.error(f"❌ Scheduler error: {e}")
                await asyncio.sleep(self.settings.poll_seconds)
        finally:
            self.context.telemetry.persist()
            logger.info("👋 DCA scheduler stopped.")

    def stop(self):
        self.running = False
