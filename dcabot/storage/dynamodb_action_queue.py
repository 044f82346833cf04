#!/usr/bin/env python3
"""
DynamoDB Action Queue

Persistent delayed-task queue. One item per bot (hash key ``bot_id``), so
enqueueing overwrites any previous task of the same bot. Claiming deletes the
item conditionally on its task id, which makes concurrent runners claim each
task at most once.
"""

import logging
import os
from datetime import datetime, timezone
from typing import List, Optional

from boto3.dynamodb.conditions import Attr

from ..scheduler.action_queue import ActionQueue, ActionTask
from .dynamodb_base import DynamoDBBase

logger = logging.getLogger(__name__)


class DynamoDBActionQueue(DynamoDBBase, ActionQueue):
    """DynamoDB-backed action queue"""

    def __init__(self, table_name: str = None, region_name: str = None, endpoint_url: str = None):
        super().__init__(region_name=region_name, endpoint_url=endpoint_url)
        self.table_name = table_name or os.getenv('DCABOT_ACTION_JOBS_TABLE', 'dcabot-action-jobs')
        self.table = self.ensure_table(self.table_name, 'bot_id')
        logger.info(f"Connected to DynamoDB action queue {self.table_name} in region {self.region_name}")

    @staticmethod
    def _to_task(item) -> ActionTask:
        return ActionTask(
            bot_id=item['bot_id'],
            run_at=datetime.fromtimestamp(item['run_at_ts'], tz=timezone.utc),
            task_id=item['task_id'],
        )

    def enqueue(self, bot_id: str, run_at: datetime) -> ActionTask:
        task = ActionTask(bot_id=bot_id, run_at=run_at)
        self.put_item(self.table, {
            'bot_id': bot_id,
            'task_id': task.task_id,
            'run_at': run_at.isoformat(),
            'run_at_ts': run_at.timestamp(),
        })
        return task

    def cancel_all(self, bot_id: str) -> int:
        if self.get_item(self.table, {'bot_id': bot_id}) is None:
            return 0
        self.delete_item(self.table, {'bot_id': bot_id})
        return 1

    def next_run_at(self, bot_id: str) -> Optional[datetime]:
        item = self.get_item(self.table, {'bot_id': bot_id})
        return self._to_task(item).run_at if item else None

    def claim_due(self, now: datetime, limit: Optional[int] = None) -> List[ActionTask]:
        items = self.scan_with_filter(self.table, Attr('run_at_ts').lte(now.timestamp()))
        due = sorted((self._to_task(item) for item in items), key=lambda t: t.run_at)
        if limit is not None:
            due = due[:limit]

        claimed = []
        for task in due:
            if self.delete_item(self.table, {'bot_id': task.bot_id},
                                condition=Attr('task_id').eq(task.task_id)):
                claimed.append(task)
            else:
                logger.debug(f"Task {task.task_id} of bot {task.bot_id} claimed elsewhere")
        return claimed

    def pending_tasks(self) -> List[ActionTask]:
        items = self.scan_with_filter(self.table)
        return sorted((self._to_task(item) for item in items), key=lambda t: t.run_at)

    def clear(self) -> int:
        tasks = self.pending_tasks()
        for task in tasks:
            self.delete_item(self.table, {'bot_id': task.bot_id})
        return len(tasks)
