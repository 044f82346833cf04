#!/usr/bin/env python3
"""
Delayed Action Queue

Boundary to the delayed-task queue that delivers due bot actions. Tasks are
keyed by bot id, so a bot never has more than one outstanding task. A task
stops being "pending" the moment the task runner claims it.
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionTask:
    bot_id: str
    run_at: datetime
    task_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class ActionQueue(ABC):
    """Abstract delayed-task queue"""

    @abstractmethod
    def enqueue(self, bot_id: str, run_at: datetime) -> ActionTask:
        """Register a task for the bot, replacing any task it already has"""
        pass

    @abstractmethod
    def cancel_all(self, bot_id: str) -> int:
        """Drop every outstanding task of the bot, returns how many were dropped"""
        pass

    @abstractmethod
    def next_run_at(self, bot_id: str) -> Optional[datetime]:
        pass

    @abstractmethod
    def claim_due(self, now: datetime, limit: Optional[int] = None) -> List[ActionTask]:
        """Atomically take the tasks whose run_at <= now off the queue"""
        pass

    @abstractmethod
    def pending_tasks(self) -> List[ActionTask]:
        pass

    @abstractmethod
    def clear(self) -> int:
        """Forget every task (what a lost backing store looks like)"""
        pass

    def is_pending(self, bot_id: str) -> bool:
        return self.next_run_at(bot_id) is not None


class InMemoryActionQueue(ActionQueue):
    """Process-local queue; its tasks vanish on restart"""

    def __init__(self):
        self._lock = threading.Lock()
        self._tasks: Dict[str, ActionTask] = {}

    def enqueue(self, bot_id: str, run_at: datetime) -> ActionTask:
        task = ActionTask(bot_id=bot_id, run_at=run_at)
        with self._lock:
            self._tasks[bot_id] = task
        logger.debug(f"Enqueued action for bot {bot_id} at {run_at.isoformat()}")
        return task

    def cancel_all(self, bot_id: str) -> int:
        with self._lock:
            return 1 if self._tasks.pop(bot_id, None) else 0

    def next_run_at(self, bot_id: str) -> Optional[datetime]:
        with self._lock:
            task = self._tasks.get(bot_id)
        return task.run_at if task else None

    def claim_due(self, now: datetime, limit: Optional[int] = None) -> List[ActionTask]:
        with self._lock:
            due = sorted((t for t in self._tasks.values() if t.run_at <= now),
                         key=lambda t: t.run_at)
            if limit is not None:
                due = due[:limit]
            for task in due:
                del self._tasks[task.bot_id]
        return due

    def pending_tasks(self) -> List[ActionTask]:
        with self._lock:
            return sorted(self._tasks.values(), key=lambda t: t.run_at)

    def clear(self) -> int:
        with self._lock:
            count = len(self._tasks)
            self._tasks.clear()
        return count
