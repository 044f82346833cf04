"""
Recurring Action Scheduler Module

Delivers due bot actions, keeps exactly one outstanding action task per
active bot and repairs bots whose task was lost. Submodules are imported
directly (``dcabot.scheduler.action_job`` etc.) since the storage backends
depend on the queue interface defined here.
"""

from .action_queue import ActionQueue, ActionTask, InMemoryActionQueue

__all__ = [
    'ActionQueue',
    'ActionTask',
    'InMemoryActionQueue',
]
