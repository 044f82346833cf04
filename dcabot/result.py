#!/usr/bin/env python3
"""
Result Types

Explicit success/failure values returned by the order executor and the action
job. The task runner maps a Failure onto its own retry handling.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class Result(ABC):
    """Base result"""

    data: Dict[str, Any]
    errors: List[str]
    break_reschedule: bool

    @abstractmethod
    def success(self) -> bool:
        pass

    def failure(self) -> bool:
        return not self.success()


class Success(Result):
    """Successful outcome, optionally asking the caller not to reschedule"""

    def __init__(self, data: Optional[Dict[str, Any]] = None, break_reschedule: bool = False):
        self.data = dict(data or {})
        self.errors = []
        self.break_reschedule = break_reschedule

    def success(self) -> bool:
        return True

    def __repr__(self):
        return f"Success(data={self.data!r}, break_reschedule={self.break_reschedule})"


class Failure(Result):
    """Failed outcome carrying one or more error messages"""

    def __init__(self, *errors: str, data: Optional[Dict[str, Any]] = None):
        self.errors = [str(e) for e in errors if e]
        self.data = dict(data or {})
        self.break_reschedule = False

    @property
    def message(self) -> str:
        return ', '.join(self.errors) or 'Unknown error'

    def success(self) -> bool:
        return False

    def __repr__(self):
        return f"Failure({self.message!r})"
