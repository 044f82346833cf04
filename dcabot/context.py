#!/usr/bin/env python3
"""
Bot Context

The collaborators a bot action needs, bundled once at startup and passed
explicitly to every component.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .exchange import ExchangeRegistry
from .models import utc_now
from .notifications import BotNotifier
from .storage.bot_store import BotStore
from .telemetry import TelemetryCollector
from .tickers import TickerRegistry


class BotLocks:
    """One asyncio.Lock per bot id; actions and lifecycle changes of a bot run one at a time"""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def __call__(self, bot_id: str) -> asyncio.Lock:
        return self._locks.setdefault(bot_id, asyncio.Lock())


@dataclass
class BotContext:
    store: BotStore
    exchanges: ExchangeRegistry
    tickers: TickerRegistry
    notifier: BotNotifier = field(default_factory=BotNotifier)
    telemetry: TelemetryCollector = field(default_factory=TelemetryCollector)
    # FillReporter; set after construction because the reporter needs the context
    fill_reporter: Optional[Any] = None
    clock: Callable[[], datetime] = utc_now
    locks: BotLocks = field(default_factory=BotLocks)

    def now(self) -> datetime:
        return self.clock()
