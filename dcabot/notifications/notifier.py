#!/usr/bin/env python3
"""
Bot Notifier Interface

Fire-and-forget notifications about bot activity. The scheduling core never
waits for a notification to be delivered and a delivery failure never affects
a bot's state.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..models import Bot

logger = logging.getLogger(__name__)


def bot_label(bot: Bot) -> str:
    if bot.label:
        return bot.label
    settings = bot.settings
    if bot.is_dual_asset:
        return f"{settings.base0}+{settings.base1}/{settings.quote} ({bot.id[:8]})"
    return f"{settings.base}/{settings.quote} ({bot.id[:8]})"


def market_base(bot: Bot) -> str:
    """Base asset of a single-asset bot, first leg of a dual-asset one"""
    return bot.settings.base or bot.settings.base0


class BotNotifier:
    """Base notifier that only logs"""

    def notify_below_minimum(self, bot: Bot, amount: float, minimum: float, base: Optional[str] = None):
        market = f"{base or market_base(bot)}/{bot.settings.quote}"
        logger.warning(f"⚠️  Bot {bot_label(bot)}: {amount} {bot.settings.quote} of {market} is below "
                       f"the minimum of {minimum} {bot.settings.quote}, buffered for later")

    def notify_error(self, bot: Bot, error: str):
        logger.error(f"❌ Bot {bot_label(bot)} failed: {error}")

    def notify_scheduled(self, bot: Bot, run_at: datetime):
        logger.info(f"⏰ Bot {bot_label(bot)} next action at {run_at.isoformat()}")

    async def drain(self):
        """Wait for notifications still in flight"""


class RecordingNotifier(BotNotifier):
    """Keeps every notification in memory (used by dry runs and tests)"""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def notify_below_minimum(self, bot: Bot, amount: float, minimum: float, base: Optional[str] = None):
        self.events.append(('below_minimum', {'bot_id': bot.id, 'base': base or market_base(bot),
                                              'amount': amount, 'minimum': minimum}))

    def notify_error(self, bot: Bot, error: str):
        self.events.append(('error', {'bot_id': bot.id, 'error': error}))

    def notify_scheduled(self, bot: Bot, run_at: datetime):
        self.events.append(('scheduled', {'bot_id': bot.id, 'run_at': run_at}))

    def of_kind(self, kind: str) -> List[Dict[str, Any]]:
        return [payload for name, payload in self.events if name == kind]
