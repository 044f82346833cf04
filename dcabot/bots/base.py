#!/usr/bin/env python3
"""
Recurring Bot Base

Capabilities shared by every bot variant: checkpoint lookup, buffer
accounting, the spend limit and the action entry point. Variants only decide
how a due amount becomes orders.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .. import buffer
from ..context import BotContext
from ..interval_clock import effective_interval_duration, next_interval_checkpoint_at
from ..models import Bot, BotType, OpenOrder, Transaction
from ..result import Result, Success
from .order_setter import OrderSetter

logger = logging.getLogger(__name__)


class RecurringBot(ABC):
    """A bot model bound to the collaborators it needs to act"""

    bot_type: BotType

    def __init__(self, bot: Bot, context: BotContext):
        self.bot = bot
        self.context = context
        self.order_setter = OrderSetter(context)

    @property
    def id(self) -> str:
        return self.bot.id

    def transactions(self) -> List[Transaction]:
        return self.context.store.list_transactions(self.bot.id)

    def open_orders(self) -> List[OpenOrder]:
        return self.context.store.list_open_orders(self.bot.id)

    def next_interval_checkpoint_at(self, now: Optional[datetime] = None) -> datetime:
        now = now or self.context.now()
        started_at = self.bot.started_at or now
        return next_interval_checkpoint_at(started_at, effective_interval_duration(self.bot.settings), now)

    def pending_quote_amount(self, now: Optional[datetime] = None) -> float:
        return buffer.pending_quote_amount(self.bot, self.transactions(), now or self.context.now(),
                                           self.open_orders())

    def set_missed_quote_amount(self, now: Optional[datetime] = None) -> float:
        return buffer.set_missed_quote_amount(self.bot, self.transactions(), now or self.context.now(),
                                              self.open_orders())

    def invested_quote_amount(self) -> float:
        """Filled amounts plus amounts of orders still open on the exchange"""
        executed = sum(t.quote_amount_exec for t in self.transactions() if t.is_executed)
        return executed + sum(o.quote_amount for o in self.open_orders())

    def remaining_quote_amount(self) -> Optional[float]:
        """Quote amount left before the spend limit, None without a limit"""
        limit = self.bot.settings.quote_amount_limit
        if limit is None:
            return None
        return max(limit - self.invested_quote_amount(), 0.0)

    async def execute_action(self) -> Result:
        """
        Buy whatever the buffer says is due

        Returns:
            Result of the order placement; Success with break_reschedule when
            the spend limit has been reached
        """
        remaining = self.remaining_quote_amount()
        if remaining is not None and remaining <= 0:
            logger.info(f"🛑 Bot {self.bot.id} reached its quote amount limit "
                        f"of {self.bot.settings.quote_amount_limit}, not rescheduling")
            return Success(break_reschedule=True)

        amount = self.pending_quote_amount()
        if remaining is not None:
            amount = min(amount, remaining)
        logger.debug(f"Bot {self.bot.id}: pending quote amount {amount}")
        return await self.place_orders(amount)

    @abstractmethod
    async def place_orders(self, quote_amount: float) -> Result:
        """Turn the due quote amount into orders"""
