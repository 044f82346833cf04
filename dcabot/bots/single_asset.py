#!/usr/bin/env python3
"""
Single Asset Bot

Buys one base asset with the whole due amount.
"""

from ..models import BotType
from ..result import Result
from .base import RecurringBot


class SingleAssetBot(RecurringBot):
    bot_type = BotType.SINGLE_ASSET

    async def set_order(self, order_amount_in_quote: float) -> Result:
        return await self.order_setter.set_order(self.bot, self.bot.settings.base, order_amount_in_quote)

    async def place_orders(self, quote_amount: float) -> Result:
        return await self.set_order(quote_amount)
