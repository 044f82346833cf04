#!/usr/bin/env python3
"""
Dual Asset Bot

Splits each due amount between two base assets so that the value the bot
holds drifts toward ``allocation0`` / ``1 - allocation0``. Each leg follows
the same minimum-size policy as a single-asset order.
"""

import logging
from typing import Dict, List, Tuple

from ..buffer import AMOUNT_PRECISION
from ..models import BotType
from ..result import Failure, Result, Success
from .base import RecurringBot

logger = logging.getLogger(__name__)


def split_order_amounts(total: float, allocation0: float, held_value0: float,
                        held_value1: float) -> Tuple[float, float]:
    """
    Rebalancing split of a purchase between two assets

    Args:
        total: Quote amount to spend
        allocation0: Target share of the first asset (0..1)
        held_value0: Quote value already held in the first asset
        held_value1: Quote value already held in the second asset

    Returns:
        (amount0, amount1) summing to total
    """
    target_total = held_value0 + held_value1 + total
    wanted0 = max(0.0, target_total * allocation0 - held_value0)
    amount0 = round(min(wanted0, total), AMOUNT_PRECISION)
    amount1 = round(total - amount0, AMOUNT_PRECISION)
    return amount0, amount1


class DualAssetBot(RecurringBot):
    bot_type = BotType.DUAL_ASSET

    def metrics(self) -> Dict[str, float]:
        """Base amounts bought so far per leg"""
        settings = self.bot.settings
        totals = {'total_base0_amount': 0.0, 'total_base1_amount': 0.0}
        for transaction in self.transactions():
            if not transaction.is_executed:
                continue
            if transaction.base == settings.base0:
                totals['total_base0_amount'] += transaction.amount_exec
            elif transaction.base == settings.base1:
                totals['total_base1_amount'] += transaction.amount_exec
        return totals

    async def set_orders(self, total_orders_amount_in_quote: float) -> Result:
        if total_orders_amount_in_quote <= 0:
            return Success()

        settings = self.bot.settings
        exchange = self.order_setter.exchange_for(self.bot)
        try:
            price0 = await exchange.get_last_price(settings.base0, settings.quote)
            price1 = await exchange.get_last_price(settings.base1, settings.quote)
        except Exception as e:
            logger.error(f"❌ Bot {self.bot.id}: price lookup failed: {e}")
            return Failure(str(e))

        metrics = self.metrics()
        amount0, amount1 = split_order_amounts(
            total_orders_amount_in_quote,
            settings.allocation0,
            metrics['total_base0_amount'] * price0,
            metrics['total_base1_amount'] * price1,
        )
        logger.info(f"🔧 Bot {self.bot.id}: split {total_orders_amount_in_quote} {settings.quote} into "
                    f"{amount0} {settings.base0} + {amount1} {settings.base1}")

        results: List[Result] = [
            await self.order_setter.set_order(self.bot, settings.base0, amount0),
            await self.order_setter.set_order(self.bot, settings.base1, amount1),
        ]

        order_ids = [oid for r in results for oid in r.data.get('order_ids', [])]
        errors = [e for r in results if r.failure() for e in r.errors]
        if errors:
            return Failure(*errors, data={'order_ids': order_ids})
        return Success({'order_ids': order_ids})

    async def place_orders(self, quote_amount: float) -> Result:
        return await self.set_orders(quote_amount)
