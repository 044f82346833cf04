#!/usr/bin/env python3
"""
Buffer Accumulator

Tracks the quote amount a bot still owes across interval boundaries. Every
reached checkpoint adds one interval's quote amount, executed fills and orders
still resting on the exchange consume it, skipped (below minimum) intervals
leave it untouched so the amount carries forward until it is large enough to
trade. Orders count from their submission time, and so do the transactions
recorded when they fill.

The accounting window starts at the bot's start time (inclusive) or, after a
settings change, right after the moment the pending amount was snapshotted
into ``missed_quote_amount`` (exclusive).
"""

import logging
from datetime import datetime
from typing import Iterable, Optional, Tuple

from .interval_clock import (
    checkpoints_between,
    effective_interval_duration,
    effective_quote_amount,
    last_interval_checkpoint_at,
)
from .models import Bot, OpenOrder, Transaction

logger = logging.getLogger(__name__)

AMOUNT_PRECISION = 8


def _accounting_window(bot: Bot) -> Tuple[datetime, bool]:
    """Return the window start and whether it is inclusive"""
    anchor = bot.buffer_anchor_at
    if anchor is None or anchor < bot.started_at:
        return bot.started_at, True
    return anchor, False


def _in_window(moment: datetime, since: datetime, inclusive: bool) -> bool:
    return moment > since or (inclusive and moment == since)


def executed_quote_amount(bot: Bot, transactions: Iterable[Transaction],
                          since: datetime, inclusive: bool = True) -> float:
    """Sum of filled quote amounts of the bot's executed transactions since a moment"""
    total = 0.0
    for transaction in transactions:
        if transaction.bot_id != bot.id or not transaction.is_executed:
            continue
        if _in_window(transaction.created_at, since, inclusive):
            total += transaction.quote_amount_exec
    return total


def open_quote_amount(bot: Bot, open_orders: Iterable[OpenOrder],
                      since: datetime, inclusive: bool = True) -> float:
    """Intended quote amounts of the bot's unfilled orders submitted since a moment"""
    return sum(order.quote_amount for order in open_orders
               if order.bot_id == bot.id and _in_window(order.submitted_at, since, inclusive))


def due_checkpoints(bot: Bot, reference_time: datetime) -> int:
    """Checkpoints reached inside the current accounting window"""
    since, inclusive = _accounting_window(bot)
    span = effective_interval_duration(bot.settings)
    count = checkpoints_between(bot.started_at, span, since, reference_time)
    if not inclusive and count and last_interval_checkpoint_at(bot.started_at, span, since) == since:
        count -= 1
    return count


def pending_quote_amount(bot: Bot, transactions: Iterable[Transaction],
                         reference_time: datetime,
                         open_orders: Optional[Iterable[OpenOrder]] = None) -> float:
    """
    Quote amount due but not yet executed

    Args:
        bot: Bot whose buffer is computed
        transactions: Transactions of the bot (other bots' rows are ignored)
        reference_time: Moment of the calculation
        open_orders: Unfilled orders of the bot

    Returns:
        missed amount + interval amount per reached checkpoint - executed fills
        - open orders, never negative
    """
    if bot.started_at is None:
        return round(bot.missed_quote_amount, AMOUNT_PRECISION)

    since, inclusive = _accounting_window(bot)
    accrued = effective_quote_amount(bot.settings) * due_checkpoints(bot, reference_time)
    executed = executed_quote_amount(bot, transactions, since, inclusive)
    resting = open_quote_amount(bot, open_orders or (), since, inclusive)
    pending = bot.missed_quote_amount + accrued - executed - resting
    return round(max(pending, 0.0), AMOUNT_PRECISION)


def set_missed_quote_amount(bot: Bot, transactions: Iterable[Transaction],
                            reference_time: datetime,
                            open_orders: Optional[Iterable[OpenOrder]] = None) -> float:
    """
    Snapshot the pending amount into ``missed_quote_amount``

    Must run before any change to the inputs of the calculation (quote amount,
    interval, smart intervals) so the accumulated buffer survives the change.
    """
    transactions = list(transactions)
    missed = pending_quote_amount(bot, transactions, reference_time, open_orders)
    bot.missed_quote_amount = missed
    bot.buffer_anchor_at = reference_time
    logger.debug(f"Bot {bot.id}: missed quote amount set to {missed}")
    return missed
