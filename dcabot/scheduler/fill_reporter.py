#!/usr/bin/env python3
"""
Fill Reporter

Follows the open orders kept in the bot store until the exchange reports
them finished and then records a transaction with the executed amounts.
Open orders live in the store, so a restarted process picks up the orders
its predecessor submitted. Recorded transactions carry the submission time
of their order, the moment the amount started to count against the buffer.
"""

import logging
from typing import List

from ..context import BotContext
from ..models import OpenOrder, Transaction, TransactionStatus

logger = logging.getLogger(__name__)


class FillReporter:
    """Polls the exchanges for the state of open orders"""

    def __init__(self, context: BotContext):
        self.context = context

    @property
    def pending_orders(self) -> List[OpenOrder]:
        return self.context.store.list_open_orders()

    def _record(self, order: OpenOrder, status: str, state: dict) -> Transaction:
        transaction = Transaction(
            bot_id=order.bot_id,
            status=TransactionStatus.CLOSED if status == 'closed' else TransactionStatus.FAILED,
            quote_amount=order.quote_amount,
            base=order.base,
            quote=order.quote,
            external_id=order.order_id,
            created_at=order.submitted_at,
        )
        if transaction.status == TransactionStatus.CLOSED:
            transaction.amount_exec = float(state.get('amount_exec') or 0.0)
            transaction.quote_amount_exec = float(state.get('quote_amount_exec') or 0.0)
            transaction.price = state.get('price')
        return transaction

    async def poll(self) -> List[Transaction]:
        """
        Ask the exchanges about every open order

        Returns:
            Transactions recorded for orders that finished during this poll
        """
        recorded = []
        for order in self.pending_orders:
            exchange = self.context.exchanges.get(order.exchange)
            if exchange is None:
                logger.warning(f"⚠️  Exchange {order.exchange} of order {order.order_id} is not registered")
                continue

            try:
                state = await exchange.get_order(order.order_id)
            except Exception as e:
                logger.warning(f"⚠️  Could not fetch order {order.order_id}: {e}")
                continue

            status = state.get('status', 'open')
            if status == 'open':
                continue

            transaction = self._record(order, status, state)
            self.context.store.add_transaction(transaction)
            self.context.store.remove_open_order(order.order_id)
            recorded.append(transaction)
            self.context.telemetry.increment(f"orders.{transaction.status.value}")

            logger.info(f"✅ Order {order.order_id} of bot {order.bot_id} {status}: "
                        f"{transaction.amount_exec} {transaction.base} for "
                        f"{transaction.quote_amount_exec} {transaction.quote}")
        return recorded
