#!/usr/bin/env python3
"""
DynamoDB Bot Store

Persists bots, transactions and open orders in three DynamoDB tables so bot
state and orders awaiting their fill survive process restarts independently
of the action queue.
"""

import logging
import os
from typing import Iterable, List, Optional

from boto3.dynamodb.conditions import Attr

from ..models import Bot, BotStatus, OpenOrder, Transaction, TransactionStatus
from .bot_store import BotStore
from .dynamodb_base import DynamoDBBase

logger = logging.getLogger(__name__)


class DynamoDBBotStore(DynamoDBBase, BotStore):
    """DynamoDB-backed bot store"""

    def __init__(self, bots_table: str = None, transactions_table: str = None,
                 open_orders_table: str = None, region_name: str = None,
                 endpoint_url: str = None):
        """
        Args:
            bots_table: Bots table name (defaults to env var DCABOT_BOTS_TABLE)
            transactions_table: Transactions table name (defaults to env var DCABOT_TRANSACTIONS_TABLE)
            open_orders_table: Open orders table name (defaults to env var DCABOT_OPEN_ORDERS_TABLE)
            region_name: AWS region
            endpoint_url: Optional DynamoDB endpoint
        """
        super().__init__(region_name=region_name, endpoint_url=endpoint_url)
        self.bots_table_name = bots_table or os.getenv('DCABOT_BOTS_TABLE', 'dcabot-bots')
        self.transactions_table_name = transactions_table or os.getenv(
            'DCABOT_TRANSACTIONS_TABLE', 'dcabot-transactions')
        self.open_orders_table_name = open_orders_table or os.getenv(
            'DCABOT_OPEN_ORDERS_TABLE', 'dcabot-open-orders')

        self.bots_table = self.ensure_table(self.bots_table_name, 'id')
        self.transactions_table = self.ensure_table(self.transactions_table_name, 'id')
        self.open_orders_table = self.ensure_table(self.open_orders_table_name, 'order_id')
        logger.info(f"Connected to DynamoDB bot store ({self.bots_table_name}, "
                    f"{self.transactions_table_name}, {self.open_orders_table_name}) in region {self.region_name}")

    def get_bot(self, bot_id: str) -> Optional[Bot]:
        item = self.get_item(self.bots_table, {'id': bot_id})
        return Bot.from_dict(item) if item else None

    def save_bot(self, bot: Bot) -> Bot:
        self.put_item(self.bots_table, bot.to_dict())
        return bot

    def list_bots(self, statuses: Optional[Iterable[BotStatus]] = None) -> List[Bot]:
        filter_expression = None
        if statuses is not None:
            filter_expression = Attr('status').is_in([BotStatus(s).value for s in statuses])
        items = self.scan_with_filter(self.bots_table, filter_expression)
        return [Bot.from_dict(item) for item in items]

    def add_transaction(self, transaction: Transaction) -> Transaction:
        self.put_item(self.transactions_table, transaction.to_dict())
        return transaction

    def update_transaction(self, transaction: Transaction) -> Transaction:
        return self.add_transaction(transaction)

    def list_transactions(self, bot_id: str,
                          status: Optional[TransactionStatus] = None) -> List[Transaction]:
        filter_expression = Attr('bot_id').eq(bot_id)
        if status is not None:
            filter_expression = filter_expression & Attr('status').eq(status.value)
        items = self.scan_with_filter(self.transactions_table, filter_expression)
        return sorted((Transaction.from_dict(item) for item in items), key=lambda t: t.created_at)

    def add_open_order(self, order: OpenOrder) -> OpenOrder:
        self.put_item(self.open_orders_table, order.to_dict())
        return order

    def remove_open_order(self, order_id: str) -> bool:
        return self.delete_item(self.open_orders_table, {'order_id': order_id},
                                condition=Attr('order_id').exists())

    def list_open_orders(self, bot_id: Optional[str] = None) -> List[OpenOrder]:
        filter_expression = Attr('bot_id').eq(bot_id) if bot_id is not None else None
        items = self.scan_with_filter(self.open_orders_table, filter_expression)
        return sorted((OpenOrder.from_dict(item) for item in items), key=lambda o: o.submitted_at)
