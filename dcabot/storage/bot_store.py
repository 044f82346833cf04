#!/usr/bin/env python3
"""
Bot Store

Persistence interface for bots, their transactions and open orders, plus
the in-memory implementation used for tests and dry runs. Stores hand out
fresh model instances on every read, so callers must ``save_bot`` after
mutating one.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from ..models import Bot, BotStatus, OpenOrder, Transaction, TransactionStatus

logger = logging.getLogger(__name__)


class BotStore(ABC):
    """Abstract storage of bots, transactions and open orders"""

    @abstractmethod
    def get_bot(self, bot_id: str) -> Optional[Bot]:
        pass

    @abstractmethod
    def save_bot(self, bot: Bot) -> Bot:
        pass

    @abstractmethod
    def list_bots(self, statuses: Optional[Iterable[BotStatus]] = None) -> List[Bot]:
        """List bots, optionally restricted to the given statuses"""
        pass

    @abstractmethod
    def add_transaction(self, transaction: Transaction) -> Transaction:
        pass

    @abstractmethod
    def update_transaction(self, transaction: Transaction) -> Transaction:
        pass

    @abstractmethod
    def list_transactions(self, bot_id: str,
                          status: Optional[TransactionStatus] = None) -> List[Transaction]:
        """Transactions of a bot ordered by creation time"""
        pass

    @abstractmethod
    def add_open_order(self, order: OpenOrder) -> OpenOrder:
        pass

    @abstractmethod
    def remove_open_order(self, order_id: str) -> bool:
        """Forget an order once its fill was recorded; False if it was unknown"""
        pass

    @abstractmethod
    def list_open_orders(self, bot_id: Optional[str] = None) -> List[OpenOrder]:
        """Open orders, optionally of one bot, oldest first"""
        pass


class InMemoryBotStore(BotStore):
    """Thread-safe dict-backed store"""

    def __init__(self):
        self._lock = threading.Lock()
        self._bots: Dict[str, dict] = {}
        self._transactions: Dict[str, dict] = {}
        self._open_orders: Dict[str, dict] = {}
        logger.info("Creating in-memory bot store")

    def get_bot(self, bot_id: str) -> Optional[Bot]:
        with self._lock:
            data = self._bots.get(bot_id)
        return Bot.from_dict(data) if data else None

    def save_bot(self, bot: Bot) -> Bot:
        with self._lock:
            self._bots[bot.id] = bot.to_dict()
        return bot

    def list_bots(self, statuses: Optional[Iterable[BotStatus]] = None) -> List[Bot]:
        wanted = {BotStatus(s).value for s in statuses} if statuses is not None else None
        with self._lock:
            rows = list(self._bots.values())
        return [Bot.from_dict(row) for row in rows
                if wanted is None or row['status'] in wanted]

    def add_transaction(self, transaction: Transaction) -> Transaction:
        with self._lock:
            self._transactions[transaction.id] = transaction.to_dict()
        return transaction

    def update_transaction(self, transaction: Transaction) -> Transaction:
        return self.add_transaction(transaction)

    def list_transactions(self, bot_id: str,
                          status: Optional[TransactionStatus] = None) -> List[Transaction]:
        with self._lock:
            rows = [row for row in self._transactions.values() if row['bot_id'] == bot_id]
        transactions = [Transaction.from_dict(row) for row in rows]
        if status is not None:
            transactions = [t for t in transactions if t.status == status]
        return sorted(transactions, key=lambda t: t.created_at)

    def add_open_order(self, order: OpenOrder) -> OpenOrder:
        with self._lock:
            self._open_orders[order.order_id] = order.to_dict()
        return order

    def remove_open_order(self, order_id: str) -> bool:
        with self._lock:
            return self._open_orders.pop(order_id, None) is not None

    def list_open_orders(self, bot_id: Optional[str] = None) -> List[OpenOrder]:
        with self._lock:
            rows = [row for row in self._open_orders.values()
                    if bot_id is None or row['bot_id'] == bot_id]
        return sorted((OpenOrder.from_dict(row) for row in rows), key=lambda o: o.submitted_at)
