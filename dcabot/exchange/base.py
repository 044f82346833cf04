#!/usr/bin/env python3
"""
Exchange Capability Interface

The scheduling core only talks to exchanges through this narrow async
interface. Wire clients for concrete exchanges implement it outside of this
package; ``PaperExchange`` is the in-process simulation.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..result import Result

logger = logging.getLogger(__name__)


class ExchangeClient(ABC):
    """Abstract async exchange client"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def market_buy(self, base: str, quote: str, quote_amount: float) -> Result:
        """
        Submit a market buy spending ``quote_amount`` of the quote asset

        Returns:
            Success with ``order_id`` in data, or Failure
        """

    @abstractmethod
    async def limit_buy(self, base: str, quote: str, price: float, base_amount: float) -> Result:
        """Submit a limit buy of ``base_amount`` at ``price``"""

    @abstractmethod
    async def get_balances(self) -> Dict[str, float]:
        """Held amount per asset"""

    @abstractmethod
    async def get_last_price(self, base: str, quote: str) -> float:
        """Last traded price of base in quote"""

    @abstractmethod
    async def get_order(self, order_id: str) -> Dict[str, Any]:
        """
        Order state as a dict with ``status`` ('open', 'closed', 'failed'),
        ``amount_exec``, ``quote_amount_exec`` and ``price``
        """


class ExchangeRegistry:
    """Maps exchange names stored on bots to client instances"""

    def __init__(self):
        self._clients: Dict[str, ExchangeClient] = {}

    def register(self, client: ExchangeClient):
        self._clients[client.name.lower()] = client
        logger.info(f"🔌 Exchange client registered: {client.name}")

    def get(self, name: Optional[str]) -> Optional[ExchangeClient]:
        if not name:
            return None
        return self._clients.get(name.lower())

    def has(self, name: Optional[str]) -> bool:
        return self.get(name) is not None

    def names(self):
        return sorted(self._clients)
