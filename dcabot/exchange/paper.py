#!/usr/bin/env python3
"""
Paper Exchange

Simulated exchange for dry runs: market orders fill at the configured last
price, limit orders fill once the price reaches the limit.
"""

import asyncio
import itertools
import logging
from typing import Any, Dict, Optional

from ..result import Failure, Result, Success
from .base import ExchangeClient

logger = logging.getLogger(__name__)


class PaperExchange(ExchangeClient):
    """In-memory exchange simulation"""

    def __init__(self, name: str, prices: Optional[Dict[str, float]] = None,
                 balances: Optional[Dict[str, float]] = None):
        """
        Args:
            name: Exchange name bots refer to
            prices: Last price per "BASE/QUOTE" symbol
            balances: Starting balance per asset
        """
        super().__init__(name)
        self.prices = {k.upper(): float(v) for k, v in (prices or {}).items()}
        self.balances = {k.upper(): float(v) for k, v in (balances or {}).items()}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self._id_seq = itertools.count(1)

    def set_price(self, base: str, quote: str, price: float):
        self.prices[f"{base}/{quote}".upper()] = float(price)

    async def get_last_price(self, base: str, quote: str) -> float:
        await asyncio.sleep(0)
        symbol = f"{base}/{quote}".upper()
        if symbol not in self.prices:
            raise KeyError(f"No price for {symbol} on {self.name}")
        return self.prices[symbol]

    async def get_balances(self) -> Dict[str, float]:
        await asyncio.sleep(0)
        return dict(self.balances)

    def _new_order_id(self) -> str:
        return f"{self.name}-{next(self._id_seq)}"

    def _settle(self, order: Dict[str, Any], price: float):
        if order['base_amount']:
            base_amount = order['base_amount']
            quote_amount = base_amount * price
        else:
            quote_amount = order['quote_amount']
            base_amount = quote_amount / price
        order.update(status='closed', price=price, amount_exec=base_amount,
                     quote_amount_exec=quote_amount)
        self.balances[order['quote']] = self.balances.get(order['quote'], 0.0) - quote_amount
        self.balances[order['base']] = self.balances.get(order['base'], 0.0) + base_amount

    async def market_buy(self, base: str, quote: str, quote_amount: float) -> Result:
        try:
            price = await self.get_last_price(base, quote)
        except KeyError as e:
            return Failure(str(e))

        order_id = self._new_order_id()
        order = {'base': base.upper(), 'quote': quote.upper(), 'type': 'market',
                 'quote_amount': float(quote_amount), 'base_amount': None,
                 'status': 'open', 'amount_exec': 0.0, 'quote_amount_exec': 0.0, 'price': None}
        self._settle(order, price)
        self.orders[order_id] = order
        logger.info(f"📝 Paper market buy {order_id}: {quote_amount} {quote} of {base} @ {price}")
        return Success({'order_id': order_id})

    async def limit_buy(self, base: str, quote: str, price: float, base_amount: float) -> Result:
        await asyncio.sleep(0)
        order_id = self._new_order_id()
        self.orders[order_id] = {
            'base': base.upper(), 'quote': quote.upper(), 'type': 'limit',
            'limit_price': float(price), 'quote_amount': float(price) * float(base_amount),
            'base_amount': float(base_amount), 'status': 'open',
            'amount_exec': 0.0, 'quote_amount_exec': 0.0, 'price': None,
        }
        logger.info(f"📝 Paper limit buy {order_id}: {base_amount} {base} @ {price} {quote}")
        return Success({'order_id': order_id})

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        await asyncio.sleep(0)
        order = self.orders[order_id]
        if order['status'] == 'open' and order['type'] == 'limit':
            last_price = self.prices.get(f"{order['base']}/{order['quote']}")
            if last_price is not None and last_price <= order['limit_price']:
                self._settle(order, order['limit_price'])
        return dict(order)
