#!/usr/bin/env python3
"""
Ticker Registry

Read-only exchange limits per (exchange, base, quote). The registry is
populated from the ``tickers`` section of bot_config.json; synchronising it
with the exchanges is handled elsewhere.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ticker:
    exchange: str
    base: str
    quote: str
    minimum_quote_size: float
    minimum_base_size: float = 0.0
    price_decimals: int = 8
    base_decimals: int = 8

    @property
    def symbol(self) -> str:
        return f"{self.base}/{self.quote}"


class TickerRegistry:
    """In-process lookup of ticker limits"""

    def __init__(self, tickers: Optional[List[Ticker]] = None):
        self._tickers: Dict[Tuple[str, str, str], Ticker] = {}
        for ticker in tickers or []:
            self.add(ticker)

    @staticmethod
    def _key(exchange: str, base: str, quote: str) -> Tuple[str, str, str]:
        return exchange.lower(), base.upper(), quote.upper()

    def add(self, ticker: Ticker):
        self._tickers[self._key(ticker.exchange, ticker.base, ticker.quote)] = ticker

    def get(self, exchange: str, base: str, quote: str) -> Ticker:
        try:
            return self._tickers[self._key(exchange, base, quote)]
        except KeyError:
            raise ConfigurationError(f"No ticker {base}/{quote} configured on {exchange}")

    def minimum_quote_size(self, exchange: str, base: str, quote: str) -> float:
        return self.get(exchange, base, quote).minimum_quote_size

    def __len__(self):
        return len(self._tickers)

    @classmethod
    def from_config(cls, entries: List[Dict[str, Any]]) -> 'TickerRegistry':
        """
        Build a registry from configuration entries

        Args:
            entries: List of dicts with exchange, base, quote, minimum_quote_size
                     and optional minimum_base_size / price_decimals / base_decimals

        Returns:
            TickerRegistry instance
        """
        registry = cls()
        for entry in entries:
            try:
                registry.add(Ticker(
                    exchange=entry['exchange'],
                    base=entry['base'],
                    quote=entry['quote'],
                    minimum_quote_size=float(entry['minimum_quote_size']),
                    minimum_base_size=float(entry.get('minimum_base_size', 0.0)),
                    price_decimals=int(entry.get('price_decimals', 8)),
                    base_decimals=int(entry.get('base_decimals', 8)),
                ))
            except KeyError as e:
                raise ConfigurationError(f"Ticker entry missing field {e}: {entry}")
        logger.info(f"✅ Loaded {len(registry)} tickers")
        return registry
