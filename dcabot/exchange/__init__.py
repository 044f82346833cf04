"""
Exchange capability interface and clients used by the bot executor.
"""

from .base import ExchangeClient, ExchangeRegistry
from .paper import PaperExchange

__all__ = ['ExchangeClient', 'ExchangeRegistry', 'PaperExchange']
