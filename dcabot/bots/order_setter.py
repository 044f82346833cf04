#!/usr/bin/env python3
"""
Order Setter

Turns a quote amount into either a skipped transaction (below the exchange
minimum) or an exchange order. Accepted orders are remembered as open orders
until the fill reporter sees them finish. Shared by every bot variant.
"""

import logging
from typing import Optional

from ..context import BotContext
from ..errors import MissingExchangeError
from ..exchange import ExchangeClient
from ..models import Bot, OpenOrder, Transaction, TransactionStatus
from ..result import Failure, Result, Success
from ..tickers import Ticker

logger = logging.getLogger(__name__)


class OrderSetter:
    """Places a single purchase for a bot"""

    def __init__(self, context: BotContext):
        self.context = context

    def exchange_for(self, bot: Bot) -> ExchangeClient:
        exchange = self.context.exchanges.get(bot.exchange)
        if exchange is None:
            raise MissingExchangeError(f"Bot {bot.id} has no usable exchange ({bot.exchange!r})")
        return exchange

    def _skip(self, bot: Bot, ticker: Ticker, amount: float) -> Result:
        transaction = Transaction(
            bot_id=bot.id,
            status=TransactionStatus.SKIPPED,
            quote_amount=amount,
            base=ticker.base,
            quote=ticker.quote,
            created_at=self.context.now(),
        )
        self.context.store.add_transaction(transaction)
        try:
            self.context.notifier.notify_below_minimum(bot, amount, ticker.minimum_quote_size, ticker.base)
        except Exception as e:
            logger.warning(f"⚠️  Below-minimum notification for bot {bot.id} failed: {e}")
        self.context.telemetry.increment('orders.skipped')
        logger.info(f"⏭️  Bot {bot.id}: {amount} {ticker.quote} below minimum "
                    f"{ticker.minimum_quote_size}, skipped")
        return Success({'skipped_transaction_id': transaction.id})

    async def _limit_price(self, exchange: ExchangeClient, bot: Bot, ticker: Ticker) -> float:
        last_price = await exchange.get_last_price(ticker.base, ticker.quote)
        distance = bot.settings.limit_order_pcnt_distance / 100.0
        return round(last_price * (1 - distance), ticker.price_decimals)

    async def set_order(self, bot: Bot, base: str, order_amount_in_quote: float) -> Result:
        """
        Place one purchase of ``base`` for the bot

        Args:
            bot: Bot placing the order
            base: Asset to buy
            order_amount_in_quote: Quote amount to spend

        Returns:
            Success (also when skipped or when there is nothing to buy) or the
            Failure reported by the exchange
        """
        if order_amount_in_quote <= 0:
            return Success()

        exchange = self.exchange_for(bot)
        ticker = self.context.tickers.get(bot.exchange, base, bot.settings.quote)

        if order_amount_in_quote < ticker.minimum_quote_size:
            return self._skip(bot, ticker, order_amount_in_quote)

        try:
            if bot.settings.order_type == 'limit':
                price = await self._limit_price(exchange, bot, ticker)
                base_amount = round(order_amount_in_quote / price, ticker.base_decimals)
                result = await exchange.limit_buy(ticker.base, ticker.quote, price, base_amount)
            else:
                result = await exchange.market_buy(ticker.base, ticker.quote, order_amount_in_quote)
        except Exception as e:
            logger.error(f"❌ Bot {bot.id}: {bot.settings.order_type} buy of {ticker.symbol} "
                         f"on {exchange.name} raised: {e}")
            return Failure(str(e))

        if result.failure():
            logger.error(f"❌ Bot {bot.id}: {ticker.symbol} order rejected: {result.message}")
            return result

        order_id: Optional[str] = result.data.get('order_id')
        if order_id:
            self.context.store.add_open_order(OpenOrder(
                bot_id=bot.id,
                exchange=bot.exchange,
                order_id=order_id,
                base=ticker.base,
                quote=ticker.quote,
                quote_amount=order_amount_in_quote,
                submitted_at=self.context.now(),
            ))
        self.context.telemetry.increment('orders.submitted')
        logger.info(f"✅ Bot {bot.id}: {bot.settings.order_type} buy of {order_amount_in_quote} "
                    f"{ticker.quote} in {ticker.base} submitted ({order_id})")
        return Success({'order_ids': [order_id] if order_id else []})
