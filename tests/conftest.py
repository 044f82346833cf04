#!/usr/bin/env python3
"""
Shared fixtures: frozen clock, recording exchange and an in-memory bot context.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple

import pytest

from dcabot.bots.lifecycle import BotLifecycle
from dcabot.context import BotContext
from dcabot.exchange import ExchangeClient, ExchangeRegistry
from dcabot.models import Bot, BotSettings, BotStatus, BotType
from dcabot.notifications import RecordingNotifier
from dcabot.result import Failure, Result, Success
from dcabot.scheduler.action_job import ActionJob
from dcabot.scheduler.action_queue import InMemoryActionQueue
from dcabot.scheduler.action_scheduler import ActionScheduler
from dcabot.scheduler.fill_reporter import FillReporter
from dcabot.scheduler.repair_sweep import RepairSweep
from dcabot.storage import InMemoryBotStore
from dcabot.telemetry import TelemetryCollector
from dcabot.tickers import Ticker, TickerRegistry

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
EXCHANGE = 'testex'


class FrozenClock:
    """Clock that only moves when told to"""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingExchange(ExchangeClient):
    """Exchange double recording every order call"""

    def __init__(self, name: str = EXCHANGE, prices: Dict[str, float] = None):
        super().__init__(name)
        self.prices = prices or {'BTC/USD': 50000.0, 'ETH/USD': 2500.0}
        self.market_buys: List[Tuple[str, str, float]] = []
        self.limit_buys: List[Tuple[str, str, float, float]] = []
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.fail_with = None
        self.raise_with = None

    @property
    def order_calls(self) -> int:
        return len(self.market_buys) + len(self.limit_buys)

    def _outcome(self, order_id: str) -> Result:
        if self.raise_with is not None:
            raise self.raise_with
        if self.fail_with is not None:
            return Failure(self.fail_with)
        return Success({'order_id': order_id})

    async def market_buy(self, base: str, quote: str, quote_amount: float) -> Result:
        self.market_buys.append((base, quote, quote_amount))
        order_id = f"m-{len(self.market_buys)}"
        price = self.prices[f"{base}/{quote}"]
        self.orders[order_id] = {'status': 'closed', 'amount_exec': quote_amount / price,
                                 'quote_amount_exec': quote_amount, 'price': price}
        return self._outcome(order_id)

    async def limit_buy(self, base: str, quote: str, price: float, base_amount: float) -> Result:
        self.limit_buys.append((base, quote, price, base_amount))
        order_id = f"l-{len(self.limit_buys)}"
        self.orders[order_id] = {'status': 'open', 'amount_exec': 0.0,
                                 'quote_amount_exec': 0.0, 'price': None}
        return self._outcome(order_id)

    async def get_balances(self) -> Dict[str, float]:
        return {}

    async def get_last_price(self, base: str, quote: str) -> float:
        return self.prices[f"{base}/{quote}"]

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        return dict(self.orders[order_id])


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def exchange():
    return RecordingExchange()


@pytest.fixture
def tickers():
    return TickerRegistry([
        Ticker(EXCHANGE, 'BTC', 'USD', minimum_quote_size=10.0, price_decimals=1),
        Ticker(EXCHANGE, 'ETH', 'USD', minimum_quote_size=10.0, price_decimals=2),
    ])


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def context(exchange, tickers, notifier, clock):
    exchanges = ExchangeRegistry()
    exchanges.register(exchange)
    ctx = BotContext(
        store=InMemoryBotStore(),
        exchanges=exchanges,
        tickers=tickers,
        notifier=notifier,
        telemetry=TelemetryCollector(),
        clock=clock,
    )
    ctx.fill_reporter = FillReporter(ctx)
    return ctx


@pytest.fixture
def queue():
    return InMemoryActionQueue()


@pytest.fixture
def scheduler(queue, notifier):
    return ActionScheduler(queue, notifier)


@pytest.fixture
def action_job(context, scheduler):
    return ActionJob(context, scheduler)


@pytest.fixture
def repair_sweep(context, scheduler):
    return RepairSweep(context, scheduler)


@pytest.fixture
def lifecycle(context, scheduler):
    return BotLifecycle(context, scheduler)


@pytest.fixture
def make_bot(context):
    """Factory storing a bot started at T0"""

    def _make(bot_type: BotType = BotType.SINGLE_ASSET, status: BotStatus = BotStatus.SCHEDULED,
              exchange: str = EXCHANGE, started_at: datetime = T0, **settings) -> Bot:
        values = {'quote': 'USD', 'quote_amount': 5.0, 'interval': 'day'}
        if bot_type == BotType.DUAL_ASSET:
            values.update(base0='BTC', base1='ETH')
        else:
            values['base'] = 'BTC'
        values.update(settings)
        bot = Bot(bot_type=bot_type, settings=BotSettings(**values), exchange=exchange,
                  status=status, started_at=started_at)
        context.store.save_bot(bot)
        return bot

    return _make
