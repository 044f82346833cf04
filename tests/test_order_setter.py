#!/usr/bin/env python3
"""
Tests for order placement: minimum size policy, limit orders, dual-asset split
"""

import asyncio

import pytest

from dcabot.bots import DualAssetBot, SingleAssetBot, build_bot, split_order_amounts
from dcabot.errors import ExchangeError, MissingExchangeError
from dcabot.models import BotType, TransactionStatus
from dcabot.notifications import RecordingNotifier
from dcabot.result import Failure, Result, Success
from dcabot.scheduler.fill_reporter import FillReporter

from conftest import T0


def test_build_bot_picks_variant(context, make_bot):
    assert isinstance(build_bot(make_bot(), context), SingleAssetBot)
    assert isinstance(build_bot(make_bot(BotType.DUAL_ASSET), context), DualAssetBot)


def test_below_minimum_creates_skipped_transaction(context, make_bot, exchange, notifier):
    """An amount under the exchange minimum is recorded and buffered, never sent"""
    bot = make_bot()

    result = asyncio.run(build_bot(bot, context).set_order(5.0))

    transactions = context.store.list_transactions(bot.id)
    assert result.success()
    assert len(transactions) == 1
    assert transactions[0].status == TransactionStatus.SKIPPED
    assert transactions[0].quote_amount == 5.0
    assert transactions[0].amount_exec == 0 and transactions[0].quote_amount_exec == 0
    assert exchange.order_calls == 0, "Exchange must not be called below the minimum"
    assert notifier.of_kind('below_minimum') == [{'bot_id': bot.id, 'base': 'BTC', 'amount': 5.0, 'minimum': 10.0}]


def test_minimum_is_inclusive(context, make_bot, exchange):
    bot = make_bot()

    result = asyncio.run(build_bot(bot, context).set_order(10.0))

    assert result.success()
    assert exchange.market_buys == [('BTC', 'USD', 10.0)]
    assert context.store.list_transactions(bot.id) == []
    assert result.data['order_ids'] == ['m-1']
    open_orders = context.store.list_open_orders(bot.id)
    assert [(o.order_id, o.quote_amount, o.submitted_at) for o in open_orders] == [('m-1', 10.0, T0)]


def test_zero_amount_is_a_no_op(context, make_bot, exchange):
    bot = make_bot()

    result = asyncio.run(build_bot(bot, context).set_order(0))

    assert result.success()
    assert context.store.list_transactions(bot.id) == []
    assert exchange.order_calls == 0


def test_exchange_rejection_is_returned_as_failure(context, make_bot, exchange):
    exchange.fail_with = 'Insufficient funds'
    bot = make_bot()

    result = asyncio.run(build_bot(bot, context).set_order(25.0))

    assert result.failure()
    assert result.message == 'Insufficient funds'


def test_exchange_exception_is_returned_as_failure(context, make_bot, exchange):
    exchange.raise_with = ExchangeError('connection reset')
    bot = make_bot()

    result = asyncio.run(build_bot(bot, context).set_order(25.0))

    assert result.failure()
    assert 'connection reset' in result.message


def test_missing_exchange_raises(context, make_bot):
    bot = make_bot(exchange='nowhere')

    with pytest.raises(MissingExchangeError):
        asyncio.run(build_bot(bot, context).set_order(25.0))


def test_limit_order_is_placed_below_last_price(context, make_bot, exchange):
    bot = make_bot(order_type='limit', limit_order_pcnt_distance=1.0)

    result = asyncio.run(build_bot(bot, context).set_order(99.0))

    assert result.success()
    assert exchange.market_buys == []
    base, quote, price, base_amount = exchange.limit_buys[0]
    assert (base, quote, price) == ('BTC', 'USD', 49500.0)
    assert base_amount == round(99.0 / 49500.0, 8)


def test_filled_order_is_recorded_at_submission_time(context, make_bot, clock):
    bot = make_bot()
    asyncio.run(build_bot(bot, context).set_order(50.0))
    clock.advance(seconds=30)

    recorded = asyncio.run(context.fill_reporter.poll())

    assert len(recorded) == 1
    transaction = context.store.list_transactions(bot.id)[0]
    assert transaction.status == TransactionStatus.CLOSED
    assert transaction.quote_amount_exec == 50.0
    assert transaction.external_id == 'm-1'
    assert transaction.created_at == T0
    assert context.fill_reporter.pending_orders == []
    assert context.store.list_open_orders(bot.id) == []


def test_open_limit_order_stays_tracked(context, make_bot):
    bot = make_bot(order_type='limit')
    asyncio.run(build_bot(bot, context).set_order(50.0))

    recorded = asyncio.run(context.fill_reporter.poll())

    assert recorded == []
    assert len(context.fill_reporter.pending_orders) == 1


def test_split_rebalances_toward_allocation():
    assert split_order_amounts(100.0, 0.5, 0.0, 0.0) == (50.0, 50.0)
    assert split_order_amounts(100.0, 0.5, 0.0, 100.0) == (100.0, 0.0)
    assert split_order_amounts(100.0, 0.5, 300.0, 0.0) == (0.0, 100.0)
    assert split_order_amounts(100.0, 0.6, 60.0, 40.0) == (60.0, 40.0)


def test_dual_below_minimum_skips_legs(context, make_bot, exchange):
    bot = make_bot(BotType.DUAL_ASSET)

    result = asyncio.run(build_bot(bot, context).set_orders(1.0))

    skipped = context.store.list_transactions(bot.id, TransactionStatus.SKIPPED)
    assert result.success()
    assert len(skipped) >= 1
    assert exchange.order_calls == 0


def test_dual_places_both_legs(context, make_bot, exchange):
    bot = make_bot(BotType.DUAL_ASSET)

    result = asyncio.run(build_bot(bot, context).set_orders(100.0))

    assert result.success()
    assert exchange.market_buys == [('BTC', 'USD', 50.0), ('ETH', 'USD', 50.0)]
    assert result.data['order_ids'] == ['m-1', 'm-2']


def test_dual_mixed_leg_skip_and_submit(context, make_bot, exchange):
    bot = make_bot(BotType.DUAL_ASSET, allocation0=0.9)

    result = asyncio.run(build_bot(bot, context).set_orders(50.0))

    assert result.success()
    assert exchange.market_buys == [('BTC', 'USD', 45.0)]
    skipped = context.store.list_transactions(bot.id, TransactionStatus.SKIPPED)
    assert [t.base for t in skipped] == ['ETH']


def test_dual_split_uses_bought_amounts(context, make_bot, exchange, clock):
    bot = make_bot(BotType.DUAL_ASSET)
    recurring = build_bot(bot, context)
    asyncio.run(recurring.order_setter.set_order(bot, 'BTC', 100.0))
    asyncio.run(context.fill_reporter.poll())

    asyncio.run(recurring.set_orders(100.0))

    assert exchange.market_buys[-1] == ('ETH', 'USD', 100.0)


def test_rejected_order_leaves_no_open_order(context, make_bot, exchange):
    exchange.fail_with = 'Insufficient funds'
    bot = make_bot()

    asyncio.run(build_bot(bot, context).set_order(25.0))

    assert context.store.list_open_orders(bot.id) == []


def test_open_orders_survive_a_new_fill_reporter(context, make_bot, exchange):
    bot = make_bot(order_type='limit')
    asyncio.run(build_bot(bot, context).set_order(50.0))
    exchange.orders['l-1'].update(status='closed', amount_exec=0.001, quote_amount_exec=50.0)

    recorded = asyncio.run(FillReporter(context).poll())

    assert [t.external_id for t in recorded] == ['l-1']
    assert context.store.list_transactions(bot.id, TransactionStatus.CLOSED)[0].quote_amount_exec == 50.0


def test_cancelled_order_is_recorded_as_failed(context, make_bot, exchange):
    bot = make_bot(order_type='limit')
    asyncio.run(build_bot(bot, context).set_order(50.0))
    exchange.orders['l-1']['status'] = 'canceled'

    asyncio.run(context.fill_reporter.poll())

    transaction = context.store.list_transactions(bot.id)[0]
    assert transaction.status == TransactionStatus.FAILED
    assert transaction.quote_amount_exec == 0.0
    assert context.store.list_open_orders(bot.id) == []


def test_dual_skipped_leg_is_reported_under_its_own_market(context, make_bot, notifier):
    bot = make_bot(BotType.DUAL_ASSET, allocation0=0.9)

    asyncio.run(build_bot(bot, context).set_orders(50.0))

    assert [n['base'] for n in notifier.of_kind('below_minimum')] == ['ETH']


class ExplodingNotifier(RecordingNotifier):
    def notify_below_minimum(self, bot, amount, minimum, base=None):
        raise RuntimeError('notification service down')


def test_failing_notification_does_not_fail_skip(context, make_bot, exchange):
    context.notifier = ExplodingNotifier()
    bot = make_bot()

    result = asyncio.run(build_bot(bot, context).set_order(5.0))

    assert result.success()
    assert len(context.store.list_transactions(bot.id, TransactionStatus.SKIPPED)) == 1
    assert exchange.order_calls == 0


def test_result_base_is_abstract():
    with pytest.raises(TypeError):
        Result()

    assert Success().success() and not Success().failure()
    assert Failure('a', 'b').failure()
    assert Failure('a', 'b').message == 'a, b'
