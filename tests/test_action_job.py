#!/usr/bin/env python3
"""
Tests for the due-action state machine
"""

import asyncio
from datetime import timedelta

import pytest

from dcabot.errors import ActionAlreadyScheduledError, ConfigurationError, MissingExchangeError
from dcabot.models import BotStatus, TransactionStatus
from dcabot.tickers import TickerRegistry

from conftest import T0


def test_success_reschedules_at_next_checkpoint(action_job, make_bot, context, queue, clock, notifier):
    bot = make_bot(quote_amount=20.0)
    clock.advance(minutes=1)

    result = asyncio.run(action_job.run_due_action(bot.id))

    stored = context.store.get_bot(bot.id)
    assert result.success()
    assert stored.status == BotStatus.SCHEDULED
    assert stored.last_action_job_at == clock.now
    assert queue.next_run_at(bot.id) == T0 + timedelta(days=1)
    assert notifier.of_kind('scheduled') == [{'bot_id': bot.id, 'run_at': T0 + timedelta(days=1)}]


def test_retrying_bot_runs_and_recovers(action_job, make_bot, context, queue):
    bot = make_bot(status=BotStatus.RETRYING, quote_amount=20.0)

    result = asyncio.run(action_job.run_due_action(bot.id))

    assert result.success()
    assert context.store.get_bot(bot.id).status == BotStatus.SCHEDULED
    assert queue.is_pending(bot.id)


def test_below_minimum_still_reschedules(action_job, make_bot, context, queue, exchange):
    bot = make_bot(quote_amount=5.0)

    result = asyncio.run(action_job.run_due_action(bot.id))

    assert result.success()
    assert exchange.order_calls == 0
    assert len(context.store.list_transactions(bot.id, TransactionStatus.SKIPPED)) == 1
    assert queue.is_pending(bot.id)


def test_buffered_amount_is_executed_next_interval(action_job, make_bot, exchange, queue, clock):
    """5.0 is skipped at start, 10.0 is bought one interval later"""
    bot = make_bot(quote_amount=5.0)
    asyncio.run(action_job.run_due_action(bot.id))
    assert exchange.order_calls == 0

    clock.advance(hours=25)
    queue.claim_due(clock.now)
    asyncio.run(action_job.run_due_action(bot.id))

    assert exchange.market_buys == [('BTC', 'USD', 10.0)]


def test_stopped_bot_is_skipped(action_job, make_bot, context, queue, exchange):
    bot = make_bot(status=BotStatus.STOPPED, quote_amount=20.0)

    result = asyncio.run(action_job.run_due_action(bot.id))

    assert result is None
    assert exchange.order_calls == 0
    assert context.store.get_bot(bot.id).status == BotStatus.STOPPED
    assert not queue.is_pending(bot.id)


def test_already_scheduled_bot_raises_without_changes(action_job, make_bot, context, queue, exchange, notifier):
    bot = make_bot(quote_amount=20.0)
    queue.enqueue(bot.id, T0 + timedelta(days=1))

    with pytest.raises(ActionAlreadyScheduledError, match='already has an action job scheduled'):
        asyncio.run(action_job.run_due_action(bot.id))

    stored = context.store.get_bot(bot.id)
    assert exchange.order_calls == 0
    assert stored.status == BotStatus.SCHEDULED
    assert stored.last_action_job_at is None
    assert notifier.of_kind('error') == []


def test_failure_sets_retrying_and_notifies(action_job, make_bot, context, queue, exchange, notifier):
    exchange.fail_with = 'Order rejected'
    bot = make_bot(quote_amount=20.0)

    result = asyncio.run(action_job.run_due_action(bot.id))

    stored = context.store.get_bot(bot.id)
    assert result.failure()
    assert result.message == 'Order rejected'
    assert stored.status == BotStatus.RETRYING
    assert stored.last_action_job_at is None
    assert not queue.is_pending(bot.id), "Failed actions are left to the repair sweep"
    assert notifier.of_kind('error') == [{'bot_id': bot.id, 'error': 'Order rejected'}]


def test_quote_amount_limit_breaks_reschedule(action_job, make_bot, context, queue, clock):
    bot = make_bot(quote_amount=20.0, quote_amount_limit=20.0)
    asyncio.run(action_job.run_due_action(bot.id))
    asyncio.run(context.fill_reporter.poll())
    before = context.store.get_bot(bot.id)

    clock.advance(days=1)
    queue.claim_due(clock.now)
    result = asyncio.run(action_job.run_due_action(bot.id))

    after = context.store.get_bot(bot.id)
    assert result.success() and result.break_reschedule
    assert after.status == before.status
    assert after.last_action_job_at == before.last_action_job_at
    assert not queue.is_pending(bot.id)


def test_quote_amount_limit_caps_order(action_job, make_bot, exchange):
    bot = make_bot(quote_amount=100.0, quote_amount_limit=30.0)

    asyncio.run(action_job.run_due_action(bot.id))

    assert exchange.market_buys == [('BTC', 'USD', 30.0)]


def test_missing_ticker_leaves_bot_retrying(action_job, make_bot, context, queue, notifier, exchange):
    bot = make_bot(quote_amount=20.0)
    context.tickers = TickerRegistry([])

    with pytest.raises(ConfigurationError):
        asyncio.run(action_job.run_due_action(bot.id))

    stored = context.store.get_bot(bot.id)
    assert stored.status == BotStatus.RETRYING
    assert stored.last_action_job_at is None
    assert not queue.is_pending(bot.id)
    assert exchange.order_calls == 0
    assert [e['bot_id'] for e in notifier.of_kind('error')] == [bot.id]
    assert 'No ticker BTC/USD' in notifier.of_kind('error')[0]['error']


def test_missing_exchange_leaves_bot_retrying(action_job, make_bot, context, notifier):
    bot = make_bot(quote_amount=20.0, exchange='nowhere')

    with pytest.raises(MissingExchangeError):
        asyncio.run(action_job.run_due_action(bot.id))

    assert context.store.get_bot(bot.id).status == BotStatus.RETRYING
    assert len(notifier.of_kind('error')) == 1
    assert context.telemetry.get_counter('actions.failed') == 1.0

