#!/usr/bin/env python3
"""
Tests for the orphaned bot repair sweep
"""

import logging
from datetime import timedelta

from dcabot.models import BotStatus

from conftest import T0


def test_orphaned_bots_are_rescheduled(repair_sweep, make_bot, queue, clock, notifier, caplog):
    scheduled = make_bot(status=BotStatus.SCHEDULED)
    retrying = make_bot(status=BotStatus.RETRYING)
    clock.advance(hours=30)

    with caplog.at_level(logging.INFO):
        summary = repair_sweep.repair_orphaned_bots()

    assert summary['found'] == 2 and summary['repaired'] == 2 and summary['failed'] == 0
    for bot in (scheduled, retrying):
        assert queue.next_run_at(bot.id) == T0 + timedelta(days=2)
        assert f"Repairing orphaned bot {bot.id}" in caplog.text
        assert f"Bot {bot.id} rescheduled" in caplog.text
    assert "Found 2 orphaned bot(s)" in caplog.text
    assert len(notifier.of_kind('scheduled')) == 2


def test_bots_with_outstanding_task_are_left_alone(repair_sweep, make_bot, queue):
    bot = make_bot()
    task = queue.enqueue(bot.id, T0 + timedelta(days=1))

    summary = repair_sweep.repair_orphaned_bots()

    assert summary['found'] == 0
    assert queue.pending_tasks() == [task]


def test_stopped_and_exchangeless_bots_are_ignored(repair_sweep, make_bot, queue):
    stopped = make_bot(status=BotStatus.STOPPED)
    started = make_bot(status=BotStatus.STARTED)
    no_exchange = make_bot(exchange=None)

    summary = repair_sweep.repair_orphaned_bots()

    assert summary['found'] == 0
    for bot in (stopped, started, no_exchange):
        assert not queue.is_pending(bot.id)


def test_failure_on_one_bot_does_not_stop_the_sweep(repair_sweep, make_bot, queue, caplog):
    broken = make_bot(interval='fortnight')
    healthy = make_bot()

    with caplog.at_level(logging.INFO):
        summary = repair_sweep.repair_orphaned_bots()

    assert summary['repaired'] == 1 and summary['failed'] == 1
    assert summary['failed_bot_ids'] == [broken.id]
    assert f"Failed to repair bot {broken.id}" in caplog.text
    assert queue.is_pending(healthy.id)


def test_sweep_after_lost_queue(repair_sweep, make_bot, queue, clock):
    """A flushed queue is rebuilt on the next sweep"""
    bots = [make_bot() for _ in range(3)]
    for bot in bots:
        queue.enqueue(bot.id, T0 + timedelta(days=1))
    assert queue.clear() == 3

    summary = repair_sweep.repair_orphaned_bots()

    assert summary['repaired'] == 3
    assert all(queue.next_run_at(bot.id) == T0 + timedelta(days=1) for bot in bots)
