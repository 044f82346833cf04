#!/usr/bin/env python3
"""
Tests for the telemetry collector
"""

import json

from dcabot.telemetry import TelemetryCollector


def test_telemetry_counters_and_persistence(tmp_path):
    telemetry = TelemetryCollector(persistence_path=str(tmp_path))
    telemetry.increment('orders.skipped')
    telemetry.increment('orders.skipped')
    telemetry.record_timing('actions.duration', 0.5)
    telemetry.record_error('action', 'boom', {'bot_id': 'b'})

    assert telemetry.get_counter('orders.skipped') == 2.0
    assert telemetry.get_counter('errors', error_type='action') == 1.0
    assert telemetry.get_timer_stats('actions.duration')['avg'] == 0.5
    assert telemetry.persist()
    snapshot = json.loads((tmp_path / 'metrics.json').read_text())
    assert snapshot['counters']


def test_disabled_telemetry_records_nothing():
    telemetry = TelemetryCollector(enabled=False)
    telemetry.increment('orders.skipped')

    assert telemetry.get_counter('orders.skipped') == 0.0
    assert not telemetry.persist()


def test_telemetry_keeps_recent_events_and_errors():
    telemetry = TelemetryCollector()
    for i in range(5):
        telemetry.record_event('action', {'bot_id': f'bot-{i}'})
    telemetry.record_error('repair', 'boom')

    recent = telemetry.get_recent_events(limit=2)

    assert [e['data']['bot_id'] for e in recent] == ['bot-3', 'bot-4']
    assert telemetry.get_recent_errors()[0]['message'] == 'boom'
    assert telemetry.get_recent_errors()[0]['context'] == {}
