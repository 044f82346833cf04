#!/usr/bin/env python3
"""
Tests for bot_config.json loading and environment settings
"""

import json
from pathlib import Path

import pytest

from dcabot.config import NotificationSettings, SchedulerSettings
from dcabot.errors import ConfigurationError
from dcabot.models import BotStatus, BotType
from dcabot.scheduler.config_loader import BotConfigLoader
from dcabot.tickers import TickerRegistry

PROJECT_CONFIG = Path(__file__).parent.parent / 'bot_config.json'

BASE_CONFIG = {
    'scheduler': {'poll_seconds': 2, 'repair_interval_minutes': 10},
    'tickers': [
        {'exchange': 'paper', 'base': 'BTC', 'quote': 'USD', 'minimum_quote_size': 10},
    ],
    'bots': [
        {
            'id': 'btc-daily',
            'type': 'single_asset',
            'exchange': 'paper',
            'start': True,
            'settings': {'quote': 'USD', 'base': 'BTC', 'quote_amount': 5, 'interval': 'day'},
        },
    ],
}


def write_config(tmp_path, config):
    path = tmp_path / 'bot_config.json'
    path.write_text(json.dumps(config))
    return str(path)


def test_project_config_is_valid():
    loader = BotConfigLoader(str(PROJECT_CONFIG))

    assert len(loader.build_bots()) == 2
    assert len(TickerRegistry.from_config(loader.get_tickers_config())) == 2


def test_loads_bots_and_scheduler_overrides(tmp_path):
    loader = BotConfigLoader(write_config(tmp_path, BASE_CONFIG))

    bots = loader.build_bots()

    assert loader.get_poll_seconds() == 2.0
    assert loader.get_repair_interval_minutes() == 10.0
    assert loader.get_fill_poll_seconds() is None
    assert len(bots) == 1
    bot = bots[0]
    assert bot.id == 'btc-daily'
    assert bot.bot_type == BotType.SINGLE_ASSET
    assert bot.status == BotStatus.STOPPED
    assert bot.settings.quote_amount == 5.0
    assert loader.should_start(bot)


def test_disabled_bots_are_not_built(tmp_path):
    config = json.loads(json.dumps(BASE_CONFIG))
    config['bots'][0]['enabled'] = False

    assert BotConfigLoader(write_config(tmp_path, config)).build_bots() == []


@pytest.mark.parametrize('mutate, message', [
    (lambda c: c.pop('tickers'), 'tickers'),
    (lambda c: c['bots'][0].pop('id'), "'id'"),
    (lambda c: c['bots'][0].update(type='triple_asset'), 'unknown type'),
    (lambda c: c['bots'][0]['settings'].update(interval='fortnight'), 'unknown interval'),
    (lambda c: c['bots'][0]['settings'].pop('base'), "needs 'base'"),
    (lambda c: c['bots'][0]['settings'].update(allocation0=1.5), 'allocation0'),
])
def test_invalid_config_is_rejected(tmp_path, mutate, message):
    config = json.loads(json.dumps(BASE_CONFIG))
    mutate(config)

    with pytest.raises(ConfigurationError, match=message):
        BotConfigLoader(write_config(tmp_path, config))


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigurationError, match='not found'):
        BotConfigLoader(str(tmp_path / 'missing.json'))


def test_scheduler_settings_from_env(monkeypatch):
    monkeypatch.setenv('DCABOT_STORAGE', 'DynamoDB')
    monkeypatch.setenv('DCABOT_POLL_SECONDS', '1.5')
    monkeypatch.setenv('DCABOT_PAPER_TRADING', 'false')

    settings = SchedulerSettings.from_env()

    assert settings.use_dynamodb
    assert settings.poll_seconds == 1.5
    assert not settings.paper_trading


def test_notification_settings_from_env(monkeypatch):
    monkeypatch.setenv('TELEGRAM_BOT_TOKEN', 'token')
    monkeypatch.setenv('TELEGRAM_CHAT_IDS', '1, 2,,3')
    monkeypatch.delenv('DCABOT_NOTIFICATIONS', raising=False)

    settings = NotificationSettings.from_env()

    assert settings.provider == 'telegram'
    assert settings.telegram_chat_ids == ['1', '2', '3']
    assert settings.telegram_ready


def test_notifications_default_to_logging(monkeypatch):
    monkeypatch.delenv('TELEGRAM_BOT_TOKEN', raising=False)
    monkeypatch.delenv('DCABOT_NOTIFICATIONS', raising=False)

    settings = NotificationSettings.from_env()

    assert settings.provider == 'log'
    assert settings.enabled
