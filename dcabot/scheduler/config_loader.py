#!/usr/bin/env python3
"""
Bot Configuration Loader

Loads and validates the master bot_config.json configuration file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ConfigurationError
from ..interval_clock import INTERVAL_NAMES
from ..models import Bot, BotSettings, BotType

logger = logging.getLogger(__name__)


class BotConfigLoader:
    """Loads and validates bot configuration"""

    def __init__(self, config_path: str = None):
        """
        Initialize config loader

        Args:
            config_path: Path to bot_config.json (defaults to project root)
        """
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / 'bot_config.json'

        self.config_path = Path(config_path)
        self.config: Dict[str, Any] = {}
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Load configuration from JSON file"""
        try:
            with open(self.config_path, 'r') as f:
                self.config = json.load(f)
            logger.info(f"✅ Loaded bot configuration from {self.config_path}")
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file: {e}")

    def _validate_bot(self, entry: Dict[str, Any]):
        name = entry.get('id') or entry.get('label') or '<unnamed>'
        for field in ('id', 'type', 'exchange', 'settings'):
            if field not in entry:
                raise ConfigurationError(f"Bot {name} missing '{field}' field")

        try:
            bot_type = BotType(entry['type'])
        except ValueError:
            raise ConfigurationError(f"Bot {name} has unknown type {entry['type']!r}")

        settings = entry['settings']
        for field in ('quote', 'quote_amount'):
            if field not in settings:
                raise ConfigurationError(f"Bot {name} settings missing '{field}'")
        if bot_type == BotType.SINGLE_ASSET and not settings.get('base'):
            raise ConfigurationError(f"Single asset bot {name} needs 'base'")
        if bot_type == BotType.DUAL_ASSET and not (settings.get('base0') and settings.get('base1')):
            raise ConfigurationError(f"Dual asset bot {name} needs 'base0' and 'base1'")
        if settings.get('interval', 'day') not in INTERVAL_NAMES:
            raise ConfigurationError(f"Bot {name} has unknown interval {settings.get('interval')!r}")
        if settings.get('order_type', 'market') not in ('market', 'limit'):
            raise ConfigurationError(f"Bot {name} has unknown order type {settings.get('order_type')!r}")
        if not 0.0 <= float(settings.get('allocation0', 0.5)) <= 1.0:
            raise ConfigurationError(f"Bot {name} allocation0 must be between 0 and 1")

    def _validate_config(self):
        """Validate required configuration fields"""
        required_sections = ['scheduler', 'tickers', 'bots']

        for section in required_sections:
            if section not in self.config:
                raise ConfigurationError(f"Missing required configuration section: {section}")

        for entry in self.config['tickers']:
            for field in ('exchange', 'base', 'quote', 'minimum_quote_size'):
                if field not in entry:
                    raise ConfigurationError(f"Ticker entry missing '{field}' field: {entry}")

        for entry in self.config['bots']:
            self._validate_bot(entry)

        logger.info("✅ Configuration validation passed")

    def get_scheduler_config(self) -> Dict[str, Any]:
        """Get scheduler configuration section"""
        return self.config.get('scheduler', {})

    def get_poll_seconds(self) -> Optional[float]:
        """Queue poll interval override, None to keep the environment setting"""
        value = self.get_scheduler_config().get('poll_seconds')
        return float(value) if value is not None else None

    def get_repair_interval_minutes(self) -> Optional[float]:
        value = self.get_scheduler_config().get('repair_interval_minutes')
        return float(value) if value is not None else None

    def get_fill_poll_seconds(self) -> Optional[float]:
        value = self.get_scheduler_config().get('fill_poll_seconds')
        return float(value) if value is not None else None

    def get_tickers_config(self) -> List[Dict[str, Any]]:
        """Get ticker limit entries"""
        return self.config.get('tickers', [])

    def get_bot_entries(self) -> List[Dict[str, Any]]:
        """Get only enabled bot definitions"""
        return [entry for entry in self.config.get('bots', []) if entry.get('enabled', True)]

    def build_bots(self) -> List[Bot]:
        """
        Create Bot models for every enabled bot definition

        Returns:
            Stopped bots; entries with ``"start": true`` are started by the caller
        """
        bots = []
        for entry in self.get_bot_entries():
            bots.append(Bot(
                id=str(entry['id']),
                bot_type=BotType(entry['type']),
                settings=BotSettings.from_dict(entry['settings']),
                exchange=entry['exchange'],
                label=entry.get('label', ''),
            ))
        return bots

    def should_start(self, bot: Bot) -> bool:
        for entry in self.get_bot_entries():
            if str(entry.get('id')) == bot.id:
                return entry.get('start', False)
        return False

    def get_paper_exchange_config(self) -> Dict[str, Any]:
        """Get paper exchange configuration (name, prices, balances)"""
        return self.config.get('paper_exchange', {})

    def get_telemetry_config(self) -> Dict[str, Any]:
        """Get telemetry configuration"""
        return self.config.get('telemetry', {})

    def is_telemetry_enabled(self) -> bool:
        """Check if telemetry collection is enabled"""
        return self.get_telemetry_config().get('enabled', True)

    def get_telemetry_persistence_path(self) -> Optional[str]:
        """Get telemetry persistence path"""
        persistence = self.get_telemetry_config().get('persistence', {})
        if persistence.get('enabled', False):
            return persistence.get('output_path', 'telemetry_data/')
        return None
