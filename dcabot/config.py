#!/usr/bin/env python3
"""
Runtime Configuration

Environment-driven settings for the scheduler process. Settings are resolved
once at startup and handed to the components that need them; nothing reads
the environment while a bot action is running.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_POLL_SECONDS = 5.0
DEFAULT_REPAIR_INTERVAL_MINUTES = 5.0
DEFAULT_FILL_POLL_SECONDS = 15.0


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class SchedulerSettings:
    """Scheduler process settings"""
    storage: str = 'memory'
    bots_table: str = 'dcabot-bots'
    transactions_table: str = 'dcabot-transactions'
    open_orders_table: str = 'dcabot-open-orders'
    action_jobs_table: str = 'dcabot-action-jobs'
    aws_region: str = 'us-east-1'
    dynamodb_endpoint_url: Optional[str] = None
    poll_seconds: float = DEFAULT_POLL_SECONDS
    repair_interval_minutes: float = DEFAULT_REPAIR_INTERVAL_MINUTES
    fill_poll_seconds: float = DEFAULT_FILL_POLL_SECONDS
    paper_trading: bool = True

    @property
    def use_dynamodb(self) -> bool:
        return self.storage == 'dynamodb'

    @classmethod
    def from_env(cls) -> 'SchedulerSettings':
        settings = cls(
            storage=os.getenv('DCABOT_STORAGE', 'memory').strip().lower(),
            bots_table=os.getenv('DCABOT_BOTS_TABLE', 'dcabot-bots'),
            transactions_table=os.getenv('DCABOT_TRANSACTIONS_TABLE', 'dcabot-transactions'),
            open_orders_table=os.getenv('DCABOT_OPEN_ORDERS_TABLE', 'dcabot-open-orders'),
            action_jobs_table=os.getenv('DCABOT_ACTION_JOBS_TABLE', 'dcabot-action-jobs'),
            aws_region=os.getenv('AWS_REGION', 'us-east-1'),
            dynamodb_endpoint_url=os.getenv('DYNAMODB_ENDPOINT_URL') or None,
            poll_seconds=float(os.getenv('DCABOT_POLL_SECONDS', DEFAULT_POLL_SECONDS)),
            repair_interval_minutes=float(
                os.getenv('DCABOT_REPAIR_INTERVAL_MINUTES', DEFAULT_REPAIR_INTERVAL_MINUTES)
            ),
            fill_poll_seconds=float(os.getenv('DCABOT_FILL_POLL_SECONDS', DEFAULT_FILL_POLL_SECONDS)),
            paper_trading=_env_bool('DCABOT_PAPER_TRADING', True),
        )
        logger.info(f"Scheduler settings: storage={settings.storage}, poll={settings.poll_seconds}s, "
                    f"repair every {settings.repair_interval_minutes} min")
        return settings


@dataclass(frozen=True)
class NotificationSettings:
    """Which notifier to use and how to reach it"""
    enabled: bool = True
    provider: str = 'log'
    telegram_bot_token: Optional[str] = None
    telegram_chat_ids: List[str] = field(default_factory=list)

    @property
    def telegram_ready(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_ids)

    @classmethod
    def from_env(cls) -> 'NotificationSettings':
        chat_ids = [c.strip() for c in os.getenv('TELEGRAM_CHAT_IDS', '').split(',') if c.strip()]
        token = os.getenv('TELEGRAM_BOT_TOKEN') or None
        provider = os.getenv('DCABOT_NOTIFICATIONS', 'telegram' if token else 'log').strip().lower()
        return cls(
            enabled=provider != 'none',
            provider=provider,
            telegram_bot_token=token,
            telegram_chat_ids=chat_ids,
        )
