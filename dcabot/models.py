#!/usr/bin/env python3
"""
Domain Models

Bots, their settings, transactions and open orders. Models are plain
dataclasses; storage backends persist them through ``to_dict`` / ``from_dict``.
"""

import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class BotStatus(str, Enum):
    STARTED = 'started'
    SCHEDULED = 'scheduled'
    RETRYING = 'retrying'
    STOPPED = 'stopped'


# Statuses in which a bot is expected to have an outstanding action task
ACTIVE_STATUSES = (BotStatus.SCHEDULED, BotStatus.RETRYING)


class BotType(str, Enum):
    SINGLE_ASSET = 'single_asset'
    DUAL_ASSET = 'dual_asset'


class TransactionStatus(str, Enum):
    SKIPPED = 'skipped'
    SUBMITTED = 'submitted'
    CLOSED = 'closed'
    FAILED = 'failed'


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(str(value))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class BotSettings:
    """
    User configuration of a recurring bot

    Single-asset bots use ``base``; dual-asset bots use ``base0``/``base1`` and
    split each purchase according to ``allocation0``.
    """
    quote: str
    quote_amount: float
    interval: str = 'day'
    base: Optional[str] = None
    base0: Optional[str] = None
    base1: Optional[str] = None
    allocation0: float = 0.5
    order_type: str = 'market'
    limit_order_pcnt_distance: float = 0.0
    smart_intervals: bool = False
    smart_interval_quote_amount: float = 0.0
    quote_amount_limit: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BotSettings':
        known = {f for f in cls.__dataclass_fields__}
        values = {k: v for k, v in data.items() if k in known}
        for key in ('quote_amount', 'allocation0', 'limit_order_pcnt_distance',
                    'smart_interval_quote_amount'):
            if values.get(key) is not None:
                values[key] = float(values[key])
        if values.get('quote_amount_limit') is not None:
            values['quote_amount_limit'] = float(values['quote_amount_limit'])
        if 'smart_intervals' in values:
            values['smart_intervals'] = bool(values['smart_intervals'])
        return cls(**values)

    def merge(self, changes: Dict[str, Any]) -> 'BotSettings':
        data = self.to_dict()
        data.update(changes)
        return BotSettings.from_dict(data)


@dataclass
class Bot:
    """A recurring buy bot and its persisted scheduling state"""
    bot_type: BotType
    settings: BotSettings
    exchange: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: BotStatus = BotStatus.STOPPED
    started_at: Optional[datetime] = None
    buffer_anchor_at: Optional[datetime] = None
    last_action_job_at: Optional[datetime] = None
    missed_quote_amount: float = 0.0
    label: str = ''
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_dual_asset(self) -> bool:
        return self.bot_type == BotType.DUAL_ASSET

    @property
    def quote_amount(self) -> float:
        return self.settings.quote_amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'bot_type': self.bot_type.value,
            'settings': self.settings.to_dict(),
            'exchange': self.exchange,
            'status': self.status.value,
            'started_at': _format_datetime(self.started_at),
            'buffer_anchor_at': _format_datetime(self.buffer_anchor_at),
            'last_action_job_at': _format_datetime(self.last_action_job_at),
            'missed_quote_amount': self.missed_quote_amount,
            'label': self.label,
            'created_at': _format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Bot':
        return cls(
            id=str(data['id']),
            bot_type=BotType(data['bot_type']),
            settings=BotSettings.from_dict(data['settings']),
            exchange=data.get('exchange') or None,
            status=BotStatus(data.get('status', BotStatus.STOPPED.value)),
            started_at=_parse_datetime(data.get('started_at')),
            buffer_anchor_at=_parse_datetime(data.get('buffer_anchor_at')),
            last_action_job_at=_parse_datetime(data.get('last_action_job_at')),
            missed_quote_amount=float(data.get('missed_quote_amount') or 0.0),
            label=data.get('label', ''),
            created_at=_parse_datetime(data.get('created_at')) or utc_now(),
        )


@dataclass
class Transaction:
    """
    A purchase attempt of a bot

    Skipped transactions are written synchronously when an amount is below
    the exchange minimum and always carry zero executed amounts. Executed
    orders are recorded later by the fill reporter, dated at submission.
    """
    bot_id: str
    status: TransactionStatus
    quote_amount: float
    base: str
    quote: str
    amount_exec: float = 0.0
    quote_amount_exec: float = 0.0
    price: Optional[float] = None
    external_id: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_executed(self) -> bool:
        return self.status == TransactionStatus.CLOSED and self.quote_amount_exec > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'bot_id': self.bot_id,
            'status': self.status.value,
            'quote_amount': self.quote_amount,
            'base': self.base,
            'quote': self.quote,
            'amount_exec': self.amount_exec,
            'quote_amount_exec': self.quote_amount_exec,
            'price': self.price,
            'external_id': self.external_id,
            'created_at': _format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        price = data.get('price')
        return cls(
            id=str(data['id']),
            bot_id=str(data['bot_id']),
            status=TransactionStatus(data['status']),
            quote_amount=float(data.get('quote_amount') or 0.0),
            base=data.get('base', ''),
            quote=data.get('quote', ''),
            amount_exec=float(data.get('amount_exec') or 0.0),
            quote_amount_exec=float(data.get('quote_amount_exec') or 0.0),
            price=float(price) if price is not None else None,
            external_id=data.get('external_id'),
            created_at=_parse_datetime(data.get('created_at')) or utc_now(),
        )


@dataclass
class OpenOrder:
    """
    An order accepted by the exchange whose fill has not been observed yet

    Its intended quote amount counts as spent from the moment of submission,
    so a resting order is never bought a second time.
    """
    bot_id: str
    exchange: str
    order_id: str
    base: str
    quote: str
    quote_amount: float
    submitted_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'order_id': self.order_id,
            'bot_id': self.bot_id,
            'exchange': self.exchange,
            'base': self.base,
            'quote': self.quote,
            'quote_amount': self.quote_amount,
            'submitted_at': _format_datetime(self.submitted_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OpenOrder':
        return cls(
            order_id=str(data['order_id']),
            bot_id=str(data['bot_id']),
            exchange=str(data['exchange']),
            base=data.get('base', ''),
            quote=data.get('quote', ''),
            quote_amount=float(data.get('quote_amount') or 0.0),
            submitted_at=_parse_datetime(data.get('submitted_at')) or utc_now(),
        )
