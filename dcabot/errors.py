#!/usr/bin/env python3
"""
Error Types

Exceptions raised by the scheduling core. Exchange submission problems are
not raised: they travel back to the caller as a Failure result.
"""


class DCABotError(Exception):
    """Base class for all bot scheduler errors"""


class ActionAlreadyScheduledError(DCABotError):
    """Raised when a due action is delivered while another task is still outstanding"""

    def __init__(self, bot_id: str, next_action_job_at=None):
        self.bot_id = bot_id
        self.next_action_job_at = next_action_job_at
        super().__init__(
            f"Bot {bot_id} already has an action job scheduled at {next_action_job_at}"
        )


class MissingExchangeError(DCABotError):
    """Raised when a bot has no usable exchange"""


class ConfigurationError(DCABotError):
    """Raised for invalid bot or scheduler configuration"""


class ExchangeError(DCABotError):
    """Raised by exchange clients; converted into Failure results by the order setter"""
