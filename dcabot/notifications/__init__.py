"""
Bot notifications: logging, in-memory recording and Telegram delivery.
"""

import logging

from ..config import NotificationSettings
from .message_templates import BotMessageTemplates
from .notifier import BotNotifier, RecordingNotifier, bot_label

logger = logging.getLogger(__name__)


def create_notifier(settings: NotificationSettings) -> BotNotifier:
    """
    Create the notifier selected by the settings

    Falls back to the logging notifier when Telegram is selected but not
    configured.
    """
    if settings.enabled and settings.provider == 'telegram':
        if settings.telegram_ready:
            from .telegram_notifier import TelegramBotNotifier
            return TelegramBotNotifier(settings.telegram_bot_token, settings.telegram_chat_ids)
        logger.warning("⚠️  Telegram notifications selected but TELEGRAM_BOT_TOKEN/TELEGRAM_CHAT_IDS missing")
    return BotNotifier()


__all__ = ['BotNotifier', 'RecordingNotifier', 'BotMessageTemplates', 'bot_label', 'create_notifier']
