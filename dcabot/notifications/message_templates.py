#!/usr/bin/env python3
"""
Notification Message Templates

Markdown templates for the bot notifications sent to Telegram chats.
"""

from datetime import datetime, timezone
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class BotMessageTemplates:
    """Formats bot notifications"""

    def __init__(self):
        self.templates = {
            'below_minimum': {
                'text': "⚠️ *Amount below exchange minimum*\n\n"
                        "🤖 *Bot:* `{bot_label}`\n"
                        "🎯 *Market:* `{market}` on {exchange}\n"
                        "💰 *Amount:* `{amount} {quote}` (minimum `{minimum} {quote}`)\n\n"
                        "The amount is kept and added to the next purchase.\n\n"
                        "⏰ *Time:* `{timestamp}`",
                'parse_mode': 'Markdown'
            },
            'error': {
                'text': "❌ *Bot action failed*\n\n"
                        "🤖 *Bot:* `{bot_label}`\n"
                        "📝 *Error:* {error_message}\n\n"
                        "The bot is now retrying and will be rescheduled automatically.\n\n"
                        "⏰ *Time:* `{timestamp}`",
                'parse_mode': 'Markdown'
            },
            'scheduled': {
                'text': "⏰ *Next purchase scheduled*\n\n"
                        "🤖 *Bot:* `{bot_label}`\n"
                        "📅 *At:* `{run_at}`",
                'parse_mode': 'Markdown'
            },
        }

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')

    def render(self, name: str, **values: Any) -> Dict[str, str]:
        """
        Fill a template

        Args:
            name: Template name
            **values: Placeholder values; ``timestamp`` is filled in when missing

        Returns:
            Dict with ``text`` and ``parse_mode``
        """
        template = self.templates[name].copy()
        values.setdefault('timestamp', self._timestamp())
        template['text'] = template['text'].format(**values)
        return template
