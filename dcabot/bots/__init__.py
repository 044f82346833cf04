"""
Bot variants and the order setter they share.
"""

from ..context import BotContext
from ..models import Bot, BotType
from .base import RecurringBot
from .dual_asset import DualAssetBot, split_order_amounts
from .order_setter import OrderSetter
from .single_asset import SingleAssetBot

BOT_CLASSES = {
    BotType.SINGLE_ASSET: SingleAssetBot,
    BotType.DUAL_ASSET: DualAssetBot,
}


def build_bot(bot: Bot, context: BotContext) -> RecurringBot:
    """Bind a stored bot to the variant implementing its type"""
    return BOT_CLASSES[bot.bot_type](bot, context)


__all__ = [
    'RecurringBot',
    'SingleAssetBot',
    'DualAssetBot',
    'OrderSetter',
    'build_bot',
    'split_order_amounts',
]
