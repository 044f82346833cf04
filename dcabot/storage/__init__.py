"""
Storage backends for bots, transactions and the delayed action queue.
"""

import logging

from ..config import SchedulerSettings
from ..scheduler.action_queue import ActionQueue, InMemoryActionQueue
from .bot_store import BotStore, InMemoryBotStore

logger = logging.getLogger(__name__)


def create_bot_store(settings: SchedulerSettings) -> BotStore:
    """
    Create the bot store selected by the settings

    Falls back to the in-memory store when DynamoDB cannot be reached.
    """
    if settings.use_dynamodb:
        try:
            from .dynamodb_bot_store import DynamoDBBotStore
            logger.info("Creating DynamoDB bot store")
            return DynamoDBBotStore(
                bots_table=settings.bots_table,
                transactions_table=settings.transactions_table,
                open_orders_table=settings.open_orders_table,
                region_name=settings.aws_region,
                endpoint_url=settings.dynamodb_endpoint_url,
            )
        except Exception as e:
            logger.error(f"Failed to create DynamoDB bot store, falling back to in-memory: {e}")
    return InMemoryBotStore()


def create_action_queue(settings: SchedulerSettings) -> ActionQueue:
    """Create the delayed action queue selected by the settings"""
    if settings.use_dynamodb:
        try:
            from .dynamodb_action_queue import DynamoDBActionQueue
            logger.info("Creating DynamoDB action queue")
            return DynamoDBActionQueue(
                table_name=settings.action_jobs_table,
                region_name=settings.aws_region,
                endpoint_url=settings.dynamodb_endpoint_url,
            )
        except Exception as e:
            logger.error(f"Failed to create DynamoDB action queue, falling back to in-memory: {e}")
    logger.info("Creating in-memory action queue")
    return InMemoryActionQueue()


__all__ = ['BotStore', 'InMemoryBotStore', 'create_bot_store', 'create_action_queue']
