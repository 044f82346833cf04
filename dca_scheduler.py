#!/usr/bin/env python3
"""
DCA Bot Scheduler

Main entry point of the recurring buy scheduler.

Features:
- Executes every active bot at its interval checkpoints
- Buffers amounts below the exchange minimum until they can be traded
- Repairs bots whose scheduled action was lost
- Follows submitted orders until they are filled
- Telegram notifications for skipped purchases and failures
- In-memory or DynamoDB persistence
"""

import asyncio
import dataclasses
import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from dcabot.config import NotificationSettings, SchedulerSettings
from dcabot.context import BotContext
from dcabot.exchange import ExchangeRegistry, PaperExchange
from dcabot.notifications import create_notifier
from dcabot.scheduler.config_loader import BotConfigLoader
from dcabot.scheduler.orchestrator import DCAOrchestrator
from dcabot.storage import create_action_queue, create_bot_store
from dcabot.telemetry import TelemetryCollector
from dcabot.tickers import TickerRegistry

# Configure logging
logger = logging.getLogger(__name__)


def setup_logging():
    """Configure logging for the scheduler"""
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )

    # Suppress verbose logs from external libraries
    for name in ('botocore', 'boto3', 'urllib3', 'httpx', 'telegram'):
        logging.getLogger(name).setLevel(logging.WARNING)


def apply_config_overrides(settings: SchedulerSettings, config: BotConfigLoader) -> SchedulerSettings:
    """bot_config.json cadences win over environment defaults"""
    overrides = {
        'poll_seconds': config.get_poll_seconds(),
        'repair_interval_minutes': config.get_repair_interval_minutes(),
        'fill_poll_seconds': config.get_fill_poll_seconds(),
    }
    return dataclasses.replace(settings, **{k: v for k, v in overrides.items() if v is not None})


def build_exchanges(settings: SchedulerSettings, config: BotConfigLoader) -> ExchangeRegistry:
    registry = ExchangeRegistry()
    if not settings.paper_trading:
        logger.warning("⚠️  DCABOT_PAPER_TRADING is off but no live exchange client is bundled; "
                       "register one before starting bots")
        return registry

    paper = config.get_paper_exchange_config()
    registry.register(PaperExchange(
        name=paper.get('name', 'paper'),
        prices=paper.get('prices', {}),
        balances=paper.get('balances', {}),
    ))
    return registry


async def seed_bots(orchestrator: DCAOrchestrator, config: BotConfigLoader):
    """Store configured bots that are not known yet and start the ones marked to start"""
    store = orchestrator.context.store
    for bot in config.build_bots():
        if store.get_bot(bot.id) is not None:
            logger.info(f"Bot {bot.id} already stored, keeping its state")
            continue
        store.save_bot(bot)
        logger.info(f"✅ Bot {bot.id} created ({bot.bot_type.value})")
        if config.should_start(bot):
            await orchestrator.lifecycle.start(bot.id)


async def main():
    """Main entry point"""
    setup_logging()

    logger.info("=" * 80)
    logger.info("🤖 DCA Bot Scheduler")
    logger.info("=" * 80)

    try:
        config = BotConfigLoader(os.getenv('BOT_CONFIG_PATH'))
        settings = apply_config_overrides(SchedulerSettings.from_env(), config)

        telemetry = TelemetryCollector.instance()
        telemetry.configure(enabled=config.is_telemetry_enabled(),
                            persistence_path=config.get_telemetry_persistence_path())

        context = BotContext(
            store=create_bot_store(settings),
            exchanges=build_exchanges(settings, config),
            tickers=TickerRegistry.from_config(config.get_tickers_config()),
            notifier=create_notifier(NotificationSettings.from_env()),
            telemetry=telemetry,
        )
        orchestrator = DCAOrchestrator(context, create_action_queue(settings), settings)
        orchestrator.install_signal_handlers()

        await seed_bots(orchestrator, config)
        try:
            await orchestrator.start()
        finally:
            await context.notifier.drain()

    except KeyboardInterrupt:
        logger.info("🛑 Program interrupted by user")
    except Exception as e:
        logger.error(f"❌ Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
