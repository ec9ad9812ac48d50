"""
Frontend news digest bot for a Telegram channel.

Usage:
    python telegram_bot.py                 # stay resident, post on CRON_SCHEDULE
    python telegram_bot.py --run-now       # post one digest and exit
    python telegram_bot.py --run-now --schedule
"""
import argparse
import logging
import sys

from rss_digest import ConfigError, DigestConfig, build_dispatcher
from rss_digest.config import LOG_LEVELS
from rss_digest.scheduler import build_scheduler, run_once

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("rss_digest.bot")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Post an RSS digest to a Telegram channel.")
    parser.add_argument("--run-now", action="store_true", help="run one digest immediately")
    parser.add_argument(
        "--schedule",
        action="store_true",
        help="with --run-now, keep the cron schedule armed after the immediate run",
    )
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=None, help="overrides LOG_LEVEL")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S", level=logging.INFO)

    try:
        config = DigestConfig.from_env()
        dispatcher = build_dispatcher(config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 2

    logging.getLogger().setLevel(args.log_level or config.log_level)
    logger.info("ENV: %s", config.redacted_summary())

    if args.run_now and not args.schedule:
        run_once(dispatcher.run)
        return 0

    scheduler = build_scheduler(config, dispatcher.run, run_now=args.run_now)
    logger.info("Scheduled digest on %r", config.cron_schedule)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Stopping scheduler")
    return 0


if __name__ == "__main__":
    sys.exit(main())
