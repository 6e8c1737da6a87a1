import argparse
import asyncio
import logging
import os
import sys

import httpx

from billing.kplc import KPLCBillQuery
from channels.base import get_channels
from errors import BillAlertError
from http_client import get_http_client
from settings import DEFAULT_CONFIG_PATH, Settings, load_settings

logger = logging.getLogger(__name__)

# Accepted names mapped to logging levels; "warn" and "trace" are kept as aliases
LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG
}


async def check_bill(settings: Settings, http_client: httpx.AsyncClient) -> int:
    """
    Fetch the bill and alert every enabled channel when money is owed.

    Returns:
        Process exit code: 0 when done (alerted or nothing owed), 1 on the
        first failure.
    """
    query = KPLCBillQuery(settings.kplc, http_client)

    logger.info("Fetching bill from KPLC")
    try:
        bill = await query.get_bill()
    except BillAlertError as e:
        logger.error(f"Error fetching bill from KPLC: {e}")
        return 1
    logger.info("Done fetching bill from KPLC")

    if not bill.is_owing:
        logger.info("No balance present")
        return 0

    logger.info("Balance present... sending alert to enabled channels")
    for channel in get_channels(settings, http_client):
        if not channel.is_enabled():
            logger.debug(f"Skipping disabled channel {channel.name}")
            continue

        logger.info(f"Sending alert to {channel.name}")
        try:
            await channel.send_alert(bill)
        except BillAlertError as e:
            logger.error(f"Error sending alert to {channel.name}: {e}")
            return 1
        logger.info(f"Sent alert to {channel.name}")

    logger.info("Done!")
    return 0


async def main(settings: Settings) -> int:
    async with get_http_client() as http_client:
        return await check_bill(settings, http_client)


def run(argv=None) -> int:
    # Parse command line arguments
    parser = argparse.ArgumentParser(description="KPLC Bill Alert")
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f"dotenv config file to use (default: {DEFAULT_CONFIG_PATH})"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=list(LOG_LEVELS),
        help="Level of logging (default: info, overridden by KPLC_LOG_LEVEL)"
    )
    args = parser.parse_args(argv)

    # Setup logging
    env_log_level = os.getenv("KPLC_LOG_LEVEL", "").lower()
    log_level = env_log_level if env_log_level in LOG_LEVELS else args.log_level
    logging.basicConfig(
        level=LOG_LEVELS[log_level],
        format='%(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    if env_log_level and env_log_level not in LOG_LEVELS:
        logger.warning(f"Ignoring unknown KPLC_LOG_LEVEL {env_log_level!r}, using {log_level}")

    logger.debug(f"Fetching settings from file {args.config}")
    try:
        settings = load_settings(args.config)
    except BillAlertError as e:
        logger.error(f"Error loading settings: {e}")
        return 1

    return asyncio.run(main(settings))


def cli():
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        logger.info("Script stopped by user.")
        sys.exit(130)


if __name__ == "__main__":
    cli()
