"""
Command-line entry points.

    mint-nfts  [mainnet|devnet]   collection + standard NFT per user
    mint-cnfts [mainnet|devnet]   compressed NFT per user
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config import DEFAULT_NETWORK, MintingSettings, select_network
from .exceptions import ConfigurationError
from .logging_utils import configure_logging, create_operation_logger
from .pipeline import MintingPipeline

logger = create_operation_logger("cli")


def build_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument(
        'network',
        nargs='?',
        default=DEFAULT_NETWORK,
        help='Solana network to mint on: mainnet or devnet (default: devnet)',
    )
    return parser


def main(argv: Optional[List[str]] = None, compressed: bool = False) -> int:
    """Run a minting job and return the process exit code."""
    load_dotenv()
    configure_logging(os.getenv('LOG_LEVEL', 'INFO'))

    if compressed:
        parser = build_parser('mint-cnfts', 'Mint compressed NFTs to every user in the CSV')
    else:
        parser = build_parser('mint-nfts', 'Mint a collection and one NFT per user in the CSV')
    args = parser.parse_args(argv)

    try:
        network = select_network(args.network)
        settings = MintingSettings.from_env(network)
        pipeline = MintingPipeline(settings, compressed=compressed)
    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e))
        return 1

    try:
        progress = asyncio.run(pipeline.run())
    except Exception as e:
        logger.exception("Error minting NFTs", error=str(e), network=network.display_name)
        return 1

    logger.info(
        "Minting run finished",
        successful_items=progress.successful_items,
        failed_items=progress.failed_items,
        skipped_items=progress.skipped_items
    )
    return 0


def run() -> None:
    sys.exit(main())


def run_compressed() -> None:
    sys.exit(main(compressed=True))
