"""
End-to-end minting run.

Sets up the wallet, the RPC client and the Metaplex bridge once, mints the
collection NFT (or prepares the Merkle tree for compressed NFTs), then mints
to every user from the CSV in batches.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from solders.keypair import Keypair

from .batch import BatchMinter, BatchProgress
from .checkpoint import MintCheckpoint
from .clients.metaplex_bridge import MetaplexBridge
from .clients.solana_client import LAMPORTS_PER_SOL, SolanaClient, load_keypair
from .config import MintingSettings
from .logging_utils import OperationType, create_operation_logger, log_operation_context
from .minting import CompressedNFTMinter, StandardNFTMinter
from .retry import RetryingCaller
from .users import UserRecord, load_users

logger = create_operation_logger("pipeline")

# Bundlr storage uploads are paid from the wallet.
MIN_STORAGE_BALANCE_LAMPORTS = LAMPORTS_PER_SOL // 10


class MintingPipeline:
    """One minting run over the users CSV."""

    def __init__(
        self,
        settings: MintingSettings,
        compressed: bool = False,
        solana: Optional[SolanaClient] = None,
        bridge: Optional[MetaplexBridge] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.settings = settings
        self.compressed = compressed
        self.keypair: Keypair = load_keypair(settings.wallet_private_key)
        self.solana = solana or SolanaClient(settings.rpc_url, settings.ws_url, settings.timeout)
        self.bridge = bridge or MetaplexBridge(
            settings.bridge_command,
            rpc_url=settings.rpc_url,
            storage_endpoint=settings.network.storage_endpoint,
            ws_url=settings.ws_url,
            timeout=settings.timeout
        )
        self.retrying = RetryingCaller(settings.max_attempts, settings.retry_delay, sleep=sleep)
        self.batch_minter = BatchMinter(
            batch_size=settings.batch_size,
            batch_delay=settings.batch_delay,
            item_delay=settings.item_delay,
            sleep=sleep
        )
        self.checkpoint = MintCheckpoint(settings.checkpoint_path) if settings.checkpoint_path else None

    async def run(self) -> BatchProgress:
        """Run the whole job and return the batch outcome."""
        kind = "compressed" if self.compressed else "standard"
        with log_operation_context(OperationType.BATCH_MINTING, f"{kind}_minting_run",
                                   {"network": self.settings.network.display_name}):
            async with self.solana, self.bridge:
                await self._log_environment()

                if self.compressed:
                    return await self._run_compressed()
                return await self._run_standard()

    async def _log_environment(self) -> None:
        logger.info(
            "NFT minting environment is ready.",
            wallet=str(self.keypair.pubkey()),
            network=self.settings.network.display_name,
            rpc_url=self.settings.rpc_url,
            storage_endpoint=self.settings.network.storage_endpoint
        )

        balance = await self.solana.get_balance(self.keypair.pubkey())
        logger.info(f"Wallet balance: {balance / LAMPORTS_PER_SOL:.4f} SOL", lamports=balance)

        if balance < MIN_STORAGE_BALANCE_LAMPORTS:
            logger.warning(
                "Low balance: Bundlr storage uploads need about 0.1 SOL",
                balance_sol=balance / LAMPORTS_PER_SOL
            )

    async def _run_standard(self) -> BatchProgress:
        minter = StandardNFTMinter(self.bridge, self.solana, self.settings, self.retrying)

        image_uri = await minter.resolve_image_uri()
        collection = await minter.mint_collection(image_uri)

        async def mint_one(user: UserRecord) -> None:
            logger.info(f"Minting NFT for user {user.id} ({user.solana_address})...")
            result = await minter.mint_for_user(user, image_uri, collection)
            self._record(result.recipient, result.to_dict())

        return await self._mint_users(mint_one)

    async def _run_compressed(self) -> BatchProgress:
        minter = CompressedNFTMinter(self.bridge, self.solana, self.settings, self.retrying)

        image_uri = await minter.resolve_image_uri()
        tree_address = await minter.ensure_tree()

        async def mint_one(user: UserRecord) -> None:
            logger.info(f"Minting compressed NFT for user {user.id} ({user.solana_address})...")
            result = await minter.mint_for_user(user, image_uri, tree_address)
            self._record(result.recipient, result.to_dict())

        return await self._mint_users(mint_one)

    async def _mint_users(self, mint_one: Callable[[UserRecord], Awaitable[None]]) -> BatchProgress:
        users = load_users(self.settings.users_csv_path)

        skip = None
        if self.checkpoint is not None:
            checkpoint = self.checkpoint
            skip = lambda user: user.solana_address in checkpoint

        progress = await self.batch_minter.run(
            users,
            mint_one,
            skip=skip,
            address_of=lambda user: user.solana_address
        )

        if progress.failed_items:
            logger.warning(
                "Some NFTs could not be minted",
                failed_items=progress.failed_items,
                failed_recipients=progress.failed_recipients
            )
        else:
            logger.info("All NFTs minted successfully!", successful_items=progress.successful_items)

        return progress

    def _record(self, address: str, summary: dict) -> None:
        if self.checkpoint is not None:
            self.checkpoint.record(address, summary)
