"""
Per-recipient mint operations for standard and compressed NFTs.

Standard NFTs are minted into a collection NFT, each recipient's mint being
retried as one unit. Compressed NFTs are minted into a Bubblegum Merkle tree
without retry: a failure goes straight back to the batch loop.
"""

from dataclasses import dataclass
from typing import Optional

from .clients.metaplex_bridge import MetaplexBridge
from .clients.solana_client import SolanaClient
from .config import MintingSettings
from .logging_utils import (
    log_minting_operation,
    log_mint_event,
    OperationType,
    create_operation_logger
)
from .metadata import MintResult, NFTMetadata, NFTMintStatus
from .retry import RetryingCaller
from .users import UserRecord

logger = create_operation_logger("minting")


@dataclass(frozen=True)
class CollectionInfo:
    """The collection NFT every user's NFT belongs to."""
    address: str
    metadata_uri: str
    signature: str


class _BaseMinter:
    """Shared collaborators and image handling for both mint flavours."""

    def __init__(
        self,
        bridge: MetaplexBridge,
        solana: SolanaClient,
        settings: MintingSettings,
        retrying: Optional[RetryingCaller] = None
    ):
        self.bridge = bridge
        self.solana = solana
        self.settings = settings
        self.retrying = retrying or RetryingCaller(settings.max_attempts, settings.retry_delay)

    @log_minting_operation(OperationType.IMAGE_UPLOAD, "resolve_image_uri")
    async def resolve_image_uri(self) -> str:
        """Use the configured image URI, or upload the local image."""
        if self.settings.image_uri:
            logger.info("Using image from configured URI", image_uri=self.settings.image_uri)
            return self.settings.image_uri

        image_uri = await self.retrying.call(
            lambda: self.bridge.upload_file(self.settings.image_path, "image/png"),
            "Image upload"
        )
        logger.info("Image uploaded", image_path=self.settings.image_path, image_uri=image_uri)
        return image_uri


class StandardNFTMinter(_BaseMinter):
    """Mints a collection NFT and one collection member per user."""

    @log_minting_operation(OperationType.COLLECTION_MINTING, "mint_collection")
    async def mint_collection(self, image_uri: str) -> CollectionInfo:
        """Upload collection metadata, then create and confirm the collection NFT."""
        metadata = NFTMetadata.for_collection(
            self.settings.collection_name,
            self.settings.collection_symbol,
            self.settings.network.display_name,
            image_uri
        )

        metadata_uri = await self.retrying.call(
            lambda: self.bridge.upload_metadata(metadata.to_dict()),
            "Collection metadata upload"
        )
        logger.info("Collection metadata uploaded", metadata_uri=metadata_uri)

        async def create_and_confirm():
            created = await self.bridge.create_nft(
                uri=metadata_uri,
                name=metadata.name,
                symbol=metadata.symbol,
                is_collection=True
            )
            logger.info("Collection transaction signature", signature=created["signature"])
            await self.solana.confirm_transaction(created["signature"])
            return created

        created = await self.retrying.call(create_and_confirm, "Collection minting")

        logger.info("Collection NFT minted successfully", collection_address=created["mint_address"])
        return CollectionInfo(
            address=created["mint_address"],
            metadata_uri=metadata_uri,
            signature=created["signature"]
        )

    async def mint_for_user(self, user: UserRecord, image_uri: str, collection: CollectionInfo) -> MintResult:
        """Mint one collection NFT to ``user``, retrying the whole sequence."""
        log_mint_event("started", user.solana_address, user.id, {"collection": collection.address})

        async def upload_create_confirm() -> MintResult:
            metadata = NFTMetadata.for_user(
                self.settings.nft_name,
                self.settings.nft_symbol,
                user,
                image_uri
            )
            metadata_uri = await self.bridge.upload_metadata(metadata.to_dict())
            logger.info("NFT metadata uploaded", user_id=user.id, metadata_uri=metadata_uri)

            created = await self.bridge.create_nft(
                uri=metadata_uri,
                name=metadata.name,
                symbol=metadata.symbol,
                collection=collection.address,
                token_owner=user.solana_address
            )
            logger.info("NFT transaction signature", user_id=user.id, signature=created["signature"])

            await self.solana.confirm_transaction(created["signature"])

            return MintResult(
                recipient=user.solana_address,
                user_id=user.id,
                status=NFTMintStatus.CONFIRMED,
                mint_address=created["mint_address"],
                signature=created["signature"],
                metadata_uri=metadata_uri
            )

        result = await self.retrying.call(upload_create_confirm, f"Minting for user {user.id}")

        log_mint_event(
            "completed",
            user.solana_address,
            user.id,
            {"mint_address": result.mint_address, "signature": result.signature}
        )
        return result


class CompressedNFTMinter(_BaseMinter):
    """Mints compressed NFTs into a Bubblegum Merkle tree."""

    @log_minting_operation(OperationType.TREE_CREATION, "ensure_tree")
    async def ensure_tree(self) -> str:
        """Return the configured tree, or create and confirm a new one."""
        if self.settings.tree_address:
            logger.info("Using existing Merkle tree", tree_address=self.settings.tree_address)
            return self.settings.tree_address

        async def create_and_confirm():
            created = await self.bridge.create_tree(
                max_depth=self.settings.tree_max_depth,
                max_buffer_size=self.settings.tree_max_buffer_size
            )
            await self.solana.confirm_transaction(created["signature"])
            return created

        created = await self.retrying.call(create_and_confirm, "Merkle tree creation")

        logger.info(
            "Merkle tree created",
            tree_address=created["tree_address"],
            signature=created["signature"],
            max_depth=self.settings.tree_max_depth,
            max_buffer_size=self.settings.tree_max_buffer_size,
            max_capacity=2 ** self.settings.tree_max_depth
        )
        return created["tree_address"]

    async def mint_for_user(self, user: UserRecord, image_uri: str, tree_address: str) -> MintResult:
        """Mint one compressed NFT to ``user``. Failures propagate immediately."""
        log_mint_event("started", user.solana_address, user.id, {"tree_address": tree_address})

        metadata = NFTMetadata.for_user(
            self.settings.nft_name,
            self.settings.nft_symbol,
            user,
            image_uri
        )
        metadata_uri = await self.bridge.upload_metadata(metadata.to_dict())

        minted = await self.bridge.mint_compressed(
            tree_address=tree_address,
            leaf_owner=user.solana_address,
            uri=metadata_uri,
            name=metadata.name,
            symbol=metadata.symbol
        )
        await self.solana.confirm_transaction(minted["signature"])

        log_mint_event(
            "completed",
            user.solana_address,
            user.id,
            {"asset_id": minted["asset_id"], "signature": minted["signature"]}
        )

        return MintResult(
            recipient=user.solana_address,
            user_id=user.id,
            status=NFTMintStatus.CONFIRMED,
            mint_address=minted["asset_id"],
            signature=minted["signature"],
            metadata_uri=metadata_uri
        )
