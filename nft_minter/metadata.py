"""
Off-chain metadata documents and mint results.
"""

import time
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .users import UserRecord

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10


class NFTMintStatus(Enum):
    """Status of NFT minting operation."""
    CONFIRMED = "confirmed"


@dataclass
class NFTMetadata:
    """Metadata document uploaded to storage before minting."""
    name: str
    symbol: str
    description: str
    image: str
    attributes: List[Dict[str, Any]] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate required fields and on-chain length limits."""
        if not self.name or len(self.name.strip()) == 0:
            raise ValueError("Name is required")
        if not self.symbol or len(self.symbol.strip()) == 0:
            raise ValueError("Symbol is required")
        if not self.description or len(self.description.strip()) == 0:
            raise ValueError("Description is required")
        if not self.image or len(self.image.strip()) == 0:
            raise ValueError("Image URL is required")
        if len(self.name) > MAX_NAME_LENGTH:
            raise ValueError(f"Name must be at most {MAX_NAME_LENGTH} characters")
        if len(self.symbol) > MAX_SYMBOL_LENGTH:
            raise ValueError(f"Symbol must be at most {MAX_SYMBOL_LENGTH} characters")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @staticmethod
    def _image_properties(image_uri: str) -> Dict[str, Any]:
        return {
            "category": "image",
            "files": [
                {"uri": image_uri, "type": "image/png"}
            ]
        }

    @classmethod
    def for_collection(
        cls,
        name: str,
        symbol: str,
        network_name: str,
        image_uri: str
    ) -> 'NFTMetadata':
        """Create metadata for the collection NFT."""
        return cls(
            name=name,
            symbol=symbol,
            description=f"This is a collection NFT on Solana {network_name}",
            image=image_uri,
            attributes=[
                {"trait_type": "Network", "value": network_name}
            ],
            properties=cls._image_properties(image_uri)
        )

    @classmethod
    def for_user(
        cls,
        name: str,
        symbol: str,
        user: UserRecord,
        image_uri: str
    ) -> 'NFTMetadata':
        """Create metadata for the NFT minted to one user."""
        return cls(
            name=name,
            symbol=symbol,
            description=f"This is a special NFT for user {user.id} on Solana",
            image=image_uri,
            attributes=[
                {"trait_type": "User ID", "value": user.id},
                {"trait_type": "Solana Address", "value": user.solana_address}
            ],
            properties=cls._image_properties(image_uri)
        )


@dataclass
class MintResult:
    """Result of minting one NFT."""
    recipient: str
    status: NFTMintStatus
    user_id: Optional[str] = None
    mint_address: Optional[str] = None
    signature: Optional[str] = None
    metadata_uri: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = asdict(self)
        result['status'] = self.status.value
        return result
