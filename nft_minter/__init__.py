"""
Solana NFT Batch Minter

Mints a collection NFT (or a compressed NFT Merkle tree) and one NFT per
user found in a CSV export, delegating storage uploads and on-chain minting
to the Metaplex SDK through a long-lived bridge process.

Components:
- select_network / MintingSettings: network and environment configuration
- read_users / load_users: wallet address extraction from the users CSV
- RetryingCaller: fixed-count, fixed-delay retry around upstream calls
- BatchMinter: sequential batched minting with inter-batch delays
- MintingPipeline: end-to-end minting run
"""

from .config import NetworkConfig, MintingSettings, select_network
from .exceptions import (
    NFTMinterError,
    ConfigurationError,
    RowParseError,
    UpstreamCallError,
    PerRecipientMintError,
)
from .users import UserRecord, LinkedAccountEntry, read_users, load_users
from .retry import RetryingCaller
from .batch import BatchMinter, BatchProgress, chunk

__version__ = '1.0.0'

__all__ = [
    'NetworkConfig',
    'MintingSettings',
    'select_network',
    'NFTMinterError',
    'ConfigurationError',
    'RowParseError',
    'UpstreamCallError',
    'PerRecipientMintError',
    'UserRecord',
    'LinkedAccountEntry',
    'read_users',
    'load_users',
    'RetryingCaller',
    'BatchMinter',
    'BatchProgress',
    'chunk',
]
