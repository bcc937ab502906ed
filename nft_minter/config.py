"""
Solana network and minting configuration.
"""

import os
import shlex
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from .exceptions import ConfigurationError
from .metadata import MAX_NAME_LENGTH, MAX_SYMBOL_LENGTH


@dataclass(frozen=True)
class NetworkConfig:
    """Static endpoints for one Solana cluster."""
    rpc_url: str
    storage_endpoint: str
    display_name: str


NETWORK_CONFIGS: Dict[str, NetworkConfig] = {
    'mainnet': NetworkConfig(
        rpc_url='https://api.mainnet-beta.solana.com',
        storage_endpoint='https://node1.bundlr.network',
        display_name='Mainnet Beta',
    ),
    'devnet': NetworkConfig(
        rpc_url='https://api.devnet.solana.com',
        storage_endpoint='https://devnet.bundlr.network',
        display_name='Devnet',
    ),
}

DEFAULT_NETWORK = 'devnet'

DEFAULT_BRIDGE_COMMAND = 'node scripts/metaplex_bridge.mjs'


def select_network(token: Optional[str] = None) -> NetworkConfig:
    """Map a CLI network token to its configuration, defaulting to devnet."""
    if token is None or not token.strip():
        token = DEFAULT_NETWORK

    network = token.strip().lower()
    if network not in NETWORK_CONFIGS:
        raise ConfigurationError(
            f"Unknown network '{token}'. Expected one of: {', '.join(sorted(NETWORK_CONFIGS))}"
        )

    return NETWORK_CONFIGS[network]


def _get_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'")


def _get_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'")


@dataclass(frozen=True)
class MintingSettings:
    """Everything one minting run needs, resolved once at startup."""
    network: NetworkConfig
    rpc_url: str
    wallet_private_key: str
    ws_url: Optional[str] = None
    users_csv_path: str = './users.sample.csv'
    image_path: str = './assets/image.png'
    image_uri: Optional[str] = None
    bridge_command: Optional[List[str]] = None
    checkpoint_path: Optional[str] = None
    tree_address: Optional[str] = None
    batch_size: int = 5
    batch_delay: float = 2.0
    item_delay: float = 1.0
    max_attempts: int = 3
    retry_delay: float = 5.0
    timeout: int = 300
    tree_max_depth: int = 14
    tree_max_buffer_size: int = 64
    nft_name: str = 'TestNFT'
    nft_symbol: str = 'TNFT'
    collection_name: str = 'My Collection NFT'
    collection_symbol: str = 'MECOL'

    def __post_init__(self):
        if self.bridge_command is None:
            object.__setattr__(self, 'bridge_command', shlex.split(DEFAULT_BRIDGE_COMMAND))
        if self.batch_size < 1:
            raise ConfigurationError("MINT_BATCH_SIZE must be at least 1")
        if self.max_attempts < 1:
            raise ConfigurationError("MINT_MAX_ATTEMPTS must be at least 1")
        if min(self.batch_delay, self.item_delay, self.retry_delay) < 0:
            raise ConfigurationError("Delays must not be negative")
        for env_name, value, limit in (
            ('NFT_NAME', self.nft_name, MAX_NAME_LENGTH),
            ('NFT_SYMBOL', self.nft_symbol, MAX_SYMBOL_LENGTH),
            ('COLLECTION_NAME', self.collection_name, MAX_NAME_LENGTH),
            ('COLLECTION_SYMBOL', self.collection_symbol, MAX_SYMBOL_LENGTH),
        ):
            if not value.strip():
                raise ConfigurationError(f"{env_name} must not be empty")
            if len(value) > limit:
                raise ConfigurationError(f"{env_name} must be at most {limit} characters, got {len(value)}")

    @classmethod
    def from_env(
        cls,
        network: NetworkConfig,
        environ: Optional[Mapping[str, str]] = None
    ) -> 'MintingSettings':
        """Build settings from environment variables."""
        if environ is None:
            environ = os.environ

        wallet_private_key = environ.get('WALLET_PRIVATE_KEY', '').strip()
        if not wallet_private_key:
            raise ConfigurationError('WALLET_PRIVATE_KEY is not set in .env file')

        return cls(
            network=network,
            rpc_url=environ.get('SOLANA_RPC_URL') or network.rpc_url,
            wallet_private_key=wallet_private_key,
            ws_url=environ.get('SOLANA_WS_URL') or None,
            users_csv_path=environ.get('USERS_CSV_PATH', './users.sample.csv'),
            image_path=environ.get('IMAGE_PATH', './assets/image.png'),
            image_uri=environ.get('IMAGE_URI') or None,
            bridge_command=shlex.split(environ.get('METAPLEX_BRIDGE_CMD') or DEFAULT_BRIDGE_COMMAND),
            checkpoint_path=environ.get('MINT_CHECKPOINT_PATH') or None,
            tree_address=environ.get('MERKLE_TREE_ADDRESS') or None,
            batch_size=_get_int(environ, 'MINT_BATCH_SIZE', 5),
            batch_delay=_get_float(environ, 'MINT_BATCH_DELAY', 2.0),
            item_delay=_get_float(environ, 'MINT_ITEM_DELAY', 1.0),
            max_attempts=_get_int(environ, 'MINT_MAX_ATTEMPTS', 3),
            retry_delay=_get_float(environ, 'MINT_RETRY_DELAY', 5.0),
            timeout=_get_int(environ, 'SOLANA_TIMEOUT', 300),
            tree_max_depth=_get_int(environ, 'MERKLE_TREE_MAX_DEPTH', 14),
            tree_max_buffer_size=_get_int(environ, 'MERKLE_TREE_MAX_BUFFER_SIZE', 64),
            nft_name=environ.get('NFT_NAME', 'TestNFT'),
            nft_symbol=environ.get('NFT_SYMBOL', 'TNFT'),
            collection_name=environ.get('COLLECTION_NAME', 'My Collection NFT'),
            collection_symbol=environ.get('COLLECTION_SYMBOL', 'MECOL'),
        )
