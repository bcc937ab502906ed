"""
Clients for the upstream collaborators: the Solana RPC and the Metaplex bridge.
"""

from .solana_client import SolanaClient, load_keypair, LAMPORTS_PER_SOL
from .metaplex_bridge import MetaplexBridge

__all__ = [
    'SolanaClient',
    'load_keypair',
    'LAMPORTS_PER_SOL',
    'MetaplexBridge',
]
