"""
Shared fixtures and in-memory collaborators.
"""

import csv
from unittest.mock import AsyncMock

import base58
import pytest
from solders.keypair import Keypair

from ..clients.solana_client import LAMPORTS_PER_SOL
from ..config import NETWORK_CONFIGS, MintingSettings
from ..exceptions import UpstreamCallError


class FakeSolanaClient:
    """In-memory stand-in for SolanaClient."""

    def __init__(self, balance: int = LAMPORTS_PER_SOL):
        self.balance = balance
        self.confirmed = []
        self.failing_signatures = set()
        self.entered = False
        self.closed = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    async def get_balance(self, pubkey) -> int:
        return self.balance

    async def confirm_transaction(self, signature: str) -> None:
        if signature in self.failing_signatures:
            raise UpstreamCallError(f"Transaction {signature} failed", action="confirm_transaction")
        self.confirmed.append(signature)


class FakeMetaplexBridge:
    """In-memory stand-in for MetaplexBridge."""

    def __init__(self):
        self.uploaded_files = []
        self.uploaded_metadata = []
        self.created_nfts = []
        self.created_trees = []
        self.compressed_mints = []
        self.failing_owners = set()
        self.entered = False
        self.closed = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    async def upload_file(self, path: str, content_type: str = "image/png") -> str:
        self.uploaded_files.append((path, content_type))
        return "https://arweave.net/image"

    async def upload_metadata(self, metadata: dict) -> str:
        self.uploaded_metadata.append(metadata)
        return f"https://arweave.net/metadata-{len(self.uploaded_metadata)}"

    async def create_nft(self, uri, name, symbol, is_collection=False, collection=None,
                         token_owner=None, seller_fee_basis_points=0) -> dict:
        self.created_nfts.append({
            "uri": uri,
            "name": name,
            "symbol": symbol,
            "is_collection": is_collection,
            "collection": collection,
            "token_owner": token_owner,
        })
        number = len(self.created_nfts)
        return {"mint_address": f"Mint{number}", "signature": f"sig-create-{number}"}

    async def create_tree(self, max_depth, max_buffer_size, public=False) -> dict:
        self.created_trees.append((max_depth, max_buffer_size))
        return {"tree_address": "Tree1", "signature": "sig-tree"}

    async def mint_compressed(self, tree_address, leaf_owner, uri, name, symbol,
                              seller_fee_basis_points=0) -> dict:
        self.compressed_mints.append((tree_address, leaf_owner, uri))
        if leaf_owner in self.failing_owners:
            raise UpstreamCallError(f"mint_compressed failed for {leaf_owner}", action="mint_compressed")
        number = len(self.compressed_mints)
        return {"signature": f"sig-cnft-{number}", "asset_id": f"Asset{number}"}


def write_users_csv(path, rows):
    """Write a users CSV with ``id`` and ``linked_accounts`` columns."""
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['id', 'linked_accounts'])
        for row in rows:
            writer.writerow(row)
    return str(path)


def solana_wallet(address: str) -> str:
    """Python-repr style linked accounts holding one Solana wallet."""
    return (
        f"[{{'type': 'email', 'address': 'user@example.com', 'verified_at': None}}, "
        f"{{'type': 'wallet', 'chain_type': 'solana', 'address': '{address}', 'imported': False}}]"
    )


@pytest.fixture
def wallet_secret():
    return base58.b58encode(bytes(Keypair())).decode()


@pytest.fixture
def fake_sleep():
    return AsyncMock()


@pytest.fixture
def settings(tmp_path, wallet_secret):
    users_csv = write_users_csv(tmp_path / 'users.csv', [
        ['1', solana_wallet('Addr1')],
        ['2', "[{'type': 'wallet', 'chain_type': 'ethereum', 'address': '0xabc'}]"],
        ['3', solana_wallet('Addr3')],
    ])
    return MintingSettings(
        network=NETWORK_CONFIGS['devnet'],
        rpc_url='https://api.devnet.solana.com',
        wallet_private_key=wallet_secret,
        users_csv_path=users_csv,
        image_uri='https://arweave.net/configured-image',
        batch_delay=2.0,
        item_delay=0.0,
        retry_delay=5.0,
    )
