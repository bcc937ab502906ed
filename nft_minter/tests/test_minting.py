"""
Unit Tests for the standard and compressed minters.
"""

import dataclasses
from unittest.mock import call

import pytest

from ..exceptions import UpstreamCallError
from ..metadata import NFTMintStatus
from ..minting import CollectionInfo, CompressedNFTMinter, StandardNFTMinter
from ..retry import RetryingCaller
from ..users import UserRecord
from .conftest import FakeMetaplexBridge, FakeSolanaClient

USER = UserRecord(id='42', solana_address='AbC123')


@pytest.fixture
def bridge():
    return FakeMetaplexBridge()


@pytest.fixture
def solana():
    return FakeSolanaClient()


@pytest.fixture
def retrying(fake_sleep):
    return RetryingCaller(max_attempts=3, delay=5.0, sleep=fake_sleep)


class TestResolveImageUri:
    """Test cases for image URI resolution."""

    @pytest.mark.asyncio
    async def test_configured_uri_skips_upload(self, bridge, solana, settings, retrying):
        minter = StandardNFTMinter(bridge, solana, settings, retrying)

        assert await minter.resolve_image_uri() == 'https://arweave.net/configured-image'
        assert bridge.uploaded_files == []

    @pytest.mark.asyncio
    async def test_uploads_local_image(self, bridge, solana, settings, retrying):
        settings = dataclasses.replace(settings, image_uri=None, image_path='assets/image.png')
        minter = StandardNFTMinter(bridge, solana, settings, retrying)

        assert await minter.resolve_image_uri() == 'https://arweave.net/image'
        assert bridge.uploaded_files == [('assets/image.png', 'image/png')]


class TestStandardNFTMinter:
    """Test cases for collection and per-user standard NFTs."""

    @pytest.mark.asyncio
    async def test_mint_collection(self, bridge, solana, settings, retrying):
        minter = StandardNFTMinter(bridge, solana, settings, retrying)

        collection = await minter.mint_collection('https://arweave.net/image')

        assert collection == CollectionInfo(
            address='Mint1',
            metadata_uri='https://arweave.net/metadata-1',
            signature='sig-create-1'
        )
        metadata = bridge.uploaded_metadata[0]
        assert metadata['name'] == 'My Collection NFT'
        assert metadata['symbol'] == 'MECOL'
        assert metadata['description'] == 'This is a collection NFT on Solana Devnet'
        assert metadata['attributes'] == [{'trait_type': 'Network', 'value': 'Devnet'}]
        assert bridge.created_nfts[0]['is_collection'] is True
        assert solana.confirmed == ['sig-create-1']

    @pytest.mark.asyncio
    async def test_mint_collection_retries_create_only(self, bridge, solana, settings, retrying, fake_sleep):
        solana.failing_signatures.add('sig-create-1')
        minter = StandardNFTMinter(bridge, solana, settings, retrying)

        collection = await minter.mint_collection('https://arweave.net/image')

        assert collection.address == 'Mint2'
        assert len(bridge.uploaded_metadata) == 1
        assert len(bridge.created_nfts) == 2
        fake_sleep.assert_awaited_once_with(5.0)

    @pytest.mark.asyncio
    async def test_mint_for_user(self, bridge, solana, settings, retrying):
        minter = StandardNFTMinter(bridge, solana, settings, retrying)
        collection = CollectionInfo(address='Coll1', metadata_uri='https://arweave.net/c', signature='sig-c')

        result = await minter.mint_for_user(USER, 'https://arweave.net/image', collection)

        assert result.status == NFTMintStatus.CONFIRMED
        assert result.recipient == 'AbC123'
        assert result.user_id == '42'
        assert result.mint_address == 'Mint1'
        assert result.signature == 'sig-create-1'

        metadata = bridge.uploaded_metadata[0]
        assert metadata['name'] == 'TestNFT'
        assert metadata['symbol'] == 'TNFT'
        assert metadata['description'] == 'This is a special NFT for user 42 on Solana'
        assert metadata['attributes'] == [
            {'trait_type': 'User ID', 'value': '42'},
            {'trait_type': 'Solana Address', 'value': 'AbC123'},
        ]
        assert metadata['properties']['files'] == [{'uri': 'https://arweave.net/image', 'type': 'image/png'}]
        assert bridge.created_nfts[0]['collection'] == 'Coll1'
        assert bridge.created_nfts[0]['token_owner'] == 'AbC123'
        assert bridge.created_nfts[0]['is_collection'] is False

    @pytest.mark.asyncio
    async def test_mint_for_user_retries_whole_sequence(self, bridge, solana, settings, retrying, fake_sleep):
        solana.failing_signatures.add('sig-create-1')
        minter = StandardNFTMinter(bridge, solana, settings, retrying)
        collection = CollectionInfo(address='Coll1', metadata_uri='https://arweave.net/c', signature='sig-c')

        result = await minter.mint_for_user(USER, 'https://arweave.net/image', collection)

        assert result.mint_address == 'Mint2'
        assert result.metadata_uri == 'https://arweave.net/metadata-2'
        assert len(bridge.uploaded_metadata) == 2
        fake_sleep.assert_awaited_once_with(5.0)

    @pytest.mark.asyncio
    async def test_mint_for_user_gives_up_after_max_attempts(self, bridge, solana, settings, retrying, fake_sleep):
        solana.failing_signatures.update({'sig-create-1', 'sig-create-2', 'sig-create-3'})
        minter = StandardNFTMinter(bridge, solana, settings, retrying)
        collection = CollectionInfo(address='Coll1', metadata_uri='https://arweave.net/c', signature='sig-c')

        with pytest.raises(UpstreamCallError):
            await minter.mint_for_user(USER, 'https://arweave.net/image', collection)

        assert len(bridge.created_nfts) == 3
        assert fake_sleep.await_args_list == [call(5.0), call(5.0)]


class TestCompressedNFTMinter:
    """Test cases for Merkle tree setup and compressed mints."""

    @pytest.mark.asyncio
    async def test_ensure_tree_creates_tree(self, bridge, solana, settings, retrying):
        minter = CompressedNFTMinter(bridge, solana, settings, retrying)

        assert await minter.ensure_tree() == 'Tree1'
        assert bridge.created_trees == [(14, 64)]
        assert solana.confirmed == ['sig-tree']

    @pytest.mark.asyncio
    async def test_ensure_tree_uses_configured_tree(self, bridge, solana, settings, retrying):
        settings = dataclasses.replace(settings, tree_address='ExistingTree')
        minter = CompressedNFTMinter(bridge, solana, settings, retrying)

        assert await minter.ensure_tree() == 'ExistingTree'
        assert bridge.created_trees == []

    @pytest.mark.asyncio
    async def test_mint_for_user(self, bridge, solana, settings, retrying):
        minter = CompressedNFTMinter(bridge, solana, settings, retrying)

        result = await minter.mint_for_user(USER, 'https://arweave.net/image', 'Tree1')

        assert result.status == NFTMintStatus.CONFIRMED
        assert result.mint_address == 'Asset1'
        assert result.signature == 'sig-cnft-1'
        assert bridge.compressed_mints == [('Tree1', 'AbC123', 'https://arweave.net/metadata-1')]
        assert solana.confirmed == ['sig-cnft-1']

    @pytest.mark.asyncio
    async def test_mint_for_user_does_not_retry(self, bridge, solana, settings, retrying, fake_sleep):
        bridge.failing_owners.add('AbC123')
        minter = CompressedNFTMinter(bridge, solana, settings, retrying)

        with pytest.raises(UpstreamCallError):
            await minter.mint_for_user(USER, 'https://arweave.net/image', 'Tree1')

        assert len(bridge.compressed_mints) == 1
        fake_sleep.assert_not_awaited()
