"""
Test suite for the NFT minter.

Test Categories:
- Unit Tests: configuration, address extraction, retry and batch logic
- Client Tests: Solana RPC wrapper and Metaplex bridge protocol
- Pipeline Tests: end-to-end runs against in-memory collaborators
"""
