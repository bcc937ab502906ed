"""
Solana RPC access for the minting run.

Wraps a single AsyncClient shared by the whole run for slot checks,
balance queries and transaction confirmation, and loads the signing wallet.
"""

import logging
from typing import Optional

import base58
import httpx
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException, UnconfirmedTxError
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from ..exceptions import ConfigurationError, UpstreamCallError
from ..logging_utils import create_operation_logger

logger = create_operation_logger("solana_client")

LAMPORTS_PER_SOL = 1_000_000_000

rpc_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((RPCException, httpx.HTTPError)),
    before_sleep=before_sleep_log(logging.getLogger(__name__), logging.WARNING),
    reraise=True
)


def load_keypair(secret: str) -> Keypair:
    """
    Decode a base58 wallet secret.

    A 64-byte secret is a full keypair, a 32-byte secret is a seed.

    Raises:
        ConfigurationError: If the secret cannot be decoded into a keypair.
    """
    try:
        secret_bytes = base58.b58decode(secret.strip())
    except ValueError as e:
        raise ConfigurationError(f"WALLET_PRIVATE_KEY is not valid base58: {e}") from e

    try:
        if len(secret_bytes) == 64:
            return Keypair.from_bytes(secret_bytes)
        if len(secret_bytes) == 32:
            return Keypair.from_seed(secret_bytes)
    except ValueError as e:
        raise ConfigurationError(f"WALLET_PRIVATE_KEY is not a valid keypair: {e}") from e

    raise ConfigurationError(f"Invalid secret key length: {len(secret_bytes)}")


class SolanaClient:
    """Shared async Solana RPC client for one minting run."""

    def __init__(self, rpc_url: str, ws_url: Optional[str] = None, timeout: int = 300):
        self.rpc_url = rpc_url
        self.ws_url = ws_url
        self.timeout = timeout
        self.async_client: Optional[AsyncClient] = None

    async def __aenter__(self) -> 'SolanaClient':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _require_client(self) -> AsyncClient:
        if self.async_client is None:
            raise UpstreamCallError("Solana client is not connected")
        return self.async_client

    async def connect(self) -> None:
        """Open the RPC client and verify the endpoint answers."""
        if self.async_client is None:
            self.async_client = AsyncClient(self.rpc_url, commitment=Confirmed, timeout=self.timeout)

        try:
            slot = await self.get_slot()
        except (RPCException, httpx.HTTPError) as e:
            raise UpstreamCallError(f"Failed to connect to Solana RPC {self.rpc_url}: {e}", action="get_slot") from e

        logger.info(
            "Successfully connected to Solana RPC",
            url=self.rpc_url,
            ws_url=self.ws_url,
            current_slot=slot
        )

    @rpc_retry
    async def get_slot(self) -> int:
        """Get the current slot."""
        response = await self._require_client().get_slot()
        return response.value

    @rpc_retry
    async def get_balance(self, pubkey: Pubkey) -> int:
        """Get account balance in lamports."""
        response = await self._require_client().get_balance(pubkey)
        return response.value

    async def confirm_transaction(self, signature: str) -> None:
        """
        Wait for ``signature`` to reach confirmed commitment.

        Raises:
            UpstreamCallError: If the transaction failed or was not confirmed.
        """
        client = self._require_client()
        try:
            response = await client.confirm_transaction(Signature.from_string(signature), commitment=Confirmed)
        except (UnconfirmedTxError, RPCException, httpx.HTTPError) as e:
            raise UpstreamCallError(
                f"Transaction {signature} was not confirmed: {e}",
                action="confirm_transaction"
            ) from e

        status = response.value[0] if response.value else None
        if status is None:
            raise UpstreamCallError(f"Transaction {signature} not found", action="confirm_transaction")
        if status.err is not None:
            raise UpstreamCallError(
                f"Transaction {signature} failed: {status.err}",
                action="confirm_transaction"
            )

        logger.debug("Transaction confirmed", signature=signature)

    async def close(self) -> None:
        """Close the RPC client."""
        if self.async_client is not None:
            await self.async_client.close()
            self.async_client = None
            logger.info("SolanaClient connections closed")
