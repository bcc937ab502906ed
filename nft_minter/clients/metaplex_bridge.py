"""
Metaplex SDK bridge.

Storage uploads, NFT creation and Bubblegum Merkle tree operations are done
by the Metaplex JS SDK running in a Node.js helper process. The process is
started once per run and reused for every call, so the SDK session (wallet
identity, storage driver) is only set up once.

Protocol: one JSON request per line on stdin, one JSON response per line on
stdout::

    -> {"id": 1, "action": "upload_metadata", "params": {...}}
    <- {"id": 1, "status": "success", "result": {"uri": "..."}}
    <- {"id": 1, "status": "error", "error": "..."}
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..exceptions import UpstreamCallError
from ..logging_utils import create_operation_logger

logger = create_operation_logger("metaplex_bridge")


class MetaplexBridge:
    """Client for the long-lived Metaplex helper process."""

    def __init__(
        self,
        command: Sequence[str],
        rpc_url: str,
        storage_endpoint: str,
        ws_url: Optional[str] = None,
        timeout: int = 300,
        cwd: Optional[str] = None
    ):
        self.command: List[str] = list(command)
        self.rpc_url = rpc_url
        self.storage_endpoint = storage_endpoint
        self.ws_url = ws_url
        self.timeout = timeout
        self.cwd = cwd
        self._process: Optional[asyncio.subprocess.Process] = None
        self._request_id = 0

    async def __aenter__(self) -> 'MetaplexBridge':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _environment(self) -> Dict[str, str]:
        env = os.environ.copy()
        env['BRIDGE_RPC_URL'] = self.rpc_url
        env['BRIDGE_STORAGE_ENDPOINT'] = self.storage_endpoint
        env['BRIDGE_TIMEOUT_MS'] = str(self.timeout * 1000)
        if self.ws_url:
            env['BRIDGE_WS_URL'] = self.ws_url
        return env

    async def start(self) -> None:
        """Spawn the helper process."""
        if self._process is not None:
            return

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                cwd=self.cwd,
                env=self._environment(),
            )
        except OSError as e:
            raise UpstreamCallError(f"Failed to start Metaplex bridge {self.command}: {e}", action="start") from e

        logger.info(
            "Metaplex bridge started",
            command=" ".join(self.command),
            pid=self._process.pid,
            storage_endpoint=self.storage_endpoint
        )

    async def close(self) -> None:
        """Stop the helper process."""
        if self._process is None:
            return

        process, self._process = self._process, None
        if process.stdin is not None:
            process.stdin.close()
        try:
            await asyncio.wait_for(process.wait(), timeout=10)
        except asyncio.TimeoutError:
            logger.warning("Metaplex bridge did not exit, killing it", pid=process.pid)
            process.kill()
            await process.wait()

        logger.info("Metaplex bridge stopped", returncode=process.returncode)

    async def _invoke(self, action: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if self._process is None:
            raise UpstreamCallError("Metaplex bridge is not running", action=action)

        self._request_id += 1
        request = {"id": self._request_id, "action": action, "params": params}

        try:
            self._process.stdin.write((json.dumps(request) + "\n").encode())
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise UpstreamCallError(f"Metaplex bridge is not accepting requests: {e}", action=action) from e

        response = await self._read_response(action)

        if response.get("status") != "success":
            raise UpstreamCallError(f"{action} failed: {response.get('error', 'unknown error')}", action=action)

        return response.get("result") or {}

    async def _read_response(self, action: str) -> Dict[str, Any]:
        """Read the response to the current request, dropping late answers to timed-out ones."""
        while True:
            try:
                raw = await asyncio.wait_for(self._process.stdout.readline(), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise UpstreamCallError(f"Metaplex bridge timed out after {self.timeout}s", action=action)

            if not raw:
                raise UpstreamCallError("Metaplex bridge exited unexpectedly", action=action)

            try:
                response = json.loads(raw)
            except json.JSONDecodeError:
                raise UpstreamCallError(f"Unreadable Metaplex bridge response: {raw!r}", action=action)

            response_id = response.get("id")
            if isinstance(response_id, int) and response_id < self._request_id:
                logger.warning("Discarding stale Metaplex bridge response", response_id=response_id)
                continue

            if response_id != self._request_id:
                raise UpstreamCallError(
                    f"Metaplex bridge answered request {response_id}, expected {self._request_id}",
                    action=action
                )
            return response

    async def upload_file(self, path: str, content_type: str = "image/png") -> str:
        """Upload a local file to storage and return its URI."""
        result = await self._invoke("upload_file", {
            "path": str(Path(path).resolve()),
            "contentType": content_type,
        })
        return result["uri"]

    async def upload_metadata(self, metadata: Dict[str, Any]) -> str:
        """Upload a JSON metadata document and return its URI."""
        result = await self._invoke("upload_metadata", {"metadata": metadata})
        return result["uri"]

    async def create_nft(
        self,
        uri: str,
        name: str,
        symbol: str,
        is_collection: bool = False,
        collection: Optional[str] = None,
        token_owner: Optional[str] = None,
        seller_fee_basis_points: int = 0
    ) -> Dict[str, Any]:
        """
        Create a standard NFT. Returns ``mint_address`` and ``signature``.

        The token is minted to ``token_owner``, or to the bridge wallet when
        no owner is given.
        """
        result = await self._invoke("create_nft", {
            "uri": uri,
            "name": name,
            "symbol": symbol,
            "isCollection": is_collection,
            "collection": collection,
            "tokenOwner": token_owner,
            "sellerFeeBasisPoints": seller_fee_basis_points,
        })
        return {"mint_address": result["mintAddress"], "signature": result["signature"]}

    async def create_tree(self, max_depth: int, max_buffer_size: int, public: bool = False) -> Dict[str, Any]:
        """Create a Bubblegum Merkle tree. Returns ``tree_address`` and ``signature``."""
        result = await self._invoke("create_tree", {
            "maxDepth": max_depth,
            "maxBufferSize": max_buffer_size,
            "public": public,
        })
        return {"tree_address": result["treeAddress"], "signature": result["signature"]}

    async def mint_compressed(
        self,
        tree_address: str,
        leaf_owner: str,
        uri: str,
        name: str,
        symbol: str,
        seller_fee_basis_points: int = 0
    ) -> Dict[str, Any]:
        """Mint a compressed NFT into ``tree_address``. Returns ``signature`` and ``asset_id``."""
        result = await self._invoke("mint_compressed", {
            "treeAddress": tree_address,
            "leafOwner": leaf_owner,
            "uri": uri,
            "name": name,
            "symbol": symbol,
            "sellerFeeBasisPoints": seller_fee_basis_points,
        })
        return {"signature": result["signature"], "asset_id": result.get("assetId")}
