"""EVM RPC client with fallback support."""
from __future__ import annotations

import asyncio
import logging
import ssl
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import ProtocolError
from .abi import receipt_succeeded

logger = logging.getLogger(__name__)


class EvmClient:
    """EVM JSON-RPC client with automatic endpoint fallback.

    Transactions are sent with ``eth_sendTransaction``, so the sending
    accounts must be unlocked on the node (dev node or fork).
    """

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.sender = config.sender
        self.poll_interval = config.receipt_poll_interval
        self.receipt_timeout = config.receipt_timeout
        self.current_rpc_index = 0
        self._lock = asyncio.Lock()
        self._active: ContextVar[bool] = ContextVar(f"evm_tx_{id(self)}", default=False)

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            if "error" in result:
                # Reverts are deterministic; another endpoint would answer the same.
                raise ProtocolError(f"{method} failed: {result['error']}")
            return result.get("result")

        raise ProtocolError(f"All RPC endpoints failed. Last error: {last_error}")

    async def eth_call(self, to: str, data: str, sender: str | None = None) -> str:
        tx = {"from": sender or self.sender, "to": to, "data": data}
        return await self.rpc_call("eth_call", [tx, "latest"]) or "0x"

    async def execute(self, to: str, data: str, sender: str | None = None) -> str:
        """Simulate, then send a transaction; return the simulated return data.

        The simulation surfaces reverts before anything is broadcast.
        """
        sender = sender or self.sender
        preview = await self.eth_call(to, data, sender)
        tx_hash = await self.rpc_call(
            "eth_sendTransaction", [{"from": sender, "to": to, "data": data}]
        )
        receipt = await self.wait_for_receipt(tx_hash)
        if not receipt_succeeded(receipt):
            raise ProtocolError(f"Transaction {tx_hash} to {to} reverted")
        logger.debug("Transaction %s mined in block %s", tx_hash, receipt.get("blockNumber"))
        return preview

    async def wait_for_receipt(self, tx_hash: str) -> dict[str, Any]:
        waited = 0.0
        while waited <= self.receipt_timeout:
            receipt = await self.rpc_call("eth_getTransactionReceipt", [tx_hash])
            if receipt:
                return receipt
            await asyncio.sleep(self.poll_interval)
            waited += self.poll_interval
        raise ProtocolError(f"No receipt for {tx_hash} after {self.receipt_timeout}s")

    @asynccontextmanager
    async def transaction(self, commit: bool = True) -> AsyncIterator[None]:
        """Snapshot the node state and revert it on failure or dry run.

        Top-level transactions run one at a time, since balance deltas are read
        on the shared engine account. Nested ones snapshot inside the outer one.
        """
        if self._active.get():
            async with self._snapshot(commit):
                yield
            return

        async with self._lock:
            token = self._active.set(True)
            try:
                async with self._snapshot(commit):
                    yield
            finally:
                self._active.reset(token)

    @asynccontextmanager
    async def _snapshot(self, commit: bool) -> AsyncIterator[None]:
        snapshot_id = await self.rpc_call("evm_snapshot", [])
        try:
            yield
        except BaseException:
            await self.rpc_call("evm_revert", [snapshot_id])
            logger.warning("Reverted node state to snapshot %s", snapshot_id)
            raise
        if not commit:
            await self.rpc_call("evm_revert", [snapshot_id])
            logger.info("Dry run: reverted node state to snapshot %s", snapshot_id)
