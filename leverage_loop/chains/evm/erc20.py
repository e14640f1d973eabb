"""ERC-20 token handle acting as one account."""
from __future__ import annotations

import logging

from eth_utils import to_checksum_address

from ...errors import ProtocolError, TransferError
from .abi import decode_bool, decode_uint, encode_call
from .client import EvmClient

logger = logging.getLogger(__name__)


class Erc20Token:
    def __init__(self, client: EvmClient, address: str, sender: str | None = None) -> None:
        self._client = client
        self._address = to_checksum_address(address)
        self._sender = sender or client.sender

    @property
    def address(self) -> str:
        return self._address

    async def balance_of(self, account: str) -> int:
        data = encode_call("balanceOf(address)", to_checksum_address(account))
        return decode_uint(await self._client.eth_call(self._address, data))

    async def transfer(self, recipient: str, amount: int) -> bool:
        data = encode_call("transfer(address,uint256)", to_checksum_address(recipient), amount)
        try:
            return decode_bool(await self._client.execute(self._address, data, self._sender))
        except ProtocolError as e:
            raise TransferError(f"Transfer of {amount} to {recipient} failed: {e}") from e

    async def approve(self, spender: str, amount: int) -> bool:
        data = encode_call("approve(address,uint256)", to_checksum_address(spender), amount)
        return decode_bool(await self._client.execute(self._address, data, self._sender))
