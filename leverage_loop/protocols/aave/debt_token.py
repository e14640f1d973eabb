"""Aave variable debt token: credit delegation registry."""
from __future__ import annotations

import logging

from eth_utils import to_checksum_address

from ...chains.evm.abi import decode_uint, encode_call
from ...chains.evm.client import EvmClient

logger = logging.getLogger(__name__)


class AaveDebtToken:
    def __init__(self, client: EvmClient, address: str) -> None:
        self._client = client
        self._address = to_checksum_address(address)

    @property
    def address(self) -> str:
        return self._address

    async def balance_of(self, owner: str) -> int:
        data = encode_call("balanceOf(address)", to_checksum_address(owner))
        return decode_uint(await self._client.eth_call(self._address, data))

    async def borrow_allowance(self, owner: str, delegate: str) -> int:
        data = encode_call(
            "borrowAllowance(address,address)",
            to_checksum_address(owner), to_checksum_address(delegate),
        )
        return decode_uint(await self._client.eth_call(self._address, data))

    async def approve_delegation(self, owner: str, delegate: str, amount: int) -> None:
        """Send ``approveDelegation`` from the owner's account."""
        data = encode_call(
            "approveDelegation(address,uint256)", to_checksum_address(delegate), amount
        )
        await self._client.execute(self._address, data, sender=to_checksum_address(owner))
        logger.info("Delegation of %d from %s to %s approved", amount, owner, delegate)
