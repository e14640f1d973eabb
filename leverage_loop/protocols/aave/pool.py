"""Aave v3 Pool adapter: supply/borrow/repay/withdraw over JSON-RPC."""
from __future__ import annotations

import logging

from eth_utils import to_checksum_address

from ...chains.evm.abi import decode_result, decode_uint, encode_call
from ...chains.evm.client import EvmClient
from ...errors import ProtocolError
from ...models import AccountData

logger = logging.getLogger(__name__)

_ACCOUNT_DATA_TYPES = ["uint256"] * 6
_HEALTH_FACTOR_SCALE = 10**18


class AavePool:
    """Aave v3 Pool bound to the engine's sending account.

    Capacity is reported by Aave in base currency; it is converted into
    borrow-asset units through the protocol's price oracle.
    """

    def __init__(
        self,
        client: EvmClient,
        address: str,
        oracle: str,
        borrow_asset: str,
    ) -> None:
        self._client = client
        self._address = to_checksum_address(address)
        self._oracle = to_checksum_address(oracle)
        self._borrow_asset = to_checksum_address(borrow_asset)
        self._borrow_unit: int | None = None

    @property
    def address(self) -> str:
        return self._address

    async def supply(
        self, asset: str, amount: int, on_behalf_of: str, referral_code: int
    ) -> None:
        data = encode_call(
            "supply(address,uint256,address,uint16)",
            to_checksum_address(asset), amount, to_checksum_address(on_behalf_of), referral_code,
        )
        await self._client.execute(self._address, data)
        logger.debug("Supplied %d of %s for %s", amount, asset, on_behalf_of)

    async def borrow(
        self,
        asset: str,
        amount: int,
        rate_mode: int,
        referral_code: int,
        on_behalf_of: str,
    ) -> None:
        data = encode_call(
            "borrow(address,uint256,uint256,uint16,address)",
            to_checksum_address(asset), amount, rate_mode, referral_code,
            to_checksum_address(on_behalf_of),
        )
        await self._client.execute(self._address, data)
        logger.debug("Borrowed %d of %s for %s", amount, asset, on_behalf_of)

    async def repay(
        self, asset: str, amount: int, rate_mode: int, on_behalf_of: str
    ) -> int:
        data = encode_call(
            "repay(address,uint256,uint256,address)",
            to_checksum_address(asset), amount, rate_mode, to_checksum_address(on_behalf_of),
        )
        return decode_uint(await self._client.execute(self._address, data))

    async def withdraw(self, asset: str, amount: int, to: str, owner: str) -> int:
        """Withdraw ``owner``'s collateral; the transaction is sent from ``owner``."""
        data = encode_call(
            "withdraw(address,uint256,address)",
            to_checksum_address(asset), amount, to_checksum_address(to),
        )
        return decode_uint(
            await self._client.execute(self._address, data, sender=to_checksum_address(owner))
        )

    async def get_user_account_data(self, user: str) -> AccountData:
        data = encode_call("getUserAccountData(address)", to_checksum_address(user))
        values = decode_result(_ACCOUNT_DATA_TYPES, await self._client.eth_call(self._address, data))
        if len(values) != 6:
            raise ProtocolError(f"Malformed account data for {user}")
        collateral, debt, available_base, _threshold, ltv, health = values

        price = await self._borrow_price()
        unit = await self._unit()
        return AccountData(
            total_collateral=collateral,
            total_debt=debt,
            available_borrows=available_base * unit // price,
            ltv_bps=ltv,
            health_factor=health / _HEALTH_FACTOR_SCALE,
        )

    async def _unit(self) -> int:
        if self._borrow_unit is None:
            data = encode_call("decimals()")
            decimals = decode_uint(await self._client.eth_call(self._borrow_asset, data))
            self._borrow_unit = 10**decimals
        return self._borrow_unit

    async def _borrow_price(self) -> int:
        data = encode_call("getAssetPrice(address)", self._borrow_asset)
        price = decode_uint(await self._client.eth_call(self._oracle, data))
        if price <= 0:
            raise ProtocolError(f"Oracle returned no price for {self._borrow_asset}")
        return price
