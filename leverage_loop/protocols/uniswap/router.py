"""Uniswap v3 SwapRouter02 adapter: single-hop exact input swaps."""
from __future__ import annotations

from eth_utils import to_checksum_address

from ...chains.evm.abi import decode_uint, encode_call
from ...chains.evm.client import EvmClient
from ...models import SwapParams

_EXACT_INPUT_SINGLE = (
    "exactInputSingle((address,address,uint24,address,uint256,uint256,uint160))"
)


class UniswapV3Router:
    def __init__(self, client: EvmClient, address: str) -> None:
        self._client = client
        self._address = to_checksum_address(address)

    @property
    def address(self) -> str:
        return self._address

    async def exact_input_single(self, params: SwapParams) -> int:
        data = encode_call(
            _EXACT_INPUT_SINGLE,
            (
                to_checksum_address(params.token_in),
                to_checksum_address(params.token_out),
                params.fee,
                to_checksum_address(params.recipient),
                params.amount_in,
                params.amount_out_minimum,
                params.sqrt_price_limit_x96,
            ),
        )
        return decode_uint(await self._client.execute(self._address, data))
