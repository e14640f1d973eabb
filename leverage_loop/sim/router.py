"""In-memory single-hop exchange with fee tiers and finite reserves."""
from __future__ import annotations

from ..errors import ProtocolError, TransferError
from ..models import SwapParams
from .chain import SimulatedChain

FEE_DENOMINATOR = 1_000_000
FEE_TIERS = (100, 500, 3_000, 10_000)


class SimSwapRouter:
    """Quotes at the chain's price ratio, less the pool fee."""

    def __init__(self, chain: SimulatedChain, address: str, sender: str) -> None:
        self._chain = chain
        self._address = address
        self._sender = sender

    @property
    def address(self) -> str:
        return self._address

    def quote(self, token_in: str, token_out: str, fee: int, amount_in: int) -> int:
        price_in = self._chain.prices.get(token_in, 0)
        price_out = self._chain.prices.get(token_out, 0)
        if price_in <= 0 or price_out <= 0:
            raise ProtocolError(f"No route {token_in} -> {token_out}")
        return amount_in * price_in * (FEE_DENOMINATOR - fee) // (price_out * FEE_DENOMINATOR)

    async def exact_input_single(self, params: SwapParams) -> int:
        if params.fee not in FEE_TIERS:
            raise ProtocolError(f"No pool at fee tier {params.fee}")
        if params.amount_in <= 0:
            raise ProtocolError("Swap amount must be positive")

        amount_out = self.quote(params.token_in, params.token_out, params.fee, params.amount_in)
        if amount_out < params.amount_out_minimum:
            raise ProtocolError("Too little received")
        if self._chain.balance(params.token_out, self._address) < amount_out:
            raise ProtocolError(f"Router reserves of {params.token_out} too low")

        try:
            await self._chain.pull(
                params.token_in, self._sender, self._address, self._address, params.amount_in
            )
        except TransferError as e:
            raise ProtocolError(f"Swap input transfer failed: {e}") from e
        await self._chain.move(params.token_out, self._address, params.recipient, amount_out)
        return amount_out
