"""Single-hop swap of the borrowed asset into the collateral asset."""
from __future__ import annotations

import logging

from ..errors import ProtocolError
from ..interfaces.events import EventSink
from ..interfaces.router import SwapRouter
from ..interfaces.token import Token
from ..models import SwapObserved, SwapParams

logger = logging.getLogger(__name__)


class SwapAdapter:
    """Convert the engine's borrowed asset into collateral at a fixed fee tier.

    ``min_out_floor`` is a nominal floor, not slippage protection.
    """

    def __init__(
        self,
        router: SwapRouter,
        token_in: Token,
        token_out: Token,
        fee_tier: int,
        engine: str,
        events: EventSink,
    ) -> None:
        self._router = router
        self._token_in = token_in
        self._token_out = token_out
        self._fee_tier = fee_tier
        self._engine = engine
        self._events = events

    async def convert(self, amount_in: int, min_out_floor: int, owner: str) -> int:
        """Swap ``amount_in`` and return the output observed on the engine's balance."""
        if amount_in <= 0:
            raise ProtocolError("Swap amount must be positive")

        before = await self._token_out.balance_of(self._engine)
        if not await self._token_in.approve(self._router.address, amount_in):
            raise ProtocolError("Router approval was rejected")

        await self._router.exact_input_single(
            SwapParams(
                token_in=self._token_in.address,
                token_out=self._token_out.address,
                fee=self._fee_tier,
                recipient=self._engine,
                amount_in=amount_in,
                amount_out_minimum=min_out_floor,
            )
        )

        balance_after = await self._token_out.balance_of(self._engine)
        amount_out = balance_after - before
        if amount_out <= 0:
            raise ProtocolError(f"Swap of {amount_in} produced no output")

        logger.debug("Swapped %d -> %d for %s", amount_in, amount_out, owner)
        await self._events.publish(
            SwapObserved(
                owner=owner,
                amount_in=amount_in,
                amount_out=amount_out,
                balance_after=balance_after,
            )
        )
        return amount_out
