"""Unwinding engine: repay the owner's debt, then release the collateral."""
from __future__ import annotations

import logging

from ..errors import ProtocolError
from ..interfaces.delegation import DelegationRegistry
from ..interfaces.events import EventSink
from ..interfaces.lending import LendingPool
from ..interfaces.token import Token
from ..models import FULL_BALANCE, StrategyParameters, UnwindObserved, UnwindResult

logger = logging.getLogger(__name__)


class UnwindingEngine:
    """Close an owner's leveraged position in full.

    Repayment always completes before any collateral is withdrawn; a failed
    repay raises before the withdraw is attempted.
    """

    def __init__(
        self,
        pool: LendingPool,
        collateral: Token,
        debt_asset: Token,
        debt_token: DelegationRegistry,
        params: StrategyParameters,
        engine: str,
        events: EventSink,
    ) -> None:
        self._pool = pool
        self._collateral = collateral
        self._debt_asset = debt_asset
        self._debt_token = debt_token
        self._params = params
        self._engine = engine
        self._events = events

    async def run(self, owner: str) -> UnwindResult:
        repaid = await self._repay(owner)
        withdrawn = await self._withdraw(owner)

        logger.info("Unwound %s: repaid %d, withdrew %d", owner, repaid, withdrawn)
        await self._events.publish(
            UnwindObserved(owner=owner, repaid=repaid, withdrawn=withdrawn)
        )
        return UnwindResult(owner=owner, repaid=repaid, withdrawn=withdrawn)

    async def _repay(self, owner: str) -> int:
        # Exact debt-asset units; the pool's value totals truncate small debts.
        if await self._debt_token.balance_of(owner) == 0:
            logger.debug("No outstanding debt for %s", owner)
            return 0

        holding = await self._debt_asset.balance_of(self._engine)
        if holding <= 0:
            raise ProtocolError(f"No funds on hand to repay debt of {owner}")

        if not await self._debt_asset.approve(self._pool.address, holding):
            raise ProtocolError("Pool approval was rejected")
        await self._pool.repay(
            self._debt_asset.address, holding, self._params.rate_mode, owner
        )
        repaid = holding - await self._debt_asset.balance_of(self._engine)
        if repaid <= 0:
            raise ProtocolError(f"Repay for {owner} cleared nothing")
        return repaid

    async def _withdraw(self, owner: str) -> int:
        before = await self._collateral.balance_of(self._engine)
        await self._pool.withdraw(
            self._collateral.address, FULL_BALANCE, self._engine, owner
        )
        withdrawn = await self._collateral.balance_of(self._engine) - before
        if withdrawn <= 0:
            raise ProtocolError(f"Withdraw for {owner} released nothing")
        return withdrawn
