"""Looping engine: iterative supply, borrow, swap, re-supply."""
from __future__ import annotations

import logging

from ..errors import ProtocolError
from ..interfaces.events import EventSink
from ..interfaces.lending import LendingPool
from ..interfaces.token import Token
from ..models import BorrowObserved, BorrowPreview, LoopResult, StrategyParameters
from .delegation import CreditDelegation
from .swap_adapter import SwapAdapter

logger = logging.getLogger(__name__)


class LoopingEngine:
    """Amplify a deposit across a fixed number of borrow/swap iterations.

    Each iteration supplies the working amount on behalf of the owner, borrows
    ``borrow_factor`` of the reported capacity under the owner's delegation,
    swaps the borrowed asset back into collateral, and carries forward the
    collateral balance delta observed on the engine's account. The leftover
    of the last iteration is supplied once more without borrowing.
    """

    def __init__(
        self,
        pool: LendingPool,
        collateral: Token,
        debt_asset: Token,
        delegation: CreditDelegation,
        swapper: SwapAdapter,
        params: StrategyParameters,
        engine: str,
        events: EventSink,
    ) -> None:
        self._pool = pool
        self._collateral = collateral
        self._debt_asset = debt_asset
        self._delegation = delegation
        self._swapper = swapper
        self._params = params
        self._engine = engine
        self._events = events

    async def preview(self, owner: str) -> BorrowPreview:
        """Report what the next iteration would borrow for ``owner``."""
        account = await self._pool.get_user_account_data(owner)
        grant = await self._delegation.grant(owner)
        return BorrowPreview(
            owner=owner,
            capacity=account.available_borrows,
            amount_to_borrow=self._params.amount_to_borrow(account.available_borrows),
            allowance=grant.allowance,
        )

    async def run(self, initial_amount: int, owner: str) -> LoopResult:
        if initial_amount <= 0:
            raise ProtocolError("Deposit amount must be positive")

        params = self._params
        amount = initial_amount
        total_supplied = 0
        outputs: list[int] = []
        borrowed: list[int] = []

        for iteration in range(params.iteration_count):
            await self._supply(amount, owner)
            total_supplied += amount

            account = await self._pool.get_user_account_data(owner)
            amount_to_borrow = params.amount_to_borrow(account.available_borrows)
            if amount_to_borrow <= 0:
                raise ProtocolError(
                    f"No borrow capacity for {owner} at iteration {iteration}"
                )

            # Re-checked every iteration: the protocol consumes the allowance.
            await self._delegation.require(owner, amount_to_borrow)

            previous_amount = await self._collateral.balance_of(self._engine)
            realized_borrow = await self._borrow(amount_to_borrow, owner)
            await self._swapper.convert(
                realized_borrow, params.min_swap_output_floor, owner
            )
            amount = await self._collateral.balance_of(self._engine) - previous_amount
            if amount <= 0:
                raise ProtocolError(f"Iteration {iteration} yielded no collateral")

            outputs.append(amount)
            borrowed.append(realized_borrow)
            logger.info(
                "Loop %d/%d for %s: capacity %d, borrowed %d, swapped into %d",
                iteration + 1, params.iteration_count, owner,
                account.available_borrows, realized_borrow, amount,
            )
            await self._events.publish(
                BorrowObserved(
                    owner=owner,
                    iteration=iteration,
                    requested=amount_to_borrow,
                    realized=realized_borrow,
                )
            )

        await self._supply(amount, owner)
        total_supplied += amount

        return LoopResult(
            owner=owner,
            initial_amount=initial_amount,
            total_supplied=total_supplied,
            swap_outputs=tuple(outputs),
            borrowed=tuple(borrowed),
        )

    async def _supply(self, amount: int, owner: str) -> None:
        if not await self._collateral.approve(self._pool.address, amount):
            raise ProtocolError("Pool approval was rejected")
        await self._pool.supply(
            self._collateral.address, amount, owner, self._params.referral_code
        )

    async def _borrow(self, amount: int, owner: str) -> int:
        """Borrow against ``owner``'s collateral, returning the amount received."""
        before = await self._debt_asset.balance_of(self._engine)
        await self._pool.borrow(
            self._debt_asset.address,
            amount,
            self._params.rate_mode,
            self._params.referral_code,
            owner,
        )
        received = await self._debt_asset.balance_of(self._engine) - before
        if received <= 0:
            raise ProtocolError(f"Borrow of {amount} for {owner} delivered nothing")
        return received
