"""Strategy core: the hooks the enclosing vault invokes on deposit and withdraw."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator

from ..errors import AuthorizationError, PausedError, ProtocolError, ReentrancyError, TransferError
from ..interfaces.delegation import DelegationRegistry
from ..interfaces.ledger import HostLedger
from ..interfaces.lending import LendingPool
from ..interfaces.router import SwapRouter
from ..interfaces.token import Token
from ..interfaces.vault import VaultLedger
from ..models import (
    BorrowPreview,
    DepositObserved,
    LoopResult,
    StrategyParameters,
    UnwindResult,
    WithdrawObserved,
)
from ..notifications.sinks import EventBus
from .delegation import CreditDelegation
from .looping import LoopingEngine
from .swap_adapter import SwapAdapter
from .unwinding import UnwindingEngine

logger = logging.getLogger(__name__)


class StrategyCore:
    """Leveraged looping strategy attached to a vault.

    Every public operation runs as one unit of work on the host ledger, so a
    failure at any step leaves no partial collateral or debt behind. Events
    are published only once the unit of work has committed.
    """

    def __init__(
        self,
        *,
        ledger: HostLedger,
        vault: VaultLedger | None,
        pool: LendingPool,
        collateral: Token,
        debt_asset: Token,
        router: SwapRouter,
        registry: DelegationRegistry,
        params: StrategyParameters,
        engine: str,
        events: EventBus | None = None,
    ) -> None:
        self._ledger = ledger
        self._vault = vault
        self._collateral = collateral
        self._engine = engine
        self._params = params
        self._events = events or EventBus()
        self._withdraw_guard: ContextVar[bool] = ContextVar(
            f"withdraw_guard_{id(self)}", default=False
        )

        self._delegation = CreditDelegation(registry, engine)
        swapper = SwapAdapter(
            router, debt_asset, collateral, params.swap_fee_tier, engine, self._events
        )
        self._looping = LoopingEngine(
            pool, collateral, debt_asset, self._delegation, swapper, params,
            engine, self._events,
        )
        self._unwinding = UnwindingEngine(
            pool, collateral, debt_asset, registry, params, engine, self._events
        )

    @property
    def engine(self) -> str:
        return self._engine

    @property
    def params(self) -> StrategyParameters:
        return self._params

    @property
    def events(self) -> EventBus:
        return self._events

    # ------------------------------------------------------------------
    # Vault hooks
    # ------------------------------------------------------------------

    async def on_deposit(
        self,
        asset: str,
        caller: str,
        receiver: str,
        asset_amount: int,
        shares: int,
        base_assets: int,
    ) -> LoopResult:
        """Loop a freshly deposited amount on behalf of ``caller``."""
        vault = self._require_vault()
        async with self._events.collect(), self._ledger.transaction():
            if not await vault.is_allocator(caller):
                raise AuthorizationError(f"{caller} is not an allocator")
            if asset.lower() != self._collateral.address.lower():
                raise ProtocolError(f"Unsupported deposit asset {asset}")

            result = await self._looping.run(asset_amount, caller)
            await self._events.publish(
                DepositObserved(
                    caller=caller, assets=asset_amount, shares=shares, receiver=receiver
                )
            )

        logger.info(
            "Deposit by %s looped %d into %d collateral (%d base assets)",
            caller, asset_amount, result.total_supplied, base_assets,
        )
        return result

    async def on_withdraw(
        self, asset_amount: int, receiver: str, owner: str, caller: str
    ) -> int:
        """Close ``owner``'s whole position and return the shares burned.

        ``asset_amount`` is ignored: only full withdrawals are supported.
        """
        vault = self._require_vault()
        async with self._non_reentrant(), self._events.collect(), self._ledger.transaction():
            if caller != owner:
                raise AuthorizationError(f"{caller} cannot withdraw for {owner}")
            if await vault.is_paused():
                raise PausedError("Vault is paused")

            shares = await vault.balance_of(owner)
            if shares <= 0:
                raise ProtocolError(f"{owner} holds no shares")
            assets = await vault.convert_to_assets(shares)
            await vault.decrease_total_assets(assets)
            await vault.burn(owner, shares)
            await self._events.publish(
                WithdrawObserved(
                    caller=caller, receiver=receiver, owner=owner,
                    assets=assets, shares=shares,
                )
            )

            result = await self._unwinding.run(owner)
            await self._release(result, receiver)

        if asset_amount and asset_amount != assets:
            logger.debug(
                "Requested %d assets, withdrew full balance of %d", asset_amount, assets
            )
        logger.info("Withdraw by %s burned %d shares (%d assets)", owner, shares, assets)
        return shares

    # ------------------------------------------------------------------
    # Delegation pass-through and views
    # ------------------------------------------------------------------

    async def delegate_credit(self, debt_token: str, amount: int, owner: str) -> None:
        """Forward ``owner``'s credit delegation for this engine to the registry."""
        async with self._ledger.transaction():
            await self._delegation.delegate(debt_token, owner, amount)

    async def preview_borrow(self, owner: str) -> BorrowPreview:
        return await self._looping.preview(owner)

    # ------------------------------------------------------------------
    # Keeper operations
    # ------------------------------------------------------------------

    async def loop(self, amount: int, owner: str, commit: bool = True) -> LoopResult:
        """Loop ``amount`` already held by the engine, without vault bookkeeping.

        With ``commit=False`` the run is simulated and then reverted.
        """
        async with self._events.collect(), self._ledger.transaction(commit):
            return await self._looping.run(amount, owner)

    async def unwind(self, owner: str, commit: bool = True) -> UnwindResult:
        """Close ``owner``'s position, leaving the collateral with the engine."""
        async with self._non_reentrant(), self._events.collect(), self._ledger.transaction(commit):
            return await self._unwinding.run(owner)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_vault(self) -> VaultLedger:
        if self._vault is None:
            raise ProtocolError("No vault attached to this strategy")
        return self._vault

    async def _release(self, result: UnwindResult, receiver: str) -> None:
        if receiver == self._engine:
            return
        if not await self._collateral.transfer(receiver, result.withdrawn):
            raise TransferError(f"Could not send {result.withdrawn} to {receiver}")

    @asynccontextmanager
    async def _non_reentrant(self) -> AsyncIterator[None]:
        if self._withdraw_guard.get():
            raise ReentrancyError("Withdraw re-entered")
        token = self._withdraw_guard.set(True)
        try:
            yield
        finally:
            self._withdraw_guard.reset(token)
