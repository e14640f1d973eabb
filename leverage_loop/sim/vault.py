"""In-memory share vault that drives the strategy hooks."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import PausedError, ProtocolError
from .chain import SimulatedChain, SimToken

if TYPE_CHECKING:
    from ..services.strategy import StrategyCore

logger = logging.getLogger(__name__)


class SimShareVault:
    """Share ledger of the enclosing vault; its address is the engine account."""

    def __init__(self, chain: SimulatedChain, address: str, asset: SimToken) -> None:
        self._chain = chain
        self._address = address
        self._asset = asset

    @property
    def address(self) -> str:
        return self._address

    # ------------------------------------------------------------------
    # VaultLedger
    # ------------------------------------------------------------------

    async def balance_of(self, owner: str) -> int:
        return self._chain.state.shares.get(owner, 0)

    async def convert_to_assets(self, shares: int) -> int:
        state = self._chain.state
        if state.total_shares == 0:
            return shares
        return shares * state.total_assets // state.total_shares

    async def convert_to_shares(self, assets: int) -> int:
        state = self._chain.state
        if state.total_shares == 0 or state.total_assets == 0:
            return assets
        return assets * state.total_shares // state.total_assets

    async def decrease_total_assets(self, assets: int) -> None:
        state = self._chain.state
        state.total_assets = max(0, state.total_assets - assets)

    async def burn(self, owner: str, shares: int) -> None:
        state = self._chain.state
        held = state.shares.get(owner, 0)
        if held < shares:
            raise ProtocolError(f"{owner} holds {held} shares, cannot burn {shares}")
        state.shares[owner] = held - shares
        state.total_shares -= shares

    async def is_paused(self) -> bool:
        return self._chain.state.paused

    async def is_allocator(self, account: str) -> bool:
        return account in self._chain.state.allocators

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def set_paused(self, paused: bool) -> None:
        self._chain.state.paused = paused

    def add_allocator(self, account: str) -> None:
        self._chain.state.allocators.add(account)

    # ------------------------------------------------------------------
    # User entry points
    # ------------------------------------------------------------------

    async def deposit(
        self, strategy: StrategyCore, caller: str, receiver: str, assets: int
    ) -> int:
        """Take ``assets`` from ``caller``, mint shares to ``receiver``, then loop.

        Strategy events are released after this transaction commits.
        """
        async with strategy.events.collect(), self._chain.transaction():
            if self._chain.state.paused:
                raise PausedError("Vault is paused")
            shares = await self.convert_to_shares(assets)
            await self._asset.as_account(caller).transfer(self._address, assets)

            state = self._chain.state
            state.shares[receiver] = state.shares.get(receiver, 0) + shares
            state.total_shares += shares
            state.total_assets += assets

            await strategy.on_deposit(
                self._asset.address, caller, receiver, assets, shares, state.total_assets
            )
        logger.info("Vault minted %d shares to %s for %d assets", shares, receiver, assets)
        return shares

    async def redeem_all(
        self, strategy: StrategyCore, caller: str, receiver: str, owner: str
    ) -> int:
        assets = await self.convert_to_assets(await self.balance_of(owner))
        return await strategy.on_withdraw(assets, receiver, owner, caller)
