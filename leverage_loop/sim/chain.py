"""In-memory host ledger with all-or-nothing transactions."""
from __future__ import annotations

import asyncio
import copy
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable

from ..errors import TransferError

logger = logging.getLogger(__name__)

TransferHook = Callable[[str, str, str, int], Awaitable[None]]


@dataclass
class ChainState:
    """Everything a transaction may revert."""

    balances: dict[str, dict[str, int]] = field(default_factory=dict)
    allowances: dict[tuple[str, str, str], int] = field(default_factory=dict)
    collateral: dict[str, dict[str, int]] = field(default_factory=dict)
    debt: dict[str, dict[str, int]] = field(default_factory=dict)
    delegations: dict[tuple[str, str, str], int] = field(default_factory=dict)
    shares: dict[str, int] = field(default_factory=dict)
    total_shares: int = 0
    total_assets: int = 0
    paused: bool = False
    allocators: set[str] = field(default_factory=set)


class SimulatedChain:
    """A single-writer ledger standing in for the blockchain.

    Transactions are serialized; nested transactions act as savepoints. Prices
    and transfer hooks live outside the reverted state.
    """

    def __init__(self) -> None:
        self.state = ChainState()
        self.prices: dict[str, int] = {}
        self.transfer_hooks: list[TransferHook] = []
        self._lock = asyncio.Lock()
        self._active: ContextVar[bool] = ContextVar(f"sim_tx_{id(self)}", default=False)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self, commit: bool = True) -> AsyncIterator[None]:
        if self._active.get():
            async with self._savepoint(commit):
                yield
            return

        async with self._lock:
            token = self._active.set(True)
            try:
                async with self._savepoint(commit):
                    yield
            finally:
                self._active.reset(token)

    @asynccontextmanager
    async def _savepoint(self, commit: bool) -> AsyncIterator[None]:
        snapshot = copy.deepcopy(self.state)
        try:
            yield
        except BaseException:
            self.state = snapshot
            logger.debug("Transaction reverted")
            raise
        if not commit:
            self.state = snapshot
            logger.debug("Dry-run transaction discarded")

    # ------------------------------------------------------------------
    # Token ledger
    # ------------------------------------------------------------------

    def balance(self, token: str, account: str) -> int:
        return self.state.balances.get(token, {}).get(account, 0)

    def mint(self, token: str, account: str, amount: int) -> None:
        holders = self.state.balances.setdefault(token, {})
        holders[account] = holders.get(account, 0) + amount

    def set_price(self, asset: str, price: int) -> None:
        self.prices[asset] = price

    async def move(self, token: str, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise TransferError(f"Negative transfer of {token}")
        holders = self.state.balances.setdefault(token, {})
        available = holders.get(sender, 0)
        if available < amount:
            raise TransferError(
                f"{sender} holds {available} of {token}, cannot send {amount}"
            )
        holders[sender] = available - amount
        holders[recipient] = holders.get(recipient, 0) + amount
        for hook in list(self.transfer_hooks):
            await hook(token, sender, recipient, amount)

    async def pull(
        self, token: str, owner: str, spender: str, recipient: str, amount: int
    ) -> None:
        """Move ``amount`` from ``owner`` using ``spender``'s allowance."""
        key = (token, owner, spender)
        allowed = self.state.allowances.get(key, 0)
        if owner != spender:
            if allowed < amount:
                raise TransferError(
                    f"{spender} allowed {allowed} of {token} by {owner}, needs {amount}"
                )
            self.state.allowances[key] = allowed - amount
        await self.move(token, owner, recipient, amount)


class SimToken:
    """Token handle acting as ``sender``."""

    def __init__(self, chain: SimulatedChain, address: str, sender: str) -> None:
        self._chain = chain
        self._address = address
        self._sender = sender

    @property
    def address(self) -> str:
        return self._address

    def as_account(self, sender: str) -> SimToken:
        return SimToken(self._chain, self._address, sender)

    async def balance_of(self, account: str) -> int:
        return self._chain.balance(self._address, account)

    async def transfer(self, recipient: str, amount: int) -> bool:
        await self._chain.move(self._address, self._sender, recipient, amount)
        return True

    async def approve(self, spender: str, amount: int) -> bool:
        self._chain.state.allowances[(self._address, self._sender, spender)] = amount
        return True
