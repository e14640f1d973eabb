"""In-memory variable debt token: credit delegation and debt balances."""
from __future__ import annotations

from .chain import SimulatedChain


class SimDebtToken:
    def __init__(self, chain: SimulatedChain, address: str, underlying: str) -> None:
        self._chain = chain
        self._address = address
        self._underlying = underlying

    @property
    def address(self) -> str:
        return self._address

    async def balance_of(self, owner: str) -> int:
        return self._chain.state.debt.get(owner, {}).get(self._underlying, 0)

    async def borrow_allowance(self, owner: str, delegate: str) -> int:
        return self._chain.state.delegations.get((self._address, owner, delegate), 0)

    async def approve_delegation(self, owner: str, delegate: str, amount: int) -> None:
        self._chain.state.delegations[(self._address, owner, delegate)] = amount
