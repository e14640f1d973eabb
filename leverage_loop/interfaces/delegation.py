"""Credit delegation protocol: borrow allowance registry."""
from typing import Protocol


class DelegationRegistry(Protocol):
    """Abstract interface for a debt token's credit delegation ledger."""

    @property
    def address(self) -> str: ...

    async def borrow_allowance(self, owner: str, delegate: str) -> int: ...

    async def approve_delegation(self, owner: str, delegate: str, amount: int) -> None: ...

    async def balance_of(self, owner: str) -> int:
        """Debt owed by ``owner``, in base units of the borrowed asset."""
        ...
