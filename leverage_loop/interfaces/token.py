"""Token protocol: fungible asset handle bound to the engine's account."""
from typing import Protocol


class Token(Protocol):
    """Abstract interface for a fungible token."""

    @property
    def address(self) -> str: ...

    async def balance_of(self, account: str) -> int: ...

    async def transfer(self, recipient: str, amount: int) -> bool: ...

    async def approve(self, spender: str, amount: int) -> bool: ...
