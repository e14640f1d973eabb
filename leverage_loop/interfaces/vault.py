"""Vault ledger protocol: share bookkeeping of the enclosing vault."""
from typing import Protocol


class VaultLedger(Protocol):
    """Share accounting owned by the vault that invokes the strategy hooks."""

    async def balance_of(self, owner: str) -> int: ...

    async def convert_to_assets(self, shares: int) -> int: ...

    async def decrease_total_assets(self, assets: int) -> None: ...

    async def burn(self, owner: str, shares: int) -> None: ...

    async def is_paused(self) -> bool: ...

    async def is_allocator(self, account: str) -> bool: ...
