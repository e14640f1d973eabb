"""Host ledger protocol: all-or-nothing unit of work."""
from typing import AsyncContextManager, Protocol


class HostLedger(Protocol):
    """Executes a block of calls atomically.

    On any exception inside the block every state change is reverted. With
    ``commit=False`` the block is always reverted (dry run).
    """

    def transaction(self, commit: bool = True) -> AsyncContextManager[None]: ...
