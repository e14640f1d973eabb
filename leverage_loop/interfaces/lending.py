"""Lending pool protocol — supply/borrow/repay/withdraw abstraction."""
from typing import Protocol

from ..models import AccountData


class LendingPool(Protocol):
    """Abstract interface for a lending protocol pool.

    Calls execute as the engine's account unless stated otherwise.
    """

    @property
    def address(self) -> str: ...

    async def supply(
        self, asset: str, amount: int, on_behalf_of: str, referral_code: int
    ) -> None: ...

    async def borrow(
        self,
        asset: str,
        amount: int,
        rate_mode: int,
        referral_code: int,
        on_behalf_of: str,
    ) -> None: ...

    async def repay(
        self, asset: str, amount: int, rate_mode: int, on_behalf_of: str
    ) -> int: ...

    async def withdraw(self, asset: str, amount: int, to: str, owner: str) -> int: ...

    async def get_user_account_data(self, user: str) -> AccountData: ...
