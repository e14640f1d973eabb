"""In-memory lending pool with a flat loan-to-value limit."""
from __future__ import annotations

import logging

from ..errors import ProtocolError, TransferError
from ..models import BPS_DENOMINATOR, FULL_BALANCE, STABLE_RATE_MODE, VARIABLE_RATE_MODE, AccountData
from .chain import SimulatedChain

logger = logging.getLogger(__name__)

# Prices are quoted for one whole token (18 decimals) in 8-decimal base currency.
TOKEN_UNIT = 10**18


class SimLendingPool:
    """Collateral and debt ledger keyed by owner.

    ``available_borrows`` is reported in units of ``borrow_asset``; totals are
    in base currency. Borrowing for someone else consumes their delegation on
    the matching debt token.
    """

    def __init__(
        self,
        chain: SimulatedChain,
        address: str,
        sender: str,
        borrow_asset: str,
        debt_tokens: dict[str, str],
        ltv_bps: int = 8_000,
    ) -> None:
        self._chain = chain
        self._address = address
        self._sender = sender
        self._borrow_asset = borrow_asset
        self._debt_tokens = dict(debt_tokens)
        self._ltv_bps = ltv_bps

    @property
    def address(self) -> str:
        return self._address

    def as_account(self, sender: str) -> SimLendingPool:
        return SimLendingPool(
            self._chain, self._address, sender, self._borrow_asset,
            self._debt_tokens, self._ltv_bps,
        )

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def _price(self, asset: str) -> int:
        price = self._chain.prices.get(asset, 0)
        if price <= 0:
            raise ProtocolError(f"No price for {asset}")
        return price

    def _value(self, holdings: dict[str, int]) -> int:
        return sum(amount * self._price(asset) for asset, amount in holdings.items())

    def _headroom(self, user: str) -> int:
        state = self._chain.state
        collateral = self._value(state.collateral.get(user, {}))
        debt = self._value(state.debt.get(user, {}))
        return max(0, collateral * self._ltv_bps // BPS_DENOMINATOR - debt)

    async def get_user_account_data(self, user: str) -> AccountData:
        state = self._chain.state
        collateral = self._value(state.collateral.get(user, {}))
        debt = self._value(state.debt.get(user, {}))
        health = (
            collateral * self._ltv_bps / BPS_DENOMINATOR / debt if debt else float("inf")
        )
        return AccountData(
            total_collateral=collateral // TOKEN_UNIT,
            total_debt=debt // TOKEN_UNIT,
            available_borrows=self._headroom(user) // self._price(self._borrow_asset),
            ltv_bps=self._ltv_bps,
            health_factor=health,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def supply(
        self, asset: str, amount: int, on_behalf_of: str, referral_code: int
    ) -> None:
        if amount <= 0:
            raise ProtocolError("Supply amount must be positive")
        self._price(asset)
        try:
            await self._chain.pull(asset, self._sender, self._address, self._address, amount)
        except TransferError as e:
            raise ProtocolError(f"Supply failed: {e}") from e
        held = self._chain.state.collateral.setdefault(on_behalf_of, {})
        held[asset] = held.get(asset, 0) + amount

    async def borrow(
        self,
        asset: str,
        amount: int,
        rate_mode: int,
        referral_code: int,
        on_behalf_of: str,
    ) -> None:
        if rate_mode not in (STABLE_RATE_MODE, VARIABLE_RATE_MODE):
            raise ProtocolError(f"Invalid rate mode {rate_mode}")
        if amount <= 0:
            raise ProtocolError("Borrow amount must be positive")
        if amount * self._price(asset) > self._headroom(on_behalf_of):
            raise ProtocolError(f"Borrow of {amount} exceeds capacity of {on_behalf_of}")
        if self._chain.balance(asset, self._address) < amount:
            raise ProtocolError(f"Pool lacks liquidity for {amount} of {asset}")

        state = self._chain.state
        if on_behalf_of != self._sender:
            key = (self._debt_tokens.get(asset, ""), on_behalf_of, self._sender)
            allowance = state.delegations.get(key, 0)
            if allowance < amount:
                raise ProtocolError(
                    f"Delegation {allowance} from {on_behalf_of} below {amount}"
                )
            state.delegations[key] = allowance - amount

        owed = state.debt.setdefault(on_behalf_of, {})
        owed[asset] = owed.get(asset, 0) + amount
        await self._chain.move(asset, self._address, self._sender, amount)

    async def repay(
        self, asset: str, amount: int, rate_mode: int, on_behalf_of: str
    ) -> int:
        owed = self._chain.state.debt.get(on_behalf_of, {})
        outstanding = owed.get(asset, 0)
        if outstanding == 0:
            raise ProtocolError(f"{on_behalf_of} has no {asset} debt")
        payment = min(amount, outstanding)
        try:
            await self._chain.pull(asset, self._sender, self._address, self._address, payment)
        except TransferError as e:
            raise ProtocolError(f"Repay failed: {e}") from e
        owed[asset] = outstanding - payment
        if owed[asset] == 0:
            del owed[asset]
        return payment

    async def withdraw(self, asset: str, amount: int, to: str, owner: str) -> int:
        held = self._chain.state.collateral.get(owner, {})
        supplied = held.get(asset, 0)
        amount = supplied if amount == FULL_BALANCE else amount
        if amount <= 0 or amount > supplied:
            raise ProtocolError(f"Cannot withdraw {amount} of {supplied} supplied")

        left = {**held, asset: supplied - amount}
        remaining = self._value(left) * self._ltv_bps // BPS_DENOMINATOR
        if remaining < self._value(self._chain.state.debt.get(owner, {})):
            raise ProtocolError(f"Withdraw would leave {owner} undercollateralised")

        held[asset] = supplied - amount
        if held[asset] == 0:
            del held[asset]

        await self._chain.move(asset, self._address, to, amount)
        return amount
