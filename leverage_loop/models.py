"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass

BPS_DENOMINATOR = 10_000
VARIABLE_RATE_MODE = 2
STABLE_RATE_MODE = 1
# Withdraw sentinel meaning "the whole supplied balance".
FULL_BALANCE = 2**256 - 1


@dataclass(frozen=True)
class StrategyParameters:
    """Loop parameters, fixed for the lifetime of an engine."""

    borrow_factor_bps: int = 7_500
    iteration_count: int = 3
    swap_fee_tier: int = 3_000
    min_swap_output_floor: int = 1
    rate_mode: int = VARIABLE_RATE_MODE
    referral_code: int = 0

    @classmethod
    def from_factor(cls, borrow_factor: float, **kwargs: int) -> StrategyParameters:
        """Build parameters from a fractional borrow factor such as 0.75."""
        return cls(borrow_factor_bps=round(borrow_factor * BPS_DENOMINATOR), **kwargs)

    @property
    def borrow_factor(self) -> float:
        return self.borrow_factor_bps / BPS_DENOMINATOR

    def amount_to_borrow(self, capacity: int) -> int:
        """Share of ``capacity`` to borrow, truncated toward zero."""
        return capacity * self.borrow_factor_bps // BPS_DENOMINATOR


@dataclass(frozen=True)
class AccountData:
    """Lending position snapshot as reported by the protocol.

    ``available_borrows`` is expressed in base units of the borrow asset.
    """

    total_collateral: int
    total_debt: int
    available_borrows: int
    ltv_bps: int = 0
    health_factor: float = float("inf")


@dataclass(frozen=True)
class DelegationGrant:
    owner: str
    delegate: str
    allowance: int


@dataclass(frozen=True)
class SwapParams:
    """Single-hop exact-input swap request."""

    token_in: str
    token_out: str
    fee: int
    recipient: str
    amount_in: int
    amount_out_minimum: int
    sqrt_price_limit_x96: int = 0


@dataclass(frozen=True)
class LoopResult:
    owner: str
    initial_amount: int
    total_supplied: int
    swap_outputs: tuple[int, ...] = ()
    borrowed: tuple[int, ...] = ()


@dataclass(frozen=True)
class UnwindResult:
    owner: str
    repaid: int
    withdrawn: int


@dataclass(frozen=True)
class BorrowPreview:
    owner: str
    capacity: int
    amount_to_borrow: int
    allowance: int

    @property
    def authorized(self) -> bool:
        return self.allowance >= self.amount_to_borrow


# ---------------------------------------------------------------------------
# Observability events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StrategyEvent:
    """Base class for events published to event sinks."""

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class DepositObserved(StrategyEvent):
    caller: str
    assets: int
    shares: int
    receiver: str


@dataclass(frozen=True)
class BorrowObserved(StrategyEvent):
    owner: str
    iteration: int
    requested: int
    realized: int


@dataclass(frozen=True)
class SwapObserved(StrategyEvent):
    owner: str
    amount_in: int
    amount_out: int
    balance_after: int


@dataclass(frozen=True)
class WithdrawObserved(StrategyEvent):
    caller: str
    receiver: str
    owner: str
    assets: int
    shares: int


@dataclass(frozen=True)
class UnwindObserved(StrategyEvent):
    owner: str
    repaid: int
    withdrawn: int
