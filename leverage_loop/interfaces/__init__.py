"""Protocol interfaces for the strategy's external collaborators."""
from .delegation import DelegationRegistry
from .events import EventSink
from .ledger import HostLedger
from .lending import LendingPool
from .router import SwapRouter
from .token import Token
from .vault import VaultLedger

__all__ = [
    "DelegationRegistry",
    "EventSink",
    "HostLedger",
    "LendingPool",
    "SwapRouter",
    "Token",
    "VaultLedger",
]
