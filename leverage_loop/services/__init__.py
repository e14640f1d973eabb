"""Service modules"""
from .delegation import CreditDelegation
from .looping import LoopingEngine
from .strategy import StrategyCore
from .swap_adapter import SwapAdapter
from .unwinding import UnwindingEngine

__all__ = [
    "CreditDelegation",
    "LoopingEngine",
    "StrategyCore",
    "SwapAdapter",
    "UnwindingEngine",
]
