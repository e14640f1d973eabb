"""Leveraged looping strategy engine."""
from .errors import (
    AuthorizationError,
    PausedError,
    ProtocolError,
    ReentrancyError,
    StrategyError,
    TransferError,
)
from .models import StrategyParameters
from .services import StrategyCore

__all__ = [
    "AuthorizationError",
    "PausedError",
    "ProtocolError",
    "ReentrancyError",
    "StrategyCore",
    "StrategyError",
    "StrategyParameters",
    "TransferError",
]

__version__ = "0.1.0"
