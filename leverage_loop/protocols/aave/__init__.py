"""Aave v3 pool and variable debt token adapters."""
from .debt_token import AaveDebtToken
from .pool import AavePool

__all__ = ["AaveDebtToken", "AavePool"]
