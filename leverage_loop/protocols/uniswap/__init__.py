"""Uniswap v3 router adapter."""
from .router import UniswapV3Router

__all__ = ["UniswapV3Router"]
