"""EVM JSON-RPC client and token handles."""
from .client import EvmClient
from .erc20 import Erc20Token

__all__ = ["EvmClient", "Erc20Token"]
