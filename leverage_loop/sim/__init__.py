"""Simulated chain: in-memory token, lending, exchange and vault ledgers."""
from .chain import ChainState, SimulatedChain, SimToken
from .debt_token import SimDebtToken
from .deployment import SimulatedDeployment, deploy
from .lending import SimLendingPool
from .router import SimSwapRouter
from .vault import SimShareVault

__all__ = [
    "ChainState",
    "SimDebtToken",
    "SimLendingPool",
    "SimShareVault",
    "SimSwapRouter",
    "SimToken",
    "SimulatedChain",
    "SimulatedDeployment",
    "deploy",
]
