"""Wire a complete simulated market around a StrategyCore."""
from __future__ import annotations

from dataclasses import dataclass, field

from ..config import SimulationConfig
from ..models import StrategyParameters
from ..notifications.sinks import EventBus
from ..services.strategy import StrategyCore
from .chain import SimulatedChain, SimToken
from .debt_token import SimDebtToken
from .lending import SimLendingPool
from .router import SimSwapRouter
from .vault import SimShareVault

COLLATERAL = "0x1000000000000000000000000000000000000001"
BORROWED = "0x2000000000000000000000000000000000000002"
DEBT_TOKEN = "0x3000000000000000000000000000000000000003"
POOL = "0x4000000000000000000000000000000000000004"
ROUTER = "0x5000000000000000000000000000000000000005"
VAULT = "0x6000000000000000000000000000000000000006"


@dataclass
class SimulatedDeployment:
    chain: SimulatedChain
    collateral: SimToken
    borrowed: SimToken
    pool: SimLendingPool
    router: SimSwapRouter
    registry: SimDebtToken
    vault: SimShareVault
    strategy: StrategyCore
    events: EventBus = field(default_factory=EventBus)

    @property
    def engine(self) -> str:
        return self.vault.address

    def fund(self, account: str, amount: int, token: str = COLLATERAL) -> None:
        self.chain.mint(token, account, amount)

    async def delegate(self, owner: str, amount: int) -> None:
        await self.strategy.delegate_credit(self.registry.address, amount, owner)

    async def collateral_of(self, owner: str) -> int:
        return self.chain.state.collateral.get(owner, {}).get(COLLATERAL, 0)

    async def debt_of(self, owner: str) -> int:
        return self.chain.state.debt.get(owner, {}).get(BORROWED, 0)


def deploy(
    config: SimulationConfig | None = None,
    params: StrategyParameters | None = None,
    events: EventBus | None = None,
) -> SimulatedDeployment:
    """Build a simulated chain with liquidity, prices and a wired strategy."""
    config = config or SimulationConfig()
    params = params or StrategyParameters()
    events = events or EventBus()

    chain = SimulatedChain()
    chain.set_price(COLLATERAL, config.collateral_price)
    chain.set_price(BORROWED, config.borrow_price)
    chain.mint(BORROWED, POOL, config.pool_liquidity)
    chain.mint(COLLATERAL, ROUTER, config.router_liquidity)
    chain.mint(BORROWED, ROUTER, config.router_liquidity)

    collateral = SimToken(chain, COLLATERAL, VAULT)
    borrowed = SimToken(chain, BORROWED, VAULT)
    pool = SimLendingPool(
        chain, POOL, VAULT, BORROWED, {BORROWED: DEBT_TOKEN}, config.ltv_bps
    )
    router = SimSwapRouter(chain, ROUTER, VAULT)
    registry = SimDebtToken(chain, DEBT_TOKEN, BORROWED)
    vault = SimShareVault(chain, VAULT, collateral)

    strategy = StrategyCore(
        ledger=chain,
        vault=vault,
        pool=pool,
        collateral=collateral,
        debt_asset=borrowed,
        router=router,
        registry=registry,
        params=params,
        engine=VAULT,
        events=events,
    )
    return SimulatedDeployment(
        chain=chain,
        collateral=collateral,
        borrowed=borrowed,
        pool=pool,
        router=router,
        registry=registry,
        vault=vault,
        strategy=strategy,
        events=events,
    )
