"""Build strategies from configuration."""
from __future__ import annotations

import logging

from .chains.evm import Erc20Token, EvmClient
from .config import AppConfig
from .notifications import EventBus, LoggingEventSink, TelegramEventSink
from .protocols.aave import AaveDebtToken, AavePool
from .protocols.uniswap import UniswapV3Router
from .services import StrategyCore
from .sim import SimulatedDeployment, deploy

logger = logging.getLogger(__name__)


def build_event_bus(config: AppConfig) -> EventBus:
    bus = EventBus([LoggingEventSink()])
    if config.notifications.telegram.enabled:
        bus.subscribe(TelegramEventSink(config.notifications.telegram))
    return bus


def build_evm_strategy(config: AppConfig, events: EventBus | None = None) -> StrategyCore:
    """Wire a StrategyCore against live contracts; the engine is the sender account."""
    if not config.chain.enabled:
        raise ValueError("No chain configured (chain.rpc_endpoints is empty)")

    client = EvmClient(config.chain)
    contracts = config.contracts
    logger.info("Connecting strategy for %s via %s", client.sender, client.endpoints[0])

    return StrategyCore(
        ledger=client,
        vault=None,
        pool=AavePool(
            client, contracts.lending_pool, contracts.price_oracle, contracts.borrow_asset
        ),
        collateral=Erc20Token(client, contracts.collateral_asset),
        debt_asset=Erc20Token(client, contracts.borrow_asset),
        router=UniswapV3Router(client, contracts.swap_router),
        registry=AaveDebtToken(client, contracts.debt_token),
        params=config.strategy.to_parameters(),
        engine=client.sender,
        events=events or build_event_bus(config),
    )


def build_simulation(config: AppConfig, events: EventBus | None = None) -> SimulatedDeployment:
    return deploy(
        config.simulation,
        config.strategy.to_parameters(),
        events or build_event_bus(config),
    )
