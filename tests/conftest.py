"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from leverage_loop.config import (
    AppConfig,
    ChainConfig,
    ContractsConfig,
    NotificationsConfig,
    SimulationConfig,
    StrategyConfig,
    TelegramConfig,
)
from leverage_loop.models import StrategyParameters
from leverage_loop.notifications import EventBus, RecordingEventSink
from leverage_loop.sim import SimulatedDeployment, deploy

from .constants import OTHER, OWNER, TOKEN


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_contracts() -> ContractsConfig:
    return ContractsConfig(
        lending_pool="0x" + "1" * 40,
        price_oracle="0x" + "2" * 40,
        collateral_asset="0x" + "3" * 40,
        borrow_asset="0x" + "4" * 40,
        debt_token="0x" + "5" * 40,
        swap_router="0x" + "6" * 40,
    )


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
        sender="0x" + "e" * 40,
        receipt_poll_interval=0.0,
        receipt_timeout=1,
    )


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig, sample_contracts: ContractsConfig
) -> AppConfig:
    return AppConfig(
        strategy=StrategyConfig(),
        chain=sample_chain_config,
        contracts=sample_contracts,
        simulation=SimulationConfig(),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(enabled=True, bot_token="fake-token", chat_id="12345"),
        ),
    )


SAMPLE_YAML = textwrap.dedent("""\
    strategy:
      borrow_factor: 0.75
      iteration_count: 3
      swap_fee_tier: 500
      min_swap_output_floor: 1
    chain:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
      sender: "0xEEEEEEEEEEEEEEEEEEEEEEEEEEEEEEEEEEEEEEEE"
    contracts:
      lending_pool: "0x1111111111111111111111111111111111111111"
      price_oracle: "0x2222222222222222222222222222222222222222"
      collateral_asset: "0x3333333333333333333333333333333333333333"
      borrow_asset: "0x4444444444444444444444444444444444444444"
      debt_token: "0x5555555555555555555555555555555555555555"
      swap_router: "0x6666666666666666666666666666666666666666"
    simulation:
      ltv_bps: 7000
    notifications:
      telegram:
        enabled: true
        bot_token: "tok"
        chat_id: "999"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Simulated market
# ---------------------------------------------------------------------------


@pytest.fixture()
def recorder() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture()
def sim(recorder: RecordingEventSink) -> SimulatedDeployment:
    """Simulated market with two funded allocators and default parameters."""
    deployment = deploy(SimulationConfig(), StrategyParameters(), EventBus([recorder]))
    for account in (OWNER, OTHER):
        deployment.vault.add_allocator(account)
        deployment.fund(account, 100 * TOKEN)
    return deployment
