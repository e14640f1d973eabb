"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import STABLE_RATE_MODE, VARIABLE_RATE_MODE, StrategyParameters

logger = logging.getLogger(__name__)

FEE_TIERS = (100, 500, 3_000, 10_000)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StrategyConfig:
    borrow_factor: float = 0.75
    iteration_count: int = 3
    swap_fee_tier: int = 3_000
    # Nominal floor only; no real slippage protection.
    min_swap_output_floor: int = 1
    rate_mode: int = VARIABLE_RATE_MODE
    referral_code: int = 0

    def to_parameters(self) -> StrategyParameters:
        return StrategyParameters.from_factor(
            self.borrow_factor,
            iteration_count=self.iteration_count,
            swap_fee_tier=self.swap_fee_tier,
            min_swap_output_floor=self.min_swap_output_floor,
            rate_mode=self.rate_mode,
            referral_code=self.referral_code,
        )


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    sender: str = ""
    receipt_poll_interval: float = 1.0
    receipt_timeout: int = 120

    @property
    def enabled(self) -> bool:
        return bool(self.rpc_endpoints)


@dataclass(frozen=True)
class ContractsConfig:
    lending_pool: str = ""
    price_oracle: str = ""
    collateral_asset: str = ""
    borrow_asset: str = ""
    debt_token: str = ""
    swap_router: str = ""

    def missing(self) -> list[str]:
        return [name for name, value in vars(self).items() if not value]


@dataclass(frozen=True)
class SimulationConfig:
    ltv_bps: int = 8_000
    collateral_price: int = 100_000_000
    borrow_price: int = 100_000_000
    pool_liquidity: int = 1_000_000 * 10**18
    router_liquidity: int = 1_000_000 * 10**18


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    contracts: ContractsConfig = field(default_factory=ContractsConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_strategy(raw: dict[str, Any]) -> StrategyConfig:
    return StrategyConfig(
        borrow_factor=float(raw.get("borrow_factor", 0.75)),
        iteration_count=int(raw.get("iteration_count", 3)),
        swap_fee_tier=int(raw.get("swap_fee_tier", 3_000)),
        min_swap_output_floor=int(raw.get("min_swap_output_floor", 1)),
        rate_mode=int(raw.get("rate_mode", VARIABLE_RATE_MODE)),
        referral_code=int(raw.get("referral_code", 0)),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=tuple(e for e in raw.get("rpc_endpoints", []) if e),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        sender=raw.get("sender", ""),
        receipt_poll_interval=float(raw.get("receipt_poll_interval", 1.0)),
        receipt_timeout=int(raw.get("receipt_timeout", 120)),
    )


def _build_contracts(raw: dict[str, Any]) -> ContractsConfig:
    return ContractsConfig(
        **{name: str(raw.get(name, "")) for name in ContractsConfig.__dataclass_fields__}
    )


def _build_simulation(raw: dict[str, Any]) -> SimulationConfig:
    defaults = SimulationConfig()
    return SimulationConfig(
        ltv_bps=int(raw.get("ltv_bps", defaults.ltv_bps)),
        collateral_price=int(raw.get("collateral_price", defaults.collateral_price)),
        borrow_price=int(raw.get("borrow_price", defaults.borrow_price)),
        pool_liquidity=int(raw.get("pool_liquidity", defaults.pool_liquidity)),
        router_liquidity=int(raw.get("router_liquidity", defaults.router_liquidity)),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            bot_token=tg.get("bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        strategy=_build_strategy(raw.get("strategy", {})),
        chain=_build_chain(raw.get("chain", {})),
        contracts=_build_contracts(raw.get("contracts", {})),
        simulation=_build_simulation(raw.get("simulation", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    strategy = cfg.strategy
    if not 0 < strategy.borrow_factor < 1:
        raise ValueError("borrow_factor must be between 0 and 1")
    if strategy.iteration_count < 1:
        raise ValueError("iteration_count must be at least 1")
    if strategy.swap_fee_tier not in FEE_TIERS:
        raise ValueError(f"swap_fee_tier must be one of {FEE_TIERS}")
    if strategy.min_swap_output_floor < 0:
        raise ValueError("min_swap_output_floor cannot be negative")
    if strategy.rate_mode not in (STABLE_RATE_MODE, VARIABLE_RATE_MODE):
        raise ValueError("rate_mode must be 1 (stable) or 2 (variable)")

    if not 0 < cfg.simulation.ltv_bps < 10_000:
        raise ValueError("simulation ltv_bps must be between 0 and 10000")

    if cfg.chain.enabled:
        if not cfg.chain.sender:
            raise ValueError("Chain 'sender' account is required")
        missing = cfg.contracts.missing()
        if missing:
            raise ValueError(f"Missing contract addresses: {', '.join(missing)}")

    if cfg.notifications.telegram.enabled:
        tg = cfg.notifications.telegram
        if not tg.bot_token or not tg.chat_id:
            raise ValueError("Telegram is enabled but bot_token/chat_id are missing")
