"""Unit tests for config loading, env interpolation, and validation."""
from __future__ import annotations

from pathlib import Path

import pytest

from leverage_loop.config import (
    AppConfig,
    ChainConfig,
    ContractsConfig,
    StrategyConfig,
    _interpolate_env,
    load_config,
)


class TestInterpolateEnv:
    def test_simple_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _interpolate_env("${MY_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR_XYZ", raising=False)
        assert _interpolate_env("${NONEXISTENT_VAR_XYZ}") == ""

    def test_nested_dict(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOK", "secret")
        result = _interpolate_env({"key": "${TOK}", "plain": "text"})
        assert result == {"key": "secret", "plain": "text"}

    def test_nested_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("A", "x")
        assert _interpolate_env(["${A}", "y"]) == ["x", "y"]

    def test_non_string_passthrough(self) -> None:
        assert _interpolate_env(42) == 42
        assert _interpolate_env(True) is True


class TestLoadConfig:
    def test_loads_valid_yaml(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.strategy.borrow_factor == 0.75
        assert cfg.strategy.swap_fee_tier == 500
        assert cfg.chain.enabled
        assert cfg.chain.rpc_timeout == 10
        assert cfg.contracts.debt_token.startswith("0x5555")
        assert cfg.simulation.ltv_bps == 7000
        assert cfg.notifications.telegram.chat_id == "999"

    def test_parameters_from_config(self, sample_yaml_path: Path) -> None:
        params = load_config(sample_yaml_path).strategy.to_parameters()
        assert params.borrow_factor_bps == 7_500
        assert params.swap_fee_tier == 500

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text("")
        cfg = load_config(cfg_file)
        assert cfg.strategy == StrategyConfig()
        assert not cfg.chain.enabled

    def test_env_interpolation_in_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TEST_RPC", "https://rpc.test.com")
        monkeypatch.setenv("TEST_SENDER", "0xABCDEF")
        yaml_content = """\
chain:
  rpc_endpoints: ["${TEST_RPC}", "${UNSET_RPC_XYZ}"]
  sender: "${TEST_SENDER}"
contracts:
  lending_pool: "0x1"
  price_oracle: "0x2"
  collateral_asset: "0x3"
  borrow_asset: "0x4"
  debt_token: "0x5"
  swap_router: "0x6"
"""
        monkeypatch.delenv("UNSET_RPC_XYZ", raising=False)
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(yaml_content)
        cfg = load_config(cfg_file)
        assert cfg.chain.sender == "0xABCDEF"
        assert cfg.chain.rpc_endpoints == ("https://rpc.test.com",)


class TestValidation:
    @pytest.mark.parametrize(
        "strategy_yaml, message",
        [
            ("borrow_factor: 1.2", "borrow_factor"),
            ("borrow_factor: 0", "borrow_factor"),
            ("iteration_count: 0", "iteration_count"),
            ("swap_fee_tier: 250", "swap_fee_tier"),
            ("min_swap_output_floor: -1", "min_swap_output_floor"),
            ("rate_mode: 3", "rate_mode"),
        ],
    )
    def test_invalid_strategy_raises(
        self, tmp_path: Path, strategy_yaml: str, message: str
    ) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(f"strategy:\n  {strategy_yaml}\n")
        with pytest.raises(ValueError, match=message):
            load_config(cfg_file)

    def test_chain_without_sender_raises(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text('chain:\n  rpc_endpoints: ["https://rpc.test.com"]\n')
        with pytest.raises(ValueError, match="sender"):
            load_config(cfg_file)

    def test_chain_without_contracts_raises(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(
            'chain:\n  rpc_endpoints: ["https://rpc.test.com"]\n  sender: "0x1"\n'
            'contracts:\n  lending_pool: "0x1"\n'
        )
        with pytest.raises(ValueError, match="Missing contract addresses: price_oracle"):
            load_config(cfg_file)

    def test_telegram_without_token_raises(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text("notifications:\n  telegram:\n    enabled: true\n")
        with pytest.raises(ValueError, match="Telegram"):
            load_config(cfg_file)


class TestFrozenConfigs:
    def test_strategy_config_immutable(self) -> None:
        s = StrategyConfig()
        with pytest.raises(AttributeError):
            s.borrow_factor = 0.9  # type: ignore[misc]

    def test_chain_config_immutable(self) -> None:
        c = ChainConfig(rpc_endpoints=("a",))
        with pytest.raises(AttributeError):
            c.rpc_timeout = 999  # type: ignore[misc]

    def test_contracts_missing(self) -> None:
        c = ContractsConfig(lending_pool="0x1")
        assert "lending_pool" not in c.missing()
        assert "swap_router" in c.missing()
