"""
Tests for engine configuration.
"""

import pytest
from datetime import date

from armagarch.config import EngineConfig, load_config
from armagarch.exceptions import ConfigurationError


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig().validate()

        assert config.window_size == 500
        assert config.max_p == 4
        assert config.max_q == 4
        assert config.risk_free_annual_rate == 0.02
        assert config.periods_per_year == 252
        assert config.variance_order == (1, 1)

    @pytest.mark.parametrize("overrides", [
        {"max_p": -1},
        {"max_q": -2},
        {"max_p": 0, "max_q": 0},
        {"window_size": 1},
        {"n_workers": 0},
        {"periods_per_year": 0},
        {"variance_order": (2, 1)},
        {"eval_start": date(2022, 1, 1), "eval_end": date(2021, 1, 1)},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ConfigurationError):
            EngineConfig(**overrides).validate()

    def test_with_overrides_parses_strings_and_skips_none(self):
        config = EngineConfig().with_overrides(
            eval_start="2020-03-01",
            window_size="250",
            max_p=None,
        )

        assert config.eval_start == date(2020, 3, 1)
        assert config.window_size == 250
        assert config.max_p == 4

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigurationError, match="unknown"):
            EngineConfig().with_overrides(windowsize=10)


class TestLoadConfig:

    def test_missing_file_uses_defaults(self, temp_dir):
        config = load_config(str(temp_dir / "missing.yaml"))
        assert config == EngineConfig()

    def test_yaml_with_env_expansion(self, temp_dir, monkeypatch):
        monkeypatch.setenv("TEST_SYMBOL", "SPY")
        path = temp_dir / "settings.yaml"
        path.write_text(
            "engine:\n"
            "  symbol: ${TEST_SYMBOL}\n"
            "  window_size: 250\n"
            "  max_q: 2\n"
            "  eval_start: '2020-03-01'\n"
            "  solvers: [SLSQP, Powell]\n"
        )

        config = load_config(str(path))

        assert config.symbol == "SPY"
        assert config.window_size == 250
        assert config.max_q == 2
        assert config.eval_start == date(2020, 3, 1)
        assert config.solvers == ("SLSQP", "Powell")

    def test_invalid_yaml_values_are_fatal(self, temp_dir):
        path = temp_dir / "settings.yaml"
        path.write_text("engine:\n  max_p: -3\n")

        with pytest.raises(ConfigurationError):
            load_config(str(path))
