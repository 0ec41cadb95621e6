"""Unit tests for pipeline configuration."""

import pytest
from pydantic import ValidationError

from shared.config import ConfigurationManager, Environment, PipelineConfig


class TestPipelineConfig:
    """Test defaults, environment overrides and validation."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("QEA_N_JOBS", raising=False)
        config = PipelineConfig()

        assert config.n_jobs == 1
        assert config.parallel_backend == "threading"
        assert config.fit_timeout_seconds is None
        assert config.default_confidence_level == 0.95
        assert config.drop_missing is True
        assert config.environment == Environment.DEVELOPMENT

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("QEA_N_JOBS", "4")
        monkeypatch.setenv("QEA_DEFAULT_BIN_WIDTH", "2.5")
        monkeypatch.setenv("QEA_ENVIRONMENT", "teaching")

        config = PipelineConfig()

        assert config.n_jobs == 4
        assert config.default_bin_width == 2.5
        assert config.environment == Environment.TEACHING

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"n_jobs": 0},
            {"n_jobs": -2},
            {"default_confidence_level": 1.0},
            {"default_bin_width": 0.0},
            {"fit_timeout_seconds": -5.0},
            {"parallel_backend": "dask"},
            {"log_level": "TRACE"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            PipelineConfig(**kwargs)

    def test_configuration_warnings(self):
        config = PipelineConfig(
            environment=Environment.PRODUCTION, n_jobs=1, fit_timeout_seconds=10
        )
        issues = config.validate_configuration()

        assert any("random_state" in issue for issue in issues)
        assert any("fit_timeout_seconds" in issue for issue in issues)

    def test_clean_configuration(self):
        config = PipelineConfig(n_jobs=2, fit_timeout_seconds=10, random_state=0)
        assert config.validate_configuration() == []

    def test_to_dict(self):
        data = PipelineConfig(random_state=7).to_dict()
        assert data["random_state"] == 7
        assert "loaded_at" in data


class TestConfigurationManager:
    def test_register_and_validate(self):
        manager = ConfigurationManager()
        manager.register_configuration("pipeline", PipelineConfig(random_state=1))
        manager.register_configuration(
            "production", PipelineConfig(environment=Environment.PRODUCTION)
        )

        assert manager.get_configuration("pipeline").random_state == 1
        assert manager.get_configuration("missing") is None
        assert set(manager.get_all_configurations()) == {"pipeline", "production"}
        assert set(manager.validate_all_configurations()) == {"production"}


class TestAnalysisOptions:
    def test_options_mirror_settings(self):
        config = PipelineConfig(
            n_jobs=3,
            parallel_backend="loky",
            fit_timeout_seconds=12.5,
            default_confidence_level=0.9,
            default_bin_width=4.0,
            random_state=8,
            drop_missing=False,
        )
        options = config.analysis_options()

        assert options.n_jobs == 3
        assert options.parallel_backend == "loky"
        assert options.fit_timeout_seconds == 12.5
        assert options.default_confidence_level == 0.9
        assert options.default_bin_width == 4.0
        assert options.random_state == 8
        assert options.drop_missing is False
