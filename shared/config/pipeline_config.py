"""Configuration for the quasi-experimental analysis pipeline."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from quasi_experimental.core.options import AnalysisOptions

from .base import BaseConfiguration, Environment


class PipelineConfig(BaseConfiguration):
    """Runtime settings for loading, binning and fitting.

    Every field can be overridden through an environment variable prefixed
    with ``QEA_`` (for example ``QEA_N_JOBS=4``).
    """

    model_config = SettingsConfigDict(env_prefix="QEA_")

    # Estimation
    n_jobs: int = Field(
        default=1, description="Workers for per-group fits (1 runs sequentially)"
    )
    parallel_backend: Literal["threading", "loky", "multiprocessing"] = Field(
        default="threading", description="joblib backend for per-group fits"
    )
    fit_timeout_seconds: float | None = Field(
        default=None, description="Wall-clock cap for a batch of per-group fits"
    )
    default_confidence_level: float = Field(
        default=0.95, description="Confidence level used when a spec omits one"
    )
    random_state: int | None = Field(
        default=None, description="Seed used for subsampling when a spec omits one"
    )

    # Data handling
    default_bin_width: float = Field(
        default=1.0, description="Bin width for discontinuity plots"
    )
    drop_missing: bool = Field(
        default=True, description="Drop rows with missing values in declared columns"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = Field(
        default=None, description="Explicit log level, overrides the environment default"
    )

    @field_validator("default_confidence_level")
    @classmethod
    def validate_confidence_level(cls, v: float) -> float:
        if not 0 < v < 1:
            raise ValueError("Confidence level must be between 0 and 1")
        return v

    @field_validator("default_bin_width")
    @classmethod
    def validate_bin_width(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Bin width must be positive")
        return v

    @field_validator("n_jobs")
    @classmethod
    def validate_n_jobs(cls, v: int) -> int:
        if v == 0 or v < -1:
            raise ValueError("n_jobs must be a positive integer or -1 for all cores")
        return v

    @field_validator("fit_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("Fit timeout must be positive")
        return v

    def validate_configuration(self) -> list[str]:
        """Report settings that are legal but probably unintended."""
        issues = super().validate_configuration()

        if self.environment == Environment.PRODUCTION and self.random_state is None:
            issues.append("No random_state set; subsampled fits will not be reproducible")

        if self.fit_timeout_seconds is not None and self.n_jobs == 1:
            issues.append(
                "fit_timeout_seconds only applies when fits run through joblib (n_jobs != 1)"
            )

        return issues

    def analysis_options(self) -> AnalysisOptions:
        """The subset of these settings the analysis library reads."""
        return AnalysisOptions(
            n_jobs=self.n_jobs,
            parallel_backend=self.parallel_backend,
            fit_timeout_seconds=self.fit_timeout_seconds,
            default_confidence_level=self.default_confidence_level,
            default_bin_width=self.default_bin_width,
            random_state=self.random_state,
            drop_missing=self.drop_missing,
        )
