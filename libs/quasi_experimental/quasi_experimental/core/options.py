"""Run options the analyses read from their caller."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class AnalysisOptions(BaseModel):
    """Execution and default settings for an analysis run.

    Attributes:
        n_jobs: Workers for per-group fits (1 runs sequentially, -1 all cores)
        parallel_backend: joblib backend for per-group fits
        fit_timeout_seconds: Wall-clock cap for a batch of parallel per-group fits
        default_confidence_level: Used when a model spec omits one
        default_bin_width: Bin width for discontinuity plots
        random_state: Seed for subsampling when a model spec omits one
        drop_missing: Drop rows with missing values instead of failing the load
    """

    n_jobs: int = Field(default=1, ge=-1, description="Workers for per-group fits")
    parallel_backend: Literal["threading", "loky", "multiprocessing"] = Field(
        default="threading", description="joblib backend for per-group fits"
    )
    fit_timeout_seconds: float | None = Field(
        default=None, gt=0.0, description="Wall-clock cap for parallel per-group fits"
    )
    default_confidence_level: float = Field(
        default=0.95, gt=0.0, lt=1.0, description="Confidence level when a spec omits one"
    )
    default_bin_width: float = Field(
        default=1.0, gt=0.0, description="Bin width for discontinuity plots"
    )
    random_state: int | None = Field(
        default=None, description="Subsampling seed when a spec omits one"
    )
    drop_missing: bool = Field(
        default=True, description="Drop rows with missing values in declared columns"
    )

    model_config = {"frozen": True}

    @field_validator("n_jobs")
    @classmethod
    def validate_n_jobs(cls, v: int) -> int:
        if v == 0:
            raise ValueError("n_jobs must be a positive integer or -1 for all cores")
        return v
