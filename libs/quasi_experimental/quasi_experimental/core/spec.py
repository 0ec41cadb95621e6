"""Immutable model configuration passed to the model runner."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class EstimatorKind(str, Enum):
    """Estimator variants the model runner can dispatch to."""

    OLS_INTERACTION = "ols_interaction"
    LOCAL_POLYNOMIAL = "local_polynomial"
    PANEL_FIXED_EFFECTS = "panel_fixed_effects"

    @property
    def is_discontinuity(self) -> bool:
        return self is not EstimatorKind.PANEL_FIXED_EFFECTS


class ModelSpec(BaseModel):
    """Which estimator to run and how.

    ``polynomial_order`` has no default on purpose: discontinuity designs must
    state the order they want (1 for local linear), and panel designs must pass
    ``None``.

    Examples:
        >>> ModelSpec(
        ...     kind="local_polynomial",
        ...     outcome="deforestation",
        ...     running="distance",
        ...     cutoff=0.0,
        ...     polynomial_order=1,
        ... )
    """

    kind: EstimatorKind
    outcome: str
    polynomial_order: int | None = Field(
        ..., description="Order of the running-variable polynomial (None for panels)"
    )

    # Discontinuity designs
    running: str | None = None
    cutoff: float | None = None
    treatment: str | None = Field(
        default=None,
        description="Treatment indicator; discontinuity designs derive it from the cutoff when omitted",
    )
    kernel: Literal["triangular", "epanechnikov", "uniform"] = "triangular"
    bandwidth: float | None = Field(
        default=None, description="Manual bandwidth; selected from the data when None"
    )
    bandwidth_selector: Literal["mserd", "msetwo", "cerrd", "certwo"] = "mserd"

    # Panel designs
    unit: str | None = None
    time: str | None = None

    # Shared
    covariates: tuple[str, ...] = ()
    categorical_covariates: tuple[str, ...] = ()
    cluster: str | None = None
    confidence_level: float = 0.95

    # Explicit, seeded subsampling
    sample_fraction: float | None = None
    random_state: int | None = None

    model_config = {"frozen": True}

    @field_validator("confidence_level")
    @classmethod
    def validate_confidence_level(cls, v: float) -> float:
        if not 0 < v < 1:
            raise ValueError("confidence_level must be between 0 and 1")
        return v

    @field_validator("sample_fraction")
    @classmethod
    def validate_sample_fraction(cls, v: float | None) -> float | None:
        if v is not None and not 0 < v <= 1:
            raise ValueError("sample_fraction must be in (0, 1]")
        return v

    @field_validator("bandwidth")
    @classmethod
    def validate_bandwidth(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("bandwidth must be positive")
        return v

    @model_validator(mode="after")
    def check_design_fields(self) -> ModelSpec:
        if self.kind.is_discontinuity:
            if self.running is None or self.cutoff is None:
                raise ValueError(f"{self.kind.value} requires 'running' and 'cutoff'")
            if self.polynomial_order is None or self.polynomial_order < 1:
                raise ValueError(
                    f"{self.kind.value} requires an explicit polynomial_order >= 1"
                )
            if self.kind is EstimatorKind.OLS_INTERACTION and self.treatment is None:
                raise ValueError("ols_interaction requires a 'treatment' column")
        else:
            if self.unit is None or self.time is None or self.treatment is None:
                raise ValueError(
                    "panel_fixed_effects requires 'unit', 'time' and 'treatment'"
                )
            if self.polynomial_order is not None:
                raise ValueError("panel_fixed_effects takes polynomial_order=None")
        overlap = set(self.covariates) & set(self.categorical_covariates)
        if overlap:
            raise ValueError(f"Covariates listed as both numeric and categorical: {overlap}")
        return self

    @property
    def required_columns(self) -> list[str]:
        """Every column the fit reads, in a stable order without duplicates."""
        names = [
            self.outcome,
            self.running,
            self.treatment,
            self.unit,
            self.time,
            self.cluster,
            *self.covariates,
            *self.categorical_covariates,
        ]
        return list(dict.fromkeys(n for n in names if n is not None))

    def replace(self, **changes: Any) -> ModelSpec:
        """A validated copy with ``changes`` applied.

        Fields the caller never set stay unset in the copy, so defaults can
        still be filled from configuration later.
        """
        data = {name: getattr(self, name) for name in self.model_fields_set}
        data.update(changes)
        return type(self)(**data)
