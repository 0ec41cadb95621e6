"""Result types and the exception hierarchy shared by every pipeline stage.

Estimators return :class:`FitResult`; per-group evaluation records a
:class:`GroupFailure` wherever a fit could not be produced.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Hashable


class PipelineError(Exception):
    """Base exception class for analysis pipeline errors."""

    pass


class LoadError(PipelineError):
    """Raised when a dataset cannot be read or does not match its schema."""

    pass


class InsufficientDataError(PipelineError):
    """Raised when a data slice cannot support the requested estimator."""

    pass


class EstimationError(PipelineError):
    """Raised when the delegated statistics library fails or degenerates."""

    pass


@dataclass(frozen=True)
class FitResult:
    """Outcome of a single model fit.

    The standard error is whatever the statistics library computed. Very small
    values are kept as-is; a displayed ``0.000`` is a rounding artifact, not a
    claim of zero sampling uncertainty.
    """

    estimate: float
    std_error: float
    ci_lower: float | None = None
    ci_upper: float | None = None
    p_value: float | None = None
    confidence_level: float = 0.95

    method: str = "unknown"
    group: Hashable | None = None

    n_observations: int | None = None
    n_left: int | None = None  # Below the cutoff / untreated
    n_right: int | None = None  # At or above the cutoff / treated

    # Local-polynomial window, when the estimator has one
    bandwidth_left: float | None = None
    bandwidth_right: float | None = None

    diagnostics: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not math.isfinite(self.estimate):
            raise ValueError("Point estimate must be finite")
        if not math.isfinite(self.std_error) or self.std_error <= 0:
            raise ValueError("Standard error must be finite and positive")
        if self.ci_lower is not None and self.ci_upper is not None:
            if self.ci_lower > self.ci_upper:
                raise ValueError("Lower confidence bound cannot exceed upper bound")
        if not 0 < self.confidence_level < 1:
            raise ValueError("Confidence level must be between 0 and 1")
        object.__setattr__(self, "diagnostics", MappingProxyType(dict(self.diagnostics)))

    def __reduce__(self) -> tuple[Any, ...]:
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["diagnostics"] = dict(self.diagnostics)
        return (_rebuild_fit_result, (values,))

    @property
    def succeeded(self) -> bool:
        return True

    @property
    def bandwidth(self) -> float | None:
        """Symmetric bandwidth, or the left one when the window is asymmetric."""
        return self.bandwidth_left

    @property
    def is_significant(self) -> bool:
        """Whether the confidence interval excludes zero."""
        if self.ci_lower is None or self.ci_upper is None:
            return False
        return self.ci_lower > 0 or self.ci_upper < 0

    @property
    def confidence_interval(self) -> tuple[float, float] | None:
        """Confidence interval as a ``(lower, upper)`` tuple, if available."""
        if self.ci_lower is not None and self.ci_upper is not None:
            return (self.ci_lower, self.ci_upper)
        return None

    def to_dict(self) -> dict[str, Any]:
        """Flatten the result into a table row."""
        return {
            "group": self.group,
            "method": self.method,
            "status": "ok",
            "estimate": self.estimate,
            "std_error": self.std_error,
            "ci_lower": self.ci_lower,
            "ci_upper": self.ci_upper,
            "p_value": self.p_value,
            "confidence_level": self.confidence_level,
            "n_observations": self.n_observations,
            "n_left": self.n_left,
            "n_right": self.n_right,
            "bandwidth_left": self.bandwidth_left,
            "bandwidth_right": self.bandwidth_right,
            "error_type": None,
            "reason": None,
        }


def _rebuild_fit_result(values: dict[str, Any]) -> FitResult:
    return FitResult(**values)


@dataclass(frozen=True)
class GroupFailure:
    """Marker recorded in place of a :class:`FitResult` when a group fails."""

    group: Hashable
    error_type: str
    reason: str

    @classmethod
    def from_exception(cls, group: Hashable, error: BaseException) -> GroupFailure:
        return cls(group=group, error_type=type(error).__name__, reason=str(error))

    @property
    def succeeded(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "group": self.group,
            "method": None,
            "status": "failed",
            "estimate": None,
            "std_error": None,
            "ci_lower": None,
            "ci_upper": None,
            "p_value": None,
            "confidence_level": None,
            "n_observations": None,
            "n_left": None,
            "n_right": None,
            "bandwidth_left": None,
            "bandwidth_right": None,
            "error_type": self.error_type,
            "reason": self.reason,
        }
