"""Base class shared by the delegating estimators.

Each concrete estimator checks that its data slice can support the design,
hands the actual estimation to a statistics library, and reports the
library's numbers back as a :class:`FitResult`. Nothing here computes an
estimate or a standard error itself.
"""

from __future__ import annotations

import abc
import math
from dataclasses import dataclass, field
from typing import Any, Hashable

import numpy as np
import pandas as pd

from ..core.base import EstimationError, FitResult, InsufficientDataError, PipelineError
from ..core.spec import ModelSpec


@dataclass
class RawFit:
    """Numbers read off a fitted library model, before validation."""

    estimate: float
    std_error: float
    ci_lower: float | None = None
    ci_upper: float | None = None
    p_value: float | None = None
    n_observations: int | None = None
    n_left: int | None = None
    n_right: int | None = None
    bandwidth_left: float | None = None
    bandwidth_right: float | None = None
    diagnostics: dict[str, Any] = field(default_factory=dict)


class BaseEstimator(abc.ABC):
    """Abstract base class for estimators the model runner dispatches to.

    Subclasses implement :meth:`_check_data`, which raises
    ``InsufficientDataError`` when the design cannot be estimated, and
    :meth:`_fit_implementation`, which calls the statistics library.
    """

    method: str = "unknown"

    def __init__(self, spec: ModelSpec) -> None:
        self.spec = spec

    @abc.abstractmethod
    def _check_data(self, frame: pd.DataFrame) -> None:
        """Raise ``InsufficientDataError`` if ``frame`` cannot support the design."""

    @abc.abstractmethod
    def _fit_implementation(self, frame: pd.DataFrame) -> RawFit:
        """Fit the library model and read off its estimates."""

    def fit(self, frame: pd.DataFrame, group: Hashable | None = None) -> FitResult:
        """Fit the model on ``frame``.

        Args:
            frame: Data slice holding every column the model spec reads
            group: Label recorded on the result, for per-group fits

        Returns:
            The validated fit result

        Raises:
            InsufficientDataError: If the slice cannot support the design
            EstimationError: If the library fails or returns a degenerate fit
        """
        self._check_data(frame)

        try:
            raw = self._fit_implementation(frame)
        except PipelineError:
            raise
        except Exception as e:
            raise EstimationError(f"{self.method} failed: {e}") from e

        return self._build_result(raw, group)

    def _build_result(self, raw: RawFit, group: Hashable | None) -> FitResult:
        estimate = _as_float(raw.estimate)
        std_error = _as_float(raw.std_error)

        if not math.isfinite(estimate):
            raise EstimationError(f"{self.method} returned a non-finite estimate ({estimate})")
        if not math.isfinite(std_error) or std_error <= 0:
            raise EstimationError(
                f"{self.method} returned a degenerate standard error ({std_error}); "
                "the design may be singular"
            )

        return FitResult(
            estimate=estimate,
            std_error=std_error,
            ci_lower=_optional_float(raw.ci_lower),
            ci_upper=_optional_float(raw.ci_upper),
            p_value=_optional_float(raw.p_value),
            confidence_level=self.spec.confidence_level,
            method=self.method,
            group=group,
            n_observations=raw.n_observations,
            n_left=raw.n_left,
            n_right=raw.n_right,
            bandwidth_left=_optional_float(raw.bandwidth_left),
            bandwidth_right=_optional_float(raw.bandwidth_right),
            diagnostics=raw.diagnostics,
        )


class DiscontinuityEstimator(BaseEstimator):
    """Shared precondition for designs with a cutoff on a running variable."""

    def side_counts(self, frame: pd.DataFrame) -> tuple[int, int]:
        running = frame[self.spec.running].to_numpy(dtype=float)
        below = int((running < self.spec.cutoff).sum())
        return below, len(running) - below

    def _check_data(self, frame: pd.DataFrame) -> None:
        n_left, n_right = self.side_counts(frame)
        if n_left == 0 or n_right == 0:
            raise InsufficientDataError(
                f"Need observations on both sides of cutoff {self.spec.cutoff}; "
                f"found {n_left} below and {n_right} at or above"
            )


def categorical_dummies(frame: pd.DataFrame, columns: tuple[str, ...]) -> pd.DataFrame:
    """Indicator columns for categorical controls, dropping each first level."""
    if not columns:
        return pd.DataFrame(index=frame.index)
    dummies = pd.get_dummies(
        frame[list(columns)].astype(str), prefix=list(columns), drop_first=True
    )
    return dummies.astype(float)


def _as_float(value: Any) -> float:
    return float(np.asarray(value, dtype=float))


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    value = _as_float(value)
    return value if math.isfinite(value) else None
