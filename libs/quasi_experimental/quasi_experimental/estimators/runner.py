"""Dispatch a :class:`ModelSpec` to the estimator that implements it."""

from __future__ import annotations

import logging
from typing import Hashable

from ..core.base import EstimationError, FitResult
from ..core.schema import Dataset
from ..core.spec import EstimatorKind, ModelSpec
from ..data.sampling import FractionSampler, FullSampler, Sampler
from .base import BaseEstimator
from .local_polynomial import LocalPolynomialEstimator
from .ols import OLSInteractionEstimator
from .panel import PanelFixedEffectsEstimator

logger = logging.getLogger(__name__)

ESTIMATORS: dict[EstimatorKind, type[BaseEstimator]] = {
    EstimatorKind.OLS_INTERACTION: OLSInteractionEstimator,
    EstimatorKind.LOCAL_POLYNOMIAL: LocalPolynomialEstimator,
    EstimatorKind.PANEL_FIXED_EFFECTS: PanelFixedEffectsEstimator,
}


class ModelRunner:
    """Fits one model on one dataset.

    The runner holds no state between fits, so a single instance can be
    shared across threads.

    Args:
        sampler: Subsampling strategy applied before every fit. When omitted,
            each spec's ``sample_fraction``/``random_state`` decide.
    """

    def __init__(self, sampler: Sampler | None = None) -> None:
        self.sampler = sampler

    def sampler_for(self, spec: ModelSpec) -> Sampler:
        if self.sampler is not None:
            return self.sampler
        if spec.sample_fraction is not None:
            return FractionSampler(spec.sample_fraction, spec.random_state)
        return FullSampler()

    def fit(
        self, dataset: Dataset, spec: ModelSpec, group: Hashable | None = None
    ) -> FitResult:
        """Fit ``spec`` on ``dataset``.

        Args:
            dataset: Loaded dataset holding every column the model spec reads
            spec: Model configuration
            group: Label recorded on the result

        Returns:
            The fit result

        Raises:
            InsufficientDataError: If the (sampled) data cannot support the design
            EstimationError: If a column is missing or the library fit fails
        """
        missing = [c for c in spec.required_columns if c not in dataset.schema.columns]
        if missing:
            raise EstimationError(f"Model reads columns absent from the dataset: {missing}")

        frame = dataset.frame[spec.required_columns]
        frame = self.sampler_for(spec).sample(frame)

        estimator = ESTIMATORS[spec.kind](spec)
        label = "" if group is None else f" for group {group!r}"
        logger.info("Fitting %s on %d observations%s", spec.kind.value, len(frame), label)

        result = estimator.fit(frame, group=group)

        logger.info(
            "%s estimate%s: %.4f (SE %.4f)",
            spec.kind.value,
            label,
            result.estimate,
            result.std_error,
        )
        return result
