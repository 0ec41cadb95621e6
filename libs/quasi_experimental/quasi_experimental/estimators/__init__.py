"""Estimators delegating to statsmodels, rdrobust and linearmodels."""

from .base import BaseEstimator, DiscontinuityEstimator, RawFit
from .local_polynomial import LocalPolynomialEstimator
from .ols import OLSInteractionEstimator
from .panel import PanelFixedEffectsEstimator
from .runner import ESTIMATORS, ModelRunner

__all__ = [
    "BaseEstimator",
    "DiscontinuityEstimator",
    "RawFit",
    "OLSInteractionEstimator",
    "LocalPolynomialEstimator",
    "PanelFixedEffectsEstimator",
    "ESTIMATORS",
    "ModelRunner",
]
