"""Two-way fixed-effects panel estimation via ``linearmodels``.

    y_it = alpha_i + lambda_t + beta * D_it + X_it' gamma + e_it

Unit and time effects are absorbed by ``PanelOLS``; standard errors are
cluster-robust on the unit factor unless the model spec names another cluster
column. Controls that do not vary within units or periods are absorbed by
the fixed effects and dropped; if the treatment itself is absorbed the fit
fails.
"""

from __future__ import annotations

import logging

import pandas as pd
from linearmodels.panel import PanelOLS

from ..core.base import EstimationError, InsufficientDataError
from .base import BaseEstimator, RawFit, categorical_dummies

logger = logging.getLogger(__name__)


class PanelFixedEffectsEstimator(BaseEstimator):
    """Difference-in-differences coefficient from a two-way fixed-effects regression."""

    method = "panel_fixed_effects"

    def _check_data(self, frame: pd.DataFrame) -> None:
        spec = self.spec
        n_units = frame[spec.unit].nunique()
        n_periods = frame[spec.time].nunique()
        if n_units < 2 or n_periods < 2:
            raise InsufficientDataError(
                f"Fixed-effects panel needs at least two units and two periods; "
                f"found {n_units} units and {n_periods} periods"
            )
        if frame.duplicated(subset=[spec.unit, spec.time]).any():
            raise EstimationError(
                f"Panel has repeated ({spec.unit}, {spec.time}) pairs; "
                "each unit must appear at most once per period"
            )

    def panel_frame(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Outcome, regressors and cluster codes on a sorted (unit, time) MultiIndex.

        The outcome is in column ``"outcome"`` and cluster codes, when the model spec
        clusters on something other than the unit, in ``"cluster"``; every
        other column is a regressor.
        """
        spec = self.spec
        entity, _ = pd.factorize(frame[spec.unit], sort=True)
        if pd.api.types.is_numeric_dtype(frame[spec.time]):
            period = frame[spec.time].to_numpy()
        else:
            # PanelOLS needs a numeric or date-like time index
            period, _ = pd.factorize(frame[spec.time], sort=True)

        panel = pd.DataFrame(
            {
                "outcome": frame[spec.outcome].to_numpy(dtype=float),
                "treatment": frame[spec.treatment].to_numpy(dtype=float),
            },
            index=frame.index,
        )
        for name in spec.covariates:
            panel[name] = frame[name].to_numpy(dtype=float)
        panel = pd.concat([panel, categorical_dummies(frame, spec.categorical_covariates)], axis=1)
        if spec.cluster is not None and spec.cluster != spec.unit:
            panel["cluster"], _ = pd.factorize(frame[spec.cluster])

        panel.index = pd.MultiIndex.from_arrays([entity, period], names=["unit", "time"])
        return panel.sort_index()

    def _fit_implementation(self, frame: pd.DataFrame) -> RawFit:
        spec = self.spec
        panel = self.panel_frame(frame)
        regressors = [c for c in panel.columns if c not in ("outcome", "cluster")]
        exog = panel[regressors]

        model = PanelOLS(
            panel["outcome"], exog, entity_effects=True, time_effects=True, drop_absorbed=True
        )

        if "cluster" in panel.columns:
            results = model.fit(cov_type="clustered", clusters=panel[["cluster"]])
            cluster_name = spec.cluster
            n_clusters = int(panel["cluster"].nunique())
        else:
            results = model.fit(cov_type="clustered", cluster_entity=True)
            cluster_name = spec.unit
            n_clusters = int(frame[spec.unit].nunique())

        if "treatment" not in results.params.index:
            raise EstimationError(
                f"Treatment '{spec.treatment}' is absorbed by the unit and time effects"
            )

        dropped = [c for c in exog.columns if c not in results.params.index]
        if dropped:
            logger.info("Controls absorbed by fixed effects and dropped: %s", dropped)

        ci = results.conf_int(level=spec.confidence_level).loc["treatment"]
        treated = int((exog["treatment"] > 0).sum())

        return RawFit(
            estimate=results.params["treatment"],
            std_error=results.std_errors["treatment"],
            ci_lower=ci.iloc[0],
            ci_upper=ci.iloc[1],
            p_value=results.pvalues["treatment"],
            n_observations=int(results.nobs),
            n_left=int(results.nobs) - treated,
            n_right=treated,
            diagnostics={
                "cov_type": f"clustered({cluster_name})",
                "n_clusters": n_clusters,
                "n_units": int(results.entity_info["total"]),
                "n_periods": int(results.time_info["total"]),
                "r_squared_within": float(results.rsquared_within),
                "dropped_controls": dropped,
            },
        )
