"""Global polynomial fits drawn over a binned scatter plot.

These curves are a visual aid only: one polynomial per side of the cutoff,
fitted on the raw observations. Inference comes from the model runner.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import PolynomialFeatures

from ..core.base import InsufficientDataError
from ..core.schema import ColumnRole, Dataset


def fit_side_curves(
    dataset: Dataset,
    cutoff: float,
    order: int = 1,
    grid_points: int = 50,
) -> pd.DataFrame:
    """Fit a polynomial in the running variable on each side of the cutoff.

    Args:
        dataset: Dataset with running and outcome columns
        cutoff: Threshold separating the two sides
        order: Polynomial order of each side's fit
        grid_points: Evaluation points per side

    Returns:
        Frame with columns ``side`` (``"left"``/``"right"``), ``running`` and
        ``fitted``, spanning each side's observed range

    Raises:
        InsufficientDataError: If a side has too few observations for ``order``
    """
    if order < 1:
        raise ValueError("order must be at least 1")
    if grid_points < 2:
        raise ValueError("grid_points must be at least 2")

    x = dataset.values(dataset.require_column(ColumnRole.RUNNING)).astype(float)
    y = dataset.values(dataset.require_column(ColumnRole.OUTCOME)).astype(float)

    pieces = []
    for side, mask in (("left", x < cutoff), ("right", x >= cutoff)):
        n_side = int(mask.sum())
        if n_side < order + 1:
            raise InsufficientDataError(
                f"{n_side} observations {side} of cutoff {cutoff}; "
                f"a degree-{order} curve needs at least {order + 1}"
            )

        model = make_pipeline(
            PolynomialFeatures(degree=order, include_bias=False),
            LinearRegression(),
        )
        x_side = (x[mask] - cutoff).reshape(-1, 1)
        model.fit(x_side, y[mask])

        grid = np.linspace(x_side.min(), x_side.max(), grid_points).reshape(-1, 1)
        pieces.append(
            pd.DataFrame(
                {
                    "side": side,
                    "running": grid.ravel() + cutoff,
                    "fitted": model.predict(grid),
                }
            )
        )

    return pd.concat(pieces, ignore_index=True)
