"""Manipulation check on the running variable around the cutoff.

If units could sort themselves across the threshold, observations would pile
up on one side of it. Within a narrow window the density is roughly flat, so
without manipulation an observation in the window is equally likely to fall
on either side; the count on the right is then Binomial(n, 1/2).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from scipy import stats

from ..core.base import InsufficientDataError
from ..core.schema import ColumnRole, Dataset


@dataclass(frozen=True)
class DensityTestResult:
    """Counts either side of the cutoff and the two-sided binomial p-value."""

    cutoff: float
    bandwidth: float
    n_left: int
    n_right: int
    p_value: float

    @property
    def share_right(self) -> float:
        return self.n_right / (self.n_left + self.n_right)

    def to_dict(self) -> dict[str, float]:
        return {
            "cutoff": self.cutoff,
            "bandwidth": self.bandwidth,
            "n_left": self.n_left,
            "n_right": self.n_right,
            "share_right": self.share_right,
            "p_value": self.p_value,
        }


def density_test(dataset: Dataset, cutoff: float, bandwidth: float) -> DensityTestResult:
    """Binomial count test for a density jump at ``cutoff``.

    Counts observations in ``[cutoff - bandwidth, cutoff)`` and
    ``[cutoff, cutoff + bandwidth]``.

    Raises:
        ValueError: If ``bandwidth`` is not positive and finite
        InsufficientDataError: If the window holds no observations
    """
    if not math.isfinite(bandwidth) or bandwidth <= 0:
        raise ValueError("bandwidth must be positive")

    running = dataset.values(dataset.require_column(ColumnRole.RUNNING)).astype(float)
    n_left = int(((running >= cutoff - bandwidth) & (running < cutoff)).sum())
    n_right = int(((running >= cutoff) & (running <= cutoff + bandwidth)).sum())
    if n_left + n_right == 0:
        raise InsufficientDataError(
            f"No observations within {bandwidth} of cutoff {cutoff}"
        )

    result = stats.binomtest(n_right, n_left + n_right, p=0.5, alternative="two-sided")
    return DensityTestResult(
        cutoff=float(cutoff),
        bandwidth=float(bandwidth),
        n_left=n_left,
        n_right=n_right,
        p_value=float(result.pvalue),
    )
