"""Fixed-width binning of the running variable for discontinuity plots.

Bins are left-closed and right-open, except the last bin, which is closed on
both ends so the upper edge of the domain is counted exactly once. Only
(bin, treatment group) cells that hold at least one observation are emitted.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Hashable, Iterator
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from ..core.schema import ColumnRole, Dataset

logger = logging.getLogger(__name__)

# Guards the bin count against float noise, e.g. 0.6 / 0.2 = 2.9999999999999996
_BIN_COUNT_DECIMALS = 9


@dataclass(frozen=True)
class Bin:
    """Aggregate of the observations of one treatment group inside one interval."""

    index: int
    lower: float
    upper: float
    closed_right: bool
    treatment: Hashable
    mean_running: float
    mean_outcome: float
    count: int
    cohort: Hashable | None = None

    @property
    def center(self) -> float:
        return (self.lower + self.upper) / 2

    def contains(self, value: float) -> bool:
        if self.closed_right:
            return self.lower <= value <= self.upper
        return self.lower <= value < self.upper


@dataclass(frozen=True)
class BinnedAggregates:
    """Output of one binning pass."""

    bins: tuple[Bin, ...]
    bin_width: float
    domain: tuple[float, float]
    edges: tuple[float, ...]
    n_excluded: int = 0

    def __iter__(self) -> Iterator[Bin]:
        return iter(self.bins)

    def __len__(self) -> int:
        return len(self.bins)

    @property
    def n_bins(self) -> int:
        """Number of intervals the domain was cut into (empty ones included)."""
        return len(self.edges) - 1

    def counts_by_treatment(self) -> dict[Hashable, int]:
        counts: dict[Hashable, int] = {}
        for b in self.bins:
            counts[b.treatment] = counts.get(b.treatment, 0) + b.count
        return counts

    def to_frame(self) -> pd.DataFrame:
        """One row per emitted bin, ready for a binned scatter plot."""
        columns = [
            "bin_index",
            "bin_lower",
            "bin_upper",
            "bin_center",
            "treatment",
            "cohort",
            "mean_running",
            "mean_outcome",
            "count",
        ]
        rows = [
            {
                "bin_index": b.index,
                "bin_lower": b.lower,
                "bin_upper": b.upper,
                "bin_center": b.center,
                "treatment": b.treatment,
                "cohort": b.cohort,
                "mean_running": b.mean_running,
                "mean_outcome": b.mean_outcome,
                "count": b.count,
            }
            for b in self.bins
        ]
        return pd.DataFrame(rows, columns=columns)


class Binner:
    """Partition the running variable into fixed-width bins.

    Attributes:
        bin_width: Width of every bin
        domain: ``(low, high)`` range to bin; the observed range when None
        cohort_column: Optional categorical column to split bins by
            (e.g. country), in addition to the treatment group
        cutoff: Used to derive treatment groups (``running >= cutoff``) when
            the schema declares no treatment column
    """

    def __init__(
        self,
        bin_width: float,
        domain: tuple[float, float] | None = None,
        cohort_column: str | None = None,
        cutoff: float | None = None,
    ) -> None:
        if not math.isfinite(bin_width) or bin_width <= 0:
            raise ValueError(f"bin_width must be a positive finite number, got {bin_width}")
        if domain is not None:
            low, high = domain
            if not (math.isfinite(low) and math.isfinite(high)):
                raise ValueError("domain bounds must be finite")
            if low > high:
                raise ValueError(f"domain lower bound {low} exceeds upper bound {high}")
        self.bin_width = float(bin_width)
        self.domain = domain
        self.cohort_column = cohort_column
        self.cutoff = cutoff

    def edges_for(self, low: float, high: float) -> NDArray[np.float64]:
        """Bin edges covering ``[low, high]``; always at least one bin."""
        ratio = round((high - low) / self.bin_width, _BIN_COUNT_DECIMALS)
        n_bins = max(1, math.ceil(ratio))
        return low + self.bin_width * np.arange(n_bins + 1, dtype=float)

    def assign(self, values: NDArray[Any], edges: NDArray[np.float64]) -> NDArray[np.int64]:
        """Bin index for each value; values must already lie inside the domain."""
        n_bins = len(edges) - 1
        idx = np.searchsorted(edges, values, side="right") - 1
        return np.clip(idx, 0, n_bins - 1)

    def bin(self, dataset: Dataset) -> BinnedAggregates:
        """Aggregate ``dataset`` into bins.

        Args:
            dataset: Loaded dataset with running and outcome columns

        Returns:
            Bins sorted by interval, then treatment group, then cohort

        Raises:
            ValueError: If the schema lacks a column the binning needs
        """
        running_col = dataset.require_column(ColumnRole.RUNNING)
        outcome_col = dataset.require_column(ColumnRole.OUTCOME)
        running = dataset.values(running_col).astype(float)
        outcome = dataset.values(outcome_col).astype(float)

        treatment = self._treatment_labels(dataset, running)

        if self.domain is not None:
            low, high = (float(v) for v in self.domain)
        elif len(running):
            low, high = float(running.min()), float(running.max())
        else:
            low = high = 0.0
        edges = self.edges_for(low, high)

        in_domain = (running >= low) & (running <= high)
        n_excluded = int((~in_domain).sum())
        if n_excluded:
            logger.debug("Excluding %d observations outside [%s, %s]", n_excluded, low, high)

        cells = pd.DataFrame(
            {
                "bin": self.assign(running[in_domain], edges),
                "treatment": treatment[in_domain],
                "running": running[in_domain],
                "outcome": outcome[in_domain],
            }
        )
        keys = ["bin", "treatment"]
        if self.cohort_column is not None:
            if self.cohort_column not in dataset.schema.columns:
                raise ValueError(f"Cohort column '{self.cohort_column}' is not in the schema")
            cells["cohort"] = np.asarray(dataset.values(self.cohort_column), dtype=object)[
                in_domain
            ]
            keys.append("cohort")

        # A canonical row order makes the floating-point means independent of input order
        cells = cells.sort_values([*keys, "running", "outcome"], kind="mergesort")
        summary = cells.groupby(keys, sort=False).agg(
            mean_running=("running", "mean"),
            mean_outcome=("outcome", "mean"),
            count=("running", "size"),
        )

        n_bins = len(edges) - 1
        bins = []
        for key, row in summary.iterrows():
            bin_idx, treat = int(key[0]), key[1]
            bins.append(
                Bin(
                    index=bin_idx,
                    lower=float(edges[bin_idx]),
                    upper=float(edges[bin_idx + 1]),
                    closed_right=bin_idx == n_bins - 1,
                    treatment=_plain(treat),
                    mean_running=float(row["mean_running"]),
                    mean_outcome=float(row["mean_outcome"]),
                    count=int(row["count"]),
                    cohort=_plain(key[2]) if len(key) > 2 else None,
                )
            )

        return BinnedAggregates(
            bins=tuple(bins),
            bin_width=self.bin_width,
            domain=(low, high),
            edges=tuple(float(e) for e in edges),
            n_excluded=n_excluded,
        )

    def _treatment_labels(self, dataset: Dataset, running: NDArray[Any]) -> NDArray[Any]:
        treatment_col = dataset.column_for(ColumnRole.TREATMENT)
        if treatment_col is not None:
            return np.asarray(dataset.values(treatment_col), dtype=object)
        if self.cutoff is None:
            raise ValueError("Binning needs a treatment column or a cutoff to derive one")
        return (running >= self.cutoff).astype(int).astype(object)


def _plain(value: Any) -> Any:
    """Unwrap numpy scalars so bins compare and serialize like Python values."""
    return value.item() if isinstance(value, np.generic) else value
