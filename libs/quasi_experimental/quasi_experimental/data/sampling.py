"""Explicit, seeded subsampling strategies."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import pandas as pd


@runtime_checkable
class Sampler(Protocol):
    """Anything that can draw a subsample of a frame."""

    def sample(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Return the rows to keep. Must not modify ``frame``."""
        ...


class FullSampler:
    """Keeps every row."""

    def sample(self, frame: pd.DataFrame) -> pd.DataFrame:
        return frame


class FractionSampler:
    """Draws a fixed fraction of rows without replacement.

    The same seed and input always select the same rows, and the kept rows
    retain their original order.
    """

    def __init__(self, fraction: float, random_state: int | None = None) -> None:
        if not 0 < fraction <= 1:
            raise ValueError("fraction must be in (0, 1]")
        self.fraction = fraction
        self.random_state = random_state

    def __repr__(self) -> str:
        return f"FractionSampler(fraction={self.fraction}, random_state={self.random_state})"

    def sample(self, frame: pd.DataFrame) -> pd.DataFrame:
        if self.fraction == 1 or frame.empty:
            return frame
        return frame.sample(frac=self.fraction, random_state=self.random_state).sort_index()
