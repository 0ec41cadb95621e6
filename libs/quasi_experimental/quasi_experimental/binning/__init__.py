"""Binned aggregates and overlay curves for discontinuity plots."""

from .binner import Bin, BinnedAggregates, Binner
from .curves import fit_side_curves

__all__ = ["Bin", "BinnedAggregates", "Binner", "fit_side_curves"]
