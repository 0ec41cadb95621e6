"""Validity checks for discontinuity designs."""

from .density import DensityTestResult, density_test
from .placebo import placebo_cutoffs

__all__ = ["DensityTestResult", "density_test", "placebo_cutoffs"]
