"""One-call analyses over a file or DataFrame.

Each analysis loads the data under an explicit schema, runs binning and
estimation, and returns an :class:`AnalysisReport`.
"""

from .analysis import DiscontinuityAnalysis, PanelAnalysis, apply_option_defaults

__all__ = ["DiscontinuityAnalysis", "PanelAnalysis", "apply_option_defaults"]
