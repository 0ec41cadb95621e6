"""Quasi-experimental analysis pipeline.

Regression discontinuity and two-way fixed-effects workflows: schema-checked
loading, binned plot data, estimation delegated to statsmodels, rdrobust and
linearmodels, per-group fits with failure isolation, and report tables.
"""

__version__ = "0.1.0"

from .api import DiscontinuityAnalysis, PanelAnalysis
from .binning import Bin, BinnedAggregates, Binner, fit_side_curves
from .core import *
from .data import *
from .diagnostics import DensityTestResult, density_test, placebo_cutoffs
from .estimators import ModelRunner
from .evaluation import GroupedResults, GroupEvaluator
from .reporting import AnalysisReport, ReportAssembler

__all__ = [
    "__version__",
    # Analyses
    "DiscontinuityAnalysis",
    "PanelAnalysis",
    # Core
    "PipelineError",
    "LoadError",
    "InsufficientDataError",
    "EstimationError",
    "FitResult",
    "GroupFailure",
    "ColumnKind",
    "ColumnRole",
    "ColumnSpec",
    "Dataset",
    "DatasetSchema",
    "Observation",
    "AnalysisOptions",
    "EstimatorKind",
    "ModelSpec",
    # Data
    "DatasetLoader",
    "load_dataset",
    "Sampler",
    "FullSampler",
    "FractionSampler",
    "border_schema",
    "panel_schema",
    "generate_border_discontinuity",
    "generate_treatment_panel",
    # Binning
    "Bin",
    "BinnedAggregates",
    "Binner",
    "fit_side_curves",
    # Estimation
    "ModelRunner",
    "GroupedResults",
    "GroupEvaluator",
    # Diagnostics
    "DensityTestResult",
    "density_test",
    "placebo_cutoffs",
    # Reporting
    "AnalysisReport",
    "ReportAssembler",
]
