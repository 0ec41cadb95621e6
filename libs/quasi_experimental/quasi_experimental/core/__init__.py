"""Core data models, model specification and error types."""

from .base import (
    EstimationError,
    FitResult,
    GroupFailure,
    InsufficientDataError,
    LoadError,
    PipelineError,
)
from .schema import (
    ColumnKind,
    ColumnRole,
    ColumnSpec,
    Dataset,
    DatasetSchema,
    Observation,
)
from .options import AnalysisOptions
from .spec import EstimatorKind, ModelSpec

__all__ = [
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
]
