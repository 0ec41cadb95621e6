"""Dataset loading, sampling and synthetic data generation."""

from .loader import DatasetLoader, load_dataset
from .sampling import FractionSampler, FullSampler, Sampler
from .synthetic import (
    border_schema,
    generate_border_discontinuity,
    generate_treatment_panel,
    panel_schema,
)

__all__ = [
    "DatasetLoader",
    "load_dataset",
    "Sampler",
    "FullSampler",
    "FractionSampler",
    "border_schema",
    "panel_schema",
    "generate_border_discontinuity",
    "generate_treatment_panel",
]
