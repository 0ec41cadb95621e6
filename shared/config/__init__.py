"""Configuration management for the analysis pipeline."""

from .base import (
    BaseConfiguration,
    ConfigurationManager,
    Environment,
    config_manager,
)
from .pipeline_config import PipelineConfig

__all__ = [
    "BaseConfiguration",
    "ConfigurationManager",
    "Environment",
    "config_manager",
    "PipelineConfig",
]
