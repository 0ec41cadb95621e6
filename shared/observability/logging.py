"""Logging setup for pipeline entry points."""

import logging
import sys

from shared.config import Environment, PipelineConfig


def setup_logging(config: PipelineConfig | None = None) -> None:
    """Set up root logging from the pipeline configuration."""
    if config is None:
        config = PipelineConfig()

    if config.log_level is not None:
        log_level = getattr(logging, config.log_level)
    elif config.environment == Environment.DEVELOPMENT:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Statistics libraries are chatty at DEBUG
    for noisy in ("numexpr", "joblib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
