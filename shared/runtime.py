"""Entry point for running one analysis against one file."""

from typing import Any

from quasi_experimental import AnalysisReport, DatasetSchema, ModelSpec
from quasi_experimental.api.analysis import DataSource, DiscontinuityAnalysis, PanelAnalysis

from shared.config import PipelineConfig, config_manager
from shared.observability import get_logger, setup_logging

logger = get_logger(__name__)


def run_analysis(
    schema: DatasetSchema,
    spec: ModelSpec,
    source: DataSource,
    config: PipelineConfig | None = None,
    **analysis_args: Any,
) -> AnalysisReport:
    """Configure logging, then run the analysis matching ``spec``.

    Discontinuity specs run a :class:`DiscontinuityAnalysis` and panel specs a
    :class:`PanelAnalysis`; ``analysis_args`` go to its constructor.
    """
    if config is None:
        config = PipelineConfig()
    config_manager.register_configuration("pipeline", config)

    setup_logging(config)
    for issue in config.validate_configuration():
        logger.warning("Configuration: %s", issue)

    analysis_cls = DiscontinuityAnalysis if spec.kind.is_discontinuity else PanelAnalysis
    analysis = analysis_cls(schema, spec, options=config.analysis_options(), **analysis_args)

    logger.info(
        "Running %s (%s) in %s", analysis_cls.__name__, spec.kind.value, config.environment.value
    )
    return analysis.run(source)
