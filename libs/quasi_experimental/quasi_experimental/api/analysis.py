"""One-call analyses: load a file, run the pipeline, get a report.

Only a failed load aborts an analysis. A pooled fit that cannot be produced
is reported as a :class:`GroupFailure` and optional steps that fail are
logged and left out of the report.

Examples:
    >>> from quasi_experimental import DiscontinuityAnalysis, ModelSpec
    >>> from quasi_experimental.data import border_schema
    >>> spec = ModelSpec(
    ...     kind="local_polynomial",
    ...     outcome="deforestation",
    ...     running="distance",
    ...     cutoff=0.0,
    ...     polynomial_order=1,
    ... )
    >>> report = DiscontinuityAnalysis(border_schema(), spec, bin_width=2.0,
    ...                                group_column="country").run("border.csv")
    >>> report.estimates_table()
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from ..binning.binner import Binner
from ..binning.curves import fit_side_curves
from ..core.base import GroupFailure, PipelineError
from ..core.options import AnalysisOptions
from ..core.schema import Dataset, DatasetSchema
from ..core.spec import ModelSpec
from ..data.loader import DatasetLoader
from ..diagnostics.density import density_test
from ..diagnostics.placebo import placebo_cutoffs
from ..estimators.runner import ModelRunner
from ..evaluation.grouped import GroupEvaluator
from ..reporting.assembler import AnalysisReport, ReportAssembler

logger = logging.getLogger(__name__)

DataSource = str | Path | pd.DataFrame

POOLED = "pooled"


def apply_option_defaults(spec: ModelSpec, options: AnalysisOptions) -> ModelSpec:
    """Fill spec fields the caller left unset from the run options."""
    changes = {}
    if "confidence_level" not in spec.model_fields_set:
        changes["confidence_level"] = options.default_confidence_level
    if spec.sample_fraction is not None and spec.random_state is None:
        changes["random_state"] = options.random_state
    return spec.replace(**changes) if changes else spec


class _Analysis:
    def __init__(
        self,
        schema: DatasetSchema,
        spec: ModelSpec,
        group_column: str | None = None,
        options: AnalysisOptions | None = None,
        runner: ModelRunner | None = None,
    ) -> None:
        self.options = options or AnalysisOptions()
        self.schema = schema
        self.spec = apply_option_defaults(spec, self.options)
        self.group_column = group_column
        self.runner = runner or ModelRunner()

    def load(self, source: DataSource) -> Dataset:
        """Load ``source``; a :class:`LoadError` aborts the analysis."""
        loader = DatasetLoader(self.schema, drop_missing=self.options.drop_missing)
        if isinstance(source, pd.DataFrame):
            return loader.load_frame(source)
        return loader.load(source)

    def _add_estimates(self, assembler: ReportAssembler, dataset: Dataset) -> None:
        try:
            pooled = self.runner.fit(dataset, self.spec)
        except PipelineError as e:
            logger.warning("Pooled fit failed with %s: %s", type(e).__name__, e)
            pooled = GroupFailure.from_exception(POOLED, e)
        assembler.add_fit(POOLED, pooled)

        if self.group_column is not None:
            evaluator = GroupEvaluator.from_options(self.options, runner=self.runner)
            assembler.add_estimates(
                "by_group", evaluator.evaluate(dataset, self.group_column, self.spec)
            )


class DiscontinuityAnalysis(_Analysis):
    """Binned plot data, overlay curves and discontinuity estimates.

    Args:
        schema: Column schema of the input
        spec: Discontinuity model spec
        bin_width: Bin width for the scatter; the options default when None
        group_column: Fit and bin separately per value of this column
        domain: Running-variable range to bin; the observed range when None
        curve_order: Order of the overlay polynomials; the model spec's order when None
        density_bandwidth: Run the density test within this distance of the cutoff
        placebo: Placebo cutoffs to refit at
        options: Run options
        runner: Model runner shared by every fit
    """

    def __init__(
        self,
        schema: DatasetSchema,
        spec: ModelSpec,
        bin_width: float | None = None,
        group_column: str | None = None,
        domain: tuple[float, float] | None = None,
        curve_order: int | None = None,
        density_bandwidth: float | None = None,
        placebo: Sequence[float] = (),
        options: AnalysisOptions | None = None,
        runner: ModelRunner | None = None,
    ) -> None:
        if not spec.kind.is_discontinuity:
            raise ValueError(f"DiscontinuityAnalysis cannot run a {spec.kind.value} spec")
        super().__init__(schema, spec, group_column, options, runner)
        self.bin_width = bin_width if bin_width is not None else self.options.default_bin_width
        self.domain = domain
        self.curve_order = curve_order if curve_order is not None else spec.polynomial_order
        self.density_bandwidth = density_bandwidth
        self.placebo = tuple(placebo)

    def run(self, source: DataSource) -> AnalysisReport:
        dataset = self.load(source)
        spec = self.spec
        assembler = ReportAssembler()

        binner = Binner(self.bin_width, self.domain, cutoff=spec.cutoff)
        assembler.add_bins(POOLED, binner.bin(dataset))
        if self.group_column is not None:
            by_cohort = Binner(
                self.bin_width, self.domain, cohort_column=self.group_column, cutoff=spec.cutoff
            )
            assembler.add_bins("by_group", by_cohort.bin(dataset))

        try:
            assembler.add_curves(
                POOLED, fit_side_curves(dataset, spec.cutoff, order=self.curve_order)
            )
        except PipelineError as e:
            logger.warning("Skipping overlay curves: %s", e)

        self._add_estimates(assembler, dataset)

        if self.density_bandwidth is not None:
            try:
                assembler.add_density(
                    POOLED, density_test(dataset, spec.cutoff, self.density_bandwidth)
                )
            except PipelineError as e:
                logger.warning("Skipping density test: %s", e)

        if self.placebo:
            assembler.add_estimates(
                "placebo", placebo_cutoffs(dataset, spec, self.placebo, runner=self.runner)
            )

        return assembler.assemble()


class PanelAnalysis(_Analysis):
    """Two-way fixed-effects estimate, pooled and optionally per group."""

    def __init__(
        self,
        schema: DatasetSchema,
        spec: ModelSpec,
        group_column: str | None = None,
        options: AnalysisOptions | None = None,
        runner: ModelRunner | None = None,
    ) -> None:
        if spec.kind.is_discontinuity:
            raise ValueError(f"PanelAnalysis cannot run a {spec.kind.value} spec")
        super().__init__(schema, spec, group_column, options, runner)

    def run(self, source: DataSource) -> AnalysisReport:
        dataset = self.load(source)
        assembler = ReportAssembler()
        self._add_estimates(assembler, dataset)
        return assembler.assemble()
