"""Per-group model fits with partial-failure isolation.

A failing group never aborts the batch: insufficient data or a failed
library fit is recorded as a :class:`GroupFailure` under that group's label
and every other group is still fitted. Optional parallel execution goes
through joblib.
"""

from __future__ import annotations

import concurrent.futures
import logging
import multiprocessing
from collections.abc import Hashable, Iterator, Mapping
from typing import Any, Literal

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from ..core.base import FitResult, GroupFailure, PipelineError
from ..core.options import AnalysisOptions
from ..core.schema import ColumnRole, Dataset
from ..core.spec import ModelSpec
from ..estimators.runner import ModelRunner

logger = logging.getLogger(__name__)

GroupOutcome = FitResult | GroupFailure


class GroupedResults(Mapping[Hashable, GroupOutcome]):
    """Ordered mapping from group label to its fit result or failure marker.

    Entries are added while groups are evaluated; :meth:`finalize` freezes the
    mapping once every group has one.
    """

    def __init__(self, entries: Mapping[Hashable, GroupOutcome] | None = None) -> None:
        self._entries: dict[Hashable, GroupOutcome] = {}
        self._finalized = False
        for group, outcome in (entries or {}).items():
            self.add(group, outcome)

    def __getitem__(self, group: Hashable) -> GroupOutcome:
        return self._entries[group]

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return (
            f"GroupedResults(groups={len(self)}, succeeded={len(self.successes())}, "
            f"failed={len(self.failures())})"
        )

    @property
    def finalized(self) -> bool:
        return self._finalized

    def add(self, group: Hashable, outcome: GroupOutcome) -> None:
        if self._finalized:
            raise RuntimeError("GroupedResults is finalized and cannot be modified")
        if group in self._entries:
            raise ValueError(f"Group {group!r} already has a result")
        self._entries[group] = outcome

    def finalize(self) -> GroupedResults:
        self._finalized = True
        return self

    def successes(self) -> dict[Hashable, FitResult]:
        return {g: r for g, r in self._entries.items() if isinstance(r, FitResult)}

    def failures(self) -> dict[Hashable, GroupFailure]:
        return {g: r for g, r in self._entries.items() if isinstance(r, GroupFailure)}

    def to_frame(self) -> pd.DataFrame:
        """One row per group, failures included, in evaluation order."""
        rows = []
        for group, outcome in self._entries.items():
            row = outcome.to_dict()
            row["group"] = group
            rows.append(row)
        return pd.DataFrame(rows)


def fit_group(
    runner: ModelRunner, dataset: Dataset, spec: ModelSpec, group: Hashable
) -> GroupOutcome:
    try:
        return runner.fit(dataset, spec, group=group)
    except PipelineError as e:
        logger.warning("Group %r failed with %s: %s", group, type(e).__name__, e)
        return GroupFailure.from_exception(group, e)


class GroupEvaluator:
    """Fits the same model once per distinct value of a grouping column.

    Args:
        runner: Model runner used for every group
        n_jobs: joblib workers; 1 fits groups sequentially
        backend: joblib backend for parallel fits
        timeout: Seconds to wait for parallel fits before marking the groups
            still pending as ``TimeoutError`` failures. Ignored when
            ``n_jobs`` is 1.
    """

    def __init__(
        self,
        runner: ModelRunner | None = None,
        n_jobs: int = 1,
        backend: Literal["threading", "loky", "multiprocessing"] = "threading",
        timeout: float | None = None,
    ) -> None:
        if n_jobs == 0:
            raise ValueError("n_jobs cannot be 0")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")
        self.runner = runner or ModelRunner()
        self.n_jobs = n_jobs
        self.backend = backend
        self.timeout = timeout

    @classmethod
    def from_options(
        cls, options: AnalysisOptions, runner: ModelRunner | None = None
    ) -> GroupEvaluator:
        return cls(
            runner=runner,
            n_jobs=options.n_jobs,
            backend=options.parallel_backend,
            timeout=options.fit_timeout_seconds,
        )

    def group_labels(self, dataset: Dataset, group_column: str) -> list[Any]:
        """Distinct values of ``group_column`` in order of first appearance."""
        return [_plain(g) for g in pd.unique(pd.Series(dataset.values(group_column)))]

    def evaluate(
        self, dataset: Dataset, group_column: str | None, spec: ModelSpec
    ) -> GroupedResults:
        """Fit ``spec`` on each group of ``dataset``.

        Args:
            dataset: Loaded dataset
            group_column: Column to partition on; the schema's group column
                when None
            spec: Model configuration applied to every group

        Returns:
            Finalized results with exactly one entry per distinct group
        """
        if group_column is None:
            group_column = dataset.require_column(ColumnRole.GROUP)
        elif group_column not in dataset.schema.columns:
            raise KeyError(f"Grouping column '{group_column}' is not in the dataset schema")

        labels = self.group_labels(dataset, group_column)
        values = pd.Series(dataset.values(group_column))
        partitions = [(g, dataset.subset((values == g).to_numpy())) for g in labels]

        logger.info(
            "Evaluating %s on %d groups of '%s'", spec.kind.value, len(labels), group_column
        )

        if self.n_jobs == 1:
            outcomes = [fit_group(self.runner, part, spec, g) for g, part in partitions]
        else:
            outcomes = self._evaluate_parallel(partitions, spec)

        results = GroupedResults()
        for group, outcome in zip(labels, outcomes):
            results.add(group, outcome)

        n_failed = len(results.failures())
        if n_failed:
            logger.warning("%d of %d groups failed", n_failed, len(results))
        return results.finalize()

    def _evaluate_parallel(
        self, partitions: list[tuple[Hashable, Dataset]], spec: ModelSpec
    ) -> list[GroupOutcome]:
        parallel = Parallel(
            n_jobs=self.n_jobs,
            backend=self.backend,
            timeout=self.timeout,
            return_as="generator",
        )
        tasks = (delayed(fit_group)(self.runner, part, spec, g) for g, part in partitions)

        outcomes: list[GroupOutcome] = []
        try:
            # The generator yields in submission order
            for outcome in parallel(tasks):
                outcomes.append(outcome)
        except (TimeoutError, concurrent.futures.TimeoutError, multiprocessing.TimeoutError):
            pending = [g for g, _ in partitions[len(outcomes) :]]
            logger.warning(
                "Per-group fits exceeded %.1fs; %d groups marked as timed out",
                self.timeout,
                len(pending),
            )
            for group in pending:
                outcomes.append(
                    GroupFailure(
                        group=group,
                        error_type="TimeoutError",
                        reason=f"Fit did not finish within {self.timeout} seconds",
                    )
                )
        return outcomes


def _plain(value: Any) -> Any:
    return value.item() if isinstance(value, np.generic) else value
