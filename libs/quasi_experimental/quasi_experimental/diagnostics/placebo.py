"""Placebo discontinuities at cutoffs where no treatment changes."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np

from ..core.schema import Dataset
from ..core.spec import ModelSpec
from ..estimators.runner import ModelRunner
from ..evaluation.grouped import GroupedResults, fit_group

logger = logging.getLogger(__name__)


def placebo_cutoffs(
    dataset: Dataset,
    spec: ModelSpec,
    cutoffs: Iterable[float],
    runner: ModelRunner | None = None,
) -> GroupedResults:
    """Refit a discontinuity design at false cutoffs.

    Each placebo fit uses only the observations on the same side of the true
    cutoff as the placebo, so the real jump never enters the window. The
    treatment column, when the model spec has one, is redefined as
    ``running >= placebo``. A well-identified design should show estimates
    near zero here.

    Args:
        dataset: Loaded dataset
        spec: Discontinuity spec whose ``cutoff`` is the true threshold
        cutoffs: Placebo thresholds, none equal to the true cutoff
        runner: Model runner; a default one when omitted

    Returns:
        Finalized results keyed by placebo cutoff. Placebos without data on
        both sides are recorded as failures.

    Raises:
        ValueError: For a panel spec or a placebo at the true cutoff
    """
    if not spec.kind.is_discontinuity:
        raise ValueError("Placebo cutoffs apply to discontinuity designs only")

    runner = runner or ModelRunner()
    running_column = spec.running
    true_cutoff = spec.cutoff
    running = dataset.values(running_column).astype(float)

    results = GroupedResults()
    for placebo in cutoffs:
        placebo = float(placebo)
        if placebo == true_cutoff:
            raise ValueError(f"Placebo cutoff {placebo} equals the true cutoff")

        side = running < true_cutoff if placebo < true_cutoff else running >= true_cutoff
        frame = dataset.frame.loc[side].copy()
        if spec.treatment is not None:
            frame[spec.treatment] = (
                frame[running_column].to_numpy(dtype=float) >= placebo
            ).astype(np.int64)

        logger.debug("Placebo cutoff %s uses %d observations", placebo, len(frame))
        placebo_spec = spec.replace(cutoff=placebo)
        results.add(placebo, fit_group(runner, dataset.with_frame(frame), placebo_spec, placebo))

    return results.finalize()
