"""Shared test fixtures for the quasi-experimental analysis library.

Fixtures build small raw frames, the schemas that describe them, and loaded
datasets, so estimator and evaluator tests start from validated data.
"""

import numpy as np
import pandas as pd
import pytest

from quasi_experimental.core.schema import DatasetSchema
from quasi_experimental.core.spec import ModelSpec
from quasi_experimental.data.loader import DatasetLoader
from quasi_experimental.data.synthetic import (
    border_schema,
    generate_border_discontinuity,
    generate_treatment_panel,
    panel_schema,
)


@pytest.fixture
def random_state():
    """Provide a consistent random state for reproducible tests."""
    return 42


@pytest.fixture
def rd_schema():
    """Minimal discontinuity schema: outcome, running, treatment, group."""
    return DatasetSchema.build(
        y=("outcome", "continuous"),
        x=("running", "continuous"),
        d=("treatment", "binary"),
        g=("group", "categorical"),
    )


def make_rd_frame(n_per_group, groups, effect=2.0, random_state=0):
    """Linear outcome in ``x`` with a jump of ``effect`` at zero."""
    rng = np.random.default_rng(random_state)
    frames = []
    for group, n in zip(groups, n_per_group):
        x = rng.uniform(-5, 5, n)
        d = (x >= 0).astype(int)
        y = 1.0 + 0.5 * x + effect * d + rng.normal(0, 0.3, n)
        frames.append(pd.DataFrame({"y": y, "x": x, "d": d, "g": group}))
    return pd.concat(frames, ignore_index=True)


@pytest.fixture
def rd_frame_factory():
    """Builder for discontinuity frames with custom group sizes."""
    return make_rd_frame


@pytest.fixture
def rd_frame(random_state):
    """Raw frame with three groups of 80 observations and a jump of 2."""
    return make_rd_frame([80, 80, 80], ["A", "B", "C"], random_state=random_state)


@pytest.fixture
def rd_dataset(rd_frame, rd_schema):
    return DatasetLoader(rd_schema).load_frame(rd_frame)


@pytest.fixture
def ols_spec():
    return ModelSpec(
        kind="ols_interaction",
        outcome="y",
        running="x",
        treatment="d",
        cutoff=0.0,
        polynomial_order=1,
    )


@pytest.fixture
def border_frame(random_state):
    """Border discontinuity data, three countries with a jump of -2."""
    return generate_border_discontinuity(n_per_country=500, random_state=random_state)


@pytest.fixture
def border_dataset(border_frame):
    return DatasetLoader(border_schema()).load_frame(border_frame)


@pytest.fixture
def panel_frame(random_state):
    """Balanced staggered-adoption panel with an effect of 1.5."""
    return generate_treatment_panel(n_units=40, n_periods=8, random_state=random_state)


@pytest.fixture
def panel_dataset(panel_frame):
    return DatasetLoader(panel_schema()).load_frame(panel_frame)


@pytest.fixture
def panel_spec():
    return ModelSpec(
        kind="panel_fixed_effects",
        outcome="outcome",
        treatment="treated",
        unit="unit",
        time="year",
        polynomial_order=None,
    )
