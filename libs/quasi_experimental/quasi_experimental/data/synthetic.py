"""Synthetic datasets matching the two teaching schemas.

``generate_border_discontinuity`` mimics the regression discontinuity
exercise (deforestation on either side of a protected-area border, several
countries). ``generate_treatment_panel`` mimics the fixed-effects exercise
(units observed yearly, some adopting a policy at staggered dates).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np
import pandas as pd

from ..core.schema import DatasetSchema

BORDER_CONTROLS = ("biome", "slope_class", "road_access", "land_tenure")
PANEL_CONTROLS = ("population", "income", "rainfall", "region", "urban")


def border_schema() -> DatasetSchema:
    """Schema for frames produced by :func:`generate_border_discontinuity`."""
    return DatasetSchema.build(
        deforestation=("outcome", "continuous"),
        distance=("running", "continuous"),
        treated=("treatment", "binary"),
        country=("group", "categorical"),
        **{name: ("covariate", "categorical") for name in BORDER_CONTROLS},
    )


def panel_schema() -> DatasetSchema:
    """Schema for frames produced by :func:`generate_treatment_panel`."""
    return DatasetSchema.build(
        outcome=("outcome", "continuous"),
        treated=("treatment", "binary"),
        unit=("unit", "categorical"),
        year=("time", "continuous"),
        population=("covariate", "continuous"),
        income=("covariate", "continuous"),
        rainfall=("covariate", "continuous"),
        region=("covariate", "categorical"),
        urban=("covariate", "binary"),
    )


def generate_border_discontinuity(
    n_per_country: int = 400,
    countries: Sequence[str] = ("Brazil", "Peru", "Colombia"),
    effects: float | Mapping[str, float] = -2.0,
    max_distance: float = 50.0,
    noise_std: float = 1.0,
    random_state: int | None = None,
) -> pd.DataFrame:
    """Generate observations around a border with a jump in the outcome.

    Points with ``distance >= 0`` lie inside the protected area and are
    treated. The outcome trends smoothly in distance on both sides and jumps
    by the country's effect at zero.

    Args:
        n_per_country: Observations per country
        countries: Country labels, in the order rows are emitted
        effects: Jump at the border, either shared or per country
        max_distance: Distances are drawn uniformly from ``[-max, max]``
        noise_std: Standard deviation of the outcome noise
        random_state: Seed for reproducible output

    Returns:
        Raw frame with outcome, running variable, treatment, country and the
        four categorical controls
    """
    rng = np.random.default_rng(random_state)
    levels = {
        "biome": ["amazon", "cerrado", "andes"],
        "slope_class": ["flat", "moderate", "steep"],
        "road_access": ["none", "unpaved", "paved"],
        "land_tenure": ["public", "private", "indigenous"],
    }
    shifts = {name: rng.normal(0, 0.5, len(values)) for name, values in levels.items()}

    frames = []
    for country in countries:
        effect = effects[country] if isinstance(effects, Mapping) else effects
        distance = rng.uniform(-max_distance, max_distance, n_per_country)
        treated = (distance >= 0).astype(int)

        controls = {
            name: rng.integers(0, len(values), n_per_country)
            for name, values in levels.items()
        }
        control_shift = sum(shifts[name][codes] for name, codes in controls.items())

        deforestation = (
            5.0
            - 0.03 * distance
            + effect * treated
            + control_shift
            + rng.normal(0, noise_std, n_per_country)
        )

        frame = pd.DataFrame(
            {
                "deforestation": deforestation,
                "distance": distance,
                "treated": treated,
                "country": country,
            }
        )
        for name, codes in controls.items():
            frame[name] = np.asarray(levels[name])[codes]
        frames.append(frame)

    return pd.concat(frames, ignore_index=True)


def generate_treatment_panel(
    n_units: int = 60,
    n_periods: int = 10,
    adoption_periods: Sequence[int] = (4, 7),
    share_never_treated: float = 0.4,
    effect: float = 1.5,
    first_year: int = 2000,
    noise_std: float = 1.0,
    random_state: int | None = None,
) -> pd.DataFrame:
    """Generate a balanced panel with staggered policy adoption.

    Args:
        n_units: Number of units
        n_periods: Number of yearly periods
        adoption_periods: Period indices (0-based) at which cohorts adopt
        share_never_treated: Share of units that never adopt
        effect: Constant effect of adoption on the outcome
        first_year: Calendar year of period 0
        noise_std: Standard deviation of the idiosyncratic noise
        random_state: Seed for reproducible output

    Returns:
        Long frame with one row per unit-year
    """
    if n_units < 2 or n_periods < 2:
        raise ValueError("A panel needs at least two units and two periods")

    rng = np.random.default_rng(random_state)

    n_never = int(round(share_never_treated * n_units))
    cohorts = np.full(n_units, -1)
    cohorts[n_never:] = rng.choice(np.asarray(adoption_periods), n_units - n_never)

    unit_effect = rng.normal(0, 2, n_units)
    period_effect = np.linspace(0, 1.5, n_periods)
    regions = rng.choice(["north", "south", "east", "west"], n_units)
    urban = rng.integers(0, 2, n_units)
    base_population = rng.lognormal(10, 0.5, n_units)

    unit_idx = np.repeat(np.arange(n_units), n_periods)
    period_idx = np.tile(np.arange(n_periods), n_units)
    n = len(unit_idx)

    adopted = (cohorts[unit_idx] >= 0) & (period_idx >= cohorts[unit_idx])
    population = base_population[unit_idx] * (1.01 ** period_idx)
    income = rng.normal(30, 5, n)
    rainfall = rng.gamma(4, 250, n)

    outcome = (
        unit_effect[unit_idx]
        + period_effect[period_idx]
        + effect * adopted
        + 0.02 * income
        + 0.3 * urban[unit_idx]
        + rng.normal(0, noise_std, n)
    )

    return pd.DataFrame(
        {
            "outcome": outcome,
            "treated": adopted.astype(int),
            "unit": [f"u{i:03d}" for i in unit_idx],
            "year": first_year + period_idx,
            "population": population,
            "income": income,
            "rainfall": rainfall,
            "region": regions[unit_idx],
            "urban": urban[unit_idx],
        }
    )
