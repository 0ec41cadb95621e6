"""Integration tests running the full pipeline over generated CSV files."""

import logging

import pytest

from quasi_experimental import (
    DiscontinuityAnalysis,
    FitResult,
    GroupFailure,
    ModelSpec,
    PanelAnalysis,
    border_schema,
    generate_border_discontinuity,
    generate_treatment_panel,
    panel_schema,
)
from shared.config import PipelineConfig
from shared.runtime import run_analysis


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.integration
class TestBorderPipeline:
    """Discontinuity analysis per country, sequential and parallel."""

    @pytest.fixture
    def border_csv(self, tmp_path):
        frame = generate_border_discontinuity(
            n_per_country=400,
            countries=("Brazil", "Peru", "Colombia", "Bolivia"),
            effects={"Brazil": -4.0, "Peru": 0.0, "Colombia": -2.0, "Bolivia": -2.0},
            random_state=2024,
        )
        # Bolivia keeps only observations outside the protected area
        frame = frame[(frame["country"] != "Bolivia") | (frame["distance"] < 0)]
        path = tmp_path / "border.csv"
        frame.to_csv(path, index=False)
        return path

    @pytest.fixture
    def spec(self):
        return ModelSpec(
            kind="local_polynomial",
            outcome="deforestation",
            running="distance",
            treatment="treated",
            cutoff=0.0,
            polynomial_order=1,
        )

    def test_per_country_estimates(self, border_csv, spec):
        report = DiscontinuityAnalysis(
            border_schema(), spec, bin_width=5.0, group_column="country"
        ).run(border_csv)

        grouped = report.estimates["by_group"]
        assert list(grouped) == ["Brazil", "Peru", "Colombia", "Bolivia"]
        assert isinstance(grouped["Bolivia"], GroupFailure)
        assert grouped["Bolivia"].error_type == "InsufficientDataError"
        assert grouped["Brazil"].estimate < grouped["Peru"].estimate
        for country in ("Brazil", "Peru", "Colombia"):
            assert isinstance(grouped[country], FitResult)

    def test_parallel_config_matches_sequential(self, border_csv, spec):
        sequential = run_analysis(
            border_schema(), spec, border_csv, group_column="country"
        )
        parallel = run_analysis(
            border_schema(),
            spec,
            border_csv,
            config=PipelineConfig(n_jobs=2),
            group_column="country",
        )

        seq_table = sequential.estimates_table()
        par_table = parallel.estimates_table()
        assert seq_table["estimate"].tolist() == par_table["estimate"].tolist()
        assert seq_table["status"].tolist() == par_table["status"].tolist()


@pytest.mark.integration
def test_panel_pipeline(tmp_path):
    path = tmp_path / "panel.csv"
    generate_treatment_panel(n_units=50, n_periods=10, random_state=9).to_csv(path, index=False)
    spec = ModelSpec(
        kind="panel_fixed_effects",
        outcome="outcome",
        treatment="treated",
        unit="unit",
        time="year",
        covariates=("income", "rainfall"),
        polynomial_order=None,
    )

    report = PanelAnalysis(panel_schema(), spec).run(path)

    assert report.fits["pooled"].estimate == pytest.approx(1.5, abs=0.4)
    assert report.estimates_table()["status"].tolist() == ["ok"]
