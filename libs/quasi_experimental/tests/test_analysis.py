"""End-to-end tests for the one-call analyses."""

import logging

import pytest
from pydantic import ValidationError

from quasi_experimental.api.analysis import (
    DiscontinuityAnalysis,
    PanelAnalysis,
    apply_option_defaults,
)
from quasi_experimental.core.base import GroupFailure, LoadError
from quasi_experimental.core.options import AnalysisOptions
from quasi_experimental.core.spec import ModelSpec
from quasi_experimental.data.synthetic import border_schema, panel_schema


@pytest.fixture
def border_spec():
    return ModelSpec(
        kind="ols_interaction",
        outcome="deforestation",
        running="distance",
        treatment="treated",
        cutoff=0.0,
        polynomial_order=1,
    )


class TestDiscontinuityAnalysis:
    def test_run_from_csv(self, tmp_path, border_frame, border_spec):
        path = tmp_path / "border.csv"
        border_frame.to_csv(path, index=False)

        report = DiscontinuityAnalysis(
            border_schema(),
            border_spec,
            bin_width=5.0,
            group_column="country",
            density_bandwidth=5.0,
            placebo=[-25.0, 25.0],
        ).run(path)

        assert set(report.bins) == {"pooled", "by_group"}
        assert set(report.bins["by_group"].to_frame()["cohort"]) == {"Brazil", "Peru", "Colombia"}
        assert "pooled" in report.curves
        assert report.fits["pooled"].estimate == pytest.approx(-2.0, abs=0.5)
        assert list(report.estimates["by_group"]) == ["Brazil", "Peru", "Colombia"]
        assert list(report.estimates["placebo"]) == [-25.0, 25.0]
        assert report.density["pooled"].p_value > 0.001

        table = report.estimates_table()
        assert set(table["analysis"]) == {"by_group", "placebo", "pooled"}

    def test_run_from_frame_uses_option_defaults(self, border_frame, border_spec):
        options = AnalysisOptions(default_bin_width=10.0, default_confidence_level=0.9)
        analysis = DiscontinuityAnalysis(border_schema(), border_spec, options=options)
        report = analysis.run(border_frame)

        assert report.bins["pooled"].bin_width == 10.0
        assert report.fits["pooled"].confidence_level == 0.9
        assert not report.estimates

    def test_density_failure_keeps_report(self, border_frame, border_spec, caplog):
        gapped = border_frame[border_frame["distance"].abs() > 1.0]
        analysis = DiscontinuityAnalysis(
            border_schema(), border_spec, bin_width=5.0, density_bandwidth=0.5
        )
        with caplog.at_level(logging.WARNING, logger="quasi_experimental.api.analysis"):
            report = analysis.run(gapped)

        assert not report.density
        assert "Skipping density test" in caplog.text
        assert "pooled" in report.bins
        assert "pooled" in report.curves
        assert report.fits["pooled"].succeeded

    def test_pooled_failure_recorded(self, border_frame, border_spec):
        one_sided = border_frame[border_frame["distance"] < 0]
        report = DiscontinuityAnalysis(
            border_schema(), border_spec, bin_width=5.0, group_column="country"
        ).run(one_sided)

        pooled = report.fits["pooled"]
        assert isinstance(pooled, GroupFailure)
        assert pooled.error_type == "InsufficientDataError"
        assert not report.curves
        assert len(report.bins["pooled"]) > 0
        assert all(not r.succeeded for r in report.estimates["by_group"].values())

        table = report.estimates_table()
        pooled_row = table[table["analysis"] == "pooled"].iloc[0]
        assert pooled_row["status"] == "failed"

    def test_load_error_aborts(self, tmp_path, border_spec):
        with pytest.raises(LoadError):
            DiscontinuityAnalysis(border_schema(), border_spec).run(tmp_path / "missing.csv")

    def test_panel_spec_rejected(self, panel_spec):
        with pytest.raises(ValueError, match="cannot run"):
            DiscontinuityAnalysis(panel_schema(), panel_spec)


class TestPanelAnalysis:
    def test_run_with_groups(self, panel_frame, panel_spec):
        report = PanelAnalysis(panel_schema(), panel_spec, group_column="region").run(panel_frame)

        assert report.fits["pooled"].estimate == pytest.approx(1.5, abs=0.4)
        grouped = report.estimates["by_group"]
        assert len(grouped) == panel_frame["region"].nunique()
        assert not report.bins

    def test_discontinuity_spec_rejected(self, border_spec):
        with pytest.raises(ValueError, match="cannot run"):
            PanelAnalysis(border_schema(), border_spec)


class TestOptionDefaults:
    def test_explicit_level_kept(self, border_spec):
        spec = border_spec.replace(confidence_level=0.99)
        options = AnalysisOptions(default_confidence_level=0.9)
        assert apply_option_defaults(spec, options).confidence_level == 0.99

    def test_seed_filled_for_sampling(self, border_spec):
        spec = border_spec.replace(sample_fraction=0.5)
        options = AnalysisOptions(random_state=123)
        assert apply_option_defaults(spec, options).random_state == 123

    def test_unsampled_spec_untouched(self, border_spec):
        options = AnalysisOptions(random_state=123)
        assert apply_option_defaults(border_spec, options).random_state is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"n_jobs": 0},
            {"n_jobs": -2},
            {"default_confidence_level": 1.0},
            {"default_bin_width": 0.0},
            {"fit_timeout_seconds": 0.0},
        ],
    )
    def test_invalid_options(self, kwargs):
        with pytest.raises(ValidationError):
            AnalysisOptions(**kwargs)
