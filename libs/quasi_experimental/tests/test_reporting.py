"""Tests for report assembly."""

import pandas as pd
import pytest

from quasi_experimental.binning.binner import Binner
from quasi_experimental.binning.curves import fit_side_curves
from quasi_experimental.core.base import FitResult, GroupFailure
from quasi_experimental.diagnostics.density import density_test
from quasi_experimental.evaluation.grouped import GroupedResults
from quasi_experimental.reporting.assembler import ESTIMATE_COLUMNS, ReportAssembler


@pytest.fixture
def grouped():
    return GroupedResults(
        {
            "A": FitResult(estimate=2.0, std_error=0.2, method="ols_interaction", group="A"),
            "B": GroupFailure("B", "InsufficientDataError", "one side empty"),
        }
    ).finalize()


class TestReportAssembler:
    def test_full_report(self, rd_dataset, grouped):
        binned = Binner(bin_width=1.0, cutoff=0.0).bin(rd_dataset)
        report = (
            ReportAssembler()
            .add_bins("pooled", binned)
            .add_curves("pooled", fit_side_curves(rd_dataset, cutoff=0.0))
            .add_estimates("by_group", grouped)
            .add_fit("pooled", FitResult(estimate=1.9, std_error=0.1, method="ols_interaction"))
            .add_density("pooled", density_test(rd_dataset, cutoff=0.0, bandwidth=1.0))
            .assemble()
        )

        bins = report.bins_table()
        assert bins.columns[0] == "panel"
        assert bins["count"].sum() == len(rd_dataset)

        estimates = report.estimates_table()
        assert list(estimates.columns) == ESTIMATE_COLUMNS
        assert estimates["analysis"].tolist() == ["by_group", "by_group", "pooled"]
        assert estimates["status"].tolist() == ["ok", "failed", "ok"]
        assert estimates.loc[1, "error_type"] == "InsufficientDataError"

        assert set(report.curves_table()["side"]) == {"left", "right"}

        payload = report.to_dict()
        assert set(payload) == {"bins", "curves", "estimates", "fits", "density"}
        assert payload["fits"]["pooled"]["estimate"] == 1.9
        assert [row["group"] for row in payload["estimates"]["by_group"]] == ["A", "B"]

    def test_empty_report(self):
        report = ReportAssembler().assemble()
        assert report.bins_table().empty
        assert report.estimates_table().empty
        assert list(report.estimates_table().columns) == ESTIMATE_COLUMNS

    def test_duplicate_section_name(self):
        assembler = ReportAssembler().add_fit("pooled", FitResult(estimate=1.0, std_error=0.1))
        with pytest.raises(ValueError, match="already has an entry"):
            assembler.add_fit("pooled", FitResult(estimate=2.0, std_error=0.1))

    def test_unfinalized_results_rejected(self):
        with pytest.raises(ValueError, match="finalized"):
            ReportAssembler().add_estimates("by_group", GroupedResults())

    def test_curves_copied(self):
        curves = pd.DataFrame({"side": ["left"], "running": [0.0], "fitted": [1.0]})
        report = ReportAssembler().add_curves("pooled", curves).assemble()
        curves.loc[0, "fitted"] = 99.0
        assert report.curves["pooled"].loc[0, "fitted"] == 1.0
