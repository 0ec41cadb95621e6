"""Tests for per-group evaluation with failure isolation."""

import logging
import time

import pytest

from quasi_experimental.core.base import FitResult, GroupFailure
from quasi_experimental.core.options import AnalysisOptions
from quasi_experimental.data.loader import DatasetLoader
from quasi_experimental.estimators.runner import ModelRunner
from quasi_experimental.evaluation.grouped import GroupedResults, GroupEvaluator


@pytest.fixture
def uneven_dataset(rd_frame_factory, rd_schema):
    """Groups A and C with plenty of data, B with a single observation."""
    frame = rd_frame_factory([60, 1, 60], ["A", "B", "C"], random_state=5)
    return DatasetLoader(rd_schema).load_frame(frame)


class SlowRunner(ModelRunner):
    """Sleeps before fitting the named groups."""

    def __init__(self, slow_groups, delay):
        super().__init__()
        self.slow_groups = set(slow_groups)
        self.delay = delay

    def fit(self, dataset, spec, group=None):
        if group in self.slow_groups:
            time.sleep(self.delay)
        return super().fit(dataset, spec, group=group)


class TestGroupedResults:
    def test_mapping_behaviour(self):
        fit = FitResult(estimate=1.0, std_error=0.1)
        failure = GroupFailure("b", "InsufficientDataError", "too few")
        results = GroupedResults({"a": fit, "b": failure})

        assert list(results) == ["a", "b"]
        assert results["a"] is fit
        assert results.successes() == {"a": fit}
        assert results.failures() == {"b": failure}

    def test_duplicate_group_rejected(self):
        results = GroupedResults()
        results.add("a", FitResult(estimate=1.0, std_error=0.1))
        with pytest.raises(ValueError, match="already has a result"):
            results.add("a", FitResult(estimate=2.0, std_error=0.1))

    def test_finalized_is_read_only(self):
        results = GroupedResults().finalize()
        assert results.finalized
        with pytest.raises(RuntimeError):
            results.add("a", FitResult(estimate=1.0, std_error=0.1))

    def test_to_frame(self):
        results = GroupedResults(
            {
                "a": FitResult(estimate=1.0, std_error=0.1),
                "b": GroupFailure("b", "EstimationError", "singular"),
            }
        )
        frame = results.to_frame()
        assert frame["group"].tolist() == ["a", "b"]
        assert frame["status"].tolist() == ["ok", "failed"]


class TestGroupEvaluator:
    """Test partitioning and partial failure."""

    def test_one_small_group_fails(self, uneven_dataset, ols_spec, caplog):
        with caplog.at_level(logging.WARNING, logger="quasi_experimental.evaluation.grouped"):
            results = GroupEvaluator().evaluate(uneven_dataset, "g", ols_spec)

        assert list(results) == ["A", "B", "C"]
        assert isinstance(results["A"], FitResult)
        assert isinstance(results["C"], FitResult)
        assert isinstance(results["B"], GroupFailure)
        assert results["B"].error_type == "InsufficientDataError"
        assert results["A"].group == "A"
        assert results["A"].n_observations == 60
        assert results.finalized
        assert "Group 'B' failed" in caplog.text

    def test_one_entry_per_group(self, rd_dataset, ols_spec):
        results = GroupEvaluator().evaluate(rd_dataset, "g", ols_spec)
        assert len(results) == 3
        assert len(results.successes()) == 3
        for result in results.successes().values():
            assert result.estimate == pytest.approx(2.0, abs=0.5)

    def test_first_appearance_order(self, rd_frame_factory, rd_schema, ols_spec):
        frame = rd_frame_factory([40, 40, 40], ["zeta", "alpha", "mu"])
        dataset = DatasetLoader(rd_schema).load_frame(frame)
        results = GroupEvaluator().evaluate(dataset, "g", ols_spec)
        assert list(results) == ["zeta", "alpha", "mu"]

    def test_default_group_column_from_schema(self, rd_dataset, ols_spec):
        results = GroupEvaluator().evaluate(rd_dataset, None, ols_spec)
        assert list(results) == ["A", "B", "C"]

    def test_unknown_group_column(self, rd_dataset, ols_spec):
        with pytest.raises(KeyError, match="country"):
            GroupEvaluator().evaluate(rd_dataset, "country", ols_spec)

    def test_every_group_fails(self, rd_dataset, ols_spec):
        results = GroupEvaluator().evaluate(rd_dataset, "g", ols_spec.replace(cutoff=100.0))
        assert len(results) == 3
        assert not results.successes()

    def test_parallel_matches_sequential(self, rd_dataset, ols_spec):
        sequential = GroupEvaluator().evaluate(rd_dataset, "g", ols_spec)
        parallel = GroupEvaluator(n_jobs=2, backend="threading").evaluate(
            rd_dataset, "g", ols_spec
        )
        assert list(parallel) == list(sequential)
        for group in sequential:
            assert parallel[group].estimate == sequential[group].estimate
            assert parallel[group].std_error == sequential[group].std_error

    def test_parallel_isolates_failures(self, uneven_dataset, ols_spec):
        results = GroupEvaluator(n_jobs=2).evaluate(uneven_dataset, "g", ols_spec)
        assert [r.succeeded for r in results.values()] == [True, False, True]

    def test_timeout_marks_pending_groups(self, rd_dataset, ols_spec):
        evaluator = GroupEvaluator(
            runner=SlowRunner({"A", "B", "C"}, delay=1.0), n_jobs=2, timeout=0.1
        )
        results = evaluator.evaluate(rd_dataset, "g", ols_spec)

        assert list(results) == ["A", "B", "C"]
        assert results["A"].error_type == "TimeoutError"
        assert all(not r.succeeded for r in results.values())

    def test_from_options(self):
        options = AnalysisOptions(n_jobs=4, parallel_backend="loky", fit_timeout_seconds=30)
        evaluator = GroupEvaluator.from_options(options)
        assert evaluator.n_jobs == 4
        assert evaluator.backend == "loky"
        assert evaluator.timeout == 30

    @pytest.mark.parametrize("kwargs", [{"n_jobs": 0}, {"timeout": 0}, {"timeout": -1}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            GroupEvaluator(**kwargs)
