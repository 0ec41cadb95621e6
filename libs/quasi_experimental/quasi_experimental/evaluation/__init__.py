"""Per-group evaluation of a model specification."""

from .grouped import GroupedResults, GroupEvaluator, GroupOutcome, fit_group

__all__ = ["GroupedResults", "GroupEvaluator", "GroupOutcome", "fit_group"]
