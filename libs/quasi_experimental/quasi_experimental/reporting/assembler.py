"""Collect analysis outputs into tables for an external rendering layer.

The assembler performs no computation. It files binned aggregates, overlay
curves, per-group estimates and single fits under caller-chosen names and
lays them out as pandas tables or plain dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from ..binning.binner import BinnedAggregates
from ..core.base import FitResult, GroupFailure
from ..diagnostics.density import DensityTestResult
from ..evaluation.grouped import GroupedResults

ESTIMATE_COLUMNS = [
    "analysis",
    "group",
    "method",
    "status",
    "estimate",
    "std_error",
    "ci_lower",
    "ci_upper",
    "p_value",
    "confidence_level",
    "n_observations",
    "n_left",
    "n_right",
    "bandwidth_left",
    "bandwidth_right",
    "error_type",
    "reason",
]


@dataclass(frozen=True)
class AnalysisReport:
    """Read-only bundle of everything an analysis produced."""

    bins: dict[str, BinnedAggregates] = field(default_factory=dict)
    curves: dict[str, pd.DataFrame] = field(default_factory=dict)
    estimates: dict[str, GroupedResults] = field(default_factory=dict)
    fits: dict[str, FitResult | GroupFailure] = field(default_factory=dict)
    density: dict[str, DensityTestResult] = field(default_factory=dict)

    def bins_table(self) -> pd.DataFrame:
        """All binned aggregates stacked, with the section name in ``panel``."""
        frames = [binned.to_frame().assign(panel=name) for name, binned in self.bins.items()]
        if not frames:
            return pd.DataFrame()
        table = pd.concat(frames, ignore_index=True)
        return table[["panel", *[c for c in table.columns if c != "panel"]]]

    def curves_table(self) -> pd.DataFrame:
        frames = [curve.assign(panel=name) for name, curve in self.curves.items()]
        if not frames:
            return pd.DataFrame()
        table = pd.concat(frames, ignore_index=True)
        return table[["panel", *[c for c in table.columns if c != "panel"]]]

    def estimates_table(self) -> pd.DataFrame:
        """One row per fit or failure; grouped estimates first, then single fits."""
        rows = []
        for name, grouped in self.estimates.items():
            for group, outcome in grouped.items():
                rows.append({**outcome.to_dict(), "group": group, "analysis": name})
        for name, result in self.fits.items():
            rows.append({**result.to_dict(), "analysis": name})
        return pd.DataFrame(rows, columns=ESTIMATE_COLUMNS)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bins": {
                name: binned.to_frame().to_dict(orient="records")
                for name, binned in self.bins.items()
            },
            "curves": {
                name: curve.to_dict(orient="records") for name, curve in self.curves.items()
            },
            "estimates": {
                name: [{**o.to_dict(), "group": g} for g, o in grouped.items()]
                for name, grouped in self.estimates.items()
            },
            "fits": {name: result.to_dict() for name, result in self.fits.items()},
            "density": {name: test.to_dict() for name, test in self.density.items()},
        }


class ReportAssembler:
    """Accumulates named report sections; :meth:`assemble` freezes them.

    Each ``add_*`` method returns the assembler so calls can be chained.
    Reusing a name within a section raises ``ValueError``.
    """

    def __init__(self) -> None:
        self._bins: dict[str, BinnedAggregates] = {}
        self._curves: dict[str, pd.DataFrame] = {}
        self._estimates: dict[str, GroupedResults] = {}
        self._fits: dict[str, FitResult | GroupFailure] = {}
        self._density: dict[str, DensityTestResult] = {}

    @staticmethod
    def _put(section: dict[str, Any], name: str, value: Any) -> None:
        if name in section:
            raise ValueError(f"Report section already has an entry named '{name}'")
        section[name] = value

    def add_bins(self, name: str, binned: BinnedAggregates) -> ReportAssembler:
        self._put(self._bins, name, binned)
        return self

    def add_curves(self, name: str, curves: pd.DataFrame) -> ReportAssembler:
        self._put(self._curves, name, curves.copy())
        return self

    def add_estimates(self, name: str, grouped: GroupedResults) -> ReportAssembler:
        if not grouped.finalized:
            raise ValueError("Grouped results must be finalized before reporting")
        self._put(self._estimates, name, grouped)
        return self

    def add_fit(self, name: str, result: FitResult | GroupFailure) -> ReportAssembler:
        self._put(self._fits, name, result)
        return self

    def add_density(self, name: str, result: DensityTestResult) -> ReportAssembler:
        self._put(self._density, name, result)
        return self

    def assemble(self) -> AnalysisReport:
        return AnalysisReport(
            bins=dict(self._bins),
            curves=dict(self._curves),
            estimates=dict(self._estimates),
            fits=dict(self._fits),
            density=dict(self._density),
        )
