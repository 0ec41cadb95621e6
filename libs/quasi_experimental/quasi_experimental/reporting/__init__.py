"""Structural assembly of analysis outputs."""

from .assembler import AnalysisReport, ReportAssembler

__all__ = ["AnalysisReport", "ReportAssembler"]
