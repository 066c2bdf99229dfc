"""Utility modules: diagnostics buffer and environment summaries."""

from .diagnostics import DiagnosticEntry, DiagnosticsBuffer, collect_diagnostics

__all__ = ["DiagnosticEntry", "DiagnosticsBuffer", "collect_diagnostics"]
