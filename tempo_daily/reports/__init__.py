"""Run report persistence."""

from .writer import ReportWriter

__all__ = ["ReportWriter"]
