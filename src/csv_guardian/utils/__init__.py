"""Utility helpers for reporting."""

from .reporting import SummaryReporter

__all__ = ["SummaryReporter"]
