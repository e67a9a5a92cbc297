"""Formatting helpers for stored interview results."""
from .report_generator import ReportGenerator

__all__ = [
    "ReportGenerator",
]
