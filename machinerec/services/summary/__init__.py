"""Summary service package."""

from .aggregator import Aggregator
from .models import NO_SHEETS_MARKER, SummaryGrid, SummaryRow
from .report import publish_summary

__all__ = [
    "Aggregator",
    "NO_SHEETS_MARKER",
    "SummaryGrid",
    "SummaryRow",
    "publish_summary",
]
