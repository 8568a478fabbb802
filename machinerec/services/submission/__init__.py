"""Submission service package."""

from .merger import SubmissionMerger
from .models import Acknowledgement, LogEntry, MachineEntry, Submission
from .validate import parse_submission

__all__ = [
    "Acknowledgement",
    "LogEntry",
    "MachineEntry",
    "Submission",
    "SubmissionMerger",
    "parse_submission",
]
