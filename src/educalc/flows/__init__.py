"""User-facing flows: drafts that promote to committed results, accounts, feedback"""

from .account import AccountService, SaveOutcome
from .cgpa_flow import CGPADraft
from .feedback import FeedbackService
from .gpa_flow import GPADraft
from .scan_flow import ScanDraft

__all__ = [
    "AccountService",
    "SaveOutcome",
    "GPADraft",
    "CGPADraft",
    "ScanDraft",
    "FeedbackService",
]
