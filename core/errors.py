"""Exceptions raised by the triage core.

All of them are recoverable; callers are expected to report the problem and
let the user retry or pick another action.
"""

from __future__ import annotations


class TriageError(Exception):
    """Base class for triage errors."""


class InvalidCategory(TriageError, ValueError):
    """Raised when a category request cannot be normalized."""


class OutOfRangeDecision(TriageError):
    """Raised when a decision is made on an exhausted category."""


class DeletionInProgress(TriageError):
    """Raised when staged deletions are mutated while a flush is pending."""


class DeletionError(TriageError):
    """Batch deletion failure reported by the deletion backend.

    Attributes:
        detail: Backend-provided description of the failure.
        failed: Tuples of (identifier, reason) for each image that failed.
    """

    def __init__(self, detail: str, failed: list[tuple[str, str]] | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.failed = list(failed or [])
