"""Exception hierarchy for allocation runs."""
from __future__ import annotations

from typing import List, Optional, Sequence


class ValidationError(ValueError):
    """Group inputs, departments or activity options are missing or invalid.

    Raised before any allocation write; ``missing`` names every offending
    field / department / option so one run reports all of them at once.
    """

    def __init__(self, message: str, missing: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.missing: List[str] = list(missing or [])


class StoreError(Exception):
    """Base class for failures reported by the record store."""


class StoreWriteError(StoreError):
    """A single record create/update was rejected."""

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(message)
        self.record_id = record_id


class BatchError(StoreError):
    """A whole batched write was rejected."""
