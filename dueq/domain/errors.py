"""
Exception hierarchy for dueq.

DueQError
├── StoreError       — due-time index operation failed (wraps original exception)
├── LockError        — lease could not be acquired, extended or released
├── ConfigError      — required collaborator or setting missing at construction
└── ProcessingError  — a job handler reported failure
"""

from __future__ import annotations


class DueQError(Exception):
    """Base class for all dueq exceptions."""


class StoreError(DueQError):
    """
    Wraps an underlying failure from the due-time index backend.

    Attributes
    ----------
    cause : Exception
        The original exception from the store.
    """

    def __init__(self, message: str, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"{message}: {cause}")


class LockError(DueQError):
    """
    Raised when the lock service refuses or loses a lease.

    Contention is the common case: another worker already holds the key.
    A lease that has already expired cannot be extended.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(message if cause is None else f"{message}: {cause}")


class ConfigError(DueQError):
    """Raised synchronously when a Queue cannot be constructed."""


class ProcessingError(DueQError):
    """A job handler reported failure for (job_type, job_id)."""

    def __init__(self, job_type: str, job_id: str, cause: BaseException) -> None:
        self.job_type = job_type
        self.job_id = job_id
        self.cause = cause
        super().__init__(f"Job {job_type}:{job_id} failed: {cause}")
