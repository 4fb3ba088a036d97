"""
core/errors.py -- Typed storage errors shared by every repository.

Stores translate driver exceptions into this hierarchy so callers branch on
the exception type rather than inspecting message text:

  StorageError
    StorageUnavailableError   -- backing store unreachable or misconfigured
    ConstraintViolationError  -- unique/not-null constraint rejected the write

Messages never include the database URL or credentials.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base class for persistence failures."""


class StorageUnavailableError(StorageError):
    """The database could not be reached or opened."""


class ConstraintViolationError(StorageError):
    """A write was rejected by a database constraint (e.g. duplicate email)."""
