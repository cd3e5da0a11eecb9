"""Exception types raised by the lshpairs core.

All of them derive from :class:`ValueError` so callers that already guard
numeric helpers with ``except ValueError`` keep working.
"""
from __future__ import annotations


class LSHError(ValueError):
    """Base class for every error raised by lshpairs."""


class InvalidArgumentError(LSHError):
    """A size, seed or other scalar parameter is out of range."""


class DimensionMismatchError(LSHError):
    """Band configuration or matrix shapes disagree with each other."""


class EmptyInputError(LSHError):
    """An item without shingles was rejected by the ``"reject"`` policy."""
