"""Exception types raised by the ctm library."""

from __future__ import annotations


class CTMError(Exception):
    """Base class for context-tree model errors."""


class ResourceExhausted(CTMError, MemoryError):
    """Requested past enumeration is too large to hold in memory."""


class ModelMismatch(CTMError):
    """A sequence contains pasts that no context of the tree explains.

    Only raised on request (strict mode); the default likelihood path returns
    -inf, which is the model's answer rather than a failure.
    """
