"""
Error taxonomy.

Validation and not-found errors are expected outcomes the caller can act on.
Store and unknown-state errors are internal failures.
"""

from __future__ import annotations


class IdaError(Exception):
    """Base class for all errors raised by the IDA core."""


class ValidationError(IdaError):
    """Bad input: empty required field, bad page parameters, unknown or duplicate type."""


class NotFoundError(IdaError):
    """An identifier does not resolve to any record."""

    def __init__(self, entity: str, identifier: str, field: str = "id"):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"Could not find {entity} with {field} {identifier}")


class StoreError(IdaError):
    """Backing-store failure: connectivity, constraint violation or stale write."""

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store operation '{operation}' failed: {cause}")


class UnknownStateError(IdaError):
    """A workflow status outside the known set reached the resolver."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Unknown workflow status: {value!r}")
