"""
Errors raised by the OIDC stores.
"""

from typing import Optional


class OIDCStoreError(Exception):
    """Base class for every store error."""


class ArgumentError(OIDCStoreError, ValueError):
    """A required argument was missing or empty."""

    def __init__(self, param_name: str, message: Optional[str] = None):
        self.param_name = param_name
        super().__init__(message or f"The '{param_name}' argument cannot be null or empty.")


class ConcurrencyError(OIDCStoreError):
    """
    The row was updated or deleted since the entity was read, so its
    concurrency token no longer matches.
    """

    def __init__(self, entity_kind: str, identifier=None):
        self.entity_kind = entity_kind
        self.identifier = identifier
        super().__init__(
            f"The {entity_kind} was concurrently updated and cannot be persisted in its current state. "
            "Reload the entity from the database and retry the operation."
        )


class StoreConfigurationError(OIDCStoreError):
    """No store could be resolved for the requested entity type."""


class EntityInstantiationError(OIDCStoreError):
    """The entity type could not be default-constructed."""


class IdentifierConversionError(OIDCStoreError, ValueError):
    """An identifier string is not a valid literal for the key type."""
