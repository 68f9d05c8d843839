"""
Primary/foreign key column factories for each supported key type.
"""

import uuid

from sqlalchemy import Column, Integer, String, Uuid

from oidc_store.database import generate_uuid
from oidc_store.exceptions import StoreConfigurationError

SUPPORTED_KEY_TYPES = (str, int, uuid.UUID)


def _sql_type(key_type: type):
    if key_type is str:
        return String(100)
    if key_type is int:
        return Integer
    if key_type is uuid.UUID:
        return Uuid
    raise StoreConfigurationError(
        f"Unsupported key type {key_type!r}, expected one of {SUPPORTED_KEY_TYPES}."
    )


def key_column(key_type: type) -> Column:
    """
    Primary key column. Integer keys are generated by the database, string
    and UUID keys are generated client side.
    """
    if key_type is int:
        return Column(Integer, primary_key=True, autoincrement=True)
    if key_type is uuid.UUID:
        return Column(Uuid, primary_key=True, default=uuid.uuid4)
    return Column(_sql_type(key_type), primary_key=True, default=generate_uuid)


def key_reference_column(key_type: type) -> Column:
    """
    Nullable reference to another entity's key. Not enforced by the database,
    the stores cascade explicitly.
    """
    return Column(_sql_type(key_type), nullable=True, index=True)
