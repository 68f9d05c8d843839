"""
Database models for OIDC scopes.
"""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import declared_attr

from oidc_store.config import settings
from oidc_store.database import Base, generate_uuid
from oidc_store.database.keys import key_column


class ScopeEntity:
    """
    Columns shared by every scope mapping.
    """

    __key_type__ = str

    @declared_attr
    def id(cls):
        return key_column(cls.__key_type__)

    concurrency_token = Column(String(50), nullable=True, default=generate_uuid)
    description = Column(Text, nullable=True)
    descriptions = Column(Text, nullable=True)
    display_name = Column(Text, nullable=True)
    display_names = Column(Text, nullable=True)
    name = Column(String(200), nullable=True, unique=True, index=True)
    properties = Column(Text, nullable=True)
    resources = Column(Text, nullable=True)

    def __repr__(self):
        return f"<{type(self).__name__} id={self.id!r} name={self.name!r}>"


class Scope(ScopeEntity, Base):
    """Default scope model (string keys)."""

    __tablename__ = settings.scopes_table
