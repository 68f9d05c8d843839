"""
Database models for authorizations granted by a subject to an application.
"""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declared_attr

from oidc_store.config import settings
from oidc_store.database import Base, generate_uuid
from oidc_store.database.keys import key_column, key_reference_column


class AuthorizationEntity:
    """
    Columns shared by every authorization mapping.
    """

    __key_type__ = str

    @declared_attr
    def id(cls):
        return key_column(cls.__key_type__)

    @declared_attr
    def application_id(cls):
        return key_reference_column(cls.__key_type__)

    concurrency_token = Column(String(50), nullable=True, default=generate_uuid)
    creation_date = Column(DateTime(timezone=True), nullable=True)
    properties = Column(Text, nullable=True)
    scopes = Column(Text, nullable=True)
    status = Column(String(50), nullable=True)
    subject = Column(String(400), nullable=True, index=True)
    type = Column(String(50), nullable=True)

    def __repr__(self):
        return f"<{type(self).__name__} id={self.id!r} subject={self.subject!r} status={self.status!r}>"


class Authorization(AuthorizationEntity, Base):
    """Default authorization model (string keys)."""

    __tablename__ = settings.authorizations_table
