"""
Database models for OIDC client applications.
"""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import declared_attr

from oidc_store.config import settings
from oidc_store.database import Base, generate_uuid
from oidc_store.database.keys import key_column


class ApplicationEntity:
    """
    Columns shared by every application mapping; subclasses pick the key type
    through ``__key_type__``.
    """

    __key_type__ = str

    @declared_attr
    def id(cls):
        return key_column(cls.__key_type__)

    application_type = Column(String(50), nullable=True)
    client_id = Column(String(100), nullable=True, unique=True, index=True)
    client_secret = Column(Text, nullable=True)
    client_type = Column(String(50), nullable=True)
    concurrency_token = Column(String(50), nullable=True, default=generate_uuid)
    consent_type = Column(String(50), nullable=True)
    display_name = Column(Text, nullable=True)

    # JSON encoded columns.
    display_names = Column(Text, nullable=True)
    json_web_key_set = Column(Text, nullable=True)
    permissions = Column(Text, nullable=True)
    post_logout_redirect_uris = Column(Text, nullable=True)
    properties = Column(Text, nullable=True)
    redirect_uris = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)
    settings = Column(Text, nullable=True)

    def __repr__(self):
        return f"<{type(self).__name__} id={self.id!r} client_id={self.client_id!r}>"


class Application(ApplicationEntity, Base):
    """Default application model (string keys)."""

    __tablename__ = settings.applications_table
