"""
Store for authorizations.
"""

from datetime import datetime
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Sequence, Tuple

from loguru import logger
from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from oidc_store.application.schemas import Application
from oidc_store.authorization.schemas import Authorization
from oidc_store.constants import (
    AUTHORIZATION_TYPE_AD_HOC,
    CACHE_TAG_AUTHORIZATION_PROPERTIES,
    CACHE_TAG_AUTHORIZATION_SCOPES,
    STATUS_VALID,
)
from oidc_store.encoding import DecodeCache, encode_array, encode_map
from oidc_store.identifiers import converter_for
from oidc_store.store import EntityStore, as_utc, ensure_text, ensure_value
from oidc_store.token.schemas import Token


class AuthorizationStore(EntityStore):
    """
    CRUD, lookups, pruning and field accessors for authorizations.
    """

    entity_kind = "authorization"
    entity_param = "authorization"

    def __init__(
        self,
        cache: DecodeCache,
        session: AsyncSession,
        application_model: type = Application,
        authorization_model: type = Authorization,
        token_model: type = Token,
    ):
        super().__init__(cache, session, authorization_model)
        self.application_model = application_model
        self.token_model = token_model
        self.application_converter = converter_for(application_model.__key_type__)

    async def _cascade(self, authorization):
        tokens = await self._delete_where(
            self.token_model, self.token_model.authorization_id == authorization.id
        )
        logger.debug(f"Deleted authorization {authorization.id}: {tokens} token(s) removed")

    def find(
        self,
        subject: str,
        client: str,
        status: Optional[str] = None,
        type: Optional[str] = None,
        scopes: Optional[Sequence[str]] = None,
    ) -> AsyncIterator:
        """
        Iterate over the authorizations of a subject for a client, optionally
        narrowed by status, then type, then a set of scopes the authorization
        must include.
        """
        ensure_text(subject, "subject")
        ensure_text(client, "client")
        if status is not None or type is not None or scopes is not None:
            ensure_text(status, "status")
        if type is not None or scopes is not None:
            ensure_text(type, "type")

        statement = select(self.model).where(
            self.model.subject == subject,
            self.model.application_id == self.application_converter.from_string(client),
        )
        if status is not None:
            statement = statement.where(self.model.status == status)
        if type is not None:
            statement = statement.where(self.model.type == type)
        if scopes is None:
            return self._stream(statement)
        return self._find_with_scopes(statement, frozenset(scopes))

    async def _find_with_scopes(self, statement, scopes: frozenset):
        async for authorization in self._stream(statement):
            granted = await self.cache.array(CACHE_TAG_AUTHORIZATION_SCOPES, authorization.scopes)
            if scopes.issubset(granted):
                yield authorization

    def find_by_application_id(self, identifier: str) -> AsyncIterator:
        """Iterate over the authorizations attached to an application."""
        ensure_text(identifier, "identifier")
        key = self.application_converter.from_string(identifier)
        return self._stream(select(self.model).where(self.model.application_id == key))

    def find_by_subject(self, subject: str) -> AsyncIterator:
        """Iterate over the authorizations granted by a subject."""
        ensure_text(subject, "subject")
        return self._stream(select(self.model).where(self.model.subject == subject))

    async def prune(self, threshold: datetime) -> int:
        """
        Delete authorizations created before the threshold that are either no
        longer valid, or ad-hoc with no token left referencing them.
        """
        ensure_value(threshold, "threshold")
        threshold = as_utc(threshold)
        authorizations, tokens = self.model, self.token_model
        orphaned = ~select(tokens.id).where(tokens.authorization_id == authorizations.id).exists()
        statement = (
            delete(authorizations)
            .where(
                authorizations.creation_date < threshold,
                or_(
                    authorizations.status.is_(None),
                    authorizations.status != STATUS_VALID,
                    and_(authorizations.type == AUTHORIZATION_TYPE_AD_HOC, orphaned),
                ),
            )
            .execution_options(synchronize_session=False)
        )
        async with self._writing():
            result = await self.session.execute(statement)
            await self.session.commit()
        logger.debug(f"Pruned {result.rowcount} authorization(s) created before {threshold}")
        return result.rowcount

    async def get_application_id(self, authorization) -> Optional[str]:
        return self.application_converter.to_string(self._entity(authorization).application_id)

    async def set_application_id(self, authorization, identifier: Optional[str]):
        authorization = self._entity(authorization)
        authorization.application_id = self.application_converter.from_string(identifier)

    async def get_creation_date(self, authorization) -> Optional[datetime]:
        return as_utc(self._entity(authorization).creation_date)

    async def set_creation_date(self, authorization, date: Optional[datetime]):
        self._entity(authorization).creation_date = as_utc(date)

    async def get_properties(self, authorization) -> Dict[str, Any]:
        authorization = self._entity(authorization)
        return await self.cache.property_map(
            CACHE_TAG_AUTHORIZATION_PROPERTIES, authorization.properties
        )

    async def set_properties(self, authorization, properties: Optional[Mapping[str, Any]]):
        self._entity(authorization).properties = encode_map(properties)

    async def get_scopes(self, authorization) -> Tuple[str, ...]:
        authorization = self._entity(authorization)
        return await self.cache.array(CACHE_TAG_AUTHORIZATION_SCOPES, authorization.scopes)

    async def set_scopes(self, authorization, scopes: Optional[Sequence[str]]):
        self._entity(authorization).scopes = encode_array(scopes)

    async def get_status(self, authorization) -> Optional[str]:
        return self._entity(authorization).status

    async def set_status(self, authorization, status: Optional[str]):
        self._entity(authorization).status = status

    async def get_subject(self, authorization) -> Optional[str]:
        return self._entity(authorization).subject

    async def set_subject(self, authorization, subject: Optional[str]):
        self._entity(authorization).subject = subject

    async def get_type(self, authorization) -> Optional[str]:
        return self._entity(authorization).type

    async def set_type(self, authorization, type: Optional[str]):
        self._entity(authorization).type = type
