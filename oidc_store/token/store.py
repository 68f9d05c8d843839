"""
Store for tokens.
"""

from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Mapping, Optional

from loguru import logger
from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from oidc_store.application.schemas import Application
from oidc_store.authorization.schemas import Authorization
from oidc_store.config import settings
from oidc_store.constants import CACHE_TAG_TOKEN_PROPERTIES, STATUS_INACTIVE, STATUS_VALID
from oidc_store.encoding import DecodeCache, encode_map
from oidc_store.identifiers import converter_for
from oidc_store.store import EntityStore, as_utc, ensure_text, ensure_value
from oidc_store.token.schemas import Token


class TokenStore(EntityStore):
    """
    CRUD, lookups, pruning and field accessors for tokens. Deleting a token
    does not cascade.
    """

    entity_kind = "token"
    entity_param = "token"

    def __init__(
        self,
        cache: DecodeCache,
        session: AsyncSession,
        application_model: type = Application,
        authorization_model: type = Authorization,
        token_model: type = Token,
        prune_batch_size: Optional[int] = None,
    ):
        super().__init__(cache, session, token_model)
        self.application_model = application_model
        self.authorization_model = authorization_model
        self.application_converter = converter_for(application_model.__key_type__)
        self.authorization_converter = converter_for(authorization_model.__key_type__)
        self.prune_batch_size = prune_batch_size or settings.prune_batch_size

    def find(
        self,
        subject: str,
        client: str,
        status: Optional[str] = None,
        type: Optional[str] = None,
    ) -> AsyncIterator:
        """
        Iterate over the tokens of a subject for a client, optionally narrowed
        by status, then type.
        """
        ensure_text(subject, "subject")
        ensure_text(client, "client")
        if status is not None or type is not None:
            ensure_text(status, "status")
        if type is not None:
            ensure_text(type, "type")

        statement = select(self.model).where(
            self.model.subject == subject,
            self.model.application_id == self.application_converter.from_string(client),
        )
        if status is not None:
            statement = statement.where(self.model.status == status)
        if type is not None:
            statement = statement.where(self.model.type == type)
        return self._stream(statement)

    def find_by_application_id(self, identifier: str) -> AsyncIterator:
        ensure_text(identifier, "identifier")
        key = self.application_converter.from_string(identifier)
        return self._stream(select(self.model).where(self.model.application_id == key))

    def find_by_authorization_id(self, identifier: str) -> AsyncIterator:
        ensure_text(identifier, "identifier")
        key = self.authorization_converter.from_string(identifier)
        return self._stream(select(self.model).where(self.model.authorization_id == key))

    async def find_by_reference_id(self, identifier: str):
        """Load a token by its reference identifier."""
        ensure_text(identifier, "identifier")
        return (
            await self.session.execute(
                select(self.model).where(self.model.reference_id == identifier)
            )
        ).scalar_one_or_none()

    def find_by_subject(self, subject: str) -> AsyncIterator:
        ensure_text(subject, "subject")
        return self._stream(select(self.model).where(self.model.subject == subject))

    async def prune(self, threshold: datetime) -> int:
        """
        Delete one batch of tokens created before the threshold that are no
        longer usable: not inactive/valid, attached to an authorization that is
        no longer valid, or expired. Call repeatedly until it returns 0.
        """
        ensure_value(threshold, "threshold")
        threshold = as_utc(threshold)
        now = datetime.now(timezone.utc)
        tokens, applications, authorizations = (
            self.model,
            self.application_model,
            self.authorization_model,
        )
        batch = (
            select(tokens.id)
            .select_from(tokens)
            .outerjoin(applications, tokens.application_id == applications.id)
            .outerjoin(authorizations, tokens.authorization_id == authorizations.id)
            .where(
                tokens.creation_date < threshold,
                or_(
                    tokens.status.is_(None),
                    tokens.status.not_in((STATUS_INACTIVE, STATUS_VALID)),
                    and_(
                        authorizations.id.is_not(None),
                        or_(
                            authorizations.status.is_(None),
                            authorizations.status != STATUS_VALID,
                        ),
                    ),
                    tokens.expiration_date < now,
                ),
            )
            .order_by(tokens.id)
            .limit(self.prune_batch_size)
            .subquery()
        )
        statement = (
            delete(tokens)
            .where(tokens.id.in_(select(batch.c.id)))
            .execution_options(synchronize_session=False)
        )
        async with self._writing():
            result = await self.session.execute(statement)
            await self.session.commit()
        logger.debug(f"Pruned {result.rowcount} token(s) created before {threshold}")
        return result.rowcount

    async def get_application_id(self, token) -> Optional[str]:
        return self.application_converter.to_string(self._entity(token).application_id)

    async def set_application_id(self, token, identifier: Optional[str]):
        self._entity(token).application_id = self.application_converter.from_string(identifier)

    async def get_authorization_id(self, token) -> Optional[str]:
        return self.authorization_converter.to_string(self._entity(token).authorization_id)

    async def set_authorization_id(self, token, identifier: Optional[str]):
        token = self._entity(token)
        token.authorization_id = self.authorization_converter.from_string(identifier)

    async def get_creation_date(self, token) -> Optional[datetime]:
        return as_utc(self._entity(token).creation_date)

    async def set_creation_date(self, token, date: Optional[datetime]):
        self._entity(token).creation_date = as_utc(date)

    async def get_expiration_date(self, token) -> Optional[datetime]:
        return as_utc(self._entity(token).expiration_date)

    async def set_expiration_date(self, token, date: Optional[datetime]):
        self._entity(token).expiration_date = as_utc(date)

    async def get_redemption_date(self, token) -> Optional[datetime]:
        return as_utc(self._entity(token).redemption_date)

    async def set_redemption_date(self, token, date: Optional[datetime]):
        self._entity(token).redemption_date = as_utc(date)

    async def get_payload(self, token) -> Optional[str]:
        return self._entity(token).payload

    async def set_payload(self, token, payload: Optional[str]):
        self._entity(token).payload = payload

    async def get_properties(self, token) -> Dict[str, Any]:
        token = self._entity(token)
        return await self.cache.property_map(CACHE_TAG_TOKEN_PROPERTIES, token.properties)

    async def set_properties(self, token, properties: Optional[Mapping[str, Any]]):
        self._entity(token).properties = encode_map(properties)

    async def get_reference_id(self, token) -> Optional[str]:
        return self._entity(token).reference_id

    async def set_reference_id(self, token, identifier: Optional[str]):
        self._entity(token).reference_id = identifier

    async def get_status(self, token) -> Optional[str]:
        return self._entity(token).status

    async def set_status(self, token, status: Optional[str]):
        self._entity(token).status = status

    async def get_subject(self, token) -> Optional[str]:
        return self._entity(token).subject

    async def set_subject(self, token, subject: Optional[str]):
        self._entity(token).subject = subject

    async def get_type(self, token) -> Optional[str]:
        return self._entity(token).type

    async def set_type(self, token, type: Optional[str]):
        self._entity(token).type = type
