"""
Store for OIDC client applications.
"""

from typing import Any, AsyncIterator, Dict, Mapping, Optional, Sequence, Tuple

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from oidc_store.application.schemas import Application
from oidc_store.authorization.schemas import Authorization
from oidc_store.constants import (
    CACHE_TAG_APPLICATION_DISPLAY_NAMES,
    CACHE_TAG_APPLICATION_JSON_WEB_KEY_SET,
    CACHE_TAG_APPLICATION_PERMISSIONS,
    CACHE_TAG_APPLICATION_POST_LOGOUT_REDIRECT_URIS,
    CACHE_TAG_APPLICATION_PROPERTIES,
    CACHE_TAG_APPLICATION_REDIRECT_URIS,
    CACHE_TAG_APPLICATION_REQUIREMENTS,
    CACHE_TAG_APPLICATION_SETTINGS,
)
from oidc_store.encoding import DecodeCache, encode_array, encode_document, encode_map
from oidc_store.store import EntityStore, ensure_text
from oidc_store.token.schemas import Token


class ApplicationStore(EntityStore):
    """
    CRUD, lookups and field accessors for applications.
    """

    entity_kind = "application"
    entity_param = "application"

    def __init__(
        self,
        cache: DecodeCache,
        session: AsyncSession,
        application_model: type = Application,
        authorization_model: type = Authorization,
        token_model: type = Token,
    ):
        super().__init__(cache, session, application_model)
        self.authorization_model = authorization_model
        self.token_model = token_model

    async def _cascade(self, application):
        tokens = await self._delete_where(
            self.token_model, self.token_model.application_id == application.id
        )
        authorizations = await self._delete_where(
            self.authorization_model, self.authorization_model.application_id == application.id
        )
        logger.debug(
            f"Deleted application {application.id}: "
            f"{authorizations} authorization(s), {tokens} token(s) removed"
        )

    async def find_by_client_id(self, identifier: str):
        """Load an application by its client_id."""
        ensure_text(identifier, "identifier")
        return (
            await self.session.execute(
                select(self.model).where(self.model.client_id == identifier)
            )
        ).scalar_one_or_none()

    async def _find_by_uri(self, column: str, tag: str, address: str):
        # The LIKE filter only narrows the candidates, the stored text may hold
        # the address as part of a longer URI.
        statement = select(self.model).where(
            getattr(self.model, column).contains(address, autoescape=True)
        )
        async for application in self._stream(statement):
            if address in await self.cache.array(tag, getattr(application, column)):
                yield application

    def find_by_redirect_uri(self, address: str) -> AsyncIterator:
        """Iterate over applications registering the exact redirect URI."""
        ensure_text(address, "address")
        return self._find_by_uri("redirect_uris", CACHE_TAG_APPLICATION_REDIRECT_URIS, address)

    def find_by_post_logout_redirect_uri(self, address: str) -> AsyncIterator:
        """Iterate over applications registering the exact post-logout redirect URI."""
        ensure_text(address, "address")
        return self._find_by_uri(
            "post_logout_redirect_uris", CACHE_TAG_APPLICATION_POST_LOGOUT_REDIRECT_URIS, address
        )

    async def get_application_type(self, application) -> Optional[str]:
        return self._entity(application).application_type

    async def set_application_type(self, application, type: Optional[str]):
        self._entity(application).application_type = type

    async def get_client_id(self, application) -> Optional[str]:
        return self._entity(application).client_id

    async def set_client_id(self, application, identifier: Optional[str]):
        self._entity(application).client_id = identifier

    async def get_client_secret(self, application) -> Optional[str]:
        return self._entity(application).client_secret

    async def set_client_secret(self, application, secret: Optional[str]):
        self._entity(application).client_secret = secret

    async def get_client_type(self, application) -> Optional[str]:
        return self._entity(application).client_type

    async def set_client_type(self, application, type: Optional[str]):
        self._entity(application).client_type = type

    async def get_consent_type(self, application) -> Optional[str]:
        return self._entity(application).consent_type

    async def set_consent_type(self, application, type: Optional[str]):
        self._entity(application).consent_type = type

    async def get_display_name(self, application) -> Optional[str]:
        return self._entity(application).display_name

    async def set_display_name(self, application, name: Optional[str]):
        self._entity(application).display_name = name

    async def get_display_names(self, application) -> Dict[str, str]:
        """Localized display names keyed by culture."""
        application = self._entity(application)
        return await self.cache.locale_map(
            CACHE_TAG_APPLICATION_DISPLAY_NAMES, application.display_names
        )

    async def set_display_names(self, application, names: Optional[Mapping[str, str]]):
        self._entity(application).display_names = encode_map(names)

    async def get_json_web_key_set(self, application) -> Optional[Dict[str, Any]]:
        application = self._entity(application)
        return await self.cache.document(
            CACHE_TAG_APPLICATION_JSON_WEB_KEY_SET, application.json_web_key_set
        )

    async def set_json_web_key_set(self, application, key_set: Optional[Mapping[str, Any]]):
        self._entity(application).json_web_key_set = encode_document(key_set)

    async def get_permissions(self, application) -> Tuple[str, ...]:
        application = self._entity(application)
        return await self.cache.array(CACHE_TAG_APPLICATION_PERMISSIONS, application.permissions)

    async def set_permissions(self, application, permissions: Optional[Sequence[str]]):
        self._entity(application).permissions = encode_array(permissions)

    async def get_post_logout_redirect_uris(self, application) -> Tuple[str, ...]:
        application = self._entity(application)
        return await self.cache.array(
            CACHE_TAG_APPLICATION_POST_LOGOUT_REDIRECT_URIS, application.post_logout_redirect_uris
        )

    async def set_post_logout_redirect_uris(self, application, addresses: Optional[Sequence[str]]):
        self._entity(application).post_logout_redirect_uris = encode_array(addresses)

    async def get_properties(self, application) -> Dict[str, Any]:
        application = self._entity(application)
        return await self.cache.property_map(
            CACHE_TAG_APPLICATION_PROPERTIES, application.properties
        )

    async def set_properties(self, application, properties: Optional[Mapping[str, Any]]):
        self._entity(application).properties = encode_map(properties)

    async def get_redirect_uris(self, application) -> Tuple[str, ...]:
        application = self._entity(application)
        return await self.cache.array(CACHE_TAG_APPLICATION_REDIRECT_URIS, application.redirect_uris)

    async def set_redirect_uris(self, application, addresses: Optional[Sequence[str]]):
        self._entity(application).redirect_uris = encode_array(addresses)

    async def get_requirements(self, application) -> Tuple[str, ...]:
        application = self._entity(application)
        return await self.cache.array(CACHE_TAG_APPLICATION_REQUIREMENTS, application.requirements)

    async def set_requirements(self, application, requirements: Optional[Sequence[str]]):
        self._entity(application).requirements = encode_array(requirements)

    async def get_settings(self, application) -> Dict[str, str]:
        application = self._entity(application)
        return await self.cache.string_map(CACHE_TAG_APPLICATION_SETTINGS, application.settings)

    async def set_settings(self, application, settings: Optional[Mapping[str, str]]):
        self._entity(application).settings = encode_map(settings)
