"""
Store for OIDC scopes.
"""

from typing import Any, AsyncIterator, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from oidc_store.constants import (
    CACHE_TAG_SCOPE_DESCRIPTIONS,
    CACHE_TAG_SCOPE_DISPLAY_NAMES,
    CACHE_TAG_SCOPE_PROPERTIES,
    CACHE_TAG_SCOPE_RESOURCES,
)
from oidc_store.encoding import DecodeCache, encode_array, encode_map
from oidc_store.exceptions import ArgumentError
from oidc_store.scope.schemas import Scope
from oidc_store.store import EntityStore, ensure_text, ensure_value


class ScopeStore(EntityStore):
    entity_kind = "scope"
    entity_param = "scope"

    def __init__(self, cache: DecodeCache, session: AsyncSession, scope_model: type = Scope):
        super().__init__(cache, session, scope_model)

    async def find_by_name(self, name: str):
        """Load a scope by its unique name."""
        ensure_text(name, "name")
        return (
            await self.session.execute(select(self.model).where(self.model.name == name))
        ).scalar_one_or_none()

    def find_by_names(self, names: Iterable[str]) -> AsyncIterator:
        """Iterate over the scopes matching any of the given names."""
        names = list(ensure_value(names, "names"))
        if any(not name for name in names):
            raise ArgumentError("names", "Scope names cannot be null or empty.")
        return self._stream(select(self.model).where(self.model.name.in_(names)))

    def find_by_resource(self, resource: str) -> AsyncIterator:
        """Iterate over the scopes listing the exact resource."""
        ensure_text(resource, "resource")
        return self._find_by_resource(resource)

    async def _find_by_resource(self, resource: str):
        statement = select(self.model).where(
            self.model.resources.contains(resource, autoescape=True)
        )
        async for scope in self._stream(statement):
            if resource in await self.cache.array(CACHE_TAG_SCOPE_RESOURCES, scope.resources):
                yield scope

    async def get_description(self, scope) -> Optional[str]:
        return self._entity(scope).description

    async def set_description(self, scope, description: Optional[str]):
        self._entity(scope).description = description

    async def get_descriptions(self, scope) -> Dict[str, str]:
        scope = self._entity(scope)
        return await self.cache.locale_map(CACHE_TAG_SCOPE_DESCRIPTIONS, scope.descriptions)

    async def set_descriptions(self, scope, descriptions: Optional[Mapping[str, str]]):
        self._entity(scope).descriptions = encode_map(descriptions)

    async def get_display_name(self, scope) -> Optional[str]:
        return self._entity(scope).display_name

    async def set_display_name(self, scope, name: Optional[str]):
        self._entity(scope).display_name = name

    async def get_display_names(self, scope) -> Dict[str, str]:
        scope = self._entity(scope)
        return await self.cache.locale_map(CACHE_TAG_SCOPE_DISPLAY_NAMES, scope.display_names)

    async def set_display_names(self, scope, names: Optional[Mapping[str, str]]):
        self._entity(scope).display_names = encode_map(names)

    async def get_name(self, scope) -> Optional[str]:
        return self._entity(scope).name

    async def set_name(self, scope, name: Optional[str]):
        self._entity(scope).name = name

    async def get_properties(self, scope) -> Dict[str, Any]:
        scope = self._entity(scope)
        return await self.cache.property_map(CACHE_TAG_SCOPE_PROPERTIES, scope.properties)

    async def set_properties(self, scope, properties: Optional[Mapping[str, Any]]):
        self._entity(scope).properties = encode_map(properties)

    async def get_resources(self, scope) -> Tuple[str, ...]:
        scope = self._entity(scope)
        return await self.cache.array(CACHE_TAG_SCOPE_RESOURCES, scope.resources)

    async def set_resources(self, scope, resources: Optional[Sequence[str]]):
        self._entity(scope).resources = encode_array(resources)
