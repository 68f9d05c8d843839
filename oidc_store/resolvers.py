"""
Resolve the store to use for a (possibly custom) entity type.

Custom entity types are subclasses of one of the entity mixins. Resolving a
store walks the requested type's MRO to find the mixin it derives from, pairs
it with the configured related entity types, and memoizes the result per
requested type in a process-wide cache.
"""

from typing import Any, Dict, NamedTuple, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from oidc_store.application.schemas import ApplicationEntity
from oidc_store.application.store import ApplicationStore
from oidc_store.authorization.schemas import AuthorizationEntity
from oidc_store.authorization.store import AuthorizationStore
from oidc_store.encoding import DecodeCache
from oidc_store.exceptions import ArgumentError, StoreConfigurationError
from oidc_store.scope.schemas import ScopeEntity
from oidc_store.scope.store import ScopeStore
from oidc_store.token.schemas import TokenEntity
from oidc_store.token.store import TokenStore


class StoreResolution(NamedTuple):
    store_class: type
    key_type: type
    models: Dict[str, type]


class TypeResolutionCache(dict):
    """
    Resolved store types keyed by the requested entity type.
    """


class StoreResolver:
    """
    Base resolver; subclasses name the entity mixin, the store class and the
    related entity types the store needs.
    """

    kind: str = "entity"
    entity_base: type = object
    store_class: type = None
    resolution_cache: TypeResolutionCache = None

    def __init__(
        self,
        session: AsyncSession,
        cache: DecodeCache,
        options,
        resolution_cache: Optional[TypeResolutionCache] = None,
    ):
        if session is None:
            raise ArgumentError("session")
        if cache is None:
            raise ArgumentError("cache")
        if options is None:
            raise ArgumentError("options")
        self.session = session
        self.cache = cache
        self.options = options
        if resolution_cache is not None:
            self.resolution_cache = resolution_cache

    def related_models(self, model: type) -> Dict[str, type]:
        raise NotImplementedError

    def resolve(self, model: type) -> StoreResolution:
        """
        Find (and memoize) the store type compatible with an entity type.
        """
        resolution = self.resolution_cache.get(model)
        if resolution is not None:
            return resolution
        if not any(base is self.entity_base for base in getattr(model, "__mro__", ())):
            raise StoreConfigurationError(
                f"The specified {self.kind} type {model!r} is not compatible with the "
                f"SQLAlchemy stores. When enabling the stores, make sure you use the built-in "
                f"{self.entity_base.__name__} entity or a custom entity that inherits from it."
            )
        key_type = model.__key_type__
        models = self.related_models(model)
        for related in models.values():
            if related.__key_type__ is not key_type:
                raise StoreConfigurationError(
                    f"The {self.kind} type {model.__name__} uses {key_type.__name__} keys but "
                    f"the related entity {related.__name__} uses {related.__key_type__.__name__} "
                    "keys. Replace the default entities so every entity shares one key type."
                )
        resolution = StoreResolution(self.store_class, key_type, models)
        logger.debug(
            f"Resolved {self.kind} store for {model.__name__}: "
            f"{self.store_class.__name__}[{key_type.__name__}]"
        )
        return self.resolution_cache.setdefault(model, resolution)

    def get(self, model: type) -> Any:
        """
        Return a store for the entity type, preferring a store registered for
        that exact type.
        """
        if model is None:
            raise ArgumentError("model")
        factory = self.options.stores.get(model)
        if factory is not None:
            return factory(self.cache, self.session)
        resolution = self.resolve(model)
        return resolution.store_class(self.cache, self.session, **resolution.models)


class ApplicationStoreResolver(StoreResolver):
    kind = "application"
    entity_base = ApplicationEntity
    store_class = ApplicationStore
    resolution_cache = TypeResolutionCache()

    def related_models(self, model):
        return {
            "application_model": model,
            "authorization_model": self.options.authorization_model,
            "token_model": self.options.token_model,
        }


class AuthorizationStoreResolver(StoreResolver):
    kind = "authorization"
    entity_base = AuthorizationEntity
    store_class = AuthorizationStore
    resolution_cache = TypeResolutionCache()

    def related_models(self, model):
        return {
            "application_model": self.options.application_model,
            "authorization_model": model,
            "token_model": self.options.token_model,
        }


class ScopeStoreResolver(StoreResolver):
    kind = "scope"
    entity_base = ScopeEntity
    store_class = ScopeStore
    resolution_cache = TypeResolutionCache()

    def related_models(self, model):
        return {"scope_model": model}


class TokenStoreResolver(StoreResolver):
    kind = "token"
    entity_base = TokenEntity
    store_class = TokenStore
    resolution_cache = TypeResolutionCache()

    def related_models(self, model):
        return {
            "application_model": self.options.application_model,
            "authorization_model": self.options.authorization_model,
            "token_model": model,
        }
