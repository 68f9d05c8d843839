"""
Configuration of the entity types used by the stores, and wiring of the
store resolvers for a session.
"""

import asyncio
import weakref
from dataclasses import dataclass, field
from typing import Callable, Dict, NamedTuple, Optional, Self

from sqlalchemy.ext.asyncio import AsyncSession

from oidc_store.application.schemas import Application, ApplicationEntity
from oidc_store.authorization.schemas import Authorization, AuthorizationEntity
from oidc_store.encoding import DecodeCache
from oidc_store.exceptions import ArgumentError, StoreConfigurationError
from oidc_store.resolvers import (
    ApplicationStoreResolver,
    AuthorizationStoreResolver,
    ScopeStoreResolver,
    TokenStoreResolver,
)
from oidc_store.scope.schemas import Scope, ScopeEntity
from oidc_store.token.schemas import Token, TokenEntity

StoreFactory = Callable[[DecodeCache, AsyncSession], object]


class StoreResolvers(NamedTuple):
    applications: ApplicationStoreResolver
    authorizations: AuthorizationStoreResolver
    scopes: ScopeStoreResolver
    tokens: TokenStoreResolver


@dataclass
class StoreOptions:
    """
    Default entity types and custom store registrations.
    """

    application_model: type = Application
    authorization_model: type = Authorization
    scope_model: type = Scope
    token_model: type = Token
    stores: Dict[type, StoreFactory] = field(default_factory=dict)

    def replace_default_entities(
        self,
        application: type,
        authorization: type,
        scope: type,
        token: type,
    ) -> Self:
        """
        Use custom entity types instead of the built-in ones. All four must
        derive from the matching entity mixin and share one key type.
        """
        for param_name, model, base in (
            ("application", application, ApplicationEntity),
            ("authorization", authorization, AuthorizationEntity),
            ("scope", scope, ScopeEntity),
            ("token", token, TokenEntity),
        ):
            if model is None:
                raise ArgumentError(param_name)
            if not isinstance(model, type) or not issubclass(model, base):
                raise StoreConfigurationError(
                    f"The {param_name} entity {model!r} must inherit from {base.__name__}."
                )
        key_types = {
            model.__key_type__ for model in (application, authorization, scope, token)
        }
        if len(key_types) > 1:
            names = ", ".join(sorted(key_type.__name__ for key_type in key_types))
            raise StoreConfigurationError(
                f"The replacement entities must share one key type, got: {names}."
            )
        self.application_model = application
        self.authorization_model = authorization
        self.scope_model = scope
        self.token_model = token
        return self

    def add_store(self, model: type, factory: StoreFactory) -> Self:
        """
        Register a custom store factory for an exact entity type.
        """
        if model is None:
            raise ArgumentError("model")
        if factory is None:
            raise ArgumentError("factory")
        self.stores[model] = factory
        return self

    def resolvers(
        self, session: AsyncSession, cache: Optional[DecodeCache] = None
    ) -> StoreResolvers:
        """
        Build the four store resolvers for a session. Without an explicit
        cache, the shared cache of the running event loop is used.
        """
        cache = cache or shared_cache()
        return StoreResolvers(
            applications=ApplicationStoreResolver(session, cache, self),
            authorizations=AuthorizationStoreResolver(session, cache, self),
            scopes=ScopeStoreResolver(session, cache, self),
            tokens=TokenStoreResolver(session, cache, self),
        )


_shared_caches: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, DecodeCache]" = (
    weakref.WeakKeyDictionary()
)


def shared_cache() -> DecodeCache:
    """
    Decode cache shared by every store running on the current event loop.
    Must be called with a loop running.
    """
    loop = asyncio.get_running_loop()
    cache = _shared_caches.get(loop)
    if cache is None:
        cache = _shared_caches[loop] = DecodeCache()
    return cache
