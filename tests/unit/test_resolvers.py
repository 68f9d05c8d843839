"""Unit tests for store resolution and entity replacement."""

import asyncio
import uuid

import pytest
from unittest.mock import Mock
from sqlalchemy.orm import declarative_base

from oidc_store.application.schemas import Application, ApplicationEntity
from oidc_store.application.store import ApplicationStore
from oidc_store.authorization.schemas import Authorization, AuthorizationEntity
from oidc_store.authorization.store import AuthorizationStore
from oidc_store.builder import StoreOptions, shared_cache
from oidc_store.exceptions import ArgumentError, StoreConfigurationError
from oidc_store.resolvers import (
    ApplicationStoreResolver,
    AuthorizationStoreResolver,
    ScopeStoreResolver,
    TokenStoreResolver,
    TypeResolutionCache,
)
from oidc_store.scope.schemas import Scope, ScopeEntity
from oidc_store.scope.store import ScopeStore
from oidc_store.token.schemas import Token, TokenEntity
from oidc_store.token.store import TokenStore

CustomBase = declarative_base()


class CustomApplication(ApplicationEntity, CustomBase):
    __tablename__ = "custom_applications"


class GuidApplication(ApplicationEntity, CustomBase):
    __tablename__ = "guid_applications"
    __key_type__ = uuid.UUID


class GuidAuthorization(AuthorizationEntity, CustomBase):
    __tablename__ = "guid_authorizations"
    __key_type__ = uuid.UUID


class GuidScope(ScopeEntity, CustomBase):
    __tablename__ = "guid_scopes"
    __key_type__ = uuid.UUID


class GuidToken(TokenEntity, CustomBase):
    __tablename__ = "guid_tokens"
    __key_type__ = uuid.UUID


@pytest.fixture
def options():
    return StoreOptions()


@pytest.fixture
def resolution_cache():
    return TypeResolutionCache()


class TestStoreResolver:
    def test_requires_collaborators(self, decode_cache, options):
        with pytest.raises(ArgumentError) as exc_info:
            ApplicationStoreResolver(None, decode_cache, options)
        assert exc_info.value.param_name == "session"
        with pytest.raises(ArgumentError) as exc_info:
            ApplicationStoreResolver(Mock(), None, options)
        assert exc_info.value.param_name == "cache"

    @pytest.mark.parametrize(
        "resolver_class,model,store_class",
        [
            (ApplicationStoreResolver, Application, ApplicationStore),
            (AuthorizationStoreResolver, Authorization, AuthorizationStore),
            (ScopeStoreResolver, Scope, ScopeStore),
            (TokenStoreResolver, Token, TokenStore),
        ],
    )
    def test_resolves_default_entities(
        self, decode_cache, options, resolution_cache, resolver_class, model, store_class
    ):
        session = Mock()
        resolver = resolver_class(session, decode_cache, options, resolution_cache)
        store = resolver.get(model)
        assert isinstance(store, store_class)
        assert store.model is model
        assert store.session is session
        assert store.cache is decode_cache

    def test_resolves_custom_subclass(self, decode_cache, options, resolution_cache):
        resolver = ApplicationStoreResolver(Mock(), decode_cache, options, resolution_cache)
        store = resolver.get(CustomApplication)
        assert isinstance(store, ApplicationStore)
        assert store.model is CustomApplication
        assert store.authorization_model is Authorization
        assert store.token_model is Token

    def test_resolution_is_memoized(self, decode_cache, options, resolution_cache):
        resolver = ApplicationStoreResolver(Mock(), decode_cache, options, resolution_cache)
        resolver.get(CustomApplication)
        resolution = resolution_cache[CustomApplication]
        assert resolution.store_class is ApplicationStore
        assert resolution.key_type is str
        resolver.related_models = Mock(side_effect=AssertionError("resolved twice"))
        assert resolver.resolve(CustomApplication) is resolution

    def test_default_resolution_cache_is_process_wide(self, decode_cache, options):
        first = ScopeStoreResolver(Mock(), decode_cache, options)
        second = ScopeStoreResolver(Mock(), decode_cache, options)
        first.get(Scope)
        assert first.resolution_cache is second.resolution_cache
        assert Scope in second.resolution_cache

    @pytest.mark.parametrize("model", [object, int, Scope])
    def test_incompatible_type(self, decode_cache, options, resolution_cache, model):
        resolver = ApplicationStoreResolver(Mock(), decode_cache, options, resolution_cache)
        with pytest.raises(StoreConfigurationError):
            resolver.get(model)
        assert model not in resolution_cache

    def test_mismatched_key_types(self, decode_cache, options, resolution_cache):
        resolver = ApplicationStoreResolver(Mock(), decode_cache, options, resolution_cache)
        with pytest.raises(StoreConfigurationError):
            resolver.get(GuidApplication)

    def test_null_model(self, decode_cache, options):
        resolver = TokenStoreResolver(Mock(), decode_cache, options)
        with pytest.raises(ArgumentError):
            resolver.get(None)

    def test_registered_store_wins(self, decode_cache, options, resolution_cache):
        custom = object()
        factory = Mock(return_value=custom)
        options.add_store(CustomApplication, factory)
        session = Mock()
        resolver = ApplicationStoreResolver(session, decode_cache, options, resolution_cache)
        assert resolver.get(CustomApplication) is custom
        factory.assert_called_once_with(decode_cache, session)
        assert CustomApplication not in resolution_cache


class TestStoreOptions:
    def test_replace_default_entities(self, decode_cache, resolution_cache):
        options = StoreOptions().replace_default_entities(
            GuidApplication, GuidAuthorization, GuidScope, GuidToken
        )
        resolver = TokenStoreResolver(Mock(), decode_cache, options, resolution_cache)
        store = resolver.get(GuidToken)
        assert store.application_model is GuidApplication
        assert store.authorization_model is GuidAuthorization
        assert store.converter.key_type is uuid.UUID

    def test_replacement_requires_matching_kinds(self):
        with pytest.raises(StoreConfigurationError):
            StoreOptions().replace_default_entities(
                GuidAuthorization, GuidAuthorization, GuidScope, GuidToken
            )

    def test_replacement_requires_one_key_type(self):
        with pytest.raises(StoreConfigurationError):
            StoreOptions().replace_default_entities(
                CustomApplication, GuidAuthorization, GuidScope, GuidToken
            )

    def test_replacement_rejects_null(self):
        with pytest.raises(ArgumentError) as exc_info:
            StoreOptions().replace_default_entities(GuidApplication, None, GuidScope, GuidToken)
        assert exc_info.value.param_name == "authorization"

    def test_resolvers(self, decode_cache):
        session = Mock()
        resolvers = StoreOptions().resolvers(session, decode_cache)
        assert isinstance(resolvers.applications.get(Application), ApplicationStore)
        assert isinstance(resolvers.authorizations.get(Authorization), AuthorizationStore)
        assert isinstance(resolvers.scopes.get(Scope), ScopeStore)
        assert isinstance(resolvers.tokens.get(Token), TokenStore)

    async def test_resolvers_default_to_shared_cache(self):
        resolvers = StoreOptions().resolvers(Mock())
        assert resolvers.scopes.cache is shared_cache()
        assert StoreOptions().resolvers(Mock()).tokens.cache is resolvers.scopes.cache


def test_shared_cache_is_per_event_loop():
    async def current():
        return asyncio.get_running_loop(), shared_cache()

    first_loop, first = asyncio.run(current())
    second_loop, second = asyncio.run(current())
    assert first_loop is not second_loop
    assert first is not second
