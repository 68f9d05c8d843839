"""Unit tests for the JSON column codec and decode cache."""

import json

import pytest

from oidc_store.encoding import (
    DecodeCache,
    decode_array,
    decode_document,
    decode_locale_map,
    decode_property_map,
    decode_string_map,
    encode_array,
    encode_document,
    encode_map,
)

TAG = "851d6f08-2ee0-4452-bbe5-ab864611ecaa"


class TestDecode:
    @pytest.mark.parametrize("text", [None, ""])
    def test_empty_text(self, text):
        assert decode_array(text) == ()
        assert decode_locale_map(text) == {}
        assert decode_string_map(text) == {}
        assert decode_property_map(text) == {}
        assert decode_document(text) is None

    def test_array_skips_null_and_empty(self):
        assert decode_array('["", null, "DoThis", null, "DoThat"]') == ("DoThis", "DoThat")

    def test_locale_map_skips_null_and_empty(self):
        result = decode_locale_map('{"af":"name1","ar":"name2","az":"","be":"name3","ca":null}')
        assert result == {"af": "name1", "ar": "name2", "be": "name3"}

    def test_settings_skip_null_and_empty(self):
        assert decode_string_map('{"a":"1","b":"","c":null}') == {"a": "1"}

    def test_properties_keep_everything(self):
        result = decode_property_map('{"a":"prop1","c":"","e":null}')
        assert result == {"a": "prop1", "c": "", "e": None}

    def test_malformed_json_propagates(self):
        with pytest.raises(json.JSONDecodeError):
            decode_array('["unterminated"')


class TestEncode:
    @pytest.mark.parametrize("value", [None, [], ()])
    def test_empty_array_clears_column(self, value):
        assert encode_array(value) is None

    @pytest.mark.parametrize("value", [None, {}])
    def test_empty_map_clears_column(self, value):
        assert encode_map(value) is None
        assert encode_document(value) is None

    def test_compact_unescaped_output(self):
        assert encode_array(["https://example.com/cb", "café"]) == '["https://example.com/cb","café"]'
        assert encode_map({"fr": "Déconnexion"}) == '{"fr":"Déconnexion"}'

    def test_array_round_trip(self):
        values = ["openid", "profile", "offline_access"]
        assert list(decode_array(encode_array(values))) == values

    def test_properties_round_trip(self):
        properties = {"nested": {"list": [1, 2, {"deep": True}]}, "empty": ""}
        assert decode_property_map(encode_map(properties)) == properties


class TestDecodeCache:
    async def test_array_is_cached_by_tag_and_text(self):
        cache = DecodeCache(maxsize=16, ttl=60)
        first = await cache.array(TAG, '["a","b"]')
        second = await cache.array(TAG, '["a","b"]')
        assert first == second == ("a", "b")
        info = cache.info()
        assert info.hits == 1
        assert info.misses == 1

    async def test_tags_are_separate_namespaces(self):
        cache = DecodeCache(maxsize=16, ttl=60)
        await cache.array(TAG, '["a"]')
        await cache.array("another-tag", '["a"]')
        assert cache.info().misses == 2

    async def test_empty_text_skips_cache(self):
        cache = DecodeCache(maxsize=16, ttl=60)
        assert await cache.array(TAG, None) == ()
        assert await cache.locale_map(TAG, "") == {}
        assert await cache.property_map(TAG, None) == {}
        assert await cache.document(TAG, None) is None
        assert cache.info().misses == 0

    async def test_returned_maps_are_independent_copies(self):
        cache = DecodeCache(maxsize=16, ttl=60)
        text = '{"scopes":["a","b"],"flag":null}'
        first = await cache.property_map(TAG, text)
        first["scopes"].append("c")
        first["extra"] = 1
        assert await cache.property_map(TAG, text) == {"scopes": ["a", "b"], "flag": None}

    async def test_document_round_trip(self):
        cache = DecodeCache(maxsize=16, ttl=60)
        key_set = {"keys": [{"kty": "RSA", "kid": "k1", "e": "AQAB"}]}
        assert await cache.document(TAG, encode_document(key_set)) == key_set

    async def test_malformed_json_is_not_cached(self):
        cache = DecodeCache(maxsize=16, ttl=60)
        with pytest.raises(json.JSONDecodeError):
            await cache.locale_map(TAG, "{not json")
        with pytest.raises(json.JSONDecodeError):
            await cache.locale_map(TAG, "{not json")
        assert cache.info().currsize == 0
