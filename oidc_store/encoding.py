"""
JSON codec for the text columns holding entity collections, plus the
read-through cache used when decoding them.

Collections are persisted as compact JSON text. Empty collections are never
stored as "[]" or "{}": the column is cleared to NULL instead.
"""

import json
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from async_lru import alru_cache
from loguru import logger

from oidc_store.config import settings
from oidc_store.constants import CACHE_KEY_SEPARATOR

KIND_ARRAY = "array"
KIND_LOCALE_MAP = "locale_map"
KIND_STRING_MAP = "string_map"
KIND_PROPERTY_MAP = "property_map"
KIND_DOCUMENT = "document"


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def decode_array(text: Optional[str]) -> Tuple[str, ...]:
    """
    Decode a JSON array of strings, skipping null and empty elements.
    """
    if not text:
        return ()
    return tuple(item for item in json.loads(text) if item)


def _decode_object(text: Optional[str]) -> Dict[str, Any]:
    if not text:
        return {}
    return json.loads(text)


def decode_locale_map(text: Optional[str]) -> Dict[str, str]:
    """
    Decode a JSON object keyed by locale (BCP 47 tag), dropping entries whose
    value is null or empty.
    """
    return {key: value for key, value in _decode_object(text).items() if value}


def decode_string_map(text: Optional[str]) -> Dict[str, str]:
    """
    Decode a JSON object of string settings, dropping null or empty values.
    """
    return {key: value for key, value in _decode_object(text).items() if value}


def decode_property_map(text: Optional[str]) -> Dict[str, Any]:
    """
    Decode a JSON object of opaque property values.

    Unlike the locale maps, explicit nulls and empty strings are retained.
    """
    return dict(_decode_object(text))


def decode_document(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode a standalone JSON document (e.g. a JSON web key set).
    """
    if not text:
        return None
    return json.loads(text)


def encode_array(values: Optional[Iterable[str]]) -> Optional[str]:
    """
    Encode a sequence of strings, returning None for an empty sequence.
    """
    values = list(values or ())
    if not values:
        return None
    return _dumps(values)


def encode_map(values: Optional[Mapping[str, Any]]) -> Optional[str]:
    """
    Encode a string-keyed map, returning None for an empty map.
    """
    if not values:
        return None
    return _dumps(dict(values))


def encode_document(document: Optional[Mapping[str, Any]]) -> Optional[str]:
    """
    Encode a standalone JSON document, returning None when it is empty.
    """
    if not document:
        return None
    return _dumps(dict(document))


class _FrozenMap(tuple):
    """Immutable snapshot of a decoded JSON object, as key/value pairs."""


class _FrozenList(tuple):
    """Immutable snapshot of a decoded JSON array."""


def _freeze(value: Any) -> Any:
    """
    Snapshot decoded JSON into immutable structures so a cached result can be
    shared safely across callers.
    """
    if isinstance(value, dict):
        return _FrozenMap((key, _freeze(item)) for key, item in value.items())
    if isinstance(value, list):
        return _FrozenList(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, _FrozenMap):
        return {key: _thaw(item) for key, item in value}
    if isinstance(value, _FrozenList):
        return [_thaw(item) for item in value]
    return value


_DECODERS = {
    KIND_ARRAY: decode_array,
    KIND_LOCALE_MAP: decode_locale_map,
    KIND_STRING_MAP: decode_string_map,
    KIND_PROPERTY_MAP: decode_property_map,
    KIND_DOCUMENT: decode_document,
}


class DecodeCache:
    """
    Read-through cache of decoded JSON columns, keyed by a per-field tag and
    the raw column text. Entries simply expire, there is no invalidation:
    decoding is a pure function of the text.
    """

    def __init__(self, maxsize: Optional[int] = None, ttl: Optional[int] = None):
        self.maxsize = settings.decode_cache_size if maxsize is None else maxsize
        self.ttl = settings.decode_cache_ttl if ttl is None else ttl
        self._lookup = alru_cache(maxsize=self.maxsize, ttl=self.ttl)(self._decode)
        logger.debug(f"Created decode cache: maxsize={self.maxsize} ttl={self.ttl}s")

    @staticmethod
    async def _decode(key: str, kind: str) -> Any:
        _, _, text = key.partition(CACHE_KEY_SEPARATOR)
        return _freeze(_DECODERS[kind](text))

    async def _get(self, tag: str, text: Optional[str], kind: str) -> Any:
        return await self._lookup(f"{tag}{CACHE_KEY_SEPARATOR}{text}", kind)

    async def array(self, tag: str, text: Optional[str]) -> Tuple[str, ...]:
        if not text:
            return ()
        return await self._get(tag, text, KIND_ARRAY)

    async def locale_map(self, tag: str, text: Optional[str]) -> Dict[str, str]:
        if not text:
            return {}
        return _thaw(await self._get(tag, text, KIND_LOCALE_MAP))

    async def string_map(self, tag: str, text: Optional[str]) -> Dict[str, str]:
        if not text:
            return {}
        return _thaw(await self._get(tag, text, KIND_STRING_MAP))

    async def property_map(self, tag: str, text: Optional[str]) -> Dict[str, Any]:
        if not text:
            return {}
        return _thaw(await self._get(tag, text, KIND_PROPERTY_MAP))

    async def document(self, tag: str, text: Optional[str]) -> Optional[Dict[str, Any]]:
        if not text:
            return None
        return _thaw(await self._get(tag, text, KIND_DOCUMENT))

    def info(self):
        return self._lookup.cache_info()

    def clear(self):
        self._lookup.cache_clear()
