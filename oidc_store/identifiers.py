"""
Conversion between string identifiers and typed primary keys.
"""

import re
import uuid
from functools import lru_cache
from typing import Any, Callable, Optional

from oidc_store.exceptions import IdentifierConversionError

NIL_UUID = uuid.UUID(int=0)

# Canonical decimal form only, so rendering a parsed key gives back the input.
_INTEGER = re.compile(r"-?[1-9][0-9]*|0", re.ASCII)

# Values treated as "no key" when rendering, per key type.
_ZERO_VALUES = {
    str: "",
    int: 0,
    uuid.UUID: NIL_UUID,
}


def _parse_int(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid integer literal: {text!r}")
    return int(text)


_PARSERS = {int: _parse_int}


class IdentifierConverter:
    """
    Converts identifiers exchanged as strings with the identity framework to
    and from the key type used by a mapped entity.
    """

    def __init__(self, key_type: type):
        self.key_type = key_type
        self._parse: Callable[[str], Any] = _PARSERS.get(key_type, key_type)

    def from_string(self, identifier: Optional[str]) -> Any:
        """Parse an identifier, returning None for null/empty input."""
        if not identifier:
            return None
        try:
            return self._parse(identifier)
        except (TypeError, ValueError) as exc:
            raise IdentifierConversionError(
                f"'{identifier}' is not a valid {self.key_type.__name__} identifier."
            ) from exc

    def to_string(self, key: Any) -> Optional[str]:
        """Render a key, returning None when it is unset."""
        if key is None:
            return None
        if self.key_type in _ZERO_VALUES and key == _ZERO_VALUES[self.key_type]:
            return None
        return str(key)

    def __repr__(self):
        return f"IdentifierConverter({self.key_type.__name__})"


@lru_cache()
def converter_for(key_type: type) -> IdentifierConverter:
    """
    Shared converter per key type.
    """
    return IdentifierConverter(key_type)
