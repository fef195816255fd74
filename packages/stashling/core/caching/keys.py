"""Cache key validation.

A key is either a named key (a plain identifier, also usable as a file
name and as a variable name in the caller's scope) or a structured key
(any other value), which is only accepted when it may be replaced by a
digest of its content.
"""

from __future__ import annotations

import keyword
import re
from typing import Any

from pydantic import BaseModel, ConfigDict

from stashling.core.caching.errors import InvalidKeyError
from stashling.core.caching.fingerprint import digest_value

_DIGEST_KEY = re.compile(r"[0-9a-f]{64}")


class NamedKey(BaseModel):
    """Key that is a valid identifier and safe path segment."""

    model_config = ConfigDict(frozen=True)

    name: str

    def cache_key(self) -> str:
        return self.name


class StructuredKey(BaseModel):
    """Arbitrary key, stored under a digest of its content."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any

    def cache_key(self) -> str:
        return digest_value(self.value)


def is_safe_name(value: Any) -> bool:
    """
    True for ASCII identifiers that are not Python keywords.

    Example:
        >>> is_safe_name("result_1")
        True
        >>> is_safe_name("1result")
        False
    """
    return (
        isinstance(value, str)
        and value.isascii()
        and value.isidentifier()
        and not keyword.iskeyword(value)
    )


def is_cache_key(value: Any) -> bool:
    """True for keys validate_key can produce: safe names and content digests."""
    return is_safe_name(value) or (
        isinstance(value, str) and _DIGEST_KEY.fullmatch(value) is not None
    )


def classify_key(proposed: Any) -> NamedKey | StructuredKey:
    """Split a proposed key into the named or structured variant."""
    if is_safe_name(proposed):
        return NamedKey(name=proposed)
    return StructuredKey(value=proposed)


def validate_key(proposed: Any, allow_derived: bool) -> str:
    """
    Turn a proposed key into a cache key.

    Args:
        proposed: Key supplied by the caller
        allow_derived: Whether a non-identifier key may be replaced by a digest

    Returns:
        The key itself when it is a safe name, else its content digest

    Raises:
        InvalidKeyError: If the key is None, or is not a safe name and
            derivation is not allowed
    """
    if proposed is None:
        raise InvalidKeyError("Stash key cannot be None")

    key = classify_key(proposed)
    if isinstance(key, NamedKey):
        return key.cache_key()
    if allow_derived:
        return key.cache_key()
    raise InvalidKeyError(
        f"Stash key {proposed!r} is not a valid variable name; "
        "use an identifier or pass functional=True"
    )
