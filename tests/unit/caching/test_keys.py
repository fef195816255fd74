"""Tests for cache key validation."""

from __future__ import annotations

import pytest

from stashling.core.caching import InvalidKeyError, NamedKey, StructuredKey, validate_key
from stashling.core.caching.keys import classify_key, is_cache_key, is_safe_name


class TestIsSafeName:
    """Tests for is_safe_name."""

    @pytest.mark.parametrize("name", ["result_1", "x", "_private", "CamelCase"])
    def test_identifiers_are_safe(self, name: str):
        assert is_safe_name(name)

    @pytest.mark.parametrize(
        "name", ["", "1result", "has space", "a/b", "a.b", "class", "None", "café"]
    )
    def test_non_identifiers_are_unsafe(self, name: str):
        assert not is_safe_name(name)

    def test_non_strings_are_unsafe(self):
        assert not is_safe_name(["a"])
        assert not is_safe_name(3)


class TestIsCacheKey:
    """Tests for is_cache_key (the names artifacts may be stored under)."""

    def test_safe_names_and_derived_keys(self):
        assert is_cache_key("result")
        assert is_cache_key(validate_key({"a": 1}, allow_derived=True))

    @pytest.mark.parametrize("key", ["", "..", "a-b", "with space", "A" * 64, "a" * 63])
    def test_everything_else_rejected(self, key: str):
        assert not is_cache_key(key)


class TestClassifyKey:
    def test_named(self):
        assert classify_key("abc") == NamedKey(name="abc")

    def test_structured(self):
        assert isinstance(classify_key(("a", 1)), StructuredKey)


class TestValidateKey:
    """Tests for validate_key."""

    def test_valid_identifier_returned_unchanged(self):
        assert validate_key("result_1", allow_derived=False) == "result_1"
        assert validate_key("result_1", allow_derived=True) == "result_1"

    def test_structured_key_rejected_without_derivation(self):
        with pytest.raises(InvalidKeyError):
            validate_key({"a": [1, 2]}, allow_derived=False)

    def test_invalid_string_rejected_without_derivation(self):
        with pytest.raises(InvalidKeyError, match="not a valid variable name"):
            validate_key("not valid", allow_derived=False)

    def test_none_always_rejected(self):
        with pytest.raises(InvalidKeyError):
            validate_key(None, allow_derived=True)

    def test_derived_key_is_hex_digest(self):
        key = validate_key(["letters", (1, 2)], allow_derived=True)
        assert len(key) == 64
        int(key, 16)

    def test_equal_structures_share_derived_key(self):
        k1 = validate_key({"a": [1, 2], "b": "x"}, allow_derived=True)
        k2 = validate_key({"b": "x", "a": [1, 2]}, allow_derived=True)
        assert k1 == k2

    def test_different_structures_get_different_keys(self):
        k1 = validate_key({"a": [1, 2]}, allow_derived=True)
        k2 = validate_key({"a": [2, 1]}, allow_derived=True)
        assert k1 != k2

    def test_invalid_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_key(42, allow_derived=False)
