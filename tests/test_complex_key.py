"""
Complex key tests.

Tests encoding of view keys, including the empty object/array markers.
"""

import json
import pytest

from couchdb_client.complex_key import (
    ComplexKey,
    Literal,
    EmptyObject,
    EmptyArray,
    EMPTY_OBJECT,
    EMPTY_ARRAY,
)
from couchdb_client.errors import KeyEncodingError, CouchError


class TestComplexKeyEncoding:
    """Test ComplexKey JSON output"""

    def test_trailing_empty_object(self):
        """Test ["foo", {}] as used for prefix range end keys"""
        key = ComplexKey.of("foo", ComplexKey.empty_object())
        assert key.to_json_string() == '["foo",{}]'

    def test_leading_empty_array(self):
        """Test [[], "foo"]"""
        key = ComplexKey.of(ComplexKey.empty_array(), "foo")
        assert key.to_json_string() == '[[],"foo"]'

    def test_no_components(self):
        """Test that an empty key encodes to []"""
        key = ComplexKey.of()
        assert key.to_json_string() == "[]"
        assert key.to_json() == []
        assert len(key) == 0

    def test_primitives(self):
        """Test strings, numbers, booleans and null"""
        key = ComplexKey.of("user_123", 42, 1.5, True, None)
        assert key.to_json() == ["user_123", 42, 1.5, True, None]
        assert key.to_json_string() == '["user_123",42,1.5,true,null]'

    def test_nested_structures(self):
        """Test nested lists and dicts, with markers inside them"""
        key = ComplexKey.of(["a", 1], {"type": "band", "tags": ("x", EMPTY_OBJECT)})
        assert key.to_json() == [["a", 1], {"type": "band", "tags": ["x", {}]}]

    def test_str_matches_json_string(self):
        """Test str(key) renders the query-string form"""
        key = ComplexKey.of("2024-01-01", EMPTY_OBJECT)
        assert str(key) == key.to_json_string()

    def test_parsed_length_matches_components(self):
        """Test that the encoded array has one element per component"""
        key = ComplexKey.of("a", EMPTY_ARRAY, {"b": [1, 2]}, EMPTY_OBJECT, 7)
        parsed = json.loads(key.to_json_string())
        assert isinstance(parsed, list)
        assert len(parsed) == len(key) == 5

    def test_preserves_order(self):
        """Test component order is kept"""
        key = ComplexKey.of(3, 1, 2)
        assert key.to_json() == [3, 1, 2]


class TestComplexKeyComponents:
    """Test the tagged component variants"""

    def test_raw_values_are_wrapped_in_literal(self):
        """Test that of() wraps plain values and keeps markers"""
        key = ComplexKey.of("foo", EMPTY_OBJECT, EMPTY_ARRAY)
        components = list(key)
        assert components == [Literal("foo"), EmptyObject(), EmptyArray()]

    def test_markers_compare_by_value(self):
        """Test markers are equal by value, not identity"""
        assert ComplexKey.empty_object() == EmptyObject()
        assert ComplexKey.empty_array() == EmptyArray()
        assert EmptyObject() != EmptyArray()

    def test_explicit_literal(self):
        """Test passing Literal directly"""
        key = ComplexKey.of(Literal("foo"), Literal([]))
        assert key.to_json_string() == '["foo",[]]'

    def test_empty_list_literal_encodes_like_marker(self):
        """Test that a plain empty list and the marker both give []"""
        assert ComplexKey.of([]).to_json() == ComplexKey.of(EMPTY_ARRAY).to_json()

    def test_key_is_immutable(self):
        """Test that components cannot be reassigned"""
        key = ComplexKey.of("foo")
        with pytest.raises(AttributeError):
            key.components = ()

    def test_keys_compare_equal(self):
        """Test value equality of keys"""
        assert ComplexKey.of("a", EMPTY_OBJECT) == ComplexKey.of("a", ComplexKey.empty_object())
        assert ComplexKey.of("a") != ComplexKey.of("b")


class TestComplexKeyErrors:
    """Test unsupported component handling"""

    def test_unsupported_type_rejected(self):
        """Test that arbitrary objects are rejected when the key is built"""
        with pytest.raises(KeyEncodingError):
            ComplexKey.of("foo", object())

    def test_unsupported_nested_type_rejected(self):
        """Test that unsupported values nested in lists are rejected"""
        with pytest.raises(KeyEncodingError) as exc_info:
            ComplexKey.of(["a", {1, 2}])
        assert "[0][1]" in str(exc_info.value)

    def test_non_string_dict_key_rejected(self):
        """Test that dict keys must be strings"""
        with pytest.raises(KeyEncodingError):
            ComplexKey.of({1: "a"})

    def test_nan_rejected(self):
        """Test that non-finite floats are rejected"""
        with pytest.raises(KeyEncodingError):
            ComplexKey.of(float("nan"))

    def test_error_on_encode_for_direct_construction(self):
        """Test that a key built without of() still fails at encode time"""
        key = ComplexKey((Literal(object()),))
        with pytest.raises(KeyEncodingError):
            key.to_json_string()

    def test_error_hierarchy(self):
        """Test KeyEncodingError is both a CouchError and a TypeError"""
        assert issubclass(KeyEncodingError, CouchError)
        assert issubclass(KeyEncodingError, TypeError)
