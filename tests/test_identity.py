"""
Tests for identity resolution and schema parsing.
"""

import pytest
from pydantic import ValidationError

from databank.storage.identity import (
    DEFAULT_ID_COL,
    MISSING,
    TypeSchema,
    get_id_col,
    get_path,
    parse_schema,
    resolve_selector,
    stamp_id,
)


def test_parse_schema_accepts_camel_and_snake_case():
    schema = parse_schema({
        "user": {"idCol": "nickname"},
        "activity": {"id_col": "uuid"},
        "tag": TypeSchema(id_col="name"),
    })
    
    assert schema["user"].id_col == "nickname"
    assert schema["activity"].id_col == "uuid"
    assert schema["tag"].id_col == "name"


def test_parse_schema_empty():
    assert parse_schema(None) == {}
    assert parse_schema({}) == {}


def test_parse_schema_rejects_blank_id_col():
    with pytest.raises(ValidationError):
        parse_schema({"user": {"idCol": ""}})
    
    with pytest.raises(ValidationError):
        parse_schema({"user": {}})


def test_get_id_col_falls_back_to_default():
    schema = parse_schema({"user": {"idCol": "nickname"}})
    
    assert get_id_col(schema, "user") == "nickname"
    assert get_id_col(schema, "activity") == DEFAULT_ID_COL
    assert get_id_col(None, "user") == DEFAULT_ID_COL
    assert get_id_col({}, "user", default="key") == "key"


def test_resolve_selector_uses_custom_column():
    schema = parse_schema({"user": {"idCol": "nickname"}})
    
    assert resolve_selector(schema, "user", "alice") == {"nickname": "alice"}
    assert resolve_selector(schema, "activity", "a1") == {"_id": "a1"}
    assert resolve_selector(None, "user", "alice") == {"_id": "alice"}


def test_get_path():
    document = {"object": {"id": "a1"}, "verb": "post"}
    
    assert get_path(document, "object.id") == "a1"
    assert get_path(document, "verb") == "post"
    assert get_path(document, "object.type") is MISSING
    assert get_path(document, "verb.id") is MISSING


def test_stamp_id_top_level():
    value = {"name": "Alice"}
    
    assert stamp_id(value, "nickname", "alice") == {"name": "Alice", "nickname": "alice"}
    assert value == {"name": "Alice"}


def test_stamp_id_nested_merges_without_mutating():
    value = {"verb": "post", "object": {"type": "note"}}
    
    stamped = stamp_id(value, "object.id", "a1")
    
    assert stamped == {"verb": "post", "object": {"type": "note", "id": "a1"}}
    assert value == {"verb": "post", "object": {"type": "note"}}
    assert stamp_id({}, "a.b.c", 1) == {"a": {"b": {"c": 1}}}


def test_stamp_id_rejects_scalar_on_path():
    with pytest.raises(ValueError, match="'object' is not a sub-document"):
        stamp_id({"object": "note"}, "object.id", "a1")
