"""
Identity resolution: (type, id) -> selector document.

A schema optionally names, per type, the document field that holds the
logical id. Types without an entry use the backend's native primary key.
"""

from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_ID_COL = "_id"


class TypeSchema(BaseModel):
    """Per-type storage options."""
    
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    
    id_col: str = Field(
        ...,
        alias="idCol",
        min_length=1,
        description="Document field holding the logical id for this type",
    )


Schema = Mapping[str, TypeSchema]


def parse_schema(
    raw: Optional[Mapping[str, Union[TypeSchema, Mapping[str, Any]]]],
) -> dict[str, TypeSchema]:
    """
    Build a schema from plain configuration.
    
    Accepts {"user": {"idCol": "nickname"}}, the snake_case spelling
    {"user": {"id_col": "nickname"}}, or ready-made TypeSchema values.
    
    Raises:
        pydantic.ValidationError: If an entry has no usable id column
    """
    if not raw:
        return {}
    
    schema: dict[str, TypeSchema] = {}
    for type_, entry in raw.items():
        if isinstance(entry, TypeSchema):
            schema[type_] = entry
        else:
            schema[type_] = TypeSchema.model_validate(dict(entry))
    return schema


def get_id_col(
    schema: Optional[Schema],
    type_: str,
    default: str = DEFAULT_ID_COL,
) -> str:
    """Name of the field holding the logical id for type_."""
    if schema and type_ in schema:
        return schema[type_].id_col
    return default


def resolve_selector(
    schema: Optional[Schema],
    type_: str,
    id_: Any,
    default: str = DEFAULT_ID_COL,
) -> dict[str, Any]:
    """Single-field equality filter addressing the thing (type_, id_)."""
    return {get_id_col(schema, type_, default): id_}


# Sentinel for a path that does not resolve
MISSING = object()


def get_path(document: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted field path ('object.id'), or MISSING."""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return MISSING
        current = current[part]
    return current


def stamp_id(document: Mapping[str, Any], id_col: str, id_: Any) -> dict[str, Any]:
    """
    Copy of document with id_ written at id_col.
    
    Dotted id columns are written as nested fields, the same way selectors
    and search criteria read them, so {"verb": "post"} stamped at
    "object.id" becomes {"verb": "post", "object": {"id": id_}}. Sub-documents
    along the path are copied, never mutated.
    
    Raises:
        ValueError: If a field along the path holds a non-document value
    """
    stamped = dict(document)
    parts = id_col.split(".")
    current = stamped
    for depth, part in enumerate(parts[:-1]):
        child = current.get(part, MISSING)
        if child is MISSING:
            child = {}
        elif isinstance(child, Mapping):
            child = dict(child)
        else:
            prefix = ".".join(parts[: depth + 1])
            raise ValueError(
                f"Cannot store id at '{id_col}': '{prefix}' is not a sub-document"
            )
        current[part] = child
        current = child
    current[parts[-1]] = id_
    return stamped
