"""Brief: JSON Schema node model used as the output tree of reflection.

Inputs:
  - None at import time.

Outputs:
  - Schema: mutable dataclass describing one JSON Schema fragment.
  - UNSET: sentinel for keywords whose legitimate values include None/False/0.
  - DRAFT_2020_12: the ``$schema`` identifier attached to reflected documents.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

DRAFT_2020_12 = "https://json-schema.org/draft/2020-12/schema"


class _Unset:
    """Sentinel type for keywords that were never assigned."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Unset":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_Unset":
        return self


UNSET: Any = _Unset()

# Value shapes used by the (de)serialization table below.
_SCALAR = "scalar"
_SCHEMA_LIST = "schema_list"
_SCHEMA_MAP = "schema_map"
_BOOL_OR_SCHEMA = "bool_or_schema"
_LIST = "list"

# (attribute, JSON keyword, shape). The order is the emitted key order.
_KEYWORDS: Tuple[Tuple[str, str, str], ...] = (
    ("version", "$schema", _SCALAR),
    ("id", "$id", _SCALAR),
    ("anchor", "$anchor", _SCALAR),
    ("ref", "$ref", _SCALAR),
    ("definitions", "$defs", _SCHEMA_MAP),
    ("comment", "$comment", _SCALAR),
    ("all_of", "allOf", _SCHEMA_LIST),
    ("any_of", "anyOf", _SCHEMA_LIST),
    ("one_of", "oneOf", _SCHEMA_LIST),
    ("not_", "not", _BOOL_OR_SCHEMA),
    ("prefix_items", "prefixItems", _SCHEMA_LIST),
    ("items", "items", _BOOL_OR_SCHEMA),
    ("properties", "properties", _SCHEMA_MAP),
    ("pattern_properties", "patternProperties", _SCHEMA_MAP),
    ("additional_properties", "additionalProperties", _BOOL_OR_SCHEMA),
    ("type", "type", _SCALAR),
    ("enum", "enum", _LIST),
    ("const", "const", _SCALAR),
    ("multiple_of", "multipleOf", _SCALAR),
    ("maximum", "maximum", _SCALAR),
    ("exclusive_maximum", "exclusiveMaximum", _SCALAR),
    ("minimum", "minimum", _SCALAR),
    ("exclusive_minimum", "exclusiveMinimum", _SCALAR),
    ("max_length", "maxLength", _SCALAR),
    ("min_length", "minLength", _SCALAR),
    ("pattern", "pattern", _SCALAR),
    ("max_items", "maxItems", _SCALAR),
    ("min_items", "minItems", _SCALAR),
    ("unique_items", "uniqueItems", _SCALAR),
    ("max_properties", "maxProperties", _SCALAR),
    ("min_properties", "minProperties", _SCALAR),
    ("required", "required", _LIST),
    ("content_encoding", "contentEncoding", _SCALAR),
    ("content_media_type", "contentMediaType", _SCALAR),
    ("format", "format", _SCALAR),
    ("title", "title", _SCALAR),
    ("description", "description", _SCALAR),
    ("default", "default", _SCALAR),
    ("deprecated", "deprecated", _SCALAR),
    ("read_only", "readOnly", _SCALAR),
    ("write_only", "writeOnly", _SCALAR),
    ("examples", "examples", _LIST),
)

_BY_KEYWORD = {keyword: (attr, shape) for attr, keyword, shape in _KEYWORDS}

# Lists that are dropped from output when empty.
_OMIT_EMPTY = {"enum", "required", "examples"}

SchemaOrBool = Union["Schema", bool]


@dataclass(eq=True)
class Schema:
    """Brief: One fragment of a JSON Schema document.

    Inputs (constructor fields):
      - Every JSON Schema keyword supported by the reflector, using snake_case
        attribute names (``$ref`` -> ``ref``, ``not`` -> ``not_``).
      - extras: free-form keywords merged into the node when serialized.

    Outputs:
      - Schema instance; ``to_dict()`` produces an order-preserving mapping.

    Example:
      >>> Schema(type="integer", minimum=18).to_dict()
      {'type': 'integer', 'minimum': 18}
    """

    version: Optional[str] = None
    id: Optional[str] = None
    anchor: Optional[str] = None
    ref: Optional[str] = None
    definitions: Optional[Dict[str, "Schema"]] = None
    comment: Optional[str] = None
    all_of: Optional[List["Schema"]] = None
    any_of: Optional[List["Schema"]] = None
    one_of: Optional[List["Schema"]] = None
    not_: Optional[SchemaOrBool] = None
    prefix_items: Optional[List["Schema"]] = None
    items: Optional[SchemaOrBool] = None
    properties: Optional[Dict[str, "Schema"]] = None
    pattern_properties: Optional[Dict[str, "Schema"]] = None
    additional_properties: Optional[SchemaOrBool] = None
    type: Optional[str] = None
    enum: Optional[List[Any]] = None
    const: Any = UNSET
    multiple_of: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    exclusive_maximum: Optional[Union[int, float]] = None
    minimum: Optional[Union[int, float]] = None
    exclusive_minimum: Optional[Union[int, float]] = None
    max_length: Optional[int] = None
    min_length: Optional[int] = None
    pattern: Optional[str] = None
    max_items: Optional[int] = None
    min_items: Optional[int] = None
    unique_items: Optional[bool] = None
    max_properties: Optional[int] = None
    min_properties: Optional[int] = None
    required: Optional[List[str]] = None
    content_encoding: Optional[str] = None
    content_media_type: Optional[str] = None
    format: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    default: Any = UNSET
    deprecated: Optional[bool] = None
    read_only: Optional[bool] = None
    write_only: Optional[bool] = None
    examples: Optional[List[Any]] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        """Return True when no keyword is set (the schema accepts anything)."""

        return not self.to_dict()

    def set_extra(self, key: str, value: Any) -> None:
        """Brief: Attach a free-form keyword, accumulating duplicate keys.

        Inputs:
          - key: Keyword name emitted verbatim.
          - value: Already-coerced value.

        Outputs:
          - None; a repeated key turns the stored value into a list.
        """

        if key not in self.extras:
            self.extras[key] = value
            return
        existing = self.extras[key]
        if isinstance(existing, list):
            existing.append(value)
        else:
            self.extras[key] = [existing, value]

    def to_dict(self) -> Dict[str, Any]:
        """Brief: Serialize this node (recursively) to a JSON-ready mapping.

        Inputs:
          - None.

        Outputs:
          - Dict whose key order follows the JSON Schema keyword table, with
            extras merged last.
        """

        out: Dict[str, Any] = {}
        for attr, keyword, shape in _KEYWORDS:
            value = getattr(self, attr)
            if value is None or value is UNSET:
                continue
            if keyword in _OMIT_EMPTY and not value:
                continue
            out[keyword] = _dump(value, shape)
        for key, value in self.extras.items():
            out[key] = _dump_any(value)
        return out

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Render the node as JSON text."""

        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Schema":
        """Brief: Build a Schema from a JSON mapping.

        Inputs:
          - data: Mapping using JSON Schema keywords.

        Outputs:
          - Schema; keywords outside the supported table are kept in extras.
        """

        node = cls()
        for keyword, value in data.items():
            known = _BY_KEYWORD.get(keyword)
            if known is None:
                node.extras[keyword] = value
                continue
            attr, shape = known
            setattr(node, attr, _load(value, shape))
        return node


def coerce_schema(value: Union[Schema, Mapping[str, Any]]) -> Schema:
    """Accept either a Schema or a plain JSON mapping and return a Schema."""

    if isinstance(value, Schema):
        return value
    if isinstance(value, Mapping):
        return Schema.from_dict(value)
    raise TypeError(f"expected Schema or mapping, got {type(value).__name__}")


def _dump(value: Any, shape: str) -> Any:
    if shape == _SCHEMA_LIST:
        return [item.to_dict() for item in value]
    if shape == _SCHEMA_MAP:
        return {key: item.to_dict() for key, item in value.items()}
    if shape == _BOOL_OR_SCHEMA:
        return value if isinstance(value, bool) else value.to_dict()
    if shape == _LIST:
        return [_dump_any(item) for item in value]
    return _dump_any(value)


def _dump_any(value: Any) -> Any:
    if isinstance(value, Schema):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_dump_any(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump_any(item) for key, item in value.items()}
    return value


def _load(value: Any, shape: str) -> Any:
    if shape == _SCHEMA_LIST:
        return [Schema.from_dict(item) for item in value]
    if shape == _SCHEMA_MAP:
        return {key: Schema.from_dict(item) for key, item in value.items()}
    if shape == _BOOL_OR_SCHEMA:
        return value if isinstance(value, bool) else Schema.from_dict(value)
    if shape == _LIST:
        return list(value)
    return value


def schema_keywords() -> List[str]:
    """Return the JSON keywords understood by Schema, in emission order."""

    return [keyword for _, keyword, _ in _KEYWORDS]
