"""
Brief: Tests for the Schema node model and its serialization.

Inputs:
  - None

Outputs:
  - None
"""

import copy
import json

import pytest

from schema_reflector.schema import DRAFT_2020_12, UNSET, Schema, coerce_schema, schema_keywords


def test_empty_schema_serializes_to_empty_dict():
    """
    Brief: Unset keywords are omitted, so an empty node accepts anything.

    Inputs:
      - None

    Outputs:
      - None
    """
    node = Schema()
    assert node.to_dict() == {}
    assert node.is_empty()
    assert node.to_json(indent=None) == "{}"


def test_key_order_follows_keyword_table():
    """
    Brief: Emitted keys follow the keyword table, with extras last.

    Inputs:
      - None

    Outputs:
      - None
    """
    node = Schema(description="d", type="object", ref="#/$defs/X", version=DRAFT_2020_12)
    node.extras["x-custom"] = 1
    assert list(node.to_dict()) == ["$schema", "$ref", "type", "description", "x-custom"]


def test_falsy_values_are_kept():
    """
    Brief: False, 0 and None defaults are real values, not omissions.

    Inputs:
      - None

    Outputs:
      - None
    """
    node = Schema(default=None, const=0, items=False, additional_properties=False, minimum=0)
    assert node.to_dict() == {
        "items": False,
        "additionalProperties": False,
        "const": 0,
        "minimum": 0,
        "default": None,
    }


def test_empty_lists_are_omitted_but_empty_properties_kept():
    """
    Brief: Empty required/enum/examples drop out while properties: {} stays.

    Inputs:
      - None

    Outputs:
      - None
    """
    node = Schema(type="object", properties={}, required=[], enum=[], examples=[])
    assert node.to_dict() == {"properties": {}, "type": "object"}


def test_nested_nodes_serialize():
    """
    Brief: Child schemas in lists and maps are serialized recursively.

    Inputs:
      - None

    Outputs:
      - None
    """
    node = Schema(
        type="object",
        properties={"a": Schema(type="array", items=Schema(type="string"))},
        one_of=[Schema(type="null")],
        definitions={"D": Schema(type="integer")},
        default=[Schema(type="string")],
    )
    assert node.to_dict() == {
        "$defs": {"D": {"type": "integer"}},
        "oneOf": [{"type": "null"}],
        "properties": {"a": {"items": {"type": "string"}, "type": "array"}},
        "type": "object",
        "default": [{"type": "string"}],
    }


def test_from_dict_keeps_unknown_keywords_as_extras():
    """
    Brief: from_dict maps known keywords and stores the rest in extras.

    Inputs:
      - None

    Outputs:
      - None
    """
    data = {
        "type": "object",
        "properties": {"n": {"type": "integer", "minimum": 1}},
        "additionalProperties": False,
        "not": {"type": "null"},
        "x-vendor": {"a": 1},
    }
    node = Schema.from_dict(data)
    assert node.properties["n"].minimum == 1
    assert node.additional_properties is False
    assert node.not_ == Schema(type="null")
    assert node.extras == {"x-vendor": {"a": 1}}
    assert json.loads(node.to_json()) == data


def test_set_extra_accumulates():
    """
    Brief: set_extra turns repeated keys into a list.

    Inputs:
      - None

    Outputs:
      - None
    """
    node = Schema()
    node.set_extra("k", "a")
    node.set_extra("k", "b")
    node.set_extra("k", "c")
    assert node.extras == {"k": ["a", "b", "c"]}


def test_unset_sentinel_survives_copy():
    """
    Brief: UNSET is a falsy singleton preserved by (deep)copy.

    Inputs:
      - None

    Outputs:
      - None
    """
    assert not UNSET
    assert copy.deepcopy(Schema()).default is UNSET
    assert copy.copy(UNSET) is UNSET


def test_coerce_schema():
    """
    Brief: coerce_schema accepts Schema or mappings and rejects other values.

    Inputs:
      - None

    Outputs:
      - None
    """
    node = Schema(type="string")
    assert coerce_schema(node) is node
    assert coerce_schema({"type": "string"}) == node
    with pytest.raises(TypeError):
        coerce_schema(42)


def test_schema_keywords_lists_dollar_keywords():
    """
    Brief: The keyword list starts with the identifier keywords.

    Inputs:
      - None

    Outputs:
      - None
    """
    keywords = schema_keywords()
    assert keywords[:4] == ["$schema", "$id", "$anchor", "$ref"]
    assert "$defs" in keywords
