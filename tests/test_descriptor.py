"""
Brief: Tests for schema_reflector.descriptor type descriptions.

Inputs:
  - None

Outputs:
  - None
"""

import datetime
import uuid
from typing import Any, Dict, FrozenSet, List, Literal, Optional, Sequence, Tuple, Union

import pytest

import sample_types as st
from schema_reflector.descriptor import (
    EMBED,
    URI,
    FieldDescriptor,
    Kind,
    RawJSON,
    Tags,
    TypeDescriptor,
    UInt,
    describe,
)
from schema_reflector.exceptions import UnsupportedTypeError


@pytest.mark.parametrize(
    "tp, kind, fmt",
    [
        (int, Kind.INTEGER, None),
        (bool, Kind.BOOLEAN, None),
        (float, Kind.NUMBER, None),
        (str, Kind.STRING, None),
        (bytes, Kind.BYTES, None),
        (datetime.datetime, Kind.STRING, "date-time"),
        (datetime.date, Kind.STRING, "date"),
        (uuid.UUID, Kind.STRING, "uuid"),
        (UInt, Kind.UNSIGNED, None),
        (URI, Kind.STRING, "uri"),
        (RawJSON, Kind.ANY, None),
        (Any, Kind.ANY, None),
        (type(None), Kind.NULL, None),
    ],
)
def test_scalar_kinds(tp, kind, fmt):
    """
    Brief: Scalars and well-known NewTypes map to kinds and formats.

    Inputs:
      - tp, kind, fmt

    Outputs:
      - None
    """
    d = describe(tp)
    assert d.kind is kind
    assert d.format == fmt
    assert not d.is_named


def test_containers():
    """
    Brief: Generic containers expose their element, key and member types.

    Inputs:
      - None

    Outputs:
      - None
    """
    seq = describe(List[int])
    assert seq.kind is Kind.SEQUENCE and seq.elem.kind is Kind.INTEGER
    assert describe(Sequence[str]).elem.kind is Kind.STRING
    assert describe(FrozenSet[str]).unique
    assert describe(Tuple[int, ...]).kind is Kind.SEQUENCE
    tup = describe(Tuple[int, str])
    assert tup.kind is Kind.TUPLE and [m.kind for m in tup.members] == [Kind.INTEGER, Kind.STRING]
    mapping = describe(Dict[int, bool])
    assert mapping.key.kind is Kind.INTEGER and mapping.value.kind is Kind.BOOLEAN
    assert describe(dict).value.kind is Kind.ANY
    assert describe(list).elem.kind is Kind.ANY


def test_unions_and_literals():
    """
    Brief: Optional behaves like its inner type; larger unions keep members.

    Inputs:
      - None

    Outputs:
      - None
    """
    assert describe(Optional[int]).kind is Kind.INTEGER
    union = describe(Union[int, str, None])
    assert union.kind is Kind.UNION and len(union.members) == 2
    lit = describe(Literal["a", "b"])
    assert lit.kind is Kind.ENUM and lit.enum_values == ("a", "b")


def test_named_types_have_identity():
    """
    Brief: Dataclasses, enums and container subclasses are named.

    Inputs:
      - None

    Outputs:
      - None
    """
    person = describe(st.Person)
    assert person.kind is Kind.STRUCT
    assert person.name == "Person"
    assert person.qualified_name == "sample_types.Person"
    assert person.identity is st.Person
    assert person.is_composite

    color = describe(st.Color)
    assert color.kind is Kind.ENUM and color.enum_values == ("red", "green")
    assert not color.is_composite

    labels = describe(st.Labels)
    assert labels.kind is Kind.SEQUENCE and labels.name == "Labels"
    assert labels.elem.kind is Kind.STRING


def test_anonymous_identity_is_structural():
    """
    Brief: Named descriptors without a Python type share identity by kind and name; unnamed ones do not.

    Inputs:
      - None

    Outputs:
      - None
    """
    a = TypeDescriptor(Kind.STRUCT, name="Manual", module="m")
    b = TypeDescriptor(Kind.STRUCT, name="Manual", module="m")
    assert a.identity == b.identity
    assert TypeDescriptor(Kind.STRUCT).identity != TypeDescriptor(Kind.STRUCT).identity
    assert a.qualified_name == "m.Manual"
    assert a.fields == ()


def test_dataclass_fields_carry_tags_and_embedding():
    """
    Brief: Field metadata and Annotated extras become tags and embed flags.

    Inputs:
      - None

    Outputs:
      - None
    """
    fields = {f.name: f for f in describe(st.Outer).fields}
    assert fields["inner"].embedded
    assert fields["name"].tag("json") == "name,omitempty"
    assert fields["name"].tag("jsonschema") == ""

    first = {f.name: f for f in describe(st.OuterFirst).fields}
    assert first["inner"].embedded
    assert first["inner"].type.name == "Inner"

    tagged = {f.name: f for f in describe(st.Constrained).fields}["tagged"]
    assert tagged.tag("jsonschema") == "title=Tagged,readOnly=true,deprecated"


def test_private_fields_not_exported():
    """
    Brief: Underscore-prefixed fields are described but not exported.

    Inputs:
      - None

    Outputs:
      - None
    """
    fields = {f.name: f for f in describe(st.Hidden).fields}
    assert fields["visible"].exported
    assert not fields["_secret"].exported


def test_typeddict_optional_keys_get_omitempty():
    """
    Brief: total=False TypedDict keys are marked omitempty.

    Inputs:
      - None

    Outputs:
      - None
    """
    fields = describe(st.Settings).fields
    assert [f.tag("json") for f in fields] == ["host,omitempty", "port,omitempty"]


def test_plain_annotated_class():
    """
    Brief: Classes with only annotations are described as structs.

    Inputs:
      - None

    Outputs:
      - None
    """
    d = describe(st.PlainAnnotated)
    assert d.kind is Kind.STRUCT
    assert [f.name for f in d.fields] == ["label", "count"]


def test_self_reference_is_lazy():
    """
    Brief: Describing a recursive type does not recurse until fields are read.

    Inputs:
      - None

    Outputs:
      - None
    """
    d = describe(st.SelfRef)
    children = {f.name: f for f in d.fields}["children"]
    assert children.type.elem.identity is st.SelfRef


def test_opaque_class_with_schema_capability():
    """
    Brief: A plain class supplying json_schema is described as a named ANY.

    Inputs:
      - None

    Outputs:
      - None
    """
    d = describe(st.Opaque)
    assert d.kind is Kind.ANY and d.name == "Opaque"
    assert d.capability("json_schema") is not None
    assert d.capability("json_schema_extend") is None


def test_unsupported_type_raises():
    """
    Brief: Classes without any structural mapping are rejected.

    Inputs:
      - None

    Outputs:
      - None
    """

    class Nothing:
        pass

    with pytest.raises(UnsupportedTypeError):
        describe(Nothing)
    with pytest.raises(UnsupportedTypeError):
        describe(complex)


def test_tags_mapping_and_field_of():
    """
    Brief: Tags behaves as an immutable mapping; FieldDescriptor.of builds fields.

    Inputs:
      - None

    Outputs:
      - None
    """
    tags = Tags({"json": "a"}, jsonschema="minimum=1")
    assert dict(tags) == {"json": "a", "jsonschema": "minimum=1"}
    assert tags == {"json": "a", "jsonschema": "minimum=1"}
    assert hash(tags) == hash(Tags(jsonschema="minimum=1", json="a"))
    assert repr(EMBED) == "EMBED"

    extra = FieldDescriptor.of("_internal", int, json="internal")
    assert not extra.exported
    assert extra.type.kind is Kind.INTEGER
    assert extra.tag("json") == "internal"
    assert extra.tag("missing") == ""
