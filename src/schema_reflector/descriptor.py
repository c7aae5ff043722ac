"""Brief: Read-only structural descriptions of Python types.

Inputs:
  - Python typing constructs: dataclasses, TypedDicts, annotated classes,
    builtin containers and their typing generics, NewTypes, enums, unions and
    the scalar types listed in ``_SCALARS``.

Outputs:
  - describe(): build a TypeDescriptor for a Python type.
  - TypeDescriptor / FieldDescriptor: the views consumed by the reflector.
  - Tags / EMBED: field annotations that carry constraint tags and the
    embedding flag (``Annotated[int, Tags(jsonschema="minimum=1")]``).
  - UInt, URI, RawJSON: NewTypes recognised as unsigned integers, URIs and
    arbitrary JSON respectively.

Notes:
  - Struct fields are resolved lazily so self-referential types can be
    described without recursing forever.
  - A field is exported unless its name starts with an underscore.
"""

from __future__ import annotations

import collections
import collections.abc
import dataclasses
import datetime
import decimal
import enum
import inspect
import ipaddress
import types
import typing
import uuid
from dataclasses import dataclass, field
from functools import cached_property
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Literal,
    Mapping,
    NewType,
    Optional,
    Tuple,
    Union,
    get_args,
    get_origin,
)

from .exceptions import UnsupportedTypeError


UInt = NewType("UInt", int)
URI = NewType("URI", str)
RawJSON = NewType("RawJSON", object)

# Metadata keys on dataclass fields that are not tag strings.
EMBEDDED_KEY = "embedded"


class Kind(enum.Enum):
    """Structural kind of a described type."""

    STRUCT = "struct"
    SEQUENCE = "sequence"
    TUPLE = "tuple"
    MAPPING = "mapping"
    UNION = "union"
    ENUM = "enum"
    STRING = "string"
    BYTES = "bytes"
    INTEGER = "integer"
    UNSIGNED = "unsigned"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    ANY = "any"


COMPOSITE_KINDS = frozenset({Kind.STRUCT, Kind.SEQUENCE, Kind.TUPLE, Kind.MAPPING})
INTEGER_KINDS = frozenset({Kind.INTEGER, Kind.UNSIGNED})


class Tags(Mapping[str, str]):
    """Brief: Immutable mapping of tag name to raw tag string for one field.

    Inputs:
      - **tags: e.g. ``json="age,omitempty"``, ``jsonschema="minimum=18"``.

    Outputs:
      - Tags instance usable in ``Annotated[...]`` or field metadata.

    Example:
      >>> Tags(json="age", jsonschema="minimum=18")["jsonschema"]
      'minimum=18'
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[str, str]] = None, **tags: str) -> None:
        merged: Dict[str, str] = dict(values or {})
        merged.update(tags)
        self._values = merged

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._values.items())))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._values) == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Tags({self._values!r})"


class _EmbedMarker:
    """Marker placed in ``Annotated`` metadata to flag an embedded field."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "EMBED"


EMBED = _EmbedMarker()


@dataclass(frozen=True, eq=False)
class FieldDescriptor:
    """Brief: One field of a struct-like type.

    Inputs (constructor fields):
      - name: Python attribute name.
      - annotation: Python type (or TypeDescriptor) of the field.
      - tags: Raw tag strings keyed by tag name.
      - embedded: Whether the field's type is embedded into its parent.
      - exported: Whether the field is externally visible.

    Outputs:
      - FieldDescriptor; ``type`` resolves the annotation lazily.
    """

    name: str
    annotation: Any
    tags: Tags = field(default_factory=Tags)
    embedded: bool = False
    exported: bool = True

    @cached_property
    def type(self) -> "TypeDescriptor":
        return describe(self.annotation)

    def tag(self, key: str) -> str:
        """Return the raw tag string for ``key`` or an empty string."""

        return self.tags.get(key, "")

    @classmethod
    def of(cls, name: str, annotation: Any, *, embedded: bool = False, **tags: str) -> "FieldDescriptor":
        """Convenience constructor used for synthetic (injected) fields."""

        return cls(
            name=name,
            annotation=annotation,
            tags=Tags(tags),
            embedded=embedded,
            exported=not name.startswith("_"),
        )


@dataclass(frozen=True, eq=False)
class TypeDescriptor:
    """Brief: Read-only structural view of a type.

    Inputs (constructor fields):
      - kind: Structural Kind.
      - name / module / qualname: Identity of named types; empty for
        anonymous ones (builtin generics, manual descriptors).
      - py_type: Underlying Python object, used for identity and capability
        queries when present.
      - elem: Element type for sequences.
      - key / value: Key and value types for mappings.
      - members: Member types for tuples and unions.
      - enum_values: Allowed values for enums and literals.
      - format: JSON Schema ``format`` for well-known string types.
      - unique: Sequence elements are unique (sets).
      - field_loader: Callable producing the ordered field list.

    Outputs:
      - TypeDescriptor instance.
    """

    kind: Kind
    name: str = ""
    module: str = ""
    qualname: str = ""
    py_type: Any = None
    elem: Optional["TypeDescriptor"] = None
    key: Optional["TypeDescriptor"] = None
    value: Optional["TypeDescriptor"] = None
    members: Tuple["TypeDescriptor", ...] = ()
    enum_values: Tuple[Any, ...] = ()
    format: Optional[str] = None
    unique: bool = False
    field_loader: Optional[Callable[[], List[FieldDescriptor]]] = field(default=None, repr=False)

    @cached_property
    def fields(self) -> Tuple[FieldDescriptor, ...]:
        if self.field_loader is None:
            return ()
        return tuple(self.field_loader())

    @property
    def identity(self) -> Any:
        """Hashable identity shared by every descriptor of the same type.

        Unnamed descriptors without a Python type are only identical to themselves.
        """

        if self.py_type is not None:
            return self.py_type
        if not self.name:
            return (self.kind, id(self))
        return (self.kind, self.module, self.qualname or self.name)

    @property
    def qualified_name(self) -> str:
        qual = self.qualname or self.name
        if self.module and qual:
            return f"{self.module}.{qual}"
        return qual

    @property
    def is_named(self) -> bool:
        return bool(self.name)

    @property
    def is_composite(self) -> bool:
        return self.kind in COMPOSITE_KINDS

    def capability(self, name: str) -> Optional[Callable[..., Any]]:
        """Return the callable capability ``name`` supplied by the type, if any."""

        source = self.py_type
        if source is None or not isinstance(source, type):
            return None
        attr = getattr(source, name, None)
        if callable(attr):
            return attr
        return None


_SCALARS: Dict[Any, Tuple[Kind, Optional[str]]] = {
    bool: (Kind.BOOLEAN, None),
    int: (Kind.INTEGER, None),
    float: (Kind.NUMBER, None),
    decimal.Decimal: (Kind.NUMBER, None),
    str: (Kind.STRING, None),
    bytes: (Kind.BYTES, None),
    bytearray: (Kind.BYTES, None),
    memoryview: (Kind.BYTES, None),
    datetime.datetime: (Kind.STRING, "date-time"),
    datetime.date: (Kind.STRING, "date"),
    datetime.time: (Kind.STRING, "time"),
    datetime.timedelta: (Kind.STRING, "duration"),
    uuid.UUID: (Kind.STRING, "uuid"),
    ipaddress.IPv4Address: (Kind.STRING, "ipv4"),
    ipaddress.IPv6Address: (Kind.STRING, "ipv6"),
}

_WELL_KNOWN_NEWTYPES: Dict[Any, Tuple[Kind, Optional[str]]] = {
    UInt: (Kind.UNSIGNED, None),
    URI: (Kind.STRING, "uri"),
    RawJSON: (Kind.ANY, None),
}

_SEQUENCE_ORIGINS = (
    list,
    collections.deque,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Iterable,
    collections.abc.Collection,
)
_SET_ORIGINS = (set, frozenset, collections.abc.Set, collections.abc.MutableSet)
_MAPPING_ORIGINS = (
    dict,
    collections.OrderedDict,
    collections.defaultdict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)

_SCHEMA_CAPABILITIES = ("json_schema", "json_schema_alias")

_REQUIREDNESS_WRAPPERS = tuple(
    w for w in (getattr(typing, "Required", None), getattr(typing, "NotRequired", None)) if w is not None
)


def describe(tp: Any) -> TypeDescriptor:
    """Brief: Build a TypeDescriptor for a Python type.

    Inputs:
      - tp: Python type, typing construct or an existing TypeDescriptor.

    Outputs:
      - TypeDescriptor describing ``tp``.

    Raises:
      - UnsupportedTypeError: when ``tp`` has no structural JSON mapping.

    Example:
      >>> describe(List[int]).elem.kind
      <Kind.INTEGER: 'integer'>
    """

    if isinstance(tp, TypeDescriptor):
        return tp

    origin = get_origin(tp)
    args = get_args(tp)

    if origin is typing.Annotated:
        return describe(args[0])
    if _REQUIREDNESS_WRAPPERS and origin in _REQUIREDNESS_WRAPPERS:
        return describe(args[0])
    if tp is Any or tp is object:
        return TypeDescriptor(Kind.ANY)
    if tp is None or tp is type(None):
        return TypeDescriptor(Kind.NULL)
    if origin is Union or isinstance(tp, types.UnionType):
        return _describe_union(args)
    if hasattr(tp, "__supertype__"):
        return _describe_newtype(tp)
    if origin is Literal:
        return TypeDescriptor(Kind.ENUM, enum_values=tuple(args))
    if origin is not None:
        return _describe_generic(tp, origin, args)
    if isinstance(tp, type):
        return _describe_class(tp)

    raise UnsupportedTypeError(f"unsupported type {tp!r}")


def _describe_union(args: Tuple[Any, ...]) -> TypeDescriptor:
    members = [a for a in args if a is not type(None)]
    if not members:
        return TypeDescriptor(Kind.NULL)
    if len(members) == 1:
        # Optional[T] behaves like a pointer to T.
        return describe(members[0])
    return TypeDescriptor(Kind.UNION, members=tuple(describe(m) for m in members))


def _describe_newtype(tp: Any) -> TypeDescriptor:
    known = _WELL_KNOWN_NEWTYPES.get(tp)
    if known is not None:
        kind, fmt = known
        return TypeDescriptor(kind, py_type=tp, format=fmt)
    base = describe(tp.__supertype__)
    name = getattr(tp, "__name__", "")
    return dataclasses.replace(
        base,
        name=name,
        module=getattr(tp, "__module__", "") or "",
        qualname=getattr(tp, "__qualname__", name),
        py_type=tp,
    )


def _describe_generic(tp: Any, origin: Any, args: Tuple[Any, ...]) -> TypeDescriptor:
    if origin in _SET_ORIGINS:
        return TypeDescriptor(Kind.SEQUENCE, elem=_arg(args, 0), unique=True)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return TypeDescriptor(Kind.SEQUENCE, elem=describe(args[0]))
        if args == ((),):
            return TypeDescriptor(Kind.TUPLE)
        return TypeDescriptor(Kind.TUPLE, members=tuple(describe(a) for a in args))
    if origin in _SEQUENCE_ORIGINS:
        return TypeDescriptor(Kind.SEQUENCE, elem=_arg(args, 0))
    if origin in _MAPPING_ORIGINS:
        return TypeDescriptor(Kind.MAPPING, key=_arg(args, 0, str), value=_arg(args, 1))
    raise UnsupportedTypeError(f"unsupported generic type {tp!r}")


def _arg(args: Tuple[Any, ...], index: int, default: Any = Any) -> TypeDescriptor:
    if len(args) > index:
        return describe(args[index])
    return describe(default)


def _identity_fields(tp: type) -> Dict[str, Any]:
    return {
        "name": tp.__name__,
        "module": tp.__module__,
        "qualname": tp.__qualname__,
        "py_type": tp,
    }


def _describe_class(tp: type) -> TypeDescriptor:
    if issubclass(tp, enum.Enum):
        return TypeDescriptor(
            Kind.ENUM,
            enum_values=tuple(member.value for member in tp),
            **_identity_fields(tp),
        )
    if dataclasses.is_dataclass(tp):
        return TypeDescriptor(
            Kind.STRUCT, field_loader=lambda: _dataclass_fields(tp), **_identity_fields(tp)
        )
    if typing.is_typeddict(tp):
        return TypeDescriptor(
            Kind.STRUCT, field_loader=lambda: _typeddict_fields(tp), **_identity_fields(tp)
        )

    for base in tp.__mro__:
        scalar = _SCALARS.get(base)
        if scalar is not None:
            kind, fmt = scalar
            return TypeDescriptor(kind, py_type=tp, format=fmt)
        if base in (list, tuple, set, frozenset, dict):
            return _describe_container_class(tp, base)

    if tp.__module__ != "builtins" and _own_annotations(tp):
        return TypeDescriptor(
            Kind.STRUCT, field_loader=lambda: _annotated_class_fields(tp), **_identity_fields(tp)
        )
    # Opaque classes are still reflectable when they supply or alias their schema.
    if any(callable(getattr(tp, name, None)) for name in _SCHEMA_CAPABILITIES):
        return TypeDescriptor(Kind.ANY, **_identity_fields(tp))
    raise UnsupportedTypeError(f"unsupported type {tp.__qualname__}")


def _describe_container_class(tp: type, base: type) -> TypeDescriptor:
    """Describe bare builtin containers and named subclasses of them."""

    args: Tuple[Any, ...] = ()
    for orig in getattr(tp, "__orig_bases__", ()):
        if get_origin(orig) is not None and issubclass(get_origin(orig), base):
            args = get_args(orig)
            break

    if base in (set, frozenset):
        descriptor = TypeDescriptor(Kind.SEQUENCE, elem=_arg(args, 0), unique=True)
    elif base is dict:
        descriptor = TypeDescriptor(Kind.MAPPING, key=_arg(args, 0, str), value=_arg(args, 1))
    elif base is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
        descriptor = TypeDescriptor(Kind.TUPLE, members=tuple(describe(a) for a in args))
    else:
        descriptor = TypeDescriptor(Kind.SEQUENCE, elem=_arg(args, 0))

    if tp is base:
        return dataclasses.replace(descriptor, py_type=tp)
    return dataclasses.replace(descriptor, **_identity_fields(tp))


def _own_annotations(tp: type) -> bool:
    return any(inspect.get_annotations(klass) for klass in tp.__mro__ if klass is not object)


def _type_hints(tp: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(tp, include_extras=True)
    except NameError as exc:
        raise UnsupportedTypeError(
            f"cannot resolve annotations of {tp.__qualname__}: {exc}"
        ) from exc


def _split_annotation(annotation: Any) -> Tuple[Any, Dict[str, str], bool]:
    """Peel ``Annotated`` metadata into (type, tags, embedded)."""

    tags: Dict[str, str] = {}
    embedded = False
    while True:
        origin = get_origin(annotation)
        if origin is typing.Annotated:
            args = get_args(annotation)
            for meta in args[1:]:
                if isinstance(meta, Tags):
                    tags.update(meta)
                elif meta is EMBED:
                    embedded = True
            annotation = args[0]
            continue
        if _REQUIREDNESS_WRAPPERS and origin in _REQUIREDNESS_WRAPPERS:
            annotation = get_args(annotation)[0]
            continue
        return annotation, tags, embedded


def _make_field(name: str, annotation: Any, metadata: Mapping[str, Any]) -> FieldDescriptor:
    annotation, tags, embedded = _split_annotation(annotation)
    for key, value in metadata.items():
        if key == EMBEDDED_KEY:
            embedded = embedded or bool(value)
        elif isinstance(value, Tags):
            tags.update(value)
        elif isinstance(value, str):
            tags[key] = value
    return FieldDescriptor(
        name=name,
        annotation=annotation,
        tags=Tags(tags),
        embedded=embedded,
        exported=not name.startswith("_"),
    )


def _dataclass_fields(tp: type) -> List[FieldDescriptor]:
    hints = _type_hints(tp)
    return [_make_field(f.name, hints.get(f.name, f.type), f.metadata) for f in dataclasses.fields(tp)]


def _typeddict_fields(tp: type) -> List[FieldDescriptor]:
    hints = _type_hints(tp)
    optional_keys = getattr(tp, "__optional_keys__", frozenset())
    out: List[FieldDescriptor] = []
    for name, annotation in hints.items():
        item = _make_field(name, annotation, {})
        if name in optional_keys and "json" not in item.tags:
            item = dataclasses.replace(item, tags=Tags(item.tags, json=f"{name},omitempty"))
        out.append(item)
    return out


def _annotated_class_fields(tp: type) -> List[FieldDescriptor]:
    out: List[FieldDescriptor] = []
    for name, annotation in _type_hints(tp).items():
        if name.startswith("__") or get_origin(annotation) is typing.ClassVar:
            continue
        out.append(_make_field(name, annotation, {}))
    return out
