"""Brief: Capability checks that let a type customise its generated schema.

Inputs:
  - TypeDescriptor instances whose ``py_type`` may define any of:

    - ``json_schema()`` -> Schema | dict: the complete schema for the type.
    - ``json_schema_alias()`` -> type: reflect another type in its place.
    - ``json_schema_property(name)`` -> type | None: the type to reflect for
      one named property.
    - ``json_schema_extend(schema)`` -> None: post-edit the generated node.
    - ``get_field_doc_string(field_name)`` -> str: field description override.

Outputs:
  - Helper functions returning the capability result or None when absent.

Notes:
  - Capabilities are detected structurally (``getattr`` + ``callable``); no base
    class is required. Define them as classmethods or staticmethods.
  - A capability that raises is a broken caller-authored extension and is
    reported as CapabilityError.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Optional

from .descriptor import TypeDescriptor
from .exceptions import CapabilityError
from .schema import Schema, coerce_schema

logger = logging.getLogger(__name__)

CUSTOM_SCHEMA = "json_schema"
ALIAS = "json_schema_alias"
PROPERTY_ALIAS = "json_schema_property"
EXTEND = "json_schema_extend"
FIELD_DOC = "get_field_doc_string"


def _invoke(descriptor: TypeDescriptor, capability: str, *args: Any) -> Any:
    method = descriptor.capability(capability)
    if method is None:
        return None
    try:
        return method(*args)
    except Exception as exc:
        logger.exception("%s() failed for %s", capability, descriptor.qualified_name)
        raise CapabilityError(
            f"{descriptor.qualified_name}.{capability}() raised {type(exc).__name__}: {exc}"
        ) from exc


def custom_schema(descriptor: TypeDescriptor) -> Optional[Schema]:
    """Brief: Return the type's self-supplied schema, if it provides one.

    Inputs:
      - descriptor: Type being reflected.

    Outputs:
      - A private copy of the custom Schema, or None.
    """

    result = _invoke(descriptor, CUSTOM_SCHEMA)
    if result is None:
        return None
    try:
        return copy.deepcopy(coerce_schema(result))
    except TypeError as exc:
        raise CapabilityError(
            f"{descriptor.qualified_name}.{CUSTOM_SCHEMA}() returned {type(result).__name__}"
        ) from exc


def alias_target(descriptor: TypeDescriptor) -> Any:
    """Return the type this type declares itself an alias of, or None."""

    return _invoke(descriptor, ALIAS)


def property_alias(descriptor: TypeDescriptor, property_name: str) -> Any:
    """Return the type to reflect for ``property_name`` instead of its declared type."""

    return _invoke(descriptor, PROPERTY_ALIAS, property_name)


def extend(descriptor: TypeDescriptor, schema: Schema) -> None:
    """Invoke the post-processing hook with the fully built node."""

    _invoke(descriptor, EXTEND, schema)


def field_doc_getter(descriptor: TypeDescriptor) -> Optional[Callable[[str], str]]:
    """Brief: Return a callable mapping field names to override descriptions.

    Inputs:
      - descriptor: Struct-like type being reflected.

    Outputs:
      - Callable returning "" when no override exists, or None when the type
        does not provide ``get_field_doc_string``.
    """

    if descriptor.capability(FIELD_DOC) is None:
        return None

    def _lookup(field_name: str) -> str:
        return _invoke(descriptor, FIELD_DOC, field_name) or ""

    return _lookup
