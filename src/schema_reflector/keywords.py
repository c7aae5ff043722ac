"""Brief: Apply parsed constraint directives to schema nodes.

Inputs:
  - A Schema node built by the walker for one field.
  - The field's parsed directives (see schema_reflector.tags).
  - The parent struct node, used by ``oneof_required``/``anyof_required``.

Outputs:
  - The node mutated in place; nothing is returned.

Notes:
  - Directive errors never abort reflection. A malformed value (for example
    ``minimum=abc``) is dropped and logged at WARNING with the field path so
    authoring typos stay visible.
  - Kind-specific directives are routed by the node's ``type`` after the
    generic directives ran, so ``type=`` and ``oneof_type=`` change which
    kind-specific directives apply.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .config.reflector_config import DEFAULT_REFERENCE_ROOT
from .descriptor import Kind, TypeDescriptor
from .schema import Schema
from .tags import Directive

logger = logging.getLogger(__name__)

_FLAG_ATTRS = {"readOnly": "read_only", "writeOnly": "write_only", "deprecated": "deprecated"}
_GROUP_ATTRS = {
    "oneof_required": "one_of",
    "anyof_required": "any_of",
    "oneof_type": "one_of",
    "anyof_type": "any_of",
    "oneof_ref": "one_of",
    "anyof_ref": "any_of",
}

Number = Union[int, float]


def _drop(path: str, directive: Directive, reason: str) -> None:
    logger.warning("Ignoring directive %s=%r on %s: %s", directive.key, directive.value, path or "<root>", reason)


def parse_int(value: str) -> Optional[int]:
    """Parse a base-10 integer, returning None when ``value`` is not one."""

    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_number(value: str) -> Optional[Number]:
    """Brief: Parse a JSON number, preferring an int when the text is integral.

    Inputs:
      - value: Directive value such as ``"18"`` or ``"0.5"``.

    Outputs:
      - int, float, or None for non-numeric text (NaN and infinities included).
    """

    as_int = parse_int(value)
    if as_int is not None:
        return as_int
    try:
        as_float = float(value.strip())
    except ValueError:
        return None
    if math.isnan(as_float) or math.isinf(as_float):
        return None
    return as_float


def parse_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def _parse_count(value: str) -> Optional[int]:
    parsed = parse_int(value)
    if parsed is None or parsed < 0:
        return None
    return parsed


def apply_directives(
    schema: Schema,
    directives: Iterable[Directive],
    *,
    parent: Optional[Schema] = None,
    property_name: str = "",
    descriptor: Optional[TypeDescriptor] = None,
    reference_root: str = DEFAULT_REFERENCE_ROOT,
    path: str = "",
) -> None:
    """Brief: Apply a field's constraint directives to its schema node.

    Inputs:
      - schema: Property node to mutate.
      - directives: Parsed ``jsonschema`` tag, in declaration order.
      - parent: Enclosing struct node; receives synthesized oneOf/anyOf groups.
      - property_name: Rendered property name of the field.
      - descriptor: Field type; integer kinds parse numbers as ints and
        unsigned kinds clamp negative bounds to zero.
      - reference_root: Prefix for bare names in ``oneof_ref``/``anyof_ref``.
      - path: Qualified field path used in log messages.

    Outputs:
      - None.

    Example:
      >>> from schema_reflector.tags import parse_directives
      >>> node = Schema(type="integer")
      >>> apply_directives(node, parse_directives("minimum=18,maximum=120"))
      >>> node.to_dict()
      {'type': 'integer', 'maximum': 120, 'minimum': 18}
    """

    remaining = _apply_generic(schema, list(directives), parent, property_name, reference_root, path)
    _apply_kind(schema, remaining, descriptor, path)


def _apply_kind(
    schema: Schema,
    directives: List[Directive],
    descriptor: Optional[TypeDescriptor],
    path: str,
) -> None:
    if not directives:
        return
    if schema.type == "string":
        _apply_string(schema, directives, path)
    elif schema.type in ("number", "integer"):
        unsigned = descriptor is not None and descriptor.kind is Kind.UNSIGNED
        _apply_numeric(schema, directives, unsigned, path)
    elif schema.type == "boolean":
        _apply_boolean(schema, directives, path)
    elif schema.type == "array":
        elem = descriptor.elem if descriptor is not None else None
        _apply_array(schema, directives, elem, path)
    elif schema.type == "object":
        _apply_object(schema, directives, path)


def _apply_generic(
    schema: Schema,
    directives: List[Directive],
    parent: Optional[Schema],
    property_name: str,
    reference_root: str,
    path: str,
) -> List[Directive]:
    remaining: List[Directive] = []
    for directive in directives:
        key, value = directive.key, directive.value
        if key in _FLAG_ATTRS:
            setattr(schema, _FLAG_ATTRS[key], True if directive.flag else None)
            continue
        if directive.bare:
            remaining.append(directive)
            continue
        if key == "title":
            schema.title = value
        elif key == "description":
            schema.description = value
        elif key == "type":
            schema.type = value
        elif key == "anchor":
            schema.anchor = value
        elif key in ("oneof_required", "anyof_required"):
            _add_required_group(parent, _GROUP_ATTRS[key], value, property_name, directive, path)
        elif key in ("oneof_type", "anyof_type"):
            schema.type = None
            alternatives = _alternatives(schema, _GROUP_ATTRS[key])
            alternatives.extend(Schema(type=name) for name in value.split(";") if name)
        elif key in ("oneof_ref", "anyof_ref"):
            target = schema.items if isinstance(schema.items, Schema) else schema
            target.ref = None
            alternatives = _alternatives(target, _GROUP_ATTRS[key])
            alternatives.extend(
                Schema(ref=_resolve_ref(name, reference_root)) for name in value.split(";") if name
            )
        else:
            remaining.append(directive)
    return remaining


def _alternatives(schema: Schema, attr: str) -> List[Schema]:
    current = getattr(schema, attr)
    if current is None:
        current = []
        setattr(schema, attr, current)
    return current


def _resolve_ref(name: str, reference_root: str) -> str:
    if "/" in name:
        return name
    return reference_root + name


def _add_required_group(
    parent: Optional[Schema],
    attr: str,
    group: str,
    property_name: str,
    directive: Directive,
    path: str,
) -> None:
    if parent is None or not property_name:
        _drop(path, directive, "grouping requires an enclosing struct")
        return
    alternatives = _alternatives(parent, attr)
    for alternative in alternatives:
        if alternative.title == group:
            break
    else:
        alternative = Schema(title=group, required=[])
        alternatives.append(alternative)
    if alternative.required is None:
        alternative.required = []
    if property_name not in alternative.required:
        alternative.required.append(property_name)


def _apply_string(schema: Schema, directives: List[Directive], path: str) -> None:
    for directive in directives:
        key, value = directive.key, directive.value
        if directive.bare:
            continue
        if key in ("minLength", "maxLength"):
            count = _parse_count(value)
            if count is None:
                _drop(path, directive, "expected a non-negative integer")
                continue
            setattr(schema, "min_length" if key == "minLength" else "max_length", count)
        elif key == "pattern":
            schema.pattern = value
        elif key == "format":
            schema.format = value
        elif key == "default":
            schema.default = value
        elif key == "example":
            schema.examples = (schema.examples or []) + [value]
        elif key == "enum":
            schema.enum = (schema.enum or []) + [value]
        elif key == "const":
            schema.const = value


def _apply_numeric(schema: Schema, directives: List[Directive], unsigned: bool, path: str) -> None:
    parse: Callable[[str], Optional[Number]] = parse_int if schema.type == "integer" else parse_number
    exclusive_flags: Dict[str, bool] = {}

    def bound(directive: Directive) -> Optional[Number]:
        parsed = parse(directive.value)
        if parsed is None:
            _drop(path, directive, f"expected {'an integer' if schema.type == 'integer' else 'a number'}")
            return None
        if unsigned and parsed < 0:
            return 0
        return parsed

    for directive in directives:
        key, value = directive.key, directive.value
        if directive.bare:
            continue
        if key in ("minimum", "maximum"):
            parsed = bound(directive)
            if parsed is not None:
                setattr(schema, key, parsed)
        elif key in ("exclusiveMinimum", "exclusiveMaximum"):
            flag = parse_bool(value)
            if flag is not None:
                exclusive_flags[key] = flag
                continue
            parsed = bound(directive)
            if parsed is not None:
                setattr(schema, "exclusive_minimum" if key == "exclusiveMinimum" else "exclusive_maximum", parsed)
        elif key == "multipleOf":
            parsed = parse(value)
            if parsed is None or parsed <= 0:
                _drop(path, directive, "expected a positive number")
                continue
            schema.multiple_of = parsed
        elif key in ("default", "example", "enum"):
            parsed = parse(value)
            if parsed is None:
                _drop(path, directive, "expected a number")
                continue
            if key == "default":
                schema.default = parsed
            elif key == "example":
                schema.examples = (schema.examples or []) + [parsed]
            else:
                schema.enum = (schema.enum or []) + [parsed]

    # Legacy boolean form: move the plain bound into the exclusive slot.
    if exclusive_flags.get("exclusiveMinimum") and schema.exclusive_minimum is None and schema.minimum is not None:
        schema.exclusive_minimum, schema.minimum = schema.minimum, None
    if exclusive_flags.get("exclusiveMaximum") and schema.exclusive_maximum is None and schema.maximum is not None:
        schema.exclusive_maximum, schema.maximum = schema.maximum, None


def _apply_boolean(schema: Schema, directives: List[Directive], path: str) -> None:
    for directive in directives:
        if directive.bare or directive.key not in ("default", "enum"):
            continue
        parsed = parse_bool(directive.value)
        if parsed is None:
            _drop(path, directive, "expected true or false")
            continue
        if directive.key == "default":
            schema.default = parsed
        else:
            schema.enum = (schema.enum or []) + [parsed]


def _coerce_item(value: str, item_type: Optional[str]) -> Any:
    if item_type == "integer":
        return parse_int(value)
    if item_type == "number":
        return parse_number(value)
    if item_type == "boolean":
        return parse_bool(value)
    return value


def _apply_array(
    schema: Schema,
    directives: List[Directive],
    elem: Optional[TypeDescriptor],
    path: str,
) -> None:
    items = schema.items if isinstance(schema.items, Schema) else None
    defaults: List[Any] = []
    forwarded: List[Directive] = []
    for directive in directives:
        key, value = directive.key, directive.value
        if key == "uniqueItems":
            schema.unique_items = True if directive.flag else None
        elif directive.bare:
            continue
        elif key in ("minItems", "maxItems"):
            count = _parse_count(value)
            if count is None:
                _drop(path, directive, "expected a non-negative integer")
                continue
            setattr(schema, "min_items" if key == "minItems" else "max_items", count)
        elif key == "default":
            coerced = _coerce_item(value, items.type if items is not None else None)
            if coerced is None:
                _drop(path, directive, "does not match the item type")
                continue
            defaults.append(coerced)
        else:
            forwarded.append(directive)

    if defaults:
        schema.default = defaults
    if not forwarded or items is None:
        return
    # Referenced or nested-array items have no unambiguous target for item directives.
    if items.ref or items.type == "array":
        logger.debug("Not forwarding %d item directive(s) on %s", len(forwarded), path)
        return
    kind_specific: List[Directive] = []
    for directive in forwarded:
        if directive.key == "format":
            items.format = directive.value
        elif directive.key == "pattern":
            items.pattern = directive.value
        else:
            kind_specific.append(directive)
    _apply_kind(items, kind_specific, elem, path)


def _apply_object(schema: Schema, directives: List[Directive], path: str) -> None:
    for directive in directives:
        key, value = directive.key, directive.value
        if directive.bare:
            continue
        if key in ("minProperties", "maxProperties"):
            count = _parse_count(value)
            if count is None:
                _drop(path, directive, "expected a non-negative integer")
                continue
            setattr(schema, "min_properties" if key == "minProperties" else "max_properties", count)


def apply_extras(schema: Schema, directives: Iterable[Directive], path: str = "") -> None:
    """Brief: Attach free-form ``jsonschema_extras`` keywords to a node.

    Inputs:
      - schema: Node to mutate.
      - directives: Parsed extras (see tags.split_extras).
      - path: Qualified field path used in log messages.

    Outputs:
      - None. A new ``minimum`` becomes an int and ``true``/``false`` become
        booleans. A repeated key keeps the first value's shape: strings
        accumulate into a list while ints and booleans are overwritten.
    """

    for directive in directives:
        key, value = directive.key, directive.value
        if key in schema.extras:
            existing = schema.extras[key]
            if isinstance(existing, bool):
                schema.extras[key] = value in ("true", "t")
            elif isinstance(existing, int):
                parsed = parse_int(value)
                if parsed is None:
                    _drop(path, directive, "expected an integer")
                    continue
                schema.extras[key] = parsed
            else:
                schema.set_extra(key, value)
            continue
        if key == "minimum":
            parsed = parse_int(value)
            if parsed is None:
                _drop(path, directive, "expected an integer")
                continue
            schema.extras[key] = parsed
        elif value == "true":
            schema.extras[key] = True
        elif value == "false":
            schema.extras[key] = False
        else:
            schema.extras[key] = value
