"""Brief: Walk Python type descriptions and emit JSON Schema documents.

Inputs:
  - Python types (dataclasses, TypedDicts, annotated classes, typing
    generics, enums, scalars) or prebuilt TypeDescriptors.
  - ReflectorConfig options.

Outputs:
  - Reflector.reflect(): a Schema document with ``$schema``, an optional
    ``$id``, the root (inline or as ``$ref``) and the ``$defs`` table.
  - reflect(): module-level convenience wrapper.

Example:
  >>> from dataclasses import dataclass, field
  >>> @dataclass
  ... class User:
  ...     age: int = field(metadata={"jsonschema": "minimum=18,maximum=120"})
  >>> reflect(User).to_dict()["$defs"]["User"]["properties"]["age"]
  {'type': 'integer', 'maximum': 120, 'minimum': 18}
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from . import capabilities
from .config.reflector_config import ReflectorConfig
from .descriptor import INTEGER_KINDS, FieldDescriptor, Kind, TypeDescriptor, describe
from .exceptions import ConfigurationError
from .keywords import apply_directives, apply_extras
from .references import ReflectContext
from .schema import DRAFT_2020_12, Schema, coerce_schema
from .schema_id import ID, to_kebab_case
from .tags import parse_directives, split_extras, split_option_list
from .utils.document_cache import ConfigScopedKey, DocumentCache
from .validation import check_document

logger = logging.getLogger(__name__)

_SCALAR_TYPES = {
    Kind.STRING: "string",
    Kind.BYTES: "string",
    Kind.INTEGER: "integer",
    Kind.UNSIGNED: "integer",
    Kind.NUMBER: "number",
    Kind.BOOLEAN: "boolean",
    Kind.NULL: "null",
}

INTEGER_KEY_PATTERN = "^[0-9]+$"

# Property provenance while flattening embedded structs.
_EXPLICIT = "explicit"
_EMBEDDED = "embedded"


def _json_type(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if value is None:
        return "null"
    return None


def _copy_into(target: Schema, source: Schema) -> None:
    for f in dataclasses.fields(Schema):
        setattr(target, f.name, getattr(source, f.name))


class _FieldName(NamedTuple):
    """Outcome of reading a field's name tag and requiredness directives."""

    name: str
    embed: bool
    required: bool
    nullable: bool


class Reflector:
    """Brief: Convert Python types into JSON Schema documents.

    Inputs:
      - config: ReflectorConfig; built from ``options`` when omitted, or
        updated with ``options`` when both are given.
      - cache: Optional DocumentCache reusing finished documents across calls.
      - **options: ReflectorConfig fields.

    Outputs:
      - Reflector instance; safe to share between threads because every call
        builds its own ReflectContext.
    """

    def __init__(
        self,
        config: Optional[ReflectorConfig] = None,
        cache: Optional[DocumentCache] = None,
        **options: Any,
    ) -> None:
        if config is None:
            config = ReflectorConfig(**options)
        elif options:
            config = ReflectorConfig(**{**dict(config), **options})
        self.config = config
        self.cache = cache

    def add_comments(self, root: Any, base_module: str = "", *, full_comment: bool = False) -> None:
        """Brief: Load source comments into this reflector's comment map.

        Inputs:
          - root: Directory or file of Python sources.
          - base_module: Dotted module name corresponding to ``root``.
          - full_comment: Keep entire class docstrings.

        Outputs:
          - None; ``self.config`` is replaced, so documents cached under the
            previous config are no longer served.
        """

        self.config = self.config.with_comments(root, base_module, full_comment=full_comment)

    def reflect(self, tp: Any) -> Schema:
        """Reflect a Python type into a complete JSON Schema document."""

        return self.reflect_descriptor(describe(tp))

    def reflect_descriptor(self, descriptor: TypeDescriptor) -> Schema:
        """Brief: Reflect a TypeDescriptor into a complete JSON Schema document.

        Inputs:
          - descriptor: Root type.

        Outputs:
          - Schema document (a private copy when served from the cache).

        Raises:
          - ConfigurationError: invalid base or lookup identifier.
          - UnsupportedTypeError: a reachable type has no JSON mapping.
          - CapabilityError: a type's schema capability raised.
          - DefinitionError: internal reference bookkeeping failed.
          - SchemaDocumentError: ``validate_output`` rejected the document.
        """

        # Anonymous descriptors are rebuilt on every describe(), so only concrete types are cached.
        if self.cache is not None and descriptor.py_type is not None:
            key = ConfigScopedKey(self.config, descriptor.identity)
            return self.cache.get_or_build(key, lambda: self._build_document(descriptor))
        return self._build_document(descriptor)

    def _build_document(self, descriptor: TypeDescriptor) -> Schema:
        config = self.config
        base_id = ID(config.base_schema_id)
        if base_id:
            try:
                base_id.validate()
            except ValueError as exc:
                raise ConfigurationError(f"invalid base_schema_id {config.base_schema_id!r}: {exc}") from exc

        ctx = ReflectContext(config)
        root_id = ctx.lookup_id(descriptor)
        inline = config.expanded_struct or config.do_not_reference
        document = self._walk(descriptor, ctx, root=True, inline=inline)
        if document is None:
            document = Schema()

        if inline and descriptor.is_named and ctx.is_defined(descriptor):
            name = ctx.definition_name(descriptor)
            if name in ctx.referenced:
                document = copy.copy(document)
            elif ctx.definitions.get(name) is document:
                del ctx.definitions[name]

        document.version = DRAFT_2020_12
        if root_id:
            document.id = str(root_id)
        elif base_id and not config.anonymous and descriptor.is_named:
            document.id = str(base_id.add(to_kebab_case(descriptor.name)))
        if ctx.definitions:
            document.definitions = dict(sorted(ctx.definitions.items()))

        ctx.verify()
        if config.validate_output:
            check_document(document.to_dict())
        logger.debug(
            "Reflected %s with %d definition(s)", descriptor.qualified_name or descriptor.kind.value, len(ctx.definitions)
        )
        return document

    def _walk(
        self,
        descriptor: TypeDescriptor,
        ctx: ReflectContext,
        *,
        root: bool = False,
        inline: bool = False,
        aliases: Tuple[Any, ...] = (),
    ) -> Optional[Schema]:
        """Brief: Produce the schema (or ``$ref``) for one type.

        Inputs:
          - descriptor: Type to reflect.
          - ctx: Per-call context.
          - root: Skip the external lookup (the root gets it as ``$id``).
          - inline: Return the definition node itself instead of a ``$ref``.
          - aliases: Identities substituted so far by consecutive
            json_schema_alias() hops; reset once a type is walked for real.

        Outputs:
          - Schema, or None when the type is ignored.
        """

        if not root:
            external = ctx.lookup_id(descriptor)
            if external:
                return Schema(ref=str(external))

        custom = capabilities.custom_schema(descriptor)
        if custom is not None:
            if descriptor.is_named:
                return self._define(descriptor, ctx, lambda node: _copy_into(node, custom), inline)
            return custom

        target = capabilities.alias_target(descriptor)
        if target is not None:
            aliases = ctx.extend_alias_chain(aliases, descriptor)
            return self._walk(describe(target), ctx, root=root, inline=inline, aliases=aliases)

        if self.config.mapper is not None:
            mapped = self.config.mapper(descriptor)
            if mapped is not None:
                mapped_schema = coerce_schema(mapped)
                if not mapped_schema.is_empty():
                    return copy.deepcopy(mapped_schema)

        if ctx.is_ignored(descriptor):
            return None

        if descriptor.is_named and descriptor.is_composite:
            return self._define(descriptor, ctx, lambda node: self._build(descriptor, node, ctx), inline)
        node = Schema()
        self._build(descriptor, node, ctx)
        return node

    def _define(
        self,
        descriptor: TypeDescriptor,
        ctx: ReflectContext,
        build: Callable[[Schema], None],
        inline: bool,
    ) -> Schema:
        if ctx.is_building(descriptor):
            return ctx.cycle_ref(descriptor)
        name = ctx.definition_name(descriptor)
        if not self.config.do_not_reference and not inline and ctx.is_defined(descriptor):
            return ctx.ref_to(name)

        node = Schema()
        ctx.begin(descriptor, node)
        try:
            build(node)
        finally:
            ctx.end(descriptor)

        if inline:
            return node
        if self.config.do_not_reference:
            # A node published to break a cycle must not be edited through the inline copy.
            return copy.deepcopy(node) if ctx.definitions.get(name) is node else node
        return ctx.ref_to(name)

    def _build(self, descriptor: TypeDescriptor, node: Schema, ctx: ReflectContext) -> None:
        kind = descriptor.kind
        if kind is Kind.STRUCT:
            self._build_struct(descriptor, node, ctx)
        elif kind is Kind.SEQUENCE:
            node.type = "array"
            node.items = self._walk_or_any(descriptor.elem, ctx)
            if descriptor.unique:
                node.unique_items = True
        elif kind is Kind.TUPLE:
            node.type = "array"
            if descriptor.members:
                node.prefix_items = [self._walk_or_any(m, ctx) for m in descriptor.members]
            node.items = False
            node.min_items = node.max_items = len(descriptor.members)
        elif kind is Kind.MAPPING:
            self._build_mapping(descriptor, node, ctx)
        elif kind is Kind.ENUM:
            node.enum = list(descriptor.enum_values)
            json_types = {_json_type(v) for v in descriptor.enum_values}
            if len(json_types) == 1 and None not in json_types:
                node.type = json_types.pop()
        elif kind is Kind.UNION:
            node.any_of = [self._walk_or_any(m, ctx) for m in descriptor.members]
        elif kind in _SCALAR_TYPES:
            node.type = _SCALAR_TYPES[kind]
            if kind is Kind.BYTES:
                node.content_encoding = "base64"
        if descriptor.format:
            node.format = descriptor.format

        if descriptor.is_named:
            description = self.config.lookup_description(descriptor.qualified_name)
            if description:
                node.description = description
        capabilities.extend(descriptor, node)

    def _walk_or_any(self, descriptor: Optional[TypeDescriptor], ctx: ReflectContext) -> Schema:
        if descriptor is None:
            return Schema()
        walked = self._walk(descriptor, ctx)
        return walked if walked is not None else Schema()

    def _build_mapping(self, descriptor: TypeDescriptor, node: Schema, ctx: ReflectContext) -> None:
        node.type = "object"
        value = descriptor.value
        if descriptor.key is not None and descriptor.key.kind in INTEGER_KINDS:
            node.pattern_properties = {INTEGER_KEY_PATTERN: self._walk_or_any(value, ctx)}
            node.additional_properties = False
            return
        if value is None or value.kind is Kind.ANY:
            return
        walked = self._walk(value, ctx)
        if walked is not None:
            node.additional_properties = walked

    def _build_struct(self, descriptor: TypeDescriptor, node: Schema, ctx: ReflectContext) -> None:
        node.type = "object"
        node.properties = {}
        if self.config.assign_anchor and descriptor.is_named:
            node.anchor = ctx.definition_name(descriptor)
        if not self.config.allow_additional_properties:
            node.additional_properties = False
        origins: Dict[str, str] = {}
        self._reflect_fields(descriptor, node, ctx, origins, (descriptor.identity,), explicit=True)

    def _reflect_fields(
        self,
        owner: TypeDescriptor,
        node: Schema,
        ctx: ReflectContext,
        origins: Dict[str, str],
        embedding: Tuple[Any, ...],
        *,
        explicit: bool,
    ) -> None:
        fields: List[FieldDescriptor] = list(owner.fields)
        if self.config.additional_fields is not None:
            fields.extend(self.config.additional_fields(owner) or ())
        doc_getter = capabilities.field_doc_getter(owner)
        for field in fields:
            naming = self._field_name(field)
            if naming is None:
                continue
            if naming.embed:
                embedded = field.type
                if embedded.identity in embedding:
                    logger.debug("Skipping recursive embedding of %s in %s", embedded.qualified_name, owner.qualified_name)
                    continue
                self._reflect_fields(
                    embedded, node, ctx, origins, embedding + (embedded.identity,), explicit=False
                )
                continue
            self._reflect_field(owner, field, naming, node, ctx, origins, explicit, doc_getter)

    def _field_name(self, field: FieldDescriptor) -> Optional[_FieldName]:
        """Brief: Resolve a field's property name, requiredness and embedding.

        Inputs:
          - field: Field being reflected.

        Outputs:
          - _FieldName, or None when the field is ignored or not exported.
        """

        name_tags = split_option_list(field.tag(self.config.field_name_tag))
        if name_tags[0] == "-":
            return None
        directives = parse_directives(field.tag("jsonschema"))
        if directives and directives[0].key == "-" and directives[0].bare:
            return None

        options = name_tags[1:]
        required = False
        if not self.config.required_from_jsonschema_tags:
            required = "omitempty" not in options
        nullable = False
        for directive in directives:
            if directive.key == "required":
                required = directive.flag
            elif directive.key == "nullable":
                nullable = directive.flag

        if (field.embedded and not name_tags[0]) or "inline" in options:
            if field.type.kind is Kind.STRUCT:
                return _FieldName("", True, False, False)
        if not field.exported:
            return None

        name = name_tags[0] or field.name
        if self.config.key_namer is not None:
            name = self.config.key_namer(name)
        return _FieldName(name, False, required, nullable)

    def _reflect_field(
        self,
        owner: TypeDescriptor,
        field: FieldDescriptor,
        naming: _FieldName,
        node: Schema,
        ctx: ReflectContext,
        origins: Dict[str, str],
        explicit: bool,
        doc_getter: Optional[Callable[[str], str]],
    ) -> None:
        name = naming.name
        previous = origins.get(name)
        if previous == _EXPLICIT and not explicit:
            return

        field_type = field.type
        alias = capabilities.property_alias(owner, name)
        if alias is not None:
            field_type = describe(alias)
        prop = self._walk(field_type, ctx)
        if prop is None:
            return

        path = f"{owner.qualified_name}.{field.name}"
        inherited = prop.description
        prop.description = field.tag("jsonschema_description") or None
        apply_directives(
            prop,
            parse_directives(field.tag("jsonschema")),
            parent=node,
            property_name=name,
            descriptor=field_type,
            reference_root=self.config.reference_root,
            path=path,
        )
        apply_extras(prop, split_extras(field.tag("jsonschema_extras")), path)
        if not prop.description:
            override = doc_getter(field.name) if doc_getter is not None else ""
            prop.description = override or self.config.lookup_description(path) or inherited or None
        if naming.nullable:
            prop = Schema(one_of=[prop, Schema(type="null")])

        node.properties[name] = prop
        origins[name] = _EXPLICIT if explicit else _EMBEDDED
        required = node.required if node.required is not None else []
        if naming.required:
            if name not in required:
                required.append(name)
        elif previous is not None and name in required:
            required.remove(name)
        node.required = required


def reflect(tp: Any, config: Optional[ReflectorConfig] = None, **options: Any) -> Schema:
    """Brief: Reflect ``tp`` with a throwaway Reflector.

    Inputs:
      - tp: Python type or TypeDescriptor.
      - config: Optional ReflectorConfig.
      - **options: ReflectorConfig fields (override ``config``).

    Outputs:
      - Schema document.
    """

    reflector = Reflector(config, **options)
    if isinstance(tp, TypeDescriptor):
        return reflector.reflect_descriptor(tp)
    return reflector.reflect(tp)
