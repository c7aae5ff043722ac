"""Brief: Typed, read-only configuration for a schema reflector.

Inputs:
  - Keyword options described on ReflectorConfig.

Outputs:
  - ReflectorConfig: frozen pydantic model shared by every reflect call.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_ROOT = "#/$defs/"


class ReflectorConfig(BaseModel):
    """Brief: Options controlling how types are reflected into JSON Schema.

    Inputs:
      - base_schema_id: Absolute http(s) URI; when set, the root ``$id`` is this
        base plus the kebab-cased root type name.
      - reference_root: Prefix used for ``$ref`` values pointing into the
        definitions table (default ``#/$defs/``).
      - anonymous: Never emit a root ``$id``.
      - do_not_reference: Inline every type; ``$ref`` is only used to break
        cycles.
      - assign_anchor: Give struct schemas an ``$anchor`` derived from their
        definition name.
      - allow_additional_properties: Do not emit ``additionalProperties: false``
        on struct schemas.
      - required_from_jsonschema_tags: Only the ``required`` directive marks a
        field as required (the name tag's ``omitempty`` is ignored).
      - expanded_struct: Inline the root type instead of emitting a root
        ``$ref`` into the definitions table.
      - ignored_types: Types omitted from the output.
      - key_namer: Transform applied to every rendered property name.
      - namer: Returns the definition name for a TypeDescriptor ("" falls back
        to the type's own name).
      - mapper: Returns a Schema (or dict) for a TypeDescriptor before default
        traversal; None continues normally.
      - lookup: Returns an external ``$id`` for a TypeDescriptor; such types
        are referenced by that absolute URI and not reflected.
      - lookup_comment: Returns a description for a qualified type or field
        path ("" means none).
      - comment_map: Descriptions keyed by qualified type or field path.
      - additional_fields: Returns extra FieldDescriptors appended after the
        real fields of a struct.
      - field_name_tag: Tag holding property renames (``json`` by default,
        ``yaml`` for example).
      - validate_output: Check the emitted document against the 2020-12
        meta-schema before returning it.

    Outputs:
      - ReflectorConfig instance; immutable after construction.

    Example:
      >>> cfg = ReflectorConfig(expanded_struct=True)
      >>> cfg.reference_root
      '#/$defs/'
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    base_schema_id: str = Field(default="")
    reference_root: str = Field(default=DEFAULT_REFERENCE_ROOT)
    anonymous: bool = Field(default=False)
    do_not_reference: bool = Field(default=False)
    assign_anchor: bool = Field(default=False)
    allow_additional_properties: bool = Field(default=False)
    required_from_jsonschema_tags: bool = Field(default=False)
    expanded_struct: bool = Field(default=False)
    ignored_types: Tuple[Any, ...] = Field(default=())
    key_namer: Optional[Callable[[str], str]] = Field(default=None)
    namer: Optional[Callable[[Any], str]] = Field(default=None)
    mapper: Optional[Callable[[Any], Any]] = Field(default=None)
    lookup: Optional[Callable[[Any], str]] = Field(default=None)
    lookup_comment: Optional[Callable[[str], str]] = Field(default=None)
    comment_map: Dict[str, str] = Field(default_factory=dict)
    additional_fields: Optional[Callable[[Any], Sequence[Any]]] = Field(default=None)
    field_name_tag: str = Field(default="json")
    validate_output: bool = Field(default=False)

    @field_validator("reference_root", mode="before")
    def _normalize_reference_root(cls, v: object) -> str:
        """Brief: Ensure the reference root is non-empty and ends with a slash.

        Inputs:
          - v: Raw reference root.

        Outputs:
          - str: Reference root ending with ``/``.
        """

        text = str(v or "").strip()
        if not text:
            raise ValueError("ReflectorConfig.reference_root must be a non-empty string")
        if not text.endswith("/"):
            text += "/"
        return text

    @field_validator("field_name_tag", mode="before")
    def _normalize_field_name_tag(cls, v: object) -> str:
        text = str(v or "").strip()
        if not text:
            raise ValueError("ReflectorConfig.field_name_tag must be a non-empty string")
        return text

    @field_validator("base_schema_id", mode="before")
    def _strip_base_schema_id(cls, v: object) -> str:
        return str(v or "").strip()

    def lookup_description(self, path: str) -> str:
        """Brief: Resolve a description for a qualified type or field path.

        Inputs:
          - path: ``module.Type`` or ``module.Type.field``.

        Outputs:
          - str: The custom lookup's answer when non-empty, else the comment
            map entry, else "".
        """

        if self.lookup_comment is not None:
            comment = self.lookup_comment(path)
            if comment:
                return comment
        return self.comment_map.get(path, "")

    def with_comments(
        self,
        root: Union[str, Path],
        base_module: str = "",
        *,
        full_comment: bool = False,
    ) -> "ReflectorConfig":
        """Brief: Return a copy whose comment map includes comments from sources.

        Inputs:
          - root: Directory (or single file) of Python sources to scan.
          - base_module: Dotted module prefix for ``root`` (e.g. ``myapp.models``).
          - full_comment: Keep whole class docstrings instead of the first
            sentence.

        Outputs:
          - New ReflectorConfig; this instance is left untouched.
        """

        from schema_reflector.comments import extract_comments

        merged = dict(self.comment_map)
        extract_comments(root, base_module, merged, full_comment=full_comment)
        logger.debug("Loaded %d comment entries from %s", len(merged) - len(self.comment_map), root)
        return self.model_copy(update={"comment_map": merged})
