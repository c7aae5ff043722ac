"""Brief: Consistency checks for emitted schema documents.

Inputs:
  - JSON-ready schema documents (``Schema.to_dict()`` output).

Outputs:
  - check_document(): raises SchemaDocumentError for documents rejected by the
    Draft 2020-12 meta-schema or containing unresolvable local references.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Mapping, Set
from urllib.parse import unquote

from jsonschema import Draft202012Validator, ValidationError

from .exceptions import SchemaDocumentError

logger = logging.getLogger(__name__)


def _format_errors(errors: List[ValidationError]) -> str:
    """Brief: Format meta-schema errors into a human-readable string.

    Inputs:
      - errors: List of jsonschema.ValidationError instances.

    Outputs:
      - String suitable for logs or CLI output.
    """

    lines: List[str] = ["Invalid schema document:"]
    for err in errors:
        instance_path = "/".join(str(p) for p in err.path) or "<root>"
        schema_path = "/".join(str(p) for p in err.schema_path)
        lines.append(f"- {instance_path}: {err.message} (schema: {schema_path})")
    return "\n".join(lines)


def _walk(node: Any) -> Iterator[Mapping[str, Any]]:
    """Yield every mapping nested anywhere inside ``node``."""

    if isinstance(node, Mapping):
        yield node
        for value in node.values():
            yield from _walk(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk(item)


def _resolve_pointer(document: Mapping[str, Any], pointer: str) -> bool:
    target: Any = document
    for raw in pointer.split("/")[1:]:
        token = unquote(raw).replace("~1", "/").replace("~0", "~")
        if isinstance(target, Mapping) and token in target:
            target = target[token]
        elif isinstance(target, list) and token.isdigit() and int(token) < len(target):
            target = target[int(token)]
        else:
            return False
    return True


def unresolved_references(document: Mapping[str, Any]) -> List[str]:
    """Brief: List local ``$ref`` values that do not resolve inside ``document``.

    Inputs:
      - document: Schema document mapping.

    Outputs:
      - Sorted list of dangling references; absolute URIs are not checked.
    """

    anchors: Set[str] = {n["$anchor"] for n in _walk(document) if isinstance(n.get("$anchor"), str)}
    dangling: Set[str] = set()
    for node in _walk(document):
        ref = node.get("$ref")
        if not isinstance(ref, str) or not ref.startswith("#"):
            continue
        fragment = ref[1:]
        if fragment.startswith("/") or not fragment:
            ok = _resolve_pointer(document, fragment)
        else:
            ok = fragment in anchors
        if not ok:
            dangling.add(ref)
    return sorted(dangling)


def check_document(document: Dict[str, Any]) -> None:
    """Brief: Validate a generated document against the 2020-12 meta-schema.

    Inputs:
      - document: ``Schema.to_dict()`` output.

    Outputs:
      - None when the document is valid.

    Raises:
      - SchemaDocumentError: meta-schema violations or dangling local refs.

    Example:
      >>> check_document({"type": "string"})  # does not raise
    """

    validator = Draft202012Validator(Draft202012Validator.META_SCHEMA)
    errors = sorted(validator.iter_errors(document), key=lambda e: list(map(str, e.path)))
    if errors:
        message = _format_errors(errors)
        logger.error(message)
        raise SchemaDocumentError(message)

    dangling = unresolved_references(document)
    if dangling:
        raise SchemaDocumentError(f"Unresolved references: {', '.join(dangling)}")
