"""Brief: Command line entry point that reflects a Python type to JSON Schema.

Inputs:
  - Command-line arguments:
    - target: ``package.module:Type`` (or ``package.module.Type``).
    - --config: Optional YAML file with reflector options and a ``logging``
      block; command-line flags override it.
    - Reflector flags (--base-id, --expanded, --no-references, ...).
    - --comments DIR [--comments-module NAME]: load source comments.
    - --format json|yaml, -o/--output, -v/--verbose.

Outputs:
  - Schema document written to stdout or the output path.
  - Exit code: 0 on success, 1 on reflection errors, 2 on bad arguments.

Example:
  ``schema-reflector myapp.models:User --base-id https://example.com/schemas -o user.json``
"""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml
from pydantic import ValidationError

from .config.logging_config import init_logging, level_from_verbosity
from .config.reflector_config import ReflectorConfig
from .exceptions import ReflectionError
from .reflector import Reflector

logger = logging.getLogger(__name__)

# YAML config keys that map directly onto ReflectorConfig fields.
_CONFIG_FIELDS = (
    "base_schema_id",
    "reference_root",
    "anonymous",
    "do_not_reference",
    "assign_anchor",
    "allow_additional_properties",
    "required_from_jsonschema_tags",
    "expanded_struct",
    "field_name_tag",
    "validate_output",
)


def import_target(identifier: str) -> Any:
    """Brief: Import an object given ``module:Name`` or ``module.Name``.

    Inputs:
      - identifier: Import path; nested names are allowed after the colon
        (``pkg.mod:Outer.Inner``).

    Outputs:
      - The imported object.

    Raises:
      - ValueError: malformed identifier.
      - ImportError / AttributeError: module or attribute missing.
    """

    ident = identifier.strip()
    if ":" in ident:
        modname, _, attr_path = ident.partition(":")
    else:
        modname, _, attr_path = ident.rpartition(".")
    if not modname or not attr_path:
        raise ValueError(f"Invalid type path '{identifier}' (expected module:Type)")
    obj: Any = importlib.import_module(modname)
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    return obj


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    """Brief: Parse CLI arguments for the reflector.

    Inputs:
      - argv: Optional iterable of CLI argument strings; defaults to
        ``sys.argv[1:]`` when omitted.

    Outputs:
      - argparse.Namespace.
    """

    parser = argparse.ArgumentParser(
        prog="schema-reflector",
        description="Generate a JSON Schema (draft 2020-12) document from a Python type.",
    )
    parser.add_argument("target", help="Type to reflect, as module:Type")
    parser.add_argument("--config", default=None, help="Optional YAML file with reflector options")
    parser.add_argument("--base-id", dest="base_schema_id", default=None, help="Base URI for the root $id")
    parser.add_argument("--reference-root", dest="reference_root", default=None, help="Prefix for $ref values")
    parser.add_argument("--field-name-tag", dest="field_name_tag", default=None, help="Tag holding property names")
    parser.add_argument("--anonymous", action="store_true", default=None, help="Do not emit a root $id")
    parser.add_argument(
        "--expanded", dest="expanded_struct", action="store_true", default=None, help="Inline the root type"
    )
    parser.add_argument(
        "--no-references",
        dest="do_not_reference",
        action="store_true",
        default=None,
        help="Inline every type; $ref is only used to break cycles",
    )
    parser.add_argument("--anchors", dest="assign_anchor", action="store_true", default=None, help="Add $anchor to structs")
    parser.add_argument(
        "--allow-additional-properties",
        dest="allow_additional_properties",
        action="store_true",
        default=None,
        help="Do not emit additionalProperties: false on structs",
    )
    parser.add_argument(
        "--required-from-tags",
        dest="required_from_jsonschema_tags",
        action="store_true",
        default=None,
        help="Only the 'required' directive marks fields as required",
    )
    parser.add_argument(
        "--validate", dest="validate_output", action="store_true", default=None, help="Check output against the meta-schema"
    )
    parser.add_argument("--ignore", action="append", default=[], metavar="MODULE:TYPE", help="Type to omit (repeatable)")
    parser.add_argument("--comments", default=None, metavar="DIR", help="Read descriptions from Python sources")
    parser.add_argument("--comments-module", default="", help="Dotted module name of the --comments directory")
    parser.add_argument("--full-comment", action="store_true", help="Keep whole class docstrings")
    parser.add_argument("--format", choices=("json", "yaml"), default="json", help="Output format (default: json)")
    parser.add_argument("-o", "--output", default=None, help="Output file path (default: stdout)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
    return parser.parse_args(list(argv) if argv is not None else None)


def load_config_file(path: str) -> Dict[str, Any]:
    """Brief: Read a YAML options file.

    Inputs:
      - path: File path.

    Outputs:
      - Mapping of options (empty for an empty file).

    Raises:
      - ValueError: the document is not a mapping.
    """

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of reflector options")
    return data


def build_config(args: argparse.Namespace, file_cfg: Dict[str, Any]) -> ReflectorConfig:
    """Brief: Merge YAML options and CLI flags into a ReflectorConfig.

    Inputs:
      - args: Parsed CLI arguments (None means "not given").
      - file_cfg: Options read from ``--config``.

    Outputs:
      - ReflectorConfig.
    """

    options: Dict[str, Any] = {k: file_cfg[k] for k in _CONFIG_FIELDS if k in file_cfg}
    for key in _CONFIG_FIELDS:
        value = getattr(args, key, None)
        if value is not None:
            options[key] = value
    ignored: List[str] = list(file_cfg.get("ignored_types") or []) + list(args.ignore)
    if ignored:
        options["ignored_types"] = tuple(import_target(name) for name in ignored)
    return ReflectorConfig(**options)


def render(document: Dict[str, Any], fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Brief: CLI entrypoint to reflect one type.

    Inputs:
      - argv: Optional iterable of CLI argument strings.

    Outputs:
      - int: 0 on success, 1 when reflection fails, 2 for unusable arguments.

    Example usage:
      - ``schema-reflector myapp.models:User``
      - ``python -m schema_reflector myapp.models:User --format yaml -o user.yaml``
    """

    args = parse_args(argv)
    try:
        file_cfg = load_config_file(args.config) if args.config else {}
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Cannot read config: {exc}", file=sys.stderr)
        return 2

    log_cfg = dict(file_cfg.get("logging") or {})
    if args.verbose or "level" not in log_cfg:
        log_cfg["level"] = level_from_verbosity(args.verbose)
    init_logging(log_cfg)

    try:
        config = build_config(args, file_cfg)
        target = import_target(args.target)
    except (ValidationError, ValueError, ImportError, AttributeError) as exc:
        logger.error("Invalid arguments: %s", exc)
        return 2

    reflector = Reflector(config)
    comments_cfg = file_cfg.get("comments") or {}
    comments_dir = args.comments or comments_cfg.get("path")
    try:
        if comments_dir:
            reflector.add_comments(
                comments_dir,
                args.comments_module or comments_cfg.get("base_module", ""),
                full_comment=args.full_comment or bool(comments_cfg.get("full_comment", False)),
            )
        document = reflector.reflect(target).to_dict()
    except ReflectionError as exc:
        logger.error("Failed to reflect %s: %s", args.target, exc)
        return 1

    text = render(document, args.format)
    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
        logger.info("Schema for %s written to %s", args.target, output_path)
    else:
        sys.stdout.write(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
