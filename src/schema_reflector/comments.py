"""Brief: Collect class and field documentation from Python sources.

Inputs:
  - A directory (searched recursively) or a single ``.py`` file.
  - The dotted module name the path corresponds to.

Outputs:
  - extract_comments(): fills a comment map keyed ``module.Class`` and
    ``module.Class.field``, the paths the reflector looks descriptions up by.

Notes:
  - Class entries use the docstring's first sentence unless ``full_comment``.
  - Field entries use, in order: the ``#`` comment lines directly above the
    field, a trailing ``#`` comment on the same line, then an attribute
    docstring (a string literal statement right after the field).
  - Names starting with an underscore are skipped.
"""

from __future__ import annotations

import ast
import inspect
import io
import logging
import re
import tokenize
from pathlib import Path
from typing import Dict, Iterator, List, MutableMapping, Optional, Set, Tuple, Union

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_SENTENCE_END = re.compile(r"\.\s")


def synopsis(text: str) -> str:
    """Brief: Return the first sentence of ``text`` with whitespace collapsed.

    Inputs:
      - text: Docstring text.

    Outputs:
      - str: Text up to and including the first period that is followed by
        whitespace; the whole (collapsed) text when there is none.

    Example:
      >>> synopsis("User is used as a base.  It has more details.")
      'User is used as a base.'
    """

    collapsed = _WHITESPACE.sub(" ", text).strip()
    match = _SENTENCE_END.search(collapsed + " ")
    if match is None:
        return collapsed
    return collapsed[: match.start() + 1]


def _scan_comments(source: str) -> Tuple[Dict[int, str], Set[int]]:
    """Map line numbers to ``#`` comment text and note comment-only lines."""

    comments: Dict[int, str] = {}
    standalone: Set[int] = set()
    code_lines: Set[int] = set()
    ignored = (tokenize.COMMENT, tokenize.NL, tokenize.NEWLINE, tokenize.INDENT, tokenize.DEDENT, tokenize.ENCODING)
    for token in tokenize.generate_tokens(io.StringIO(source).readline):
        line = token.start[0]
        if token.type == tokenize.COMMENT:
            comments[line] = token.string[1:].strip()
        elif token.type not in ignored:
            for covered in range(token.start[0], token.end[0] + 1):
                code_lines.add(covered)
    for line in comments:
        if line not in code_lines:
            standalone.add(line)
    return comments, standalone


def _preceding_comment(lineno: int, comments: Dict[int, str], standalone: Set[int]) -> str:
    lines: List[str] = []
    current = lineno - 1
    while current in standalone:
        lines.append(comments[current])
        current -= 1
    return "\n".join(reversed(lines)).strip()


def _attribute_docstring(body: List[ast.stmt], index: int) -> str:
    if index + 1 >= len(body):
        return ""
    nxt = body[index + 1]
    if isinstance(nxt, ast.Expr) and isinstance(nxt.value, ast.Constant) and isinstance(nxt.value.value, str):
        return inspect.cleandoc(nxt.value.value)
    return ""


def _class_entries(
    cls: ast.ClassDef,
    prefix: str,
    comments: Dict[int, str],
    standalone: Set[int],
    full_comment: bool,
) -> Iterator[Tuple[str, str]]:
    key = f"{prefix}.{cls.name}"
    doc = ast.get_docstring(cls) or ""
    if not doc:
        first_line = cls.decorator_list[0].lineno if cls.decorator_list else cls.lineno
        doc = _preceding_comment(first_line, comments, standalone)
    if doc:
        yield key, doc.strip() if full_comment else synopsis(doc)

    for index, stmt in enumerate(cls.body):
        if isinstance(stmt, ast.ClassDef):
            if not stmt.name.startswith("_"):
                yield from _class_entries(stmt, key, comments, standalone, full_comment)
            continue
        if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
            continue
        name = stmt.target.id
        if name.startswith("_"):
            continue
        text = (
            _preceding_comment(stmt.lineno, comments, standalone)
            or comments.get(stmt.end_lineno or stmt.lineno, "")
            or comments.get(stmt.lineno, "")
            or _attribute_docstring(cls.body, index)
        )
        if text:
            yield f"{key}.{name}", text


def _module_name(path: Path, root: Path, base_module: str) -> str:
    if root.is_file():
        parts: List[str] = [] if base_module else [path.stem]
    else:
        relative = path.relative_to(root).with_suffix("")
        parts = list(relative.parts)
        if parts and parts[-1] == "__init__":
            parts.pop()
    if base_module:
        parts.insert(0, base_module)
    return ".".join(parts)


def _source_files(root: Path) -> Iterator[Path]:
    if root.is_file():
        yield root
        return
    for path in sorted(root.rglob("*.py")):
        relative = path.relative_to(root).parts
        if any(part.startswith(".") or part == "__pycache__" for part in relative[:-1]):
            continue
        yield path


def extract_comments(
    root: Union[str, Path],
    base_module: str = "",
    comment_map: Optional[MutableMapping[str, str]] = None,
    *,
    full_comment: bool = False,
) -> MutableMapping[str, str]:
    """Brief: Read Python sources and record class and field comments.

    Inputs:
      - root: Directory (recursive) or single ``.py`` file.
      - base_module: Dotted module name for ``root``; for a directory each
        file's relative path is appended (``__init__`` maps to the package).
      - comment_map: Mapping to update; a new dict is used when omitted.
      - full_comment: Keep whole class docstrings instead of the first
        sentence.

    Outputs:
      - The updated comment map.

    Raises:
      - ConfigurationError: ``root`` is missing or a file cannot be parsed.

    Example:
      >>> comments = extract_comments("src/myapp/models", "myapp.models")
      >>> comments["myapp.models.user.User.name"]
      'Name of the user.'
    """

    target: MutableMapping[str, str] = {} if comment_map is None else comment_map
    path_root = Path(root).expanduser().resolve()
    if not path_root.exists():
        raise ConfigurationError(f"comment source {root} does not exist")

    for path in _source_files(path_root):
        source = path.read_text(encoding="utf-8")
        try:
            tree = ast.parse(source, filename=str(path))
            comments, standalone = _scan_comments(source)
        except (SyntaxError, tokenize.TokenError) as exc:
            raise ConfigurationError(f"cannot parse {path}: {exc}") from exc
        module = _module_name(path, path_root, base_module)
        found = 0
        for node in tree.body:
            if isinstance(node, ast.ClassDef) and not node.name.startswith("_"):
                for key, text in _class_entries(node, module, comments, standalone, full_comment):
                    target[key] = text
                    found += 1
        logger.debug("Extracted %d comment(s) from %s", found, path)
    return target
