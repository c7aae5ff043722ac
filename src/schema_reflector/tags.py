"""Brief: Parser for the declarative constraint tag grammar.

Inputs:
  - Raw tag strings such as ``"required,minLength=1,pattern=[0-9]{1\\,4}"``.

Outputs:
  - Ordered lists of Directive(key, value, bare) tuples.

Notes:
  - Directives are separated by commas. A backslash immediately before a comma
    escapes that comma and is consumed; every other backslash is literal.
  - Empty directives (from ``empty,,tag``) are preserved as empty strings.
  - Each directive is split on the first ``=`` only, so values such as regular
    expressions keep any ``=`` they contain.
"""

from __future__ import annotations

from typing import List, NamedTuple

ESCAPE = "\\"
SEPARATOR = ","


class Directive(NamedTuple):
    """One parsed ``key=value`` (or bare flag) unit of a constraint tag."""

    key: str
    value: str
    bare: bool

    @property
    def flag(self) -> bool:
        """Truth value of a boolean-style directive (bare means true)."""

        if self.bare:
            return True
        return self.value.strip().lower() in ("1", "t", "true")


def split_on_unescaped_commas(text: str) -> List[str]:
    """Brief: Split ``text`` on commas that are not preceded by a backslash.

    Inputs:
      - text: Raw tag string.

    Outputs:
      - List of segments with escaping backslashes removed.

    Example:
      >>> split_on_unescaped_commas("Hello,this,is\\\\,a\\\\,string,haha")
      ['Hello', 'this', 'is,a,string', 'haha']
    """

    parts: List[str] = []
    current: List[str] = []
    for char in text:
        if char == SEPARATOR:
            if current and current[-1] == ESCAPE:
                current[-1] = SEPARATOR
                continue
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def parse_directive(segment: str) -> Directive:
    """Split a single segment on its first ``=`` into a Directive."""

    key, sep, value = segment.partition("=")
    if not sep:
        return Directive(segment.strip(), "", True)
    return Directive(key.strip(), value, False)


def parse_directives(text: str) -> List[Directive]:
    """Brief: Tokenize a constraint tag into ordered directives.

    Inputs:
      - text: Raw value of the ``jsonschema`` tag (may be empty).

    Outputs:
      - List of Directive; an empty tag yields an empty list.
    """

    if not text:
        return []
    return [parse_directive(segment) for segment in split_on_unescaped_commas(text)]


def split_extras(text: str) -> List[Directive]:
    """Brief: Tokenize a ``jsonschema_extras`` tag.

    Inputs:
      - text: Raw extras tag; separated by plain commas, no escaping.

    Outputs:
      - Directives that carry a value; bare segments are ignored.
    """

    if not text:
        return []
    return [d for d in (parse_directive(s) for s in text.split(SEPARATOR)) if not d.bare]


def split_option_list(text: str) -> List[str]:
    """Split the name tag (``json:"name,omitempty"``) into name and options."""

    return text.split(SEPARATOR) if text else [""]
