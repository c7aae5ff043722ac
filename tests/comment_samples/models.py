"""
Brief: Annotated sources whose comments the extractor should pick up.

Inputs:
  - None

Outputs:
  - User, Pet and a private helper class.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class User:
    """User is used as a base to provide tests for comments.

    Don't forget to checkout the nested path.
    """

    # Unique sequential identifier.
    id: int = field(metadata={"json": "id"})
    name: str = field(metadata={"json": "name"})  # Name of the user
    tags: List[str] = field(default_factory=list, metadata={"json": "tags,omitempty"})
    """Free-form labels."""
    _hidden: str = ""

    class Nested:
        """Nested lives inside User."""

        value: int


# Pet defines the user's fury friend.
@dataclass
class Pet:
    # Name of the animal.
    name: str = field(metadata={"json": "name"})


class _Private:
    """Never exported."""

    secret: str
