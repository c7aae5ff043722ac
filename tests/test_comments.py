"""
Brief: Tests for schema_reflector.comments source comment extraction.

Inputs:
  - None; reads tests/comment_samples.

Outputs:
  - None
"""

from pathlib import Path

import pytest

from schema_reflector import Reflector
from schema_reflector.comments import extract_comments, synopsis
from schema_reflector.exceptions import ConfigurationError

SAMPLES_DIR = Path(__file__).resolve().parent / "comment_samples"
PREFIX = "comment_samples.models"


def test_synopsis_first_sentence():
    """
    Brief: synopsis keeps the first sentence with whitespace collapsed.

    Inputs:
      - None

    Outputs:
      - None
    """
    assert synopsis("User is used as a base.\n\n  It has more.") == "User is used as a base."
    assert synopsis("No period here") == "No period here"
    assert synopsis("Version 1.2 is current. Next.") == "Version 1.2 is current."


def test_extract_comments_from_directory():
    """
    Brief: Class docstrings, field comments and attribute docstrings are read.

    Inputs:
      - None

    Outputs:
      - None
    """
    comments = extract_comments(SAMPLES_DIR, "comment_samples")
    assert comments[f"{PREFIX}.User"] == "User is used as a base to provide tests for comments."
    assert comments[f"{PREFIX}.User.id"] == "Unique sequential identifier."
    assert comments[f"{PREFIX}.User.name"] == "Name of the user"
    assert comments[f"{PREFIX}.User.tags"] == "Free-form labels."
    assert comments[f"{PREFIX}.User.Nested"] == "Nested lives inside User."
    assert comments[f"{PREFIX}.Pet"] == "Pet defines the user's fury friend."
    assert comments[f"{PREFIX}.Pet.name"] == "Name of the animal."
    assert f"{PREFIX}.User._hidden" not in comments
    assert not any("_Private" in key for key in comments)


def test_full_comment_keeps_whole_docstring():
    """
    Brief: full_comment keeps every paragraph of a class docstring.

    Inputs:
      - None

    Outputs:
      - None
    """
    comments = extract_comments(SAMPLES_DIR / "models.py", PREFIX, full_comment=True)
    assert comments[f"{PREFIX}.User"] == (
        "User is used as a base to provide tests for comments.\n\nDon't forget to checkout the nested path."
    )


def test_single_file_without_base_module_uses_stem():
    """
    Brief: A single file without a module prefix is keyed by its stem.

    Inputs:
      - None

    Outputs:
      - None
    """
    comments = extract_comments(SAMPLES_DIR / "models.py")
    assert comments["models.Pet.name"] == "Name of the animal."


def test_extract_updates_given_map():
    """
    Brief: An existing map is updated in place and returned.

    Inputs:
      - None

    Outputs:
      - None
    """
    existing = {"other.Key": "value"}
    result = extract_comments(SAMPLES_DIR, "comment_samples", existing)
    assert result is existing
    assert existing["other.Key"] == "value"
    assert f"{PREFIX}.Pet" in existing


def test_missing_and_unparsable_sources(tmp_path):
    """
    Brief: Missing paths and syntax errors raise ConfigurationError.

    Inputs:
      - tmp_path: pytest fixture

    Outputs:
      - None
    """
    with pytest.raises(ConfigurationError):
        extract_comments(tmp_path / "missing")
    bad = tmp_path / "bad.py"
    bad.write_text("class Broken(:\n    pass\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        extract_comments(tmp_path)


def test_reflector_uses_loaded_comments():
    """
    Brief: add_comments feeds type and field descriptions into documents.

    Inputs:
      - None

    Outputs:
      - None
    """
    from comment_samples.models import User

    reflector = Reflector()
    reflector.add_comments(SAMPLES_DIR, "comment_samples")
    user = reflector.reflect(User).to_dict()["$defs"]["User"]
    assert user["description"] == "User is used as a base to provide tests for comments."
    assert user["properties"]["id"]["description"] == "Unique sequential identifier."
    assert user["properties"]["name"]["description"] == "Name of the user"
    assert user["properties"]["tags"] == {
        "items": {"type": "string"},
        "type": "array",
        "description": "Free-form labels.",
    }
    assert user["required"] == ["id", "name"]
