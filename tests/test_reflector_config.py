"""
Brief: Tests for the ReflectorConfig pydantic model.

Inputs:
  - None

Outputs:
  - None
"""

from pathlib import Path

import pydantic
import pytest

from schema_reflector.config.reflector_config import DEFAULT_REFERENCE_ROOT, ReflectorConfig

SAMPLES_DIR = Path(__file__).resolve().parent / "comment_samples"


def test_defaults():
    """
    Brief: Defaults reference #/$defs/ and read names from the json tag.

    Inputs:
      - None

    Outputs:
      - None
    """
    cfg = ReflectorConfig()
    assert cfg.reference_root == DEFAULT_REFERENCE_ROOT
    assert cfg.field_name_tag == "json"
    assert cfg.ignored_types == ()
    assert cfg.comment_map == {}
    assert not cfg.expanded_struct


def test_config_is_frozen_and_strict():
    """
    Brief: Configs are immutable and reject unknown options.

    Inputs:
      - None

    Outputs:
      - None
    """
    cfg = ReflectorConfig()
    with pytest.raises(pydantic.ValidationError):
        cfg.anonymous = True
    with pytest.raises(pydantic.ValidationError):
        ReflectorConfig(expand=True)


def test_normalizing_validators():
    """
    Brief: reference_root gains a trailing slash; blanks are rejected.

    Inputs:
      - None

    Outputs:
      - None
    """
    assert ReflectorConfig(reference_root="#/definitions").reference_root == "#/definitions/"
    assert ReflectorConfig(base_schema_id="  https://example.com/s  ").base_schema_id == "https://example.com/s"
    assert ReflectorConfig(field_name_tag=" yaml ").field_name_tag == "yaml"
    with pytest.raises(pydantic.ValidationError):
        ReflectorConfig(reference_root="  ")
    with pytest.raises(pydantic.ValidationError):
        ReflectorConfig(field_name_tag="")


def test_lookup_description_order():
    """
    Brief: lookup_comment answers first, the comment map second.

    Inputs:
      - None

    Outputs:
      - None
    """
    cfg = ReflectorConfig(
        comment_map={"m.T": "map", "m.T.f": "map field"},
        lookup_comment=lambda path: "lookup" if path == "m.T" else "",
    )
    assert cfg.lookup_description("m.T") == "lookup"
    assert cfg.lookup_description("m.T.f") == "map field"
    assert cfg.lookup_description("m.T.g") == ""


def test_with_comments_returns_new_config():
    """
    Brief: with_comments merges extracted comments into a copy.

    Inputs:
      - None

    Outputs:
      - None
    """
    cfg = ReflectorConfig(comment_map={"keep.Me": "kept"})
    loaded = cfg.with_comments(SAMPLES_DIR, "comment_samples")
    assert cfg.comment_map == {"keep.Me": "kept"}
    assert loaded.comment_map["keep.Me"] == "kept"
    assert loaded.comment_map["comment_samples.models.Pet.name"] == "Name of the animal."
