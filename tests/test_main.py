"""
Brief: Tests for the schema-reflector command line entry point.

Inputs:
  - None

Outputs:
  - None
"""

import collections
import json
import os

import pytest
import yaml

import sample_types as st
from schema_reflector.main import build_config, import_target, main, parse_args, render


def test_import_target_forms():
    """
    Brief: Both module:Type and module.Type resolve; nested names work.

    Inputs:
      - None

    Outputs:
      - None
    """
    assert import_target("sample_types:Person") is st.Person
    assert import_target("sample_types.Person") is st.Person
    assert import_target("collections:OrderedDict") is collections.OrderedDict
    with pytest.raises(ValueError):
        import_target("Person")
    with pytest.raises(AttributeError):
        import_target("sample_types:Nope")


def test_main_writes_json_file(tmp_path):
    """
    Brief: main writes the document to --output and returns 0.

    Inputs:
      - tmp_path: pytest fixture

    Outputs:
      - None
    """
    out = tmp_path / "nested" / "person.json"
    rc = main(["sample_types:Person", "--base-id", "https://example.com/schemas", "-o", str(out)])
    assert rc == 0
    doc = json.loads(out.read_text(encoding="utf-8"))
    assert doc["$id"] == "https://example.com/schemas/person"
    assert doc["$ref"] == "#/$defs/Person"
    assert sorted(doc["$defs"]) == ["Address", "Person"]


def test_main_yaml_to_stdout(capsys):
    """
    Brief: --format yaml prints a YAML document preserving key order.

    Inputs:
      - capsys: pytest fixture

    Outputs:
      - None
    """
    rc = main(["sample_types:AgeLimits", "--format", "yaml", "--expanded"])
    assert rc == 0
    text = capsys.readouterr().out
    doc = yaml.safe_load(text)
    assert doc["properties"]["age"] == {"type": "integer", "maximum": 120, "minimum": 18}
    assert text.startswith("$schema:")


def test_main_flags_and_ignore(capsys):
    """
    Brief: Boolean flags and --ignore reach the reflector config.

    Inputs:
      - capsys: pytest fixture

    Outputs:
      - None
    """
    rc = main(["sample_types:Person", "--no-references", "--ignore", "sample_types:Address", "--anchors"])
    assert rc == 0
    doc = json.loads(capsys.readouterr().out)
    assert list(doc["properties"]) == ["name"]
    assert doc["$anchor"] == "Person"


def test_main_config_file(tmp_path, capsys):
    """
    Brief: YAML config options apply and CLI flags override them.

    Inputs:
      - tmp_path, capsys: pytest fixtures

    Outputs:
      - None
    """
    cfg = tmp_path / "reflector.yaml"
    cfg.write_text(
        "expanded_struct: true\nfield_name_tag: yaml\nreference_root: '#/definitions'\nlogging:\n  level: error\n",
        encoding="utf-8",
    )
    rc = main(["sample_types:YamlNamed", "--config", str(cfg)])
    assert rc == 0
    doc = json.loads(capsys.readouterr().out)
    assert list(doc["properties"]) == ["firstName"]

    args = parse_args(["sample_types:Person", "--field-name-tag", "json"])
    config = build_config(args, {"field_name_tag": "yaml", "ignored_types": ["sample_types:Address"]})
    assert config.field_name_tag == "json"
    assert config.ignored_types == (st.Address,)


def test_main_comments_option(capsys):
    """
    Brief: --comments loads descriptions from a source directory.

    Inputs:
      - capsys: pytest fixture

    Outputs:
      - None
    """
    samples = os.path.join(os.path.dirname(os.path.abspath(__file__)), "comment_samples")
    rc = main(["comment_samples.models:Pet", "--comments", samples, "--comments-module", "comment_samples"])
    assert rc == 0
    doc = json.loads(capsys.readouterr().out)
    assert doc["$defs"]["Pet"]["description"] == "Pet defines the user's fury friend."


@pytest.mark.parametrize(
    "argv",
    [
        ["sample_types:Nope"],
        ["no_such_module_xyz:Type"],
        ["sample_types:Person", "--reference-root", " "],
    ],
)
def test_main_bad_arguments_return_2(argv):
    """
    Brief: Unimportable targets and invalid options exit with 2.

    Inputs:
      - argv: CLI arguments

    Outputs:
      - None
    """
    assert main(argv) == 2


def test_main_bad_config_file_returns_2(tmp_path):
    """
    Brief: A config file that is not a mapping exits with 2.

    Inputs:
      - tmp_path: pytest fixture

    Outputs:
      - None
    """
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("- just\n- a list\n", encoding="utf-8")
    assert main(["sample_types:Person", "--config", str(cfg)]) == 2
    assert main(["sample_types:Person", "--config", str(tmp_path / "missing.yaml")]) == 2


def test_main_reflection_error_returns_1():
    """
    Brief: Reflection failures exit with 1.

    Inputs:
      - None

    Outputs:
      - None
    """
    assert main(["sample_types:AliasA"]) == 1
    assert main(["sample_types:Person", "--base-id", "not a url"]) == 1


def test_render_formats():
    """
    Brief: render emits JSON with a trailing newline or ordered YAML.

    Inputs:
      - None

    Outputs:
      - None
    """
    doc = {"b": 1, "a": [True]}
    assert render(doc, "json") == '{\n  "b": 1,\n  "a": [\n    true\n  ]\n}\n'
    assert render(doc, "yaml") == "b: 1\na:\n- true\n"
