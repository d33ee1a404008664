"""
Configuration composition tests.
"""

from __future__ import annotations

import pytest

from ldaview.configuration import compose_configuration, load_configuration_view, parse_overrides
from ldaview.models import VisualizationConfiguration


def test_override_values_are_typed_like_yaml():
    """
    Override values type the same way they would in a configuration file.
    """
    overrides = parse_overrides(
        [
            "sort_topics=true",
            "stop_words=null",
            "terms_per_topic=30",
            "lambda_step=0.05",
            "lambda_values=[0, 0.5, 1]",
            'stop_words_list=["a", "the"]',
            "mds_method=pcoa",
            "note=",
        ]
    )
    assert overrides == {
        "sort_topics": True,
        "stop_words": None,
        "terms_per_topic": 30,
        "lambda_step": 0.05,
        "lambda_values": [0, 0.5, 1],
        "stop_words_list": ["a", "the"],
        "mds_method": "pcoa",
        "note": "",
    }


def test_overrides_require_key_value_pairs():
    """
    Overrides without an equals sign or a key are rejected.
    """
    with pytest.raises(ValueError, match="key=value"):
        parse_overrides(["terms_per_topic"])
    with pytest.raises(ValueError, match="non-empty"):
        parse_overrides(["=3"])


def test_malformed_override_value_is_rejected():
    """
    An override value that is not valid YAML names its key.
    """
    with pytest.raises(ValueError, match="lambda_values"):
        parse_overrides(["lambda_values=[0.5, 1.0"])


def test_override_value_may_contain_equals_sign():
    """
    Only the first equals sign separates the key from the value.
    """
    assert parse_overrides(["label=a=b"]) == {"label": "a=b"}


def test_later_configuration_files_override_earlier_ones(tmp_path):
    """
    Files compose in order with nested mappings merged.
    """
    first = tmp_path / "base.yml"
    first.write_text("terms_per_topic: 20\nnested:\n  a: 1\n  b: 2\n", encoding="utf-8")
    second = tmp_path / "local.yml"
    second.write_text("terms_per_topic: 10\nnested:\n  b: 3\n", encoding="utf-8")
    view = load_configuration_view([str(first), str(second)])
    assert view == {"terms_per_topic": 10, "nested": {"a": 1, "b": 3}}


def test_empty_configuration_file_is_an_empty_mapping(tmp_path):
    """
    An empty YAML document contributes nothing.
    """
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_configuration_view([str(path)]) == {}


def test_missing_configuration_file_is_reported(tmp_path):
    """
    A missing file raises before anything is loaded.
    """
    with pytest.raises(FileNotFoundError, match="Configuration file not found"):
        load_configuration_view(
            [str(tmp_path / "missing.yml")], configuration_label="Configuration file"
        )


def test_non_mapping_configuration_is_rejected(tmp_path):
    """
    Configuration files must contain a mapping.
    """
    path = tmp_path / "list.yml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="must be a mapping"):
        load_configuration_view([str(path)])


def test_composed_configuration_validates(tmp_path):
    """
    Files and overrides compose into a valid visualization configuration.
    """
    path = tmp_path / "vis.yml"
    path.write_text("terms_per_topic: 15\nlambda_step: 0.1\n", encoding="utf-8")
    data = compose_configuration([str(path)], ["sort_topics=false", "terms_per_topic=5"])
    config = VisualizationConfiguration.model_validate(data)
    assert config.terms_per_topic == 5
    assert config.sort_topics is False
    assert len(config.resolved_lambdas()) == 11
    assert compose_configuration(None, None) == {}


def test_overrides_replace_file_values(tmp_path):
    """
    Command-line overrides win over every configuration file.
    """
    path = tmp_path / "corpus.yml"
    path.write_text("stop_words: [a, the]\nmin_term_count: 4\n", encoding="utf-8")
    data = compose_configuration([str(path)], ["stop_words=null"])
    assert data == {"stop_words": None, "min_term_count": 4}
