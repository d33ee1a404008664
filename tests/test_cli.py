"""
Command-line interface tests for ldaview.
"""

from __future__ import annotations

import json

from ldaview.cli import main


def _write_json(path, data) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


def test_prepare_prints_payload(capsys, scenario_file):
    """
    Without --output the payload is printed as JSON.
    """
    code = main(["prepare", "--inputs", str(scenario_file), "--override", "lambda_step=0.5"])
    captured = capsys.readouterr()
    assert code == 0
    payload = json.loads(captured.out)
    assert payload["metadata"]["lambda_values"] == [0.0, 0.5, 1.0]
    assert payload["topic_order"] == [0, 1]


def test_prepare_writes_payload_with_configuration(tmp_path, capsys, scenario_file):
    """
    Configuration files and overrides shape the written payload.
    """
    configuration = tmp_path / "vis.yml"
    configuration.write_text("terms_per_topic: 3\nlambda_values: [0.0, 1.0]\n", encoding="utf-8")
    output = tmp_path / "vis" / "payload.json"
    code = main(
        [
            "prepare",
            "--inputs",
            str(scenario_file),
            "--configuration",
            str(configuration),
            "--override",
            "terms_per_topic=2",
            "--output",
            str(output),
        ]
    )
    assert code == 0
    assert "Wrote visualization payload" in capsys.readouterr().out
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["metadata"]["terms_per_topic"] == 2
    assert [len(topic["terms"]) for topic in payload["rankings"][0]["topics"]] == [2, 2]


def test_prepare_rejects_invalid_lambda(capsys, scenario_file):
    """
    A lambda outside [0, 1] fails with exit code 2.
    """
    code = main(
        ["prepare", "--inputs", str(scenario_file), "--override", "lambda_values=[0.5, 1.5]"]
    )
    captured = capsys.readouterr()
    assert code == 2
    assert "Invalid visualization input" in captured.err
    assert captured.out == ""


def test_prepare_reports_dimension_mismatch(tmp_path, capsys):
    """
    Inconsistent model inputs are reported before any computation.
    """
    path = tmp_path / "model.json"
    _write_json(
        path,
        {
            "vocab": ["a", "b"],
            "topic_term_dists": [[0.5, 0.5]],
            "doc_topic_dists": [[0.5, 0.5]],
            "doc_lengths": [2],
            "term_frequency": [1, 1],
        },
    )
    code = main(["prepare", "--inputs", str(path)])
    captured = capsys.readouterr()
    assert code == 2
    assert "Dimension mismatch for doc_topic_dists" in captured.err


def test_prepare_reports_missing_inputs(tmp_path, capsys):
    """
    A missing inputs file fails with exit code 2.
    """
    code = main(["prepare", "--inputs", str(tmp_path / "missing.json")])
    assert code == 2
    assert "Model inputs not found" in capsys.readouterr().err


def test_corpus_then_estimate(tmp_path, capsys):
    """
    The corpus and estimate commands write their JSON files.
    """
    documents = tmp_path / "reviews.txt"
    documents.write_text("great film\ngreat cast\nfilm cast\n", encoding="utf-8")
    corpus_path = tmp_path / "corpus.json"
    code = main(
        [
            "corpus",
            "--documents",
            str(documents),
            "--output",
            str(corpus_path),
            "--override",
            "stop_words=null",
            "--override",
            "min_term_count=1",
        ]
    )
    assert code == 0
    corpus = json.loads(corpus_path.read_text(encoding="utf-8"))
    assert corpus["vocab"] == ["cast", "film", "great"]
    assert corpus["doc_lengths"] == [2, 2, 2]

    state_path = tmp_path / "state.json"
    _write_json(
        state_path,
        {
            "vocab": corpus["vocab"],
            "topic_term_counts": [[2, 0, 1], [0, 2, 1]],
            "document_topic_counts": [[0, 2], [2, 0], [1, 1]],
        },
    )
    model_path = tmp_path / "model.json"
    code = main(
        [
            "estimate",
            "--state",
            str(state_path),
            "--output",
            str(model_path),
            "--override",
            "alpha=0.1",
        ]
    )
    assert code == 0
    model = json.loads(model_path.read_text(encoding="utf-8"))
    assert len(model["topic_term_dists"]) == 2
    assert model["doc_lengths"] == [2.0, 2.0, 2.0]
    assert "Wrote model inputs with 2 topics" in capsys.readouterr().out


def test_estimate_rejects_unknown_configuration_keys(tmp_path, capsys):
    """
    Unknown configuration keys are reported as invalid input.
    """
    state_path = tmp_path / "state.json"
    _write_json(
        state_path,
        {"vocab": ["a"], "topic_term_counts": [[1]], "document_topic_counts": [[1]]},
    )
    code = main(
        [
            "estimate",
            "--state",
            str(state_path),
            "--output",
            str(tmp_path / "model.json"),
            "--override",
            "beta=0.1",
        ]
    )
    assert code == 2
    assert "Invalid estimation input" in capsys.readouterr().err
