"""
Shared fixtures for ldaview tests.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ldaview.inputs import TopicModelInputs, build_model_inputs

SCENARIO_VOCAB = ["t0", "t1", "t2", "t3"]
SCENARIO_PHI = [[0.7, 0.1, 0.1, 0.1], [0.1, 0.1, 0.1, 0.7]]
SCENARIO_THETA = [[0.9, 0.1], [0.2, 0.8]]
SCENARIO_DOC_LENGTHS = [20, 20]
SCENARIO_TERM_FREQUENCY = [10, 10, 10, 10]


def scenario_payload() -> dict:
    return {
        "vocab": list(SCENARIO_VOCAB),
        "topic_term_dists": [list(row) for row in SCENARIO_PHI],
        "doc_topic_dists": [list(row) for row in SCENARIO_THETA],
        "doc_lengths": list(SCENARIO_DOC_LENGTHS),
        "term_frequency": list(SCENARIO_TERM_FREQUENCY),
    }


@pytest.fixture
def scenario_inputs() -> TopicModelInputs:
    """
    Two topics over four terms, each topic dominated by one term.
    """
    return build_model_inputs(**scenario_payload())


@pytest.fixture
def scenario_file(tmp_path) -> Path:
    """
    Scenario model inputs written as JSON.
    """
    path = tmp_path / "model.json"
    path.write_text(json.dumps(scenario_payload()), encoding="utf-8")
    return path
