"""
Visualization payload tests.
"""

from __future__ import annotations

import json

import numpy as np
import pytest
from pydantic import ValidationError

from ldaview.errors import InvalidLambdaError
from ldaview.inputs import build_model_inputs
from ldaview.models import VisualizationConfiguration, VisualizationPayload
from ldaview.prepare import (
    prepare_visualization,
    summarize_rankings,
    topic_display_order,
    write_payload,
)
from ldaview.relevance import RelevanceCache

from conftest import scenario_payload


def test_scenario_rankings_at_lambda_extremes(scenario_inputs):
    """
    Each topic's dominant term leads its ranking at lambda 1 and lambda 0.
    """
    payload = prepare_visualization(scenario_inputs)
    for lambda_ in (1.0, 0.0):
        summary = summarize_rankings(payload, lambda_)
        assert summary[1][0] == "t0"
        assert summary[2][0] == "t3"
    assert summarize_rankings(payload, 1.0)[1] == ["t0", "t1", "t2", "t3"]


def test_payload_metadata_reflects_inputs(scenario_inputs):
    """
    Metadata records model sizes and the clamped number of terms per topic.
    """
    payload = prepare_visualization(scenario_inputs)
    metadata = payload.metadata
    assert metadata.topic_count == 2
    assert metadata.term_count == 4
    assert metadata.document_count == 2
    assert metadata.token_count == 40
    assert metadata.terms_per_topic == 4
    assert metadata.lambda_step == 0.01
    assert metadata.mds_method == "pcoa"
    assert len(metadata.lambda_values) == 101
    assert len(payload.rankings) == 101
    for ranking in payload.rankings:
        assert [len(topic.terms) for topic in ranking.topics] == [4, 4]


def test_ranked_terms_carry_saliency_metrics(scenario_inputs):
    """
    Ranked entries include expected counts, log probability, log lift and saliency.
    """
    payload = prepare_visualization(scenario_inputs, VisualizationConfiguration(lambda_values=[0.6]))
    first = payload.ranking_for(0.6).topics[0].terms[0]
    assert first.term == "t0"
    assert first.rank == 1
    assert first.frequency == pytest.approx(0.7 * 22.0)
    assert first.total == 10.0
    assert first.logprob == pytest.approx(np.log(0.7))
    assert first.loglift == pytest.approx(np.log(0.7 / 0.25))
    assert first.relevance == pytest.approx(0.6 * np.log(0.7) + 0.4 * np.log(0.7 / 0.25))
    assert first.saliency > 0.0


def test_topic_coordinates_and_frequencies(scenario_inputs):
    """
    Coordinates are emitted in display order with frequencies and proportions.
    """
    payload = prepare_visualization(scenario_inputs)
    assert payload.topic_order == [0, 1]
    frequencies = [entry.frequency for entry in payload.topic_coordinates]
    assert frequencies == pytest.approx([22.0, 18.0])
    assert sum(entry.proportion for entry in payload.topic_coordinates) == pytest.approx(100.0)
    xs = [entry.x for entry in payload.topic_coordinates]
    assert xs[0] == pytest.approx(-xs[1])
    assert all(entry.y == pytest.approx(0.0) for entry in payload.topic_coordinates)


def test_topics_are_sorted_by_frequency():
    """
    The larger topic is displayed first when sorting is enabled.
    """
    data = scenario_payload()
    data["doc_topic_dists"] = [[0.1, 0.9], [0.2, 0.8]]
    inputs = build_model_inputs(**data)
    payload = prepare_visualization(inputs, VisualizationConfiguration(lambda_values=[1.0]))
    assert payload.topic_order == [1, 0]
    assert payload.topic_coordinates[0].source_topic == 1
    assert payload.topic_coordinates[0].topic == 1
    assert summarize_rankings(payload, 1.0)[1][0] == "t3"

    unsorted = prepare_visualization(
        inputs, VisualizationConfiguration(lambda_values=[1.0], sort_topics=False)
    )
    assert unsorted.topic_order == [0, 1]


def test_topic_display_order_breaks_ties_by_index():
    """
    Topics with equal frequency keep their original order.
    """
    assert topic_display_order(np.array([5.0, 9.0, 5.0]), sort_topics=True) == [1, 0, 2]


def test_single_topic_model_is_supported():
    """
    A one-topic model is placed at the origin.
    """
    inputs = build_model_inputs(
        vocab=["a", "b"],
        topic_term_dists=[[0.6, 0.4]],
        doc_topic_dists=[[1.0], [1.0]],
        doc_lengths=[3, 2],
        term_frequency=[3, 2],
    )
    payload = prepare_visualization(inputs, VisualizationConfiguration(lambda_step=0.5))
    assert payload.topic_order == [0]
    assert (payload.topic_coordinates[0].x, payload.topic_coordinates[0].y) == (0.0, 0.0)
    assert [ranking.relevance_lambda for ranking in payload.rankings] == [0.0, 0.5, 1.0]


def test_zero_probability_terms_serialize_without_infinity():
    """
    Terms absent from a topic rank last with null relevance instead of infinity.
    """
    inputs = build_model_inputs(
        vocab=["a", "b", "c"],
        topic_term_dists=[[0.5, 0.5, 0.0], [0.0, 0.5, 0.5]],
        doc_topic_dists=[[1.0, 0.0], [0.0, 1.0]],
        doc_lengths=[4, 4],
        term_frequency=[2, 4, 2],
    )
    payload = prepare_visualization(inputs, VisualizationConfiguration(lambda_values=[0.5]))
    last = payload.ranking_for(0.5).topics[0].terms[-1]
    assert last.term == "c"
    assert last.relevance is None
    assert last.logprob is None
    assert "Infinity" not in payload.model_dump_json()


def test_invalid_lambda_grid_yields_no_payload(scenario_inputs):
    """
    A grid with one value above 1 fails before any ranking is computed.
    """
    config = VisualizationConfiguration.model_construct(lambda_values=[0.5, 1.2])
    cache = RelevanceCache(scenario_inputs.topic_term_dists, scenario_inputs.term_frequency)
    with pytest.raises(InvalidLambdaError):
        prepare_visualization(scenario_inputs, config, cache=cache)
    assert len(cache) == 0


def test_configuration_rejects_invalid_lambda_values():
    """
    Configuration validation reports lambda values outside [0, 1].
    """
    with pytest.raises(ValidationError):
        VisualizationConfiguration(lambda_values=[0.0, -0.5])
    with pytest.raises(ValidationError):
        VisualizationConfiguration(lambda_values=[])
    with pytest.raises(ValidationError):
        VisualizationConfiguration(mds_method="tsne")
    with pytest.raises(ValidationError):
        VisualizationConfiguration(terms_per_topic=0)


def test_caller_owned_cache_is_reused(scenario_inputs):
    """
    Relevance matrices computed for one payload are reused by the next.
    """
    cache = RelevanceCache(scenario_inputs.topic_term_dists, scenario_inputs.term_frequency)
    prepare_visualization(scenario_inputs, VisualizationConfiguration(lambda_step=0.25), cache=cache)
    assert len(cache) == 5
    prepare_visualization(
        scenario_inputs, VisualizationConfiguration(lambda_values=[0.5, 1.0]), cache=cache
    )
    assert len(cache) == 5


def test_cache_for_other_inputs_is_rejected(scenario_inputs):
    """
    A cache bound to another topic-term matrix cannot be used.
    """
    cache = RelevanceCache(np.array(scenario_inputs.topic_term_dists), scenario_inputs.term_frequency)
    with pytest.raises(ValueError, match="different"):
        prepare_visualization(scenario_inputs, cache=cache)


def test_cache_with_other_term_frequencies_is_rejected(scenario_inputs):
    """
    A cache bound to the same topic-term matrix but other term frequencies cannot be used.
    """
    cache = RelevanceCache(scenario_inputs.topic_term_dists, np.array([5, 15, 10, 10]))
    with pytest.raises(ValueError, match="term frequencies"):
        prepare_visualization(scenario_inputs, cache=cache)
    assert len(cache) == 0


def test_cache_with_equal_term_frequencies_is_accepted(scenario_inputs):
    """
    Term frequencies equal in value to the inputs bind the cache to them.
    """
    cache = RelevanceCache(
        scenario_inputs.topic_term_dists, np.array(scenario_inputs.term_frequency)
    )
    prepare_visualization(scenario_inputs, VisualizationConfiguration(lambda_values=[0.5]), cache=cache)
    assert 0.5 in cache


def test_loose_row_sum_tolerance_reaches_relevance():
    """
    Inputs accepted with a looser tolerance can be ranked under the same configuration.
    """
    raw = scenario_payload()
    raw["topic_term_dists"] = [[0.7, 0.1, 0.1, 0.1 + 1e-7], [0.1, 0.1, 0.1, 0.7]]
    inputs = build_model_inputs(**raw, row_sum_tolerance=1e-6)
    config = VisualizationConfiguration(lambda_values=[1.0], row_sum_tolerance=1e-6)
    payload = prepare_visualization(inputs, config)
    assert summarize_rankings(payload, 1.0)[1][0] == "t0"


def test_default_terms_and_token_table(scenario_inputs):
    """
    Default terms are ordered by saliency and the token table covers ranked terms.
    """
    payload = prepare_visualization(scenario_inputs, VisualizationConfiguration(terms_per_topic=2))
    default_terms = [entry.term for entry in payload.default_terms]
    assert len(default_terms) == 2
    assert set(default_terms) == {"t0", "t3"}
    table_terms = {row.term for row in payload.token_table}
    ranked_terms = {
        entry.term
        for ranking in payload.rankings
        for topic in ranking.topics
        for entry in topic.terms
    }
    assert ranked_terms <= table_terms
    t0_rows = {row.topic: row.frequency for row in payload.token_table if row.term == "t0"}
    assert t0_rows[1] == pytest.approx(0.7 * 22.0)
    assert t0_rows[2] == pytest.approx(0.1 * 18.0)


def test_payload_json_round_trip(tmp_path, scenario_inputs):
    """
    A written payload loads back into an equal model.
    """
    payload = prepare_visualization(scenario_inputs, VisualizationConfiguration(lambda_step=0.5))
    path = tmp_path / "out" / "payload.json"
    write_payload(path=path, payload=payload)
    loaded = VisualizationPayload.model_validate(json.loads(path.read_text(encoding="utf-8")))
    assert loaded == payload
    with pytest.raises(KeyError):
        loaded.ranking_for(0.25)


def test_prepare_reports_progress(capsys, scenario_inputs):
    """
    Progress lines are written to standard error.
    """
    prepare_visualization(scenario_inputs, VisualizationConfiguration(lambda_step=0.5))
    captured = capsys.readouterr()
    assert "[ldaview] prepare topics=2 terms=4 documents=2 lambdas=3" in captured.err
    assert "[ldaview] ranking 3/3" in captured.err
    assert captured.out == ""
