"""
Assemble the topic viewer payload from validated model inputs.
"""

from __future__ import annotations

import math
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from .constants import LOG_PREFIX
from .inputs import TopicModelInputs
from .marginals import term_saliency, topic_frequencies, topic_term_frequency
from .models import (
    DefaultTerm,
    LambdaRanking,
    RankedTerm,
    TokenTableRow,
    TopicCoordinate,
    TopicRanking,
    VisualizationConfiguration,
    VisualizationMetadata,
    VisualizationPayload,
)
from .projection import project_topics, topic_distances
from .relevance import RelevanceCache, term_marginal, top_terms, validate_lambda_grid


def _finite_or_none(value: float) -> Optional[float]:
    return float(value) if math.isfinite(value) else None


def _log_interval(total: int) -> int:
    if total <= 20:
        return 5
    if total <= 50:
        return 10
    return 25


def topic_display_order(topic_frequency: np.ndarray, *, sort_topics: bool) -> List[int]:
    """
    Decide the display order of topics.

    :param topic_frequency: Topic frequencies, shape (K,).
    :type topic_frequency: numpy.ndarray
    :param sort_topics: Whether to order by decreasing frequency.
    :type sort_topics: bool
    :return: Zero-based source topic indices in display order.
    :rtype: list[int]
    """
    if not sort_topics:
        return list(range(len(topic_frequency)))
    return [int(index) for index in np.argsort(-np.asarray(topic_frequency), kind="stable")]


def rank_topic_terms(
    *,
    inputs: TopicModelInputs,
    relevance: np.ndarray,
    terms_per_topic: int,
    topic_order: Sequence[int],
    topic_frequency: np.ndarray,
    saliency: np.ndarray,
) -> List[TopicRanking]:
    """
    Build ranked term entries for every topic from a relevance matrix.

    :param inputs: Validated model inputs.
    :type inputs: TopicModelInputs
    :param relevance: Relevance matrix for one lambda, shape (K, W).
    :type relevance: numpy.ndarray
    :param terms_per_topic: Requested terms per topic; clamped to the vocabulary size.
    :type terms_per_topic: int
    :param topic_order: Source topic indices in display order.
    :type topic_order: Sequence[int]
    :param topic_frequency: Topic frequencies, shape (K,).
    :type topic_frequency: numpy.ndarray
    :param saliency: Saliency per term, shape (W,).
    :type saliency: numpy.ndarray
    :return: Per-topic rankings in display order.
    :rtype: list[TopicRanking]
    """
    phi = inputs.topic_term_dists
    marginal = term_marginal(inputs.term_frequency)
    expected_counts = topic_term_frequency(phi, topic_frequency)
    selected = top_terms(relevance, terms_per_topic)
    rankings: List[TopicRanking] = []
    for display_index, source_topic in enumerate(topic_order):
        entries: List[RankedTerm] = []
        for rank, term_index in enumerate(selected[source_topic], start=1):
            term_index = int(term_index)
            probability = float(phi[source_topic, term_index])
            logprob = math.log(probability) if probability > 0 else -math.inf
            loglift = logprob - math.log(float(marginal[term_index]))
            entries.append(
                RankedTerm(
                    term=inputs.vocab[term_index],
                    term_index=term_index,
                    rank=rank,
                    relevance=_finite_or_none(float(relevance[source_topic, term_index])),
                    frequency=float(expected_counts[source_topic, term_index]),
                    total=float(inputs.term_frequency[term_index]),
                    logprob=_finite_or_none(logprob),
                    loglift=_finite_or_none(loglift),
                    saliency=float(saliency[term_index]),
                )
            )
        rankings.append(
            TopicRanking(topic=display_index + 1, source_topic=int(source_topic), terms=entries)
        )
    return rankings


def _default_terms(
    *, inputs: TopicModelInputs, saliency: np.ndarray, terms_per_topic: int
) -> List[DefaultTerm]:
    count = min(terms_per_topic, inputs.term_count)
    order = np.argsort(-saliency, kind="stable")[:count]
    return [
        DefaultTerm(
            term=inputs.vocab[int(term_index)],
            term_index=int(term_index),
            rank=rank,
            total=float(inputs.term_frequency[int(term_index)]),
            saliency=float(saliency[int(term_index)]),
        )
        for rank, term_index in enumerate(order, start=1)
    ]


def _token_table(
    *,
    inputs: TopicModelInputs,
    rankings: Sequence[LambdaRanking],
    default_terms: Sequence[DefaultTerm],
    topic_order: Sequence[int],
    topic_frequency: np.ndarray,
) -> List[TokenTableRow]:
    term_indices = {entry.term_index for entry in default_terms}
    for ranking in rankings:
        for topic in ranking.topics:
            term_indices.update(entry.term_index for entry in topic.terms)
    expected_counts = topic_term_frequency(inputs.topic_term_dists, topic_frequency)
    rows: List[TokenTableRow] = []
    for term_index in sorted(term_indices):
        for display_index, source_topic in enumerate(topic_order):
            frequency = float(expected_counts[source_topic, term_index])
            if frequency <= 0:
                continue
            rows.append(
                TokenTableRow(
                    term=inputs.vocab[term_index],
                    term_index=term_index,
                    topic=display_index + 1,
                    frequency=frequency,
                )
            )
    return rows


def prepare_visualization(
    inputs: TopicModelInputs,
    config: Optional[VisualizationConfiguration] = None,
    *,
    cache: Optional[RelevanceCache] = None,
) -> VisualizationPayload:
    """
    Compute topic coordinates, marginals and per-lambda rankings for the viewer.

    The whole lambda grid is validated before any ranking is computed, so an invalid grid never
    yields a partial payload.

    :param inputs: Validated model inputs.
    :type inputs: TopicModelInputs
    :param config: Visualization configuration; defaults apply when omitted.
    :type config: VisualizationConfiguration or None
    :param cache: Optional caller-owned relevance cache bound to the same inputs.
    :type cache: RelevanceCache or None
    :return: Visualization payload.
    :rtype: VisualizationPayload
    :raises InvalidLambdaError: If the lambda grid contains values outside [0, 1].
    :raises ValueError: If the cache is bound to different inputs.
    """
    config = config or VisualizationConfiguration()
    lambdas = validate_lambda_grid(config.resolved_lambdas())
    if cache is None:
        cache = RelevanceCache(
            inputs.topic_term_dists,
            inputs.term_frequency,
            row_sum_tolerance=config.row_sum_tolerance,
        )
    elif cache.topic_term_dists is not inputs.topic_term_dists:
        raise ValueError("Relevance cache is bound to a different topic-term matrix")
    elif cache.term_frequency is not inputs.term_frequency and not np.array_equal(
        cache.term_frequency, inputs.term_frequency
    ):
        raise ValueError("Relevance cache is bound to different term frequencies")
    terms_per_topic = min(config.terms_per_topic, inputs.term_count)

    print(
        f"{LOG_PREFIX} prepare topics={inputs.topic_count} terms={inputs.term_count} "
        f"documents={inputs.document_count} lambdas={len(lambdas)}",
        flush=True,
        file=sys.stderr,
    )
    start_time = time.perf_counter()

    frequency = topic_frequencies(inputs.doc_topic_dists, inputs.doc_lengths)
    order = topic_display_order(frequency, sort_topics=config.sort_topics)
    coordinates = project_topics(topic_distances(inputs.topic_term_dists))
    saliency = term_saliency(inputs.topic_term_dists, frequency, inputs.term_frequency)
    total_frequency = float(frequency.sum())

    topic_coordinates = [
        TopicCoordinate(
            topic=display_index + 1,
            source_topic=source_topic,
            x=float(coordinates[source_topic, 0]),
            y=float(coordinates[source_topic, 1]),
            frequency=float(frequency[source_topic]),
            proportion=(
                100.0 * float(frequency[source_topic]) / total_frequency
                if total_frequency > 0
                else 0.0
            ),
        )
        for display_index, source_topic in enumerate(order)
    ]

    rankings: List[LambdaRanking] = []
    interval = _log_interval(len(lambdas))
    for completed, relevance_lambda in enumerate(lambdas, start=1):
        topics = rank_topic_terms(
            inputs=inputs,
            relevance=cache.relevance(relevance_lambda),
            terms_per_topic=terms_per_topic,
            topic_order=order,
            topic_frequency=frequency,
            saliency=saliency,
        )
        rankings.append(LambdaRanking(relevance_lambda=relevance_lambda, topics=topics))
        if completed % interval == 0 or completed == len(lambdas):
            elapsed = time.perf_counter() - start_time
            print(
                f"{LOG_PREFIX} ranking {completed}/{len(lambdas)} elapsed={elapsed:.1f}s",
                flush=True,
                file=sys.stderr,
            )

    default_terms = _default_terms(
        inputs=inputs, saliency=saliency, terms_per_topic=terms_per_topic
    )
    metadata = VisualizationMetadata(
        schema_version=config.schema_version,
        topic_count=inputs.topic_count,
        term_count=inputs.term_count,
        document_count=inputs.document_count,
        token_count=inputs.token_count,
        terms_per_topic=terms_per_topic,
        lambda_step=config.lambda_step,
        lambda_values=lambdas,
        mds_method=config.mds_method,
    )
    return VisualizationPayload(
        metadata=metadata,
        topic_coordinates=topic_coordinates,
        topic_order=order,
        default_terms=default_terms,
        rankings=rankings,
        token_table=_token_table(
            inputs=inputs,
            rankings=rankings,
            default_terms=default_terms,
            topic_order=order,
            topic_frequency=frequency,
        ),
    )


def summarize_rankings(payload: VisualizationPayload, relevance_lambda: float) -> Dict[int, List[str]]:
    """
    Map each displayed topic to its ranked terms at one lambda.

    :param payload: Visualization payload.
    :type payload: VisualizationPayload
    :param relevance_lambda: Lambda to summarize.
    :type relevance_lambda: float
    :return: Mapping of display topic number to ordered terms.
    :rtype: dict[int, list[str]]
    """
    ranking = payload.ranking_for(relevance_lambda)
    return {topic.topic: [entry.term for entry in topic.terms] for topic in ranking.topics}


def write_payload(*, path: Path, payload: VisualizationPayload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload.model_dump_json(indent=2) + "\n", encoding="utf-8")
