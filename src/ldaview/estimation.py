"""
Point estimates of topic model distributions from collapsed Gibbs sampler counts.
"""

from __future__ import annotations

import sys
from typing import Optional

import numpy as np

from .constants import DEFAULT_ROW_SUM_TOLERANCE, LOG_PREFIX
from .errors import DegenerateDistributionError, ModelDimensionError
from .inputs import TopicModelInputs, build_model_inputs
from .models import EstimationConfiguration, SamplerState


def _count_matrix(values: object, *, name: str) -> np.ndarray:
    matrix = np.asarray(values, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] == 0 or matrix.shape[1] == 0:
        raise ModelDimensionError(
            name=name, expected="a non-empty 2-d count matrix", actual=str(matrix.shape)
        )
    if not np.all(np.isfinite(matrix)) or np.any(matrix < 0):
        raise DegenerateDistributionError(f"{name} must contain non-negative counts")
    return matrix


def smoothed_distribution(counts: np.ndarray, prior: float) -> np.ndarray:
    """
    Normalize count rows with a symmetric Dirichlet prior.

    :param counts: Count matrix.
    :type counts: numpy.ndarray
    :param prior: Pseudo-count added to every cell.
    :type prior: float
    :return: Row-stochastic matrix with strictly positive entries.
    :rtype: numpy.ndarray
    """
    smoothed = np.asarray(counts, dtype=float) + prior
    return smoothed / smoothed.sum(axis=1, keepdims=True)


def estimate_model_inputs(
    state: SamplerState,
    config: Optional[EstimationConfiguration] = None,
    *,
    row_sum_tolerance: float = DEFAULT_ROW_SUM_TOLERANCE,
) -> TopicModelInputs:
    """
    Estimate topic-term and document-topic distributions from a sampler's final state.

    :param state: Final sampler assignment counts.
    :type state: SamplerState
    :param config: Dirichlet priors; defaults apply when omitted.
    :type config: EstimationConfiguration or None
    :param row_sum_tolerance: Absolute tolerance for probability row sums.
    :type row_sum_tolerance: float
    :return: Validated model inputs.
    :rtype: TopicModelInputs
    """
    config = config or EstimationConfiguration()
    topic_term_counts = _count_matrix(state.topic_term_counts, name="topic_term_counts")
    document_topic_counts = _count_matrix(
        state.document_topic_counts, name="document_topic_counts"
    )
    if document_topic_counts.shape[1] != topic_term_counts.shape[0]:
        raise ModelDimensionError(
            name="document_topic_counts",
            expected=f"{topic_term_counts.shape[0]} columns",
            actual=f"{document_topic_counts.shape[1]} columns",
        )

    doc_lengths = (
        np.asarray(state.doc_lengths, dtype=float)
        if state.doc_lengths is not None
        else document_topic_counts.sum(axis=1)
    )
    term_frequency = (
        np.asarray(state.term_frequency, dtype=float)
        if state.term_frequency is not None
        else topic_term_counts.sum(axis=0)
    )
    print(
        f"{LOG_PREFIX} estimate topics={topic_term_counts.shape[0]} "
        f"terms={topic_term_counts.shape[1]} documents={document_topic_counts.shape[0]} "
        f"alpha={config.alpha} eta={config.eta}",
        flush=True,
        file=sys.stderr,
    )
    return build_model_inputs(
        vocab=state.vocab,
        topic_term_dists=smoothed_distribution(topic_term_counts, config.eta),
        doc_topic_dists=smoothed_distribution(document_topic_counts, config.alpha),
        doc_lengths=doc_lengths,
        term_frequency=term_frequency,
        row_sum_tolerance=row_sum_tolerance,
    )
