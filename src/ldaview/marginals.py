"""
Topic and term marginals derived from a fitted topic model.
"""

from __future__ import annotations

import numpy as np

from .errors import ModelDimensionError
from .relevance import term_marginal


def topic_frequencies(doc_topic_dists: np.ndarray, doc_lengths: np.ndarray) -> np.ndarray:
    """
    Expected token count attributable to each topic.

    :param doc_topic_dists: Document-topic probability matrix, shape (D, K).
    :type doc_topic_dists: numpy.ndarray
    :param doc_lengths: Token count per document, shape (D,).
    :type doc_lengths: numpy.ndarray
    :return: Topic frequencies with shape (K,), summing to the total token count.
    :rtype: numpy.ndarray
    """
    theta = np.asarray(doc_topic_dists, dtype=float)
    lengths = np.asarray(doc_lengths, dtype=float)
    if theta.ndim != 2 or lengths.shape != (theta.shape[0],):
        raise ModelDimensionError(
            name="doc_lengths",
            expected=f"{theta.shape[0] if theta.ndim == 2 else '?'} entries",
            actual=str(lengths.shape),
        )
    return lengths.dot(theta)


def topic_term_frequency(topic_term_dists: np.ndarray, topic_frequency: np.ndarray) -> np.ndarray:
    """
    Expected count of each term within each topic.

    :param topic_term_dists: Topic-term probability matrix, shape (K, W).
    :type topic_term_dists: numpy.ndarray
    :param topic_frequency: Topic frequencies, shape (K,).
    :type topic_frequency: numpy.ndarray
    :return: Matrix with shape (K, W).
    :rtype: numpy.ndarray
    """
    phi = np.asarray(topic_term_dists, dtype=float)
    return phi * np.asarray(topic_frequency, dtype=float)[:, np.newaxis]


def term_saliency(
    topic_term_dists: np.ndarray, topic_frequency: np.ndarray, term_frequency: np.ndarray
) -> np.ndarray:
    """
    Saliency of every term: its corpus probability times its distinctiveness across topics.

    Distinctiveness is the Kullback-Leibler divergence between p(topic | term) and the topic
    marginal p(topic).

    :param topic_term_dists: Topic-term probability matrix, shape (K, W).
    :type topic_term_dists: numpy.ndarray
    :param topic_frequency: Topic frequencies, shape (K,).
    :type topic_frequency: numpy.ndarray
    :param term_frequency: Corpus count per term, shape (W,).
    :type term_frequency: numpy.ndarray
    :return: Saliency per term with shape (W,).
    :rtype: numpy.ndarray
    """
    phi = np.asarray(topic_term_dists, dtype=float)
    topic_proportion = np.asarray(topic_frequency, dtype=float)
    topic_proportion = topic_proportion / topic_proportion.sum()
    joint = phi * topic_proportion[:, np.newaxis]
    column_sums = joint.sum(axis=0)
    topic_given_term = np.divide(
        joint, column_sums[np.newaxis, :], out=np.zeros_like(joint), where=column_sums > 0
    )
    ratio = np.divide(
        topic_given_term,
        topic_proportion[:, np.newaxis],
        out=np.ones_like(topic_given_term),
        where=(topic_given_term > 0) & (topic_proportion[:, np.newaxis] > 0),
    )
    distinctiveness = (topic_given_term * np.log(ratio)).sum(axis=0)
    return term_marginal(term_frequency) * distinctiveness
