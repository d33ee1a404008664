"""
Term relevance ranking for topic-term distributions.

Relevance blends a term's probability within a topic with its lift over the corpus marginal:

``relevance(t, w, lambda) = lambda * log(phi[t, w]) + (1 - lambda) * log(phi[t, w] / p(w))``

The computation stays in the log domain so rare terms do not underflow.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional

import numpy as np

from .constants import DEFAULT_ROW_SUM_TOLERANCE
from .errors import DegenerateDistributionError, InvalidLambdaError, ModelDimensionError
from .inputs import check_probability_rows


def validate_lambda(value: float) -> float:
    """
    Validate a relevance weight.

    :param value: Candidate lambda value.
    :type value: float
    :return: Lambda as a float.
    :rtype: float
    :raises InvalidLambdaError: If the value is not a finite number within [0, 1].
    """
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidLambdaError(value) from exc
    if not math.isfinite(number) or number < 0.0 or number > 1.0:
        raise InvalidLambdaError(value)
    return number


def validate_lambda_grid(values: Iterable[float]) -> List[float]:
    """
    Validate every lambda in a grid before any ranking work starts.

    :param values: Lambda grid.
    :type values: Iterable[float]
    :return: Validated lambda values in the given order.
    :rtype: list[float]
    :raises InvalidLambdaError: If any value is outside [0, 1].
    """
    return [validate_lambda(value) for value in values]


def lambda_grid(step: float) -> List[float]:
    """
    Build the evenly spaced lambda grid from 0 to 1 inclusive.

    When the step does not divide 1 evenly the grid still ends at exactly 1.

    :param step: Grid resolution.
    :type step: float
    :return: Lambda values.
    :rtype: list[float]
    :raises ValueError: If the step is not within (0, 1].
    """
    if not math.isfinite(step) or step <= 0.0 or step > 1.0:
        raise ValueError(f"lambda_step must be within (0, 1] (got {step!r})")
    intervals = int(math.floor(1.0 / step + 1e-9))
    values = [round(min(index * step, 1.0), 12) for index in range(intervals + 1)]
    if values[-1] < 1.0:
        values.append(1.0)
    return values


def term_marginal(term_frequency: np.ndarray) -> np.ndarray:
    """
    Compute the corpus marginal p(w) from term frequencies.

    :param term_frequency: Corpus count per term.
    :type term_frequency: numpy.ndarray
    :return: Marginal probability per term.
    :rtype: numpy.ndarray
    :raises DegenerateDistributionError: If the frequencies sum to zero.
    """
    frequency = np.asarray(term_frequency, dtype=float)
    total = float(frequency.sum())
    if total <= 0:
        raise DegenerateDistributionError("term_frequency is all zero")
    return frequency / total


def compute_term_relevance(
    topic_term_dists: np.ndarray,
    term_frequency: np.ndarray,
    lambda_: float,
    *,
    row_sum_tolerance: float = DEFAULT_ROW_SUM_TOLERANCE,
) -> np.ndarray:
    """
    Compute the relevance of every term for every topic.

    Zero probabilities map to negative infinity so those terms always rank last.

    :param topic_term_dists: Topic-term probability matrix, shape (K, W).
    :type topic_term_dists: numpy.ndarray
    :param term_frequency: Corpus count per term, shape (W,).
    :type term_frequency: numpy.ndarray
    :param lambda_: Relevance weight within [0, 1].
    :type lambda_: float
    :param row_sum_tolerance: Absolute tolerance for topic-term row sums.
    :type row_sum_tolerance: float
    :return: Relevance matrix with shape (K, W).
    :rtype: numpy.ndarray
    :raises InvalidLambdaError: If lambda is outside [0, 1].
    :raises ModelDimensionError: If the term frequency length does not match the matrix.
    :raises DegenerateDistributionError: If a topic row is not a distribution or a term
        frequency is not positive.
    """
    weight = validate_lambda(lambda_)
    phi = np.asarray(topic_term_dists, dtype=float)
    if phi.ndim != 2:
        raise ModelDimensionError(
            name="topic_term_dists", expected="2 dimensions", actual=f"{phi.ndim} dimensions"
        )
    frequency = np.asarray(term_frequency, dtype=float)
    if frequency.shape != (phi.shape[1],):
        raise ModelDimensionError(
            name="term_frequency",
            expected=f"{phi.shape[1]} entries",
            actual=f"{frequency.shape[0] if frequency.ndim == 1 else frequency.shape} entries",
        )
    check_probability_rows(phi, name="topic_term_dists", tolerance=row_sum_tolerance)
    if not np.all(np.isfinite(frequency)) or np.any(frequency <= 0):
        term_index = int(np.flatnonzero(~(np.isfinite(frequency) & (frequency > 0)))[0])
        raise DegenerateDistributionError(
            f"term_frequency must be positive (term index {term_index})"
        )
    log_marginal = np.log(term_marginal(frequency))
    positive = phi > 0
    log_phi = np.full(phi.shape, -np.inf)
    log_phi[positive] = np.log(phi[positive])
    relevance = np.full(phi.shape, -np.inf)
    relevance[positive] = weight * log_phi[positive] + (1.0 - weight) * (
        log_phi - log_marginal[np.newaxis, :]
    )[positive]
    return relevance


def top_terms(relevance: np.ndarray, terms_per_topic: int) -> np.ndarray:
    """
    Select the most relevant term indices for each topic.

    Terms are ordered by descending relevance; exact ties keep ascending term index order.
    A request for more terms than the vocabulary holds is clamped to the vocabulary size.

    :param relevance: Relevance matrix, shape (K, W).
    :type relevance: numpy.ndarray
    :param terms_per_topic: Requested number of terms per topic.
    :type terms_per_topic: int
    :return: Term indices with shape (K, min(terms_per_topic, W)).
    :rtype: numpy.ndarray
    :raises ValueError: If fewer than one term is requested.
    """
    if int(terms_per_topic) < 1:
        raise ValueError(f"terms_per_topic must be at least 1 (got {terms_per_topic!r})")
    scores = np.asarray(relevance, dtype=float)
    if scores.ndim != 2:
        raise ModelDimensionError(
            name="relevance", expected="2 dimensions", actual=f"{scores.ndim} dimensions"
        )
    count = min(int(terms_per_topic), scores.shape[1])
    order = np.argsort(-scores, axis=1, kind="stable")
    return order[:, :count]


class RelevanceCache:
    """
    Caller-owned memoization table of relevance matrices keyed by lambda.

    The cache is bound to one topic-term matrix and one set of term frequencies; rankings for
    a different model need a different cache.

    :param topic_term_dists: Topic-term probability matrix, shape (K, W).
    :type topic_term_dists: numpy.ndarray
    :param term_frequency: Corpus count per term, shape (W,).
    :type term_frequency: numpy.ndarray
    :param row_sum_tolerance: Absolute tolerance for topic-term row sums.
    :type row_sum_tolerance: float
    """

    def __init__(
        self,
        topic_term_dists: np.ndarray,
        term_frequency: np.ndarray,
        *,
        row_sum_tolerance: float = DEFAULT_ROW_SUM_TOLERANCE,
    ) -> None:
        self.topic_term_dists = topic_term_dists
        self.term_frequency = term_frequency
        self.row_sum_tolerance = row_sum_tolerance
        self._table: Dict[float, np.ndarray] = {}

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, lambda_: object) -> bool:
        return isinstance(lambda_, (int, float)) and float(lambda_) in self._table

    def get(self, lambda_: float) -> Optional[np.ndarray]:
        return self._table.get(validate_lambda(lambda_))

    def relevance(self, lambda_: float) -> np.ndarray:
        """
        Return the relevance matrix for a lambda, computing it on first use.

        :param lambda_: Relevance weight within [0, 1].
        :type lambda_: float
        :return: Read-only relevance matrix, shape (K, W).
        :rtype: numpy.ndarray
        """
        key = validate_lambda(lambda_)
        cached = self._table.get(key)
        if cached is None:
            cached = compute_term_relevance(
                self.topic_term_dists,
                self.term_frequency,
                key,
                row_sum_tolerance=self.row_sum_tolerance,
            )
            cached.setflags(write=False)
            self._table[key] = cached
        return cached

    def clear(self) -> None:
        self._table.clear()
