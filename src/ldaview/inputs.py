"""
Validated model inputs for the relevance and projection engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .constants import DEFAULT_ROW_SUM_TOLERANCE
from .errors import DegenerateDistributionError, ModelDimensionError


@dataclass(frozen=True)
class TopicModelInputs:
    """
    Fitted topic model quantities consumed by the engine.

    Arrays are stored read-only so downstream computations cannot mutate them.

    :ivar vocab: Ordered vocabulary terms.
    :vartype vocab: tuple[str, ...]
    :ivar topic_term_dists: Topic-term probability matrix with shape (K, W).
    :vartype topic_term_dists: numpy.ndarray
    :ivar doc_topic_dists: Document-topic probability matrix with shape (D, K).
    :vartype doc_topic_dists: numpy.ndarray
    :ivar doc_lengths: Token count per document with shape (D,).
    :vartype doc_lengths: numpy.ndarray
    :ivar term_frequency: Corpus occurrence count per term with shape (W,).
    :vartype term_frequency: numpy.ndarray
    """

    vocab: tuple
    topic_term_dists: np.ndarray
    doc_topic_dists: np.ndarray
    doc_lengths: np.ndarray
    term_frequency: np.ndarray

    @property
    def topic_count(self) -> int:
        return int(self.topic_term_dists.shape[0])

    @property
    def term_count(self) -> int:
        return int(self.topic_term_dists.shape[1])

    @property
    def document_count(self) -> int:
        return int(self.doc_topic_dists.shape[0])

    @property
    def token_count(self) -> int:
        return int(round(float(self.doc_lengths.sum())))


def _readonly(array: np.ndarray) -> np.ndarray:
    frozen = np.array(array, copy=True)
    frozen.setflags(write=False)
    return frozen


def _as_float_array(values: object, *, name: str, ndim: int) -> np.ndarray:
    try:
        array = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise ModelDimensionError(
            name=name, expected=f"a numeric {ndim}-d array", actual="non-numeric values"
        ) from exc
    if array.ndim != ndim:
        raise ModelDimensionError(
            name=name, expected=f"{ndim} dimensions", actual=f"{array.ndim} dimensions"
        )
    return array


def check_probability_rows(
    matrix: np.ndarray, *, name: str, tolerance: float = DEFAULT_ROW_SUM_TOLERANCE
) -> None:
    """
    Check that every row of a matrix is a probability distribution.

    :param matrix: Two-dimensional array to check.
    :type matrix: numpy.ndarray
    :param name: Input name used in error messages.
    :type name: str
    :param tolerance: Absolute tolerance for row sums.
    :type tolerance: float
    :return: None.
    :rtype: None
    :raises DegenerateDistributionError: If any row is not a probability distribution.
    """
    if not np.all(np.isfinite(matrix)):
        raise DegenerateDistributionError(f"{name} contains non-finite values")
    if np.any(matrix < 0):
        raise DegenerateDistributionError(f"{name} contains negative probabilities")
    row_sums = matrix.sum(axis=1)
    empty_rows = np.flatnonzero(row_sums == 0)
    if empty_rows.size:
        raise DegenerateDistributionError(
            f"{name} row {int(empty_rows[0])} sums to zero; the upstream model output is invalid"
        )
    off_rows = np.flatnonzero(np.abs(row_sums - 1.0) > tolerance)
    if off_rows.size:
        row = int(off_rows[0])
        raise DegenerateDistributionError(
            f"{name} row {row} sums to {float(row_sums[row])!r}, not 1 within {tolerance!r}"
        )


def build_model_inputs(
    *,
    vocab: Sequence[str],
    topic_term_dists: object,
    doc_topic_dists: object,
    doc_lengths: object,
    term_frequency: object,
    row_sum_tolerance: float = DEFAULT_ROW_SUM_TOLERANCE,
) -> TopicModelInputs:
    """
    Validate raw model quantities and bundle them as immutable inputs.

    Shapes are checked before any value-level check so that a mismatch is always reported as a
    dimension error.

    :param vocab: Ordered vocabulary terms.
    :type vocab: Sequence[str]
    :param topic_term_dists: Topic-term probabilities, shape (K, W).
    :type topic_term_dists: object
    :param doc_topic_dists: Document-topic probabilities, shape (D, K).
    :type doc_topic_dists: object
    :param doc_lengths: Token count per document, shape (D,).
    :type doc_lengths: object
    :param term_frequency: Corpus count per term, shape (W,).
    :type term_frequency: object
    :param row_sum_tolerance: Absolute tolerance for probability row sums.
    :type row_sum_tolerance: float
    :return: Validated model inputs.
    :rtype: TopicModelInputs
    :raises ModelDimensionError: If shapes are inconsistent.
    :raises DegenerateDistributionError: If values cannot describe a fitted model.
    """
    terms = tuple(str(term) for term in vocab)
    phi = _as_float_array(topic_term_dists, name="topic_term_dists", ndim=2)
    theta = _as_float_array(doc_topic_dists, name="doc_topic_dists", ndim=2)
    lengths = _as_float_array(doc_lengths, name="doc_lengths", ndim=1)
    frequency = _as_float_array(term_frequency, name="term_frequency", ndim=1)

    topic_count, term_count = phi.shape
    if topic_count == 0 or term_count == 0:
        raise ModelDimensionError(
            name="topic_term_dists", expected="at least one topic and one term", actual=str(phi.shape)
        )
    if len(terms) != term_count:
        raise ModelDimensionError(
            name="vocab", expected=f"{term_count} terms", actual=f"{len(terms)} terms"
        )
    if len(set(terms)) != len(terms):
        raise ModelDimensionError(
            name="vocab", expected="unique terms", actual="duplicate terms"
        )
    if frequency.shape[0] != term_count:
        raise ModelDimensionError(
            name="term_frequency",
            expected=f"{term_count} entries",
            actual=f"{frequency.shape[0]} entries",
        )
    if theta.shape[1] != topic_count:
        raise ModelDimensionError(
            name="doc_topic_dists",
            expected=f"{topic_count} columns",
            actual=f"{theta.shape[1]} columns",
        )
    if theta.shape[0] == 0:
        raise ModelDimensionError(
            name="doc_topic_dists", expected="at least one document", actual="0 documents"
        )
    if lengths.shape[0] != theta.shape[0]:
        raise ModelDimensionError(
            name="doc_lengths",
            expected=f"{theta.shape[0]} entries",
            actual=f"{lengths.shape[0]} entries",
        )

    check_probability_rows(phi, name="topic_term_dists", tolerance=row_sum_tolerance)
    check_probability_rows(theta, name="doc_topic_dists", tolerance=row_sum_tolerance)

    if not np.all(np.isfinite(lengths)) or np.any(lengths <= 0):
        raise DegenerateDistributionError("doc_lengths must be positive")
    if np.any(lengths != np.round(lengths)):
        raise DegenerateDistributionError("doc_lengths must be whole token counts")
    if not np.all(np.isfinite(frequency)):
        raise DegenerateDistributionError("term_frequency contains non-finite values")
    if not np.any(frequency > 0):
        raise DegenerateDistributionError(
            "term_frequency is all zero; the upstream corpus statistics are invalid"
        )
    if np.any(frequency <= 0):
        term = terms[int(np.flatnonzero(frequency <= 0)[0])]
        raise DegenerateDistributionError(f"term_frequency must be positive (term {term!r})")
    if np.any(frequency != np.round(frequency)):
        term = terms[int(np.flatnonzero(frequency != np.round(frequency))[0])]
        raise DegenerateDistributionError(f"term_frequency must be whole counts (term {term!r})")
    token_total = float(lengths.sum())
    if not np.isclose(float(frequency.sum()), token_total):
        raise DegenerateDistributionError(
            f"term_frequency sums to {float(frequency.sum())!r} but doc_lengths sum to {token_total!r}"
        )

    return TopicModelInputs(
        vocab=terms,
        topic_term_dists=_readonly(phi),
        doc_topic_dists=_readonly(theta),
        doc_lengths=_readonly(lengths),
        term_frequency=_readonly(frequency),
    )
