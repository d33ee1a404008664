"""
Inter-topic distances and the two-dimensional topic layout.
"""

from __future__ import annotations

import numpy as np
from scipy.special import rel_entr

from .errors import ModelDimensionError


def jensen_shannon_divergence(first: np.ndarray, second: np.ndarray) -> float:
    """
    Jensen-Shannon divergence between two distributions, in nats.

    :param first: First probability vector.
    :type first: numpy.ndarray
    :param second: Second probability vector.
    :type second: numpy.ndarray
    :return: Divergence within [0, log 2].
    :rtype: float
    """
    p = np.asarray(first, dtype=float)
    q = np.asarray(second, dtype=float)
    midpoint = 0.5 * (p + q)
    divergence = 0.5 * (float(rel_entr(p, midpoint).sum()) + float(rel_entr(q, midpoint).sum()))
    return float(min(max(divergence, 0.0), np.log(2.0)))


def topic_distances(topic_term_dists: np.ndarray) -> np.ndarray:
    """
    Pairwise Jensen-Shannon divergence between topic-term distributions.

    Only the upper triangle is computed; it is mirrored so the result is exactly symmetric and
    the diagonal is exactly zero.

    :param topic_term_dists: Topic-term probability matrix, shape (K, W).
    :type topic_term_dists: numpy.ndarray
    :return: Distance matrix with shape (K, K).
    :rtype: numpy.ndarray
    """
    phi = np.asarray(topic_term_dists, dtype=float)
    if phi.ndim != 2:
        raise ModelDimensionError(
            name="topic_term_dists", expected="2 dimensions", actual=f"{phi.ndim} dimensions"
        )
    topic_count = phi.shape[0]
    distances = np.zeros((topic_count, topic_count))
    for row in range(topic_count):
        for column in range(row + 1, topic_count):
            value = jensen_shannon_divergence(phi[row], phi[column])
            distances[row, column] = value
            distances[column, row] = value
    return distances


def project_topics(distance_matrix: np.ndarray, dimensions: int = 2) -> np.ndarray:
    """
    Principal coordinate analysis (classical multidimensional scaling) of a distance matrix.

    Negative eigenvalues left over from floating point error are clamped to zero. Each axis is
    oriented so its largest-magnitude coordinate is positive, which keeps the layout stable
    across linear algebra backends.

    :param distance_matrix: Symmetric distance matrix, shape (K, K).
    :type distance_matrix: numpy.ndarray
    :param dimensions: Number of output coordinates per topic.
    :type dimensions: int
    :return: Coordinates with shape (K, dimensions).
    :rtype: numpy.ndarray
    """
    distances = np.asarray(distance_matrix, dtype=float)
    if distances.ndim != 2 or distances.shape[0] != distances.shape[1]:
        raise ModelDimensionError(
            name="distance_matrix", expected="a square matrix", actual=str(distances.shape)
        )
    count = distances.shape[0]
    coordinates = np.zeros((count, dimensions))
    if count <= 1:
        return coordinates

    centering = np.eye(count) - np.ones((count, count)) / count
    gram = -0.5 * centering.dot(distances**2).dot(centering)
    gram = 0.5 * (gram + gram.T)
    eigenvalues, eigenvectors = np.linalg.eigh(gram)
    order = np.argsort(eigenvalues)[::-1][: min(dimensions, count)]
    eigenvalues = eigenvalues[order]
    eigenvectors = eigenvectors[:, order]
    eigenvalues[np.isclose(eigenvalues, 0.0, atol=1e-12)] = 0.0
    eigenvalues = np.clip(eigenvalues, 0.0, None)

    for axis in range(eigenvectors.shape[1]):
        vector = eigenvectors[:, axis]
        pivot = int(np.argmax(np.abs(vector)))
        if vector[pivot] < 0:
            eigenvectors[:, axis] = -vector

    coordinates[:, : eigenvectors.shape[1]] = eigenvectors * np.sqrt(eigenvalues)[np.newaxis, :]
    return coordinates
