"""
Error types for ldaview.

Every error derives from :class:`ValueError` because each one describes a caller input problem
rather than a transient condition.
"""

from __future__ import annotations


class ModelDimensionError(ValueError):
    """
    Model inputs whose shapes disagree with each other.

    :param name: Name of the offending input.
    :type name: str
    :param expected: Expected shape or length description.
    :type expected: str
    :param actual: Observed shape or length description.
    :type actual: str
    """

    def __init__(self, *, name: str, expected: str, actual: str) -> None:
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"Dimension mismatch for {name}: expected {expected}, got {actual}")


class InvalidLambdaError(ValueError):
    """
    Relevance weight outside the closed unit interval.

    :param value: Offending lambda value.
    :type value: float
    """

    def __init__(self, value: float) -> None:
        self.value = value
        super().__init__(f"Relevance lambda must be within [0, 1] (got {value!r})")


class DegenerateDistributionError(ValueError):
    """
    Probability or frequency input that cannot describe a fitted topic model.

    This indicates that the upstream sampler output is invalid, for example a topic row that sums
    to zero or a corpus whose term frequencies are all zero.
    """
