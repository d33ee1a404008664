"""
Pydantic models for ldaview configuration, file formats and the viewer payload.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import (
    DEFAULT_ALPHA,
    DEFAULT_ETA,
    DEFAULT_LAMBDA_STEP,
    DEFAULT_MIN_TERM_COUNT,
    DEFAULT_ROW_SUM_TOLERANCE,
    DEFAULT_TERMS_PER_TOPIC,
    MDS_METHOD_PCOA,
    PAYLOAD_SCHEMA_VERSION,
)
from .relevance import lambda_grid, validate_lambda_grid


class SchemaModel(BaseModel):
    """
    Base model that rejects unknown fields.
    """

    model_config = ConfigDict(extra="forbid")


class VisualizationConfiguration(SchemaModel):
    """
    Configuration for preparing a visualization payload.

    :ivar schema_version: Payload schema version.
    :vartype schema_version: int
    :ivar terms_per_topic: Number of ranked terms per topic (R). Clamped to the vocabulary size.
    :vartype terms_per_topic: int
    :ivar lambda_step: Resolution of the lambda grid.
    :vartype lambda_step: float
    :ivar lambda_values: Optional explicit lambda grid that replaces the stepped grid.
    :vartype lambda_values: list[float] or None
    :ivar mds_method: Topic projection method. Only principal coordinates are supported.
    :vartype mds_method: str
    :ivar sort_topics: Whether to display topics by decreasing frequency.
    :vartype sort_topics: bool
    :ivar row_sum_tolerance: Absolute tolerance for probability row sums.
    :vartype row_sum_tolerance: float
    """

    schema_version: int = Field(default=PAYLOAD_SCHEMA_VERSION, ge=1)
    terms_per_topic: int = Field(default=DEFAULT_TERMS_PER_TOPIC, ge=1)
    lambda_step: float = Field(default=DEFAULT_LAMBDA_STEP, gt=0.0, le=1.0)
    lambda_values: Optional[List[float]] = None
    mds_method: Literal["pcoa"] = MDS_METHOD_PCOA
    sort_topics: bool = True
    row_sum_tolerance: float = Field(default=DEFAULT_ROW_SUM_TOLERANCE, gt=0.0)

    @model_validator(mode="after")
    def _validate_schema_version(self) -> "VisualizationConfiguration":
        if self.schema_version != PAYLOAD_SCHEMA_VERSION:
            raise ValueError(f"Unsupported payload schema version: {self.schema_version}")
        return self

    @field_validator("lambda_values", mode="after")
    @classmethod
    def _validate_lambda_values(cls, value: Optional[List[float]]) -> Optional[List[float]]:
        if value is None:
            return None
        if not value:
            raise ValueError("lambda_values must include at least one value")
        return validate_lambda_grid(value)

    def resolved_lambdas(self) -> List[float]:
        """
        Return the lambda grid this configuration describes.

        :return: Lambda values in evaluation order.
        :rtype: list[float]
        """
        if self.lambda_values is not None:
            return list(self.lambda_values)
        return lambda_grid(self.lambda_step)


class CorpusConfiguration(SchemaModel):
    """
    Configuration for bag-of-words corpus preparation.

    :ivar lowercase: Whether to lowercase text before tokenizing.
    :vartype lowercase: bool
    :ivar stop_words: Stop words to drop: ``english`` or an explicit list.
    :vartype stop_words: str or list[str] or None
    :ivar min_term_count: Terms with fewer corpus occurrences are pruned.
    :vartype min_term_count: int
    :ivar min_token_length: Tokens shorter than this are dropped.
    :vartype min_token_length: int
    """

    lowercase: bool = True
    stop_words: Optional[object] = "english"
    min_term_count: int = Field(default=DEFAULT_MIN_TERM_COUNT, ge=1)
    min_token_length: int = Field(default=1, ge=1)

    @field_validator("stop_words", mode="before")
    @classmethod
    def _validate_stop_words(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, str):
            if value != "english":
                raise ValueError("stop_words must be 'english' or a list of strings")
            return value
        if isinstance(value, list):
            if not all(isinstance(entry, str) and entry for entry in value):
                raise ValueError("stop_words must be 'english' or a list of strings")
            return value
        raise ValueError("stop_words must be 'english' or a list of strings")


class EstimationConfiguration(SchemaModel):
    """
    Dirichlet smoothing used when estimating probabilities from sampler counts.

    :ivar alpha: Document-topic prior.
    :vartype alpha: float
    :ivar eta: Topic-term prior.
    :vartype eta: float
    """

    alpha: float = Field(default=DEFAULT_ALPHA, gt=0.0)
    eta: float = Field(default=DEFAULT_ETA, gt=0.0)


class BagOfWordsCorpus(SchemaModel):
    """
    Tokenized corpus ready for a topic model sampler.

    :ivar vocab: Ordered vocabulary terms.
    :vartype vocab: list[str]
    :ivar document_ids: Identifier of each kept document.
    :vartype document_ids: list[str]
    :ivar documents: Token indices into the vocabulary, one list per document.
    :vartype documents: list[list[int]]
    :ivar doc_lengths: Token count per document.
    :vartype doc_lengths: list[int]
    :ivar term_frequency: Corpus count per vocabulary term.
    :vartype term_frequency: list[int]
    :ivar dropped_documents: Identifiers of documents emptied by filtering.
    :vartype dropped_documents: list[str]
    :ivar pruned_terms: Count of distinct terms removed for being rare.
    :vartype pruned_terms: int
    """

    vocab: List[str]
    document_ids: List[str]
    documents: List[List[int]]
    doc_lengths: List[int]
    term_frequency: List[int]
    dropped_documents: List[str] = Field(default_factory=list)
    pruned_terms: int = Field(default=0, ge=0)

    @property
    def token_count(self) -> int:
        return sum(self.doc_lengths)


class SamplerState(SchemaModel):
    """
    Final assignment counts from an external collapsed Gibbs sampler.

    :ivar vocab: Ordered vocabulary terms.
    :vartype vocab: list[str]
    :ivar topic_term_counts: Token assignments per topic and term, shape (K, W).
    :vartype topic_term_counts: list[list[float]]
    :ivar document_topic_counts: Token assignments per document and topic, shape (D, K).
    :vartype document_topic_counts: list[list[float]]
    :ivar doc_lengths: Optional token count per document; derived from counts when absent.
    :vartype doc_lengths: list[int] or None
    :ivar term_frequency: Optional corpus count per term; derived from counts when absent.
    :vartype term_frequency: list[int] or None
    """

    vocab: List[str]
    topic_term_counts: List[List[float]]
    document_topic_counts: List[List[float]]
    doc_lengths: Optional[List[int]] = None
    term_frequency: Optional[List[int]] = None


class ModelInputsDocument(SchemaModel):
    """
    Serialized form of fitted model inputs.

    :ivar vocab: Ordered vocabulary terms.
    :vartype vocab: list[str]
    :ivar topic_term_dists: Topic-term probabilities, shape (K, W).
    :vartype topic_term_dists: list[list[float]]
    :ivar doc_topic_dists: Document-topic probabilities, shape (D, K).
    :vartype doc_topic_dists: list[list[float]]
    :ivar doc_lengths: Token count per document.
    :vartype doc_lengths: list[float]
    :ivar term_frequency: Corpus count per term.
    :vartype term_frequency: list[float]
    """

    vocab: List[str]
    topic_term_dists: List[List[float]]
    doc_topic_dists: List[List[float]]
    doc_lengths: List[float]
    term_frequency: List[float]


class TopicCoordinate(SchemaModel):
    """
    Position and size of one topic in the inter-topic distance map.

    :ivar topic: One-based display number.
    :vartype topic: int
    :ivar source_topic: Zero-based row of the topic in the topic-term matrix.
    :vartype source_topic: int
    :ivar x: First principal coordinate.
    :vartype x: float
    :ivar y: Second principal coordinate.
    :vartype y: float
    :ivar frequency: Expected token count attributed to the topic.
    :vartype frequency: float
    :ivar proportion: Percentage of corpus tokens attributed to the topic.
    :vartype proportion: float
    """

    topic: int = Field(ge=1)
    source_topic: int = Field(ge=0)
    x: float
    y: float
    frequency: float = Field(ge=0.0)
    proportion: float = Field(ge=0.0)


class RankedTerm(SchemaModel):
    """
    One ranked term within a topic.

    ``relevance``, ``logprob`` and ``loglift`` are ``None`` when the term has zero probability in
    the topic, which JSON cannot express as negative infinity.

    :ivar term: Vocabulary term.
    :vartype term: str
    :ivar term_index: Zero-based vocabulary index.
    :vartype term_index: int
    :ivar rank: One-based rank within the topic.
    :vartype rank: int
    :ivar relevance: Relevance at this lambda.
    :vartype relevance: float or None
    :ivar frequency: Expected count of the term within the topic.
    :vartype frequency: float
    :ivar total: Corpus count of the term.
    :vartype total: float
    :ivar logprob: Log probability of the term within the topic.
    :vartype logprob: float or None
    :ivar loglift: Log lift of the term within the topic.
    :vartype loglift: float or None
    :ivar saliency: Corpus-wide saliency of the term.
    :vartype saliency: float
    """

    term: str
    term_index: int = Field(ge=0)
    rank: int = Field(ge=1)
    relevance: Optional[float] = None
    frequency: float
    total: float
    logprob: Optional[float] = None
    loglift: Optional[float] = None
    saliency: float


class TopicRanking(SchemaModel):
    """
    Ranked terms for one topic.

    :ivar topic: One-based display number.
    :vartype topic: int
    :ivar source_topic: Zero-based row in the topic-term matrix.
    :vartype source_topic: int
    :ivar terms: Terms ordered by descending relevance.
    :vartype terms: list[RankedTerm]
    """

    topic: int = Field(ge=1)
    source_topic: int = Field(ge=0)
    terms: List[RankedTerm] = Field(default_factory=list)


class LambdaRanking(SchemaModel):
    """
    Rankings for every topic at one lambda.

    :ivar relevance_lambda: Lambda used for this ranking.
    :vartype relevance_lambda: float
    :ivar topics: Per-topic rankings in display order.
    :vartype topics: list[TopicRanking]
    """

    relevance_lambda: float = Field(ge=0.0, le=1.0)
    topics: List[TopicRanking] = Field(default_factory=list)


class DefaultTerm(SchemaModel):
    """
    Corpus-wide salient term shown before a topic is selected.

    :ivar term: Vocabulary term.
    :vartype term: str
    :ivar term_index: Zero-based vocabulary index.
    :vartype term_index: int
    :ivar rank: One-based saliency rank.
    :vartype rank: int
    :ivar total: Corpus count of the term.
    :vartype total: float
    :ivar saliency: Saliency of the term.
    :vartype saliency: float
    """

    term: str
    term_index: int = Field(ge=0)
    rank: int = Field(ge=1)
    total: float
    saliency: float


class TokenTableRow(SchemaModel):
    """
    Expected count of a ranked term within one topic.

    :ivar term: Vocabulary term.
    :vartype term: str
    :ivar term_index: Zero-based vocabulary index.
    :vartype term_index: int
    :ivar topic: One-based display number.
    :vartype topic: int
    :ivar frequency: Expected count of the term within the topic.
    :vartype frequency: float
    """

    term: str
    term_index: int = Field(ge=0)
    topic: int = Field(ge=1)
    frequency: float


class VisualizationMetadata(SchemaModel):
    """
    Global facts about a visualization payload.

    :ivar schema_version: Payload schema version.
    :vartype schema_version: int
    :ivar topic_count: Number of topics (K).
    :vartype topic_count: int
    :ivar term_count: Vocabulary size (W).
    :vartype term_count: int
    :ivar document_count: Number of documents (D).
    :vartype document_count: int
    :ivar token_count: Total tokens (N).
    :vartype token_count: int
    :ivar terms_per_topic: Ranked terms per topic after clamping.
    :vartype terms_per_topic: int
    :ivar lambda_step: Configured lambda grid resolution.
    :vartype lambda_step: float
    :ivar lambda_values: Lambda grid in evaluation order.
    :vartype lambda_values: list[float]
    :ivar mds_method: Projection method.
    :vartype mds_method: str
    """

    schema_version: int = Field(default=PAYLOAD_SCHEMA_VERSION, ge=1)
    topic_count: int = Field(ge=1)
    term_count: int = Field(ge=1)
    document_count: int = Field(ge=1)
    token_count: int = Field(ge=0)
    terms_per_topic: int = Field(ge=1)
    lambda_step: float
    lambda_values: List[float] = Field(default_factory=list)
    mds_method: str = MDS_METHOD_PCOA


class VisualizationPayload(SchemaModel):
    """
    Everything the topic viewer needs to render a fitted model.

    :ivar metadata: Global payload facts.
    :vartype metadata: VisualizationMetadata
    :ivar topic_coordinates: Topic positions and sizes in display order.
    :vartype topic_coordinates: list[TopicCoordinate]
    :ivar topic_order: Zero-based source topic index for each display position.
    :vartype topic_order: list[int]
    :ivar default_terms: Most salient terms across the corpus.
    :vartype default_terms: list[DefaultTerm]
    :ivar rankings: Per-lambda term rankings.
    :vartype rankings: list[LambdaRanking]
    :ivar token_table: Per-topic counts for every ranked term.
    :vartype token_table: list[TokenTableRow]
    """

    metadata: VisualizationMetadata
    topic_coordinates: List[TopicCoordinate]
    topic_order: List[int]
    default_terms: List[DefaultTerm] = Field(default_factory=list)
    rankings: List[LambdaRanking] = Field(default_factory=list)
    token_table: List[TokenTableRow] = Field(default_factory=list)

    def ranking_for(self, relevance_lambda: float) -> LambdaRanking:
        """
        Find the ranking computed for a lambda.

        :param relevance_lambda: Lambda to look up.
        :type relevance_lambda: float
        :return: Matching ranking.
        :rtype: LambdaRanking
        :raises KeyError: If the payload has no ranking for the lambda.
        """
        for ranking in self.rankings:
            if abs(ranking.relevance_lambda - relevance_lambda) <= 1e-12:
                return ranking
        raise KeyError(f"No ranking for lambda {relevance_lambda!r}")
