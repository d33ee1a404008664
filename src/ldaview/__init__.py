"""
ldaview public package interface.
"""

from .corpus import CorpusDocument, prepare_corpus, tokenize
from .errors import DegenerateDistributionError, InvalidLambdaError, ModelDimensionError
from .estimation import estimate_model_inputs
from .inputs import TopicModelInputs, build_model_inputs
from .marginals import term_saliency, topic_frequencies
from .models import (
    BagOfWordsCorpus,
    CorpusConfiguration,
    EstimationConfiguration,
    SamplerState,
    VisualizationConfiguration,
    VisualizationPayload,
)
from .prepare import prepare_visualization
from .projection import project_topics, topic_distances
from .relevance import RelevanceCache, compute_term_relevance, top_terms

__all__ = [
    "__version__",
    "BagOfWordsCorpus",
    "CorpusConfiguration",
    "CorpusDocument",
    "DegenerateDistributionError",
    "EstimationConfiguration",
    "InvalidLambdaError",
    "ModelDimensionError",
    "RelevanceCache",
    "SamplerState",
    "TopicModelInputs",
    "VisualizationConfiguration",
    "VisualizationPayload",
    "build_model_inputs",
    "compute_term_relevance",
    "estimate_model_inputs",
    "prepare_corpus",
    "prepare_visualization",
    "project_topics",
    "term_saliency",
    "tokenize",
    "top_terms",
    "topic_distances",
    "topic_frequencies",
]

__version__ = "0.3.0"
