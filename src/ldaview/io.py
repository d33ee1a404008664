"""
Reading and writing ldaview file formats.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

import numpy as np

from .constants import DEFAULT_ROW_SUM_TOLERANCE
from .corpus import CorpusDocument
from .inputs import TopicModelInputs, build_model_inputs
from .models import BagOfWordsCorpus, ModelInputsDocument, SamplerState

_MODEL_INPUT_KEYS = (
    "vocab",
    "topic_term_dists",
    "doc_topic_dists",
    "doc_lengths",
    "term_frequency",
)


def _require_file(path: Path, label: str) -> Path:
    candidate = Path(path)
    if not candidate.is_file():
        raise FileNotFoundError(f"{label} not found: {candidate}")
    return candidate


def _read_json_mapping(path: Path, label: str) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{label} is not valid JSON: {path}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{label} must be a JSON object: {path}")
    return data


def load_model_inputs(
    path: Path, *, row_sum_tolerance: float = DEFAULT_ROW_SUM_TOLERANCE
) -> TopicModelInputs:
    """
    Load fitted model inputs from a JSON file or a NumPy ``.npz`` archive.

    :param path: Input file path.
    :type path: Path
    :param row_sum_tolerance: Absolute tolerance for probability row sums.
    :type row_sum_tolerance: float
    :return: Validated model inputs.
    :rtype: TopicModelInputs
    :raises FileNotFoundError: If the file does not exist.
    :raises KeyError: If an archive is missing a required array.
    """
    source = _require_file(path, "Model inputs")
    if source.suffix == ".npz":
        with np.load(source, allow_pickle=False) as archive:
            missing = [key for key in _MODEL_INPUT_KEYS if key not in archive.files]
            if missing:
                raise KeyError(f"Model inputs archive is missing: {', '.join(missing)}")
            arrays = {key: archive[key] for key in _MODEL_INPUT_KEYS}
        arrays["vocab"] = [str(term) for term in arrays["vocab"].tolist()]
        return build_model_inputs(row_sum_tolerance=row_sum_tolerance, **arrays)
    document = ModelInputsDocument.model_validate(_read_json_mapping(source, "Model inputs"))
    return build_model_inputs(
        vocab=document.vocab,
        topic_term_dists=document.topic_term_dists,
        doc_topic_dists=document.doc_topic_dists,
        doc_lengths=document.doc_lengths,
        term_frequency=document.term_frequency,
        row_sum_tolerance=row_sum_tolerance,
    )


def write_model_inputs(*, path: Path, inputs: TopicModelInputs) -> None:
    document = ModelInputsDocument(
        vocab=list(inputs.vocab),
        topic_term_dists=inputs.topic_term_dists.tolist(),
        doc_topic_dists=inputs.doc_topic_dists.tolist(),
        doc_lengths=inputs.doc_lengths.tolist(),
        term_frequency=inputs.term_frequency.tolist(),
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document.model_dump_json(indent=2) + "\n", encoding="utf-8")


def load_sampler_state(path: Path) -> SamplerState:
    """
    Load the final state of an external collapsed Gibbs sampler.

    :param path: JSON file path.
    :type path: Path
    :return: Sampler state.
    :rtype: SamplerState
    """
    source = _require_file(path, "Sampler state")
    return SamplerState.model_validate(_read_json_mapping(source, "Sampler state"))


def read_documents(path: Path) -> List[CorpusDocument]:
    """
    Read raw documents from a JSON list of strings or a text file with one document per line.

    Blank lines are skipped. Document identifiers are the zero-based positions in the source.

    :param path: Documents file path.
    :type path: Path
    :return: Raw documents.
    :rtype: list[CorpusDocument]
    """
    source = _require_file(path, "Documents file")
    raw = source.read_text(encoding="utf-8")
    if source.suffix == ".json":
        data = json.loads(raw)
        if not isinstance(data, list) or not all(isinstance(entry, str) for entry in data):
            raise ValueError(f"Documents file must be a JSON list of strings: {source}")
        texts = data
    else:
        texts = raw.splitlines()
    return [
        CorpusDocument(document_id=str(position), text=text)
        for position, text in enumerate(texts)
        if text.strip()
    ]


def write_corpus(*, path: Path, corpus: BagOfWordsCorpus) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(corpus.model_dump_json(indent=2) + "\n", encoding="utf-8")
