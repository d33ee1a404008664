"""
Bag-of-words corpus preparation for topic model samplers.
"""

from __future__ import annotations

import re
import sys
import time
from collections import Counter
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence

from .constants import LOG_PREFIX
from .models import BagOfWordsCorpus, CorpusConfiguration

_APOSTROPHES = re.compile(r"['’]")
_PUNCTUATION = re.compile(r"[^\w\s]|_")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class CorpusDocument:
    """
    Raw text document before tokenization.

    :ivar document_id: Stable identifier for the document.
    :vartype document_id: str
    :ivar text: Document text content.
    :vartype text: str
    """

    document_id: str
    text: str


def tokenize(text: str, *, lowercase: bool = True) -> List[str]:
    """
    Split text into word tokens.

    Apostrophes are removed so contractions stay one token, remaining punctuation and control
    characters become spaces, and the text is split on whitespace.

    :param text: Raw text.
    :type text: str
    :param lowercase: Whether to lowercase the text first.
    :type lowercase: bool
    :return: Tokens in document order.
    :rtype: list[str]
    """
    value = _APOSTROPHES.sub("", text)
    value = _PUNCTUATION.sub(" ", value)
    value = _CONTROL.sub(" ", value)
    value = value.strip()
    if lowercase:
        value = value.lower()
    if not value:
        return []
    return _WHITESPACE.split(value)


def resolve_stop_words(stop_words: Optional[object]) -> FrozenSet[str]:
    """
    Resolve a stop word configuration into a set of words.

    :param stop_words: ``english``, a list of words, or None.
    :type stop_words: str or list[str] or None
    :return: Stop words.
    :rtype: frozenset[str]
    :raises ValueError: If the English list is requested and scikit-learn is unavailable.
    """
    if stop_words is None:
        return frozenset()
    if stop_words == "english":
        try:
            from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS
        except ImportError as import_error:
            raise ValueError(
                "The english stop word list requires scikit-learn. "
                'Install it with pip install "ldaview[english]".'
            ) from import_error
        return frozenset(ENGLISH_STOP_WORDS)
    return frozenset(str(word).lower() for word in stop_words)


def prepare_corpus(
    documents: Sequence[CorpusDocument], config: Optional[CorpusConfiguration] = None
) -> BagOfWordsCorpus:
    """
    Tokenize documents, drop stop words and rare terms, and index the vocabulary.

    The vocabulary is ordered by decreasing corpus frequency with ties broken alphabetically.
    Documents left without tokens are dropped and reported.

    :param documents: Raw documents.
    :type documents: Sequence[CorpusDocument]
    :param config: Corpus configuration; defaults apply when omitted.
    :type config: CorpusConfiguration or None
    :return: Prepared bag-of-words corpus.
    :rtype: BagOfWordsCorpus
    :raises ValueError: If no documents are given or filtering removes every term.
    """
    config = config or CorpusConfiguration()
    if not documents:
        raise ValueError("Corpus preparation requires at least one document")
    stop_words = resolve_stop_words(config.stop_words)

    total = len(documents)
    log_interval = 100 if total <= 1000 else 1000
    start_time = time.perf_counter()
    tokenized: List[List[str]] = []
    for completed, document in enumerate(documents, start=1):
        tokens = [
            token
            for token in tokenize(document.text, lowercase=config.lowercase)
            if len(token) >= config.min_token_length and token not in stop_words
        ]
        tokenized.append(tokens)
        if completed % log_interval == 0 or completed == total:
            elapsed = time.perf_counter() - start_time
            print(
                f"{LOG_PREFIX} tokenize {completed}/{total} elapsed={elapsed:.1f}s",
                flush=True,
                file=sys.stderr,
            )

    counts = Counter(token for tokens in tokenized for token in tokens)
    kept = {term: count for term, count in counts.items() if count >= config.min_term_count}
    if not kept:
        raise ValueError("Corpus preparation removed every term; lower min_term_count")
    vocab = sorted(kept, key=lambda term: (-kept[term], term))
    index = {term: position for position, term in enumerate(vocab)}

    document_ids: List[str] = []
    indexed_documents: List[List[int]] = []
    dropped: List[str] = []
    for document, tokens in zip(documents, tokenized):
        indices = [index[token] for token in tokens if token in index]
        if not indices:
            dropped.append(document.document_id)
            continue
        document_ids.append(document.document_id)
        indexed_documents.append(indices)

    corpus = BagOfWordsCorpus(
        vocab=vocab,
        document_ids=document_ids,
        documents=indexed_documents,
        doc_lengths=[len(indices) for indices in indexed_documents],
        term_frequency=[kept[term] for term in vocab],
        dropped_documents=dropped,
        pruned_terms=len(counts) - len(kept),
    )
    print(
        f"{LOG_PREFIX} corpus documents={len(document_ids)} dropped={len(dropped)} "
        f"terms={len(vocab)} pruned={corpus.pruned_terms} tokens={corpus.token_count}",
        flush=True,
        file=sys.stderr,
    )
    return corpus
