from __future__ import annotations

import json
from pathlib import Path

from behave import given, then, when

from features.environment import run_ldaview


def _workdir_path(context, name: str) -> Path:
    return Path(context.workdir) / name


def _load_payload(context) -> dict:
    if context.last_payload is None:
        path = _workdir_path(context, "payload.json")
        context.last_payload = json.loads(path.read_text(encoding="utf-8"))
    return context.last_payload


def _ranking(payload: dict, relevance_lambda: float) -> dict:
    for ranking in payload["rankings"]:
        if abs(ranking["relevance_lambda"] - relevance_lambda) < 1e-9:
            return ranking
    raise AssertionError(f"No ranking for lambda {relevance_lambda}")


@given('model inputs "{name}" with two topics each dominated by one term')
def step_two_topic_model_inputs(context, name: str) -> None:
    document = {
        "vocab": ["t0", "t1", "t2", "t3"],
        "topic_term_dists": [[0.7, 0.1, 0.1, 0.1], [0.1, 0.1, 0.1, 0.7]],
        "doc_topic_dists": [[0.9, 0.1], [0.2, 0.8]],
        "doc_lengths": [20, 20],
        "term_frequency": [10, 10, 10, 10],
    }
    _workdir_path(context, name).write_text(json.dumps(document), encoding="utf-8")


@given('a sampler state "{name}" with two topics over three terms')
def step_sampler_state(context, name: str) -> None:
    state = {
        "vocab": ["plot", "scene", "score"],
        "topic_term_counts": [[5, 1, 0], [0, 1, 5]],
        "document_topic_counts": [[5, 1], [0, 6]],
    }
    _workdir_path(context, name).write_text(json.dumps(state), encoding="utf-8")


@given('a documents file "{name}" with lines:')
def step_documents_file(context, name: str) -> None:
    lines = [row["text"] for row in context.table]
    _workdir_path(context, name).write_text("\n".join(lines) + "\n", encoding="utf-8")


@when('I prepare a payload from "{name}" with overrides "{overrides}"')
def step_prepare_payload(context, name: str, overrides: str) -> None:
    args = ["prepare", "--inputs", name, "--output", "payload.json"]
    for pair in overrides.split():
        args.extend(["--override", pair])
    context.last_payload = None
    run_ldaview(context, args)


@when('I estimate model inputs from "{state}" into "{output}"')
def step_estimate(context, state: str, output: str) -> None:
    run_ldaview(context, ["estimate", "--state", state, "--output", output])


@when(
    'I prepare a corpus from "{documents}" into "{output}" with stop words "{words}" '
    "and minimum count {count:d}"
)
def step_prepare_corpus(context, documents: str, output: str, words: str, count: int) -> None:
    stop_words = json.dumps([word for word in words.split(",") if word])
    run_ldaview(
        context,
        [
            "corpus",
            "--documents",
            documents,
            "--output",
            output,
            "--override",
            f"stop_words={stop_words}",
            "--override",
            f"min_term_count={count}",
        ],
    )


@then("the command succeeds")
def step_command_succeeds(context) -> None:
    result = context.last_result
    assert result is not None
    assert result.returncode == 0, result.stderr


@then("the command fails with exit code {code:d}")
def step_command_fails(context, code: int) -> None:
    assert context.last_result.returncode == code


@then('standard error mentions "{text}"')
def step_stderr_mentions(context, text: str) -> None:
    assert text in context.last_result.stderr


@then("standard output is empty")
def step_stdout_empty(context) -> None:
    assert context.last_result.stdout == ""


@then("the payload has {count:d} rankings")
def step_payload_rankings(context, count: int) -> None:
    assert len(_load_payload(context)["rankings"]) == count


@then('topic {topic:d} ranks "{term}" first at lambda {relevance_lambda:g}')
def step_topic_ranks_first(context, topic: int, term: str, relevance_lambda: float) -> None:
    ranking = _ranking(_load_payload(context), relevance_lambda)
    entry = next(item for item in ranking["topics"] if item["topic"] == topic)
    assert entry["terms"][0]["term"] == term


@then("the payload lists {count:d} terms per topic")
def step_terms_per_topic(context, count: int) -> None:
    payload = _load_payload(context)
    assert payload["metadata"]["terms_per_topic"] == count
    for ranking in payload["rankings"]:
        for entry in ranking["topics"]:
            assert len(entry["terms"]) == count


@then("the topic coordinates mirror each other")
def step_coordinates_mirror(context) -> None:
    first, second = _load_payload(context)["topic_coordinates"]
    assert abs(first["x"] + second["x"]) < 1e-9
    assert abs(first["y"]) < 1e-9
    assert abs(second["y"]) < 1e-9
    assert first["x"] != 0.0


@then('the corpus "{name}" has vocabulary "{terms}"')
def step_corpus_vocabulary(context, name: str, terms: str) -> None:
    corpus = json.loads(_workdir_path(context, name).read_text(encoding="utf-8"))
    assert corpus["vocab"] == terms.split(",")


@then('the corpus "{name}" dropped {count:d} documents')
def step_corpus_dropped(context, name: str, count: int) -> None:
    corpus = json.loads(_workdir_path(context, name).read_text(encoding="utf-8"))
    assert len(corpus["dropped_documents"]) == count
