"""
Command-line interface for ldaview.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .configuration import compose_configuration
from .corpus import prepare_corpus
from .estimation import estimate_model_inputs
from .io import (
    load_model_inputs,
    load_sampler_state,
    read_documents,
    write_corpus,
    write_model_inputs,
)
from .models import CorpusConfiguration, EstimationConfiguration, VisualizationConfiguration
from .prepare import prepare_visualization, write_payload


def _add_configuration_args(parser: argparse.ArgumentParser, *, label: str) -> None:
    """
    Add the common --configuration and --override arguments to a parser.

    :param parser: Argument parser to modify.
    :type parser: argparse.ArgumentParser
    :param label: Human-readable configuration kind used in help text.
    :type label: str
    :return: None.
    :rtype: None
    """
    parser.add_argument(
        "--configuration",
        action="append",
        default=None,
        help=f"Path to {label} configuration YAML. Repeatable; later files override earlier ones.",
    )
    parser.add_argument(
        "--override",
        "--config",
        action="append",
        default=[],
        help="Override key=value pairs applied after composing configurations; values are read as YAML.",
    )


def cmd_corpus(arguments: argparse.Namespace) -> int:
    """
    Prepare a bag-of-words corpus from raw documents.

    :param arguments: Parsed command-line interface arguments.
    :type arguments: argparse.Namespace
    :return: Exit code.
    :rtype: int
    """
    configuration_data = compose_configuration(
        arguments.configuration,
        arguments.override,
        mapping_error_message="Corpus configuration must be a mapping/object",
    )
    try:
        config = CorpusConfiguration.model_validate(configuration_data)
    except ValidationError as exc:
        raise ValueError(f"Invalid corpus configuration: {exc}") from exc
    corpus = prepare_corpus(read_documents(Path(arguments.documents)), config)
    write_corpus(path=Path(arguments.output), corpus=corpus)
    print(f"Wrote corpus with {len(corpus.vocab)} terms to {arguments.output}")
    return 0


def cmd_estimate(arguments: argparse.Namespace) -> int:
    """
    Estimate model inputs from a sampler state file.

    :param arguments: Parsed command-line interface arguments.
    :type arguments: argparse.Namespace
    :return: Exit code.
    :rtype: int
    """
    configuration_data = compose_configuration(
        arguments.configuration,
        arguments.override,
        mapping_error_message="Estimation configuration must be a mapping/object",
    )
    try:
        config = EstimationConfiguration.model_validate(configuration_data)
        state = load_sampler_state(Path(arguments.state))
    except ValidationError as exc:
        raise ValueError(f"Invalid estimation input: {exc}") from exc
    inputs = estimate_model_inputs(state, config)
    write_model_inputs(path=Path(arguments.output), inputs=inputs)
    print(f"Wrote model inputs with {inputs.topic_count} topics to {arguments.output}")
    return 0


def cmd_prepare(arguments: argparse.Namespace) -> int:
    """
    Prepare the topic viewer payload for fitted model inputs.

    :param arguments: Parsed command-line interface arguments.
    :type arguments: argparse.Namespace
    :return: Exit code.
    :rtype: int
    """
    configuration_data = compose_configuration(
        arguments.configuration,
        arguments.override,
        mapping_error_message="Visualization configuration must be a mapping/object",
    )
    try:
        config = VisualizationConfiguration.model_validate(configuration_data)
        inputs = load_model_inputs(
            Path(arguments.inputs), row_sum_tolerance=config.row_sum_tolerance
        )
    except ValidationError as exc:
        raise ValueError(f"Invalid visualization input: {exc}") from exc
    payload = prepare_visualization(inputs, config)
    if arguments.output:
        write_payload(path=Path(arguments.output), payload=payload)
        print(f"Wrote visualization payload to {arguments.output}")
    else:
        print(payload.model_dump_json(indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the command-line interface argument parser.

    :return: Argument parser instance.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="ldaview",
        description="Prepare fitted LDA topic models for interactive visualization",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_corpus = sub.add_parser("corpus", help="Prepare a bag-of-words corpus from documents.")
    p_corpus.add_argument(
        "--documents",
        required=True,
        help="Text file with one document per line, or a JSON list of strings.",
    )
    p_corpus.add_argument("--output", required=True, help="Path for the corpus JSON.")
    _add_configuration_args(p_corpus, label="corpus")
    p_corpus.set_defaults(func=cmd_corpus)

    p_estimate = sub.add_parser(
        "estimate", help="Estimate topic distributions from sampler counts."
    )
    p_estimate.add_argument("--state", required=True, help="Path to the sampler state JSON.")
    p_estimate.add_argument("--output", required=True, help="Path for the model inputs JSON.")
    _add_configuration_args(p_estimate, label="estimation")
    p_estimate.set_defaults(func=cmd_estimate)

    p_prepare = sub.add_parser("prepare", help="Prepare the topic viewer payload.")
    p_prepare.add_argument(
        "--inputs", required=True, help="Path to model inputs (JSON or .npz archive)."
    )
    p_prepare.add_argument(
        "--output",
        default=None,
        help="Path for the payload JSON (defaults to standard output).",
    )
    _add_configuration_args(p_prepare, label="visualization")
    p_prepare.set_defaults(func=cmd_prepare)

    return parser


def main(argument_list: Optional[List[str]] = None) -> int:
    """
    Entry point for the ldaview command-line interface.

    :param argument_list: Optional command-line interface arguments.
    :type argument_list: list[str] or None
    :return: Exit code.
    :rtype: int
    """
    parser = build_parser()
    arguments = parser.parse_args(argument_list)
    try:
        return int(arguments.func(arguments))
    except (
        FileNotFoundError,
        KeyError,
        ValueError,
        ValidationError,
    ) as exception:
        message = exception.args[0] if getattr(exception, "args", None) else str(exception)
        print(str(message), file=sys.stderr)
        return 2
