"""
Configuration loading utilities for ldaview.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import yaml


def parse_overrides(pairs: Optional[List[str]]) -> Dict[str, object]:
    """
    Parse repeated key=value pairs from the command line.

    Values are read as YAML scalars or flow collections, so ``true``, ``5``, ``0.25``, ``null``
    and ``[0.2, 1.0]`` type the same way they would in a configuration file.

    :param pairs: Repeated command-line pairs.
    :type pairs: list[str] or None
    :return: Override mapping.
    :rtype: dict[str, object]
    :raises ValueError: If a pair is not key=value or its value is not valid YAML.
    """
    overrides: Dict[str, object] = {}
    for item in pairs or []:
        key, separator, raw = item.partition("=")
        key = key.strip()
        if not separator:
            raise ValueError(f"Config values must be key=value (got {item!r})")
        if not key:
            raise ValueError("Config keys must be non-empty")
        try:
            overrides[key] = yaml.safe_load(raw) if raw.strip() else ""
        except yaml.YAMLError as exc:
            raise ValueError(f"Config value for {key!r} is not valid YAML: {raw!r}") from exc
    return overrides


def _deep_merge(base: Dict[str, object], incoming: Mapping[str, object]) -> Dict[str, object]:
    merged = dict(base)
    for key, value in incoming.items():
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, Mapping):
            merged[key] = _deep_merge(existing, value)
        else:
            merged[key] = value
    return merged


def load_configuration_view(
    configuration_paths: Iterable[str],
    *,
    configuration_label: str = "Configuration",
    mapping_error_message: Optional[str] = None,
) -> Dict[str, object]:
    """
    Load a composed configuration view from one or more YAML files.

    Later files override earlier ones; nested mappings are merged key by key.

    :param configuration_paths: Iterable of configuration file paths in precedence order.
    :type configuration_paths: Iterable[str]
    :param configuration_label: Label used in error messages (for example: "Configuration file").
    :type configuration_label: str
    :param mapping_error_message: Optional message used when a file is not a mapping.
    :type mapping_error_message: str or None
    :return: Composed configuration view.
    :rtype: dict[str, object]
    :raises FileNotFoundError: If any configuration file is missing.
    :raises ValueError: If any configuration file is not a mapping/object.
    """
    paths: List[Path] = [Path(str(path)) for path in configuration_paths]
    for candidate in paths:
        if not candidate.is_file():
            raise FileNotFoundError(f"{configuration_label} not found: {candidate}")
    view: Dict[str, object] = {}
    for candidate in paths:
        with candidate.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
        if data is None:
            continue
        if not isinstance(data, dict):
            raise ValueError(
                mapping_error_message or f"{configuration_label} must be a mapping/object"
            )
        view = _deep_merge(view, data)
    return view


def compose_configuration(
    configuration_paths: Optional[Iterable[str]],
    overrides: Optional[List[str]],
    *,
    configuration_label: str = "Configuration file",
    mapping_error_message: Optional[str] = None,
) -> Dict[str, object]:
    """
    Compose YAML configuration files and command-line overrides into one mapping.

    :param configuration_paths: Configuration file paths in precedence order, or None.
    :type configuration_paths: Iterable[str] or None
    :param overrides: Repeated key=value override strings, or None.
    :type overrides: list[str] or None
    :param configuration_label: Label used in error messages.
    :type configuration_label: str
    :param mapping_error_message: Optional message used when a file is not a mapping.
    :type mapping_error_message: str or None
    :return: Composed configuration mapping.
    :rtype: dict[str, object]
    """
    view = load_configuration_view(
        configuration_paths or [],
        configuration_label=configuration_label,
        mapping_error_message=mapping_error_message,
    )
    return _deep_merge(view, parse_overrides(overrides))
