"""Source registry loading.

This module reads the YAML sources file listing every connector the
engine runs. Each entry names a ``module:attribute`` factory; the
attribute is a connector object, or a callable building one from the
entry's ``options``.
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Mapping, Sequence, cast

from core.constants import SOURCES_FILE_VERSION
from core.errors import HarvestDependencyError, HarvestRegistryError
from extract.connector import Connector, validate_settings

_ROOT_KEYS = {"version", "sources"}
_ENTRY_KEYS = {"factory", "options"}


def load_connectors(sources_path: Path) -> list[Connector]:
    """Load and validate connectors from a YAML sources file.

    Args:
        sources_path: File path to the sources file.

    Returns:
        Connectors in file order.

    Raises:
        HarvestDependencyError: If PyYAML is unavailable.
        HarvestRegistryError: If the file or any entry is invalid.
    """
    payload = _load_yaml_payload(sources_path)
    root_mapping = _expect_mapping(payload, "sources file root")
    unknown_keys = sorted(set(root_mapping) - _ROOT_KEYS)
    if unknown_keys:
        raise HarvestRegistryError(
            f"Unsupported sources file keys: {', '.join(unknown_keys)}. "
            "Supported keys: sources, version."
        )
    _parse_version(root_mapping)
    raw_sources = _expect_sequence(root_mapping.get("sources"), "sources list")
    connectors = [
        _build_entry(_expect_mapping(raw_entry, f"source entry #{index}"), index)
        for index, raw_entry in enumerate(raw_sources, start=1)
    ]
    _check_unique_sources(connectors)
    return connectors


def import_object(reference: str) -> Any:
    """Resolve a ``module:attribute`` reference.

    Raises:
        HarvestRegistryError: If the reference is malformed or unresolvable.
    """
    module_name, separator, attribute_path = reference.partition(":")
    if not separator or not module_name or not attribute_path:
        raise HarvestRegistryError(
            f"Invalid reference '{reference}': expected 'module:attribute'."
        )
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as error:
        raise HarvestRegistryError(
            f"Cannot import module '{module_name}' from reference '{reference}': {error}."
        ) from error
    for attribute in attribute_path.split("."):
        try:
            target = getattr(target, attribute)
        except AttributeError as error:
            raise HarvestRegistryError(
                f"Module '{module_name}' has no attribute '{attribute_path}'."
            ) from error
    return target


def find_connector(connectors: Sequence[Connector], source: str) -> Connector:
    """Return the connector registered under ``source``.

    Raises:
        HarvestRegistryError: If no connector has that source name.
    """
    for connector in connectors:
        if connector.settings.source == source:
            return connector
    known = ", ".join(sorted(connector.settings.source for connector in connectors)) or "none"
    raise HarvestRegistryError(f"Unknown source '{source}'. Registered sources: {known}.")


def _load_yaml_payload(sources_path: Path) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise HarvestDependencyError(
            "Sources file support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    sources_file = sources_path.expanduser().resolve()
    if not sources_file.exists():
        raise HarvestRegistryError(
            f"Sources file does not exist at {sources_file}. "
            "Set HARVEST_SOURCES_FILE or pass --sources-file."
        )
    try:
        payload = cast(object, yaml.safe_load(sources_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise HarvestRegistryError(
            f"Failed to read sources file at {sources_file}: {error}."
        ) from error
    except yaml.YAMLError as error:
        raise HarvestRegistryError(
            f"Failed to parse YAML sources file at {sources_file}: {error}. Fix YAML syntax."
        ) from error
    if payload is None:
        raise HarvestRegistryError(
            f"Sources file at {sources_file} is empty. Define 'version' and 'sources'."
        )
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise HarvestRegistryError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise HarvestRegistryError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise HarvestRegistryError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if not isinstance(raw_version, int) or isinstance(raw_version, bool):
        raise HarvestRegistryError(
            f"Sources file field 'version' must be an integer. Set version: {SOURCES_FILE_VERSION}."
        )
    if raw_version != SOURCES_FILE_VERSION:
        raise HarvestRegistryError(
            f"Unsupported sources file version {raw_version}. Use version: {SOURCES_FILE_VERSION}."
        )
    return raw_version


def _build_entry(entry: Mapping[str, object], index: int) -> Connector:
    unknown_keys = sorted(set(entry) - _ENTRY_KEYS)
    if unknown_keys:
        raise HarvestRegistryError(
            f"Source entry #{index} has unsupported keys: {', '.join(unknown_keys)}. "
            "Supported keys: factory, options."
        )
    factory_reference = entry.get("factory")
    if not isinstance(factory_reference, str):
        raise HarvestRegistryError(
            f"Source entry #{index} requires a string 'factory' of the form 'module:attribute'."
        )
    raw_options = entry.get("options")
    options = {} if raw_options is None else dict(
        _expect_mapping(raw_options, f"options of source entry #{index}")
    )
    target = import_object(factory_reference)
    if _is_connector(target):
        if options:
            raise HarvestRegistryError(
                f"Source entry #{index} passes options to '{factory_reference}', "
                "which is a connector object, not a factory."
            )
        connector = target
    elif callable(target):
        try:
            connector = target(**options)
        except TypeError as error:
            raise HarvestRegistryError(
                f"Factory '{factory_reference}' rejected options of source entry #{index}: {error}."
            ) from error
    else:
        raise HarvestRegistryError(
            f"Reference '{factory_reference}' is neither a connector nor a connector factory."
        )
    if not _is_connector(connector):
        raise HarvestRegistryError(
            f"Factory '{factory_reference}' returned {type(connector).__name__}, "
            "which does not implement the connector interface."
        )
    validate_settings(connector.settings)
    return cast(Connector, connector)


def _is_connector(value: object) -> bool:
    return not isinstance(value, type) and isinstance(value, Connector)


def _check_unique_sources(connectors: Sequence[Connector]) -> None:
    seen: set[str] = set()
    for connector in connectors:
        source = connector.settings.source
        if source in seen:
            raise HarvestRegistryError(
                f"Duplicate source name '{source}' in sources file. Source names must be unique."
            )
        seen.add(source)
