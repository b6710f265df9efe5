from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict

import configparser
import json
import logging
import os
import xml.etree.ElementTree as ElementTree

from .exceptions import ConfigSourceError
from .hierarchical import ATTRIBUTE_MARKER, TEXT_KEY
from .utils import deep_merge, parse_scalar

logger = logging.getLogger(__name__)

# Optional TOML support:
# - Python >= 3.11: stdlib `tomllib`
# - Older: `tomli` fallback
tomllib: Any | None
try:
    import tomllib as _tomllib
    tomllib = _tomllib
except ImportError:  # pragma: no cover
    try:
        import tomli as _tomli
        tomllib = _tomli
    except ImportError:  # pragma: no cover
        tomllib = None

# Optional YAML support (PyYAML)
yaml: Any | None
try:
    import yaml as _yaml
    yaml = _yaml
except ImportError:  # pragma: no cover
    yaml = None


class ConfigSource(ABC):
    """Abstract base class for configuration sources."""

    @abstractmethod
    def load(self) -> Mapping[str, Any] | None:
        """Return a mapping with configuration values or None if nothing was loaded."""
        raise NotImplementedError


class DictSource(ConfigSource):
    """Configuration source backed by an in-memory dictionary."""

    def __init__(self, data: Mapping[str, Any]):
        self._data = dict(data)

    def load(self) -> Mapping[str, Any] | None:
        return dict(self._data)


class FileSource(ConfigSource):
    """
    Load configuration from a single file.

    Supported formats (by extension):
      - .json
      - .toml  (requires Python 3.11+ or tomli)
      - .ini, .cfg, .conf (ConfigParser)
      - .yaml, .yml (requires PyYAML)
      - .xml

    Values are returned as a nested mapping. For XML the document element is
    the root of the mapping; attributes are stored under '@name' keys, element
    text under '#text' and repeated elements as lists, so that
    HierarchicalConfiguration.from_mapping() restores the element tree.
    """

    def __init__(self, path: str | Path, *, optional: bool = False):
        self._path = Path(path).expanduser()
        self._optional = optional

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Mapping[str, Any] | None:
        if not self._path.exists():
            if self._optional:
                logger.debug("Optional configuration file %s not found", self._path)
                return None
            raise ConfigSourceError(f"Configuration file not found: {self._path}")

        suffix = self._path.suffix.lower()
        logger.debug("Loading configuration file %s", self._path)

        if suffix == ".json":
            return self._load_json()
        if suffix == ".toml":
            return self._load_toml()
        if suffix in {".ini", ".cfg", ".conf"}:
            return self._load_ini()
        if suffix in {".yaml", ".yml"}:
            return self._load_yaml()
        if suffix == ".xml":
            return self._load_xml()

        raise ConfigSourceError(
            f"Unsupported configuration file format: {self._path} "
            f"(extension '{suffix}')"
        )

    def _load_json(self) -> Mapping[str, Any]:
        try:
            with self._path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigSourceError(f"Invalid JSON in {self._path}: {exc}") from exc

    def _load_toml(self) -> Mapping[str, Any]:
        if tomllib is None:
            raise ConfigSourceError(
                "TOML configuration requested but neither 'tomllib' (Python 3.11+) "
                "nor 'tomli' is available. Install 'tomli' to enable TOML support."
            )
        try:
            with self._path.open("rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigSourceError(f"Invalid TOML in {self._path}: {exc}") from exc

    def _load_ini(self) -> Mapping[str, Any]:
        # Disable interpolation, ${...} references are resolved by the configuration
        parser = configparser.ConfigParser(interpolation=None)
        try:
            with self._path.open("r", encoding="utf-8") as f:
                parser.read_file(f)
        except (OSError, configparser.Error) as exc:
            raise ConfigSourceError(
                f"Error reading INI file {self._path}: {exc}"
            ) from exc

        data: Dict[str, Dict[str, Any]] = {}
        for section in parser.sections():
            data[section] = {
                key: parse_scalar(value) for key, value in parser.items(section)
            }
        return data

    def _load_yaml(self) -> Mapping[str, Any]:
        if yaml is None:
            raise ConfigSourceError(
                "YAML configuration requested but 'PyYAML' is not installed."
            )
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigSourceError(f"Invalid YAML in {self._path}: {exc}") from exc

        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise ConfigSourceError(
                f"Top-level YAML structure in {self._path} must be a mapping."
            )
        return data

    def _load_xml(self) -> Mapping[str, Any]:
        try:
            root = ElementTree.parse(self._path).getroot()
        except (OSError, ElementTree.ParseError) as exc:
            raise ConfigSourceError(f"Invalid XML in {self._path}: {exc}") from exc
        return _element_to_mapping(root)


def _element_to_mapping(element: ElementTree.Element) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for name, value in element.attrib.items():
        data[ATTRIBUTE_MARKER + name] = value

    text = (element.text or "").strip()
    if text:
        data[TEXT_KEY] = text

    for child in element:
        value = _element_value(child)
        if child.tag not in data:
            data[child.tag] = value
            continue
        existing = data[child.tag]
        if isinstance(existing, list):
            existing.append(value)
        else:
            data[child.tag] = [existing, value]
    return data


def _element_value(element: ElementTree.Element) -> Any:
    if element.attrib or len(element):
        return _element_to_mapping(element)
    return (element.text or "").strip()


class EnvSource(ConfigSource):
    """
    Load configuration from environment variables.

    Keys are derived from variable names with a fixed prefix. For example:

      prefix = "MYAPP_"
      MYAPP_DB__HOST=localhost
      MYAPP_DB__PORT=5432

    will be translated to:

      {
        "db": {
          "host": "localhost",
          "port": 5432
        }
      }

    The separator for nested keys is a double underscore "__".
    """

    def __init__(self, prefix: str):
        if not prefix:
            raise ValueError("Environment prefix must not be empty.")
        self._prefix = prefix

    def load(self) -> Mapping[str, Any] | None:
        result: Dict[str, Any] = {}
        prefix_len = len(self._prefix)

        for key, value in os.environ.items():
            if not key.startswith(self._prefix):
                continue

            parts = [p.lower() for p in key[prefix_len:].split("__") if p]
            if not parts:
                continue

            nested: Dict[str, Any] = {}
            current = nested
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = parse_scalar(value)
            result = deep_merge(result, nested)

        return result or None
