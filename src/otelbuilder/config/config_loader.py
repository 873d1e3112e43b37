"""
Builder configuration loader.

This module builds a Distribution from three layers, later layers winning:
1. a YAML configuration file
2. OTELCOL_BUILDER_* environment variables
3. explicit overrides (CLI flags)

Example builder config:
    dist:
      name: otelcol-custom
      description: Custom OpenTelemetry Collector distribution
      module: example.com/custom
      otelcol_version: 0.36.0
      output_path: /tmp/dist
    receivers:
      - gomod: "example.com/receiver-x v1.0.0"
    exporters:
      - import: example.com/exporters/y/yexporter
        gomod: "example.com/exporters/y v0.2.0"
        path: ../y
    replaces:
      - "example.com/z => ../z"

Usage:
    loader = BuilderConfigLoader(Path("builder-config.yaml"))
    distribution = loader.load(overrides={"dist.name": "otelcol-dev"})
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .distribution import ComponentEntry, ComponentKind, Distribution

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = ".otelcol-builder.yaml"
ENV_PREFIX = "OTELCOL_BUILDER_"

# dotted key -> Distribution field
SCALAR_KEYS = {
    "dist.name": "name",
    "dist.description": "long_name",
    "dist.version": "version",
    "dist.otelcol_version": "otelcol_version",
    "dist.output_path": "output_path",
    "dist.include_core": "include_core",
    "dist.go": "go",
    "dist.module": "module",
    "skip_compilation": "skip_compilation",
}
BOOLEAN_KEYS = {"dist.include_core", "skip_compilation"}

COMPONENT_SECTIONS = {
    "extensions": ComponentKind.EXTENSION,
    "receivers": ComponentKind.RECEIVER,
    "processors": ComponentKind.PROCESSOR,
    "exporters": ComponentKind.EXPORTER,
    "dependencies": None,
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigLoadError(Exception):
    """Exception raised for builder configuration errors."""

    pass


def default_config_path() -> Path:
    """Return the default config file location ($HOME/.otelcol-builder.yaml)."""
    return Path.home() / DEFAULT_CONFIG_NAME


def env_var_name(key: str) -> str:
    """Map a dotted key to its environment variable ("dist.name" -> OTELCOL_BUILDER_DIST_NAME)."""
    return ENV_PREFIX + key.replace(".", "_").upper()


def parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigLoadError(f"'{key}' must be a boolean, got '{value}'")


class BuilderConfigLoader:
    """
    Loader for builder configuration files.

    Reads an optional YAML file and layers environment variables and explicit
    overrides on top of it to produce a Distribution.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the loader.

        Args:
            config_path: Explicit config file; when None the default file
                is used if it exists
            environ: Environment mapping (defaults to os.environ)

        Raises:
            ConfigLoadError: If an explicit file doesn't exist or can't be parsed
        """
        self.environ = os.environ if environ is None else environ
        self.config_path: Optional[Path] = None
        self.data: Dict[str, Any] = {}

        if config_path is not None:
            config_path = Path(config_path)
            if not config_path.exists():
                raise ConfigLoadError(f"Configuration file not found: {config_path}")
            self.config_path = config_path
        elif default_config_path().exists():
            self.config_path = default_config_path()

        if self.config_path is not None:
            self.data = self._read_yaml(self.config_path)
            logger.info(f"Using config file {self.config_path}")

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"Failed to parse {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigLoadError(f"{path}: top level must be a mapping")
        return data

    def get_file_value(self, key: str) -> Any:
        """Look up a dotted key in the config file ("dist.name")."""
        node: Any = self.data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def get_components(self) -> List[ComponentEntry]:
        """
        Parse every component section of the config file.

        Returns:
            Entries in file order, sections in the order
            extensions, receivers, processors, exporters, dependencies

        Raises:
            ConfigLoadError: If a section or entry is malformed
        """
        entries: List[ComponentEntry] = []
        for section, kind in COMPONENT_SECTIONS.items():
            items = self.data.get(section) or []
            if not isinstance(items, list):
                raise ConfigLoadError(f"'{section}' must be a list")
            for index, item in enumerate(items):
                entries.append(self._parse_component(section, index, item, kind))
        return entries

    @staticmethod
    def _parse_component(
        section: str, index: int, item: Any, kind: Optional[ComponentKind]
    ) -> ComponentEntry:
        where = f"{section}[{index}]"
        if not isinstance(item, dict):
            raise ConfigLoadError(f"{where} must be a mapping")

        import_path = item.get("import")
        name = item.get("name")
        path = item.get("path")
        gomod = item.get("gomod")

        if gomod:
            try:
                return ComponentEntry.parse_gomod(
                    str(gomod),
                    import_path=str(import_path) if import_path else None,
                    kind=kind,
                    name=str(name) if name else None,
                    replacement_path=str(path) if path else None,
                )
            except ValueError as e:
                raise ConfigLoadError(f"{where}: {e}") from e

        if not import_path:
            raise ConfigLoadError(f"{where} needs either 'gomod' or 'import'")
        version = item.get("version")
        module = item.get("module")
        return ComponentEntry(
            import_path=str(import_path),
            version="" if version is None else str(version),
            replacement_path=str(path) if path else None,
            kind=kind,
            name=str(name) if name else None,
            module=str(module) if module else None,
        )

    def get_replaces(self) -> List[str]:
        replaces = self.data.get("replaces") or []
        if not isinstance(replaces, list):
            raise ConfigLoadError("'replaces' must be a list")
        return [str(item) for item in replaces]

    def resolve_value(self, key: str, overrides: Mapping[str, Any]) -> Any:
        """Return the winning value for a dotted key (override > env > file)."""
        if overrides.get(key) is not None:
            return overrides[key]
        env_value = self.environ.get(env_var_name(key))
        if env_value is not None:
            return env_value
        return self.get_file_value(key)

    def load(self, overrides: Optional[Mapping[str, Any]] = None) -> Distribution:
        """
        Build a Distribution from the layered configuration.

        Args:
            overrides: Dotted keys (e.g. "dist.name") set by the caller;
                None values are ignored

        Returns:
            Distribution instance (not yet validated)

        Raises:
            ConfigLoadError: If a value has the wrong type
        """
        overrides = overrides or {}
        fields: Dict[str, Any] = {}
        for key, field_name in SCALAR_KEYS.items():
            value = self.resolve_value(key, overrides)
            if value is None:
                continue
            if key in BOOLEAN_KEYS:
                fields[field_name] = parse_bool(key, value)
            elif field_name == "output_path":
                fields[field_name] = Path(str(value)).expanduser()
            else:
                fields[field_name] = str(value)

        return Distribution(
            components=tuple(self.get_components()),
            replaces=tuple(self.get_replaces()),
            **fields,
        )


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Distribution:
    """Load a Distribution from file, environment and overrides."""
    return BuilderConfigLoader(config_path, environ=environ).load(overrides)
