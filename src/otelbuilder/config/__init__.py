"""Distribution model, configuration loading and validation for otelbuilder."""

from .config_loader import BuilderConfigLoader, ConfigLoadError, load_config
from .distribution import (
    BASE_COLLECTOR_PATH,
    ComponentEntry,
    ComponentKind,
    Distribution,
)
from .validator import ConfigValidator, ValidationError, validate

__all__ = [
    "BASE_COLLECTOR_PATH",
    "BuilderConfigLoader",
    "ComponentEntry",
    "ComponentKind",
    "ConfigLoadError",
    "ConfigValidator",
    "Distribution",
    "ValidationError",
    "load_config",
    "validate",
]
