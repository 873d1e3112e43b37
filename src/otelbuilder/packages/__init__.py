"""Module resolution for otelbuilder.

This module turns requested components into a deduplicated, version-consistent
dependency manifest.
"""

from .module_resolver import (
    DependencyManifest,
    ModuleResolver,
    ReplaceDirective,
    ResolutionError,
    resolve,
)
from .version_utils import VersionError, is_pseudo_version, normalize_version

__all__ = [
    "DependencyManifest",
    "ModuleResolver",
    "ReplaceDirective",
    "ResolutionError",
    "VersionError",
    "is_pseudo_version",
    "normalize_version",
    "resolve",
]
