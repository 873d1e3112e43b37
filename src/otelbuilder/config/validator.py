"""
Structural validation of a Distribution.

The validator runs before any side effect happens. It only reads the
filesystem (existence and writability probes) and stops at the first
offending field.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..errors import BuildStage, PipelineError
from .distribution import Distribution

logger = logging.getLogger(__name__)


class ValidationError(PipelineError):
    """Raised when a Distribution field is invalid."""

    stage = BuildStage.VALIDATION
    exit_code = 2

    def __init__(self, field: str, message: str):
        super().__init__(f"invalid '{field}': {message}")
        self.field = field


class ConfigValidator:
    """
    Checks a Distribution for structural correctness.

    Checks run in this order and short-circuit on the first failure:
    1. executable name is non-empty and contains no path separators
    2. module path is non-empty
    3. output directory, if set, exists as a directory or can be created
    4. base collector version is non-empty

    Usage:
        ConfigValidator().validate(distribution)
    """

    def validate(self, distribution: Distribution) -> None:
        """
        Validate a distribution.

        Args:
            distribution: Distribution to check

        Raises:
            ValidationError: Naming the first offending field
        """
        self._check_name(distribution.name)
        self._check_module(distribution.module)
        if distribution.output_path is not None:
            self._check_output_path(Path(distribution.output_path))
        self._check_otelcol_version(distribution.otelcol_version)
        logger.debug(f"Distribution '{distribution.name}' is valid")

    @staticmethod
    def _check_name(name: str) -> None:
        if not name or not name.strip():
            raise ValidationError("name", "executable name must not be empty")
        separators = {"/", "\\", os.sep}
        if os.altsep:
            separators.add(os.altsep)
        if any(sep in name for sep in separators):
            raise ValidationError(
                "name", f"executable name '{name}' must not contain path separators"
            )
        if name in (".", ".."):
            raise ValidationError("name", f"executable name '{name}' is not a file name")

    @staticmethod
    def _check_module(module: str) -> None:
        if not module or not module.strip():
            raise ValidationError("module", "module path must not be empty")

    @staticmethod
    def _check_output_path(output_path: Path) -> None:
        if output_path.exists():
            if not output_path.is_dir():
                raise ValidationError(
                    "output_path", f"{output_path} exists and is not a directory"
                )
            if not os.access(output_path, os.W_OK):
                raise ValidationError("output_path", f"{output_path} is not writable")
            return

        ancestor = _nearest_existing_ancestor(output_path)
        if ancestor is None or not ancestor.is_dir():
            raise ValidationError(
                "output_path", f"{output_path} cannot be created (no parent directory)"
            )
        if not os.access(ancestor, os.W_OK):
            raise ValidationError(
                "output_path",
                f"{output_path} cannot be created ({ancestor} is not writable)",
            )

    @staticmethod
    def _check_otelcol_version(version: str) -> None:
        if not version or not version.strip():
            raise ValidationError(
                "otelcol_version", "base collector version must not be empty"
            )


def _nearest_existing_ancestor(path: Path) -> Optional[Path]:
    """Walk up from path until an existing entry is found."""
    for candidate in path.absolute().parents:
        if candidate.exists():
            return candidate
    return None


def validate(distribution: Distribution) -> None:
    """Validate a distribution with the default validator."""
    ConfigValidator().validate(distribution)
