"""Terminal result of a pipeline run."""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..errors import BuildStage, PipelineError

if TYPE_CHECKING:
    from ..packages.module_resolver import DependencyManifest


@dataclass
class BuildOutcome:
    """Result of a build pipeline run.

    Attributes:
        success: Whether every stage completed
        binary_path: Produced executable (None if compilation was skipped
            or the build failed)
        output_dir: Directory holding the generated sources, if any
        stage: Stage that failed (None on success)
        error: Underlying error (None on success)
        manifest: Resolved manifest, when resolution completed
        build_time: Wall-clock seconds spent in the pipeline
    """

    success: bool
    binary_path: Optional[Path] = None
    output_dir: Optional[Path] = None
    stage: Optional[BuildStage] = None
    error: Optional[PipelineError] = None
    manifest: Optional["DependencyManifest"] = None
    build_time: float = 0.0

    @classmethod
    def succeeded(
        cls, binary_path: Optional[Path] = None, output_dir: Optional[Path] = None
    ) -> "BuildOutcome":
        return cls(success=True, binary_path=binary_path, output_dir=output_dir)

    @classmethod
    def failed(
        cls, error: PipelineError, output_dir: Optional[Path] = None
    ) -> "BuildOutcome":
        return cls(success=False, stage=error.stage, error=error, output_dir=output_dir)

    @property
    def skipped_compilation(self) -> bool:
        return self.success and self.binary_path is None

    @property
    def message(self) -> str:
        """Human-readable summary of the outcome."""
        if self.success:
            if self.binary_path is None:
                return f"Sources generated in {self.output_dir} (compilation skipped)"
            return f"Built {self.binary_path}"
        return self.error.describe() if self.error else "build failed"

    @property
    def exit_code(self) -> int:
        """Process exit code for this outcome (0 on success)."""
        if self.success:
            return 0
        return self.error.exit_code if self.error else 1
