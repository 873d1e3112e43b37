"""Error taxonomy for the build pipeline.

Every error raised by a pipeline stage derives from PipelineError and carries
the stage that produced it plus the process exit code the CLI should use.
Stage-specific subclasses live next to the code that raises them:
- ValidationError (config/validator.py)
- ResolutionError (packages/module_resolver.py)
- GenerationError (build/source_writer.py)
- FetchError, CompileError, CancellationError (build/compile_orchestrator.py)
"""

from enum import Enum


class BuildStage(str, Enum):
    """Pipeline stage that produced an error."""

    VALIDATION = "validation"
    RESOLUTION = "resolution"
    GENERATION = "generation"
    FETCH = "fetch"
    COMPILE = "compile"
    CANCELLATION = "cancellation"


class PipelineError(Exception):
    """Base exception for all build pipeline failures."""

    stage: BuildStage = BuildStage.VALIDATION
    exit_code: int = 1

    def describe(self) -> str:
        """Return a one-line, stage-tagged description of the failure."""
        return f"[{self.stage.value}] {self}"
