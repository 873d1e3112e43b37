"""
Compile orchestration.

Runs the two toolchain phases against the generated output directory:
1. fetch: reconcile and download the dependency graph (go mod tidy)
2. compile: build the executable (go build)

Diagnostics from the toolchain are never parsed or reinterpreted; they are
attached verbatim to a stage-tagged error. Failures are not retried since
they are deterministic for a given manifest.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from ..errors import BuildStage, PipelineError
from .outcome import BuildOutcome
from .source_writer import GenerationResult
from .toolchain import GoToolchain, Toolchain, ToolchainNotFoundError, ToolchainResult

logger = logging.getLogger(__name__)

FETCH_PHASE = "fetch"
COMPILE_PHASE = "compile"


class ToolchainPhaseError(PipelineError):
    """Base for failures reported by the external toolchain."""

    phase = ""

    def __init__(self, message: str, result: Optional[ToolchainResult] = None):
        super().__init__(message)
        self.result = result

    @property
    def returncode(self) -> Optional[int]:
        return self.result.returncode if self.result else None

    @property
    def stdout(self) -> str:
        return self.result.stdout if self.result else ""

    @property
    def stderr(self) -> str:
        return self.result.stderr if self.result else ""

    @property
    def diagnostics(self) -> str:
        """Raw toolchain output, stderr first."""
        return "\n".join(part for part in (self.stderr, self.stdout) if part)

    @classmethod
    def from_result(cls, result: ToolchainResult) -> "ToolchainPhaseError":
        if result.timed_out:
            message = f"{cls.phase} phase timed out"
        else:
            message = f"{cls.phase} phase failed with exit status {result.returncode}"
        return cls(message, result)


class FetchError(ToolchainPhaseError):
    """Raised when the dependency fetch phase fails."""

    stage = BuildStage.FETCH
    exit_code = 5
    phase = FETCH_PHASE


class CompileError(ToolchainPhaseError):
    """Raised when the compile phase fails."""

    stage = BuildStage.COMPILE
    exit_code = 6
    phase = COMPILE_PHASE


class CancellationError(PipelineError):
    """Raised when the caller cancels a toolchain phase."""

    stage = BuildStage.CANCELLATION
    exit_code = 130

    def __init__(self, phase: str, result: Optional[ToolchainResult] = None):
        super().__init__(f"build cancelled during {phase} phase")
        self.phase = phase
        self.result = result


ToolchainFactory = Callable[[Optional[str]], Toolchain]


class CompileOrchestrator:
    """
    Drives the toolchain over a generated distribution.

    Example usage:
        orchestrator = CompileOrchestrator()
        outcome = orchestrator.compile(generation, "otelcol-custom")
        print(outcome.binary_path)
    """

    def __init__(self, toolchain_factory: ToolchainFactory = GoToolchain):
        """
        Initialize compile orchestrator.

        Args:
            toolchain_factory: Builds a Toolchain from the optional compiler
                override path (defaults to GoToolchain)
        """
        self.toolchain_factory = toolchain_factory

    def compile(
        self,
        generation: GenerationResult,
        exe_name: str,
        compiler_override: Optional[str] = None,
        skip: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> BuildOutcome:
        """
        Fetch dependencies and compile the generated sources.

        Args:
            generation: Result of the code generator
            exe_name: Executable name to produce
            compiler_override: Path to the compiler binary, if not the default
            skip: Return immediately without invoking the toolchain
            cancel_event: Set to abort a running phase

        Returns:
            Successful BuildOutcome (binary_path is None when skipped)

        Raises:
            FetchError: If the fetch phase fails
            CompileError: If the compile phase fails
            CancellationError: If cancel_event is set before or during a phase
        """
        workdir = Path(generation.output_dir)
        if skip:
            logger.info("Compilation skipped")
            return BuildOutcome.succeeded(binary_path=None, output_dir=workdir)

        toolchain = self.toolchain_factory(compiler_override)

        self._run_phase(
            FetchError,
            lambda: toolchain.fetch(workdir, cancel_event),
            cancel_event,
        )
        self._run_phase(
            CompileError,
            lambda: toolchain.compile(workdir, exe_name, cancel_event),
            cancel_event,
        )

        binary_path = workdir / exe_name
        logger.info(f"Compiled {binary_path}")
        return BuildOutcome.succeeded(binary_path=binary_path, output_dir=workdir)

    @staticmethod
    def _run_phase(
        error_cls,
        invoke: Callable[[], ToolchainResult],
        cancel_event: Optional[threading.Event],
    ) -> ToolchainResult:
        phase = error_cls.phase
        if cancel_event is not None and cancel_event.is_set():
            raise CancellationError(phase)

        logger.info(f"Starting {phase} phase")
        try:
            result = invoke()
        except (ToolchainNotFoundError, OSError) as e:
            raise error_cls(f"{phase} phase could not start: {e}") from e

        if result.cancelled:
            raise CancellationError(phase, result)
        if not result.success:
            raise error_cls.from_result(result)
        return result
