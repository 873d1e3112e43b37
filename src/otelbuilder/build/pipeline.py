"""
Build pipeline for collector distributions.

This module sequences the build stages and is the single entry point used by
the CLI:
1. Validate the distribution
2. Resolve the component list into a dependency manifest
3. Generate sources into the output directory
4. Fetch dependencies and compile (unless skipped)

The pipeline stops at the first failing stage and reports that stage's error
alone. Generated sources are kept after a fetch or compile failure so they
can be inspected or rebuilt by hand; a generation failure leaves nothing
behind.
"""

import logging
import shutil
import tempfile
import threading
import time
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from ..config.distribution import Distribution
from ..config.validator import ConfigValidator
from ..errors import BuildStage, PipelineError
from ..packages.module_resolver import DependencyManifest, ModuleResolver
from .code_generator import CodeGenerator
from .compile_orchestrator import CompileOrchestrator
from .outcome import BuildOutcome

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PREFIX = "otelcol-distribution"

STAGE_DESCRIPTIONS = (
    "Validating configuration",
    "Resolving modules",
    "Generating sources",
    "Compiling",
)


class BuildPipeline:
    """
    Runs the complete build for one distribution.

    Example usage:
        pipeline = BuildPipeline()
        outcome = pipeline.run(distribution)
        if outcome.success:
            print(f"Binary: {outcome.binary_path}")
        else:
            print(outcome.message)
    """

    def __init__(
        self,
        validator: Optional[ConfigValidator] = None,
        resolver: Optional[ModuleResolver] = None,
        generator: Optional[CodeGenerator] = None,
        orchestrator: Optional[CompileOrchestrator] = None,
        show_progress: bool = False,
    ):
        """
        Initialize build pipeline.

        Args:
            validator: Config validator (default: ConfigValidator)
            resolver: Module resolver (default: ModuleResolver)
            generator: Code generator (default: CodeGenerator)
            orchestrator: Compile orchestrator (default: CompileOrchestrator)
            show_progress: Display a progress bar over the stages
        """
        self.validator = validator or ConfigValidator()
        self.resolver = resolver or ModuleResolver()
        self.generator = generator or CodeGenerator()
        self.orchestrator = orchestrator or CompileOrchestrator()
        self.show_progress = show_progress

    def run(
        self,
        distribution: Distribution,
        cancel_event: Optional[threading.Event] = None,
    ) -> BuildOutcome:
        """
        Execute the build pipeline.

        Args:
            distribution: Distribution to build
            cancel_event: Set to abort a running toolchain phase

        Returns:
            BuildOutcome; on failure it names the failing stage and error
        """
        start_time = time.time()
        manifest: Optional[DependencyManifest] = None
        output_dir: Optional[Path] = None
        temporary_output = distribution.output_path is None

        progress = tqdm(
            total=len(STAGE_DESCRIPTIONS),
            disable=not self.show_progress,
            unit="stage",
            leave=False,
        )
        try:
            progress.set_description(STAGE_DESCRIPTIONS[0])
            self.validator.validate(distribution)
            if not temporary_output:
                output_dir = Path(distribution.output_path)
            progress.update(1)

            progress.set_description(STAGE_DESCRIPTIONS[1])
            manifest = self.resolver.resolve(
                distribution.all_components(),
                distribution.otelcol_version,
                distribution.replaces,
            )
            progress.update(1)

            progress.set_description(STAGE_DESCRIPTIONS[2])
            distribution = self._with_output_dir(distribution)
            output_dir = Path(distribution.output_path)
            generation = self.generator.generate(distribution, manifest, output_dir)
            progress.update(1)

            progress.set_description(STAGE_DESCRIPTIONS[3])
            outcome = self.orchestrator.compile(
                generation,
                distribution.name,
                compiler_override=distribution.go,
                skip=distribution.skip_compilation,
                cancel_event=cancel_event,
            )
            progress.update(1)
        except PipelineError as e:
            logger.error(f"Build failed at {e.stage.value} stage: {e}")
            if temporary_output and output_dir is not None and e.stage == BuildStage.GENERATION:
                shutil.rmtree(output_dir, ignore_errors=True)
                output_dir = None
            outcome = BuildOutcome.failed(e, output_dir=output_dir)
        finally:
            progress.close()

        outcome.manifest = manifest
        outcome.build_time = time.time() - start_time
        if outcome.success:
            logger.info(f"{outcome.message} in {outcome.build_time:.2f}s")
        return outcome

    @staticmethod
    def _with_output_dir(distribution: Distribution) -> Distribution:
        """Fill in a fresh temporary output directory when none is set."""
        if distribution.output_path is not None:
            return distribution
        path = tempfile.mkdtemp(prefix=DEFAULT_OUTPUT_PREFIX)
        logger.info(f"Using temporary output directory {path}")
        return distribution.with_output_path(path)


def run(
    distribution: Distribution,
    cancel_event: Optional[threading.Event] = None,
    show_progress: bool = False,
) -> BuildOutcome:
    """Run the default build pipeline for a distribution."""
    return BuildPipeline(show_progress=show_progress).run(distribution, cancel_event)
