"""All-or-nothing writer for generated sources.

Either every file lands in the output directory, or none of them does: on
the first write failure the writer removes what it already wrote (and the
directory itself when the writer created it) before raising.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from ..errors import BuildStage, PipelineError

logger = logging.getLogger(__name__)


class GenerationError(PipelineError):
    """Raised when generated sources cannot be written."""

    stage = BuildStage.GENERATION
    exit_code = 4

    def __init__(self, path: Path, cause: BaseException):
        super().__init__(f"failed to write {path}: {cause}")
        self.path = Path(path)
        self.cause = cause


@dataclass(frozen=True)
class GeneratedFile:
    """One rendered file, relative to the output directory."""

    relative_path: str
    content: str


@dataclass(frozen=True)
class GenerationResult:
    """Files written by the code generator.

    Attributes:
        output_dir: Root directory the files were written to
        files: Absolute paths of the written files, sorted
    """

    output_dir: Path
    files: Tuple[Path, ...]


class SourceWriter:
    """Writes rendered files into a directory atomically as a set."""

    def write_all(self, output_dir: Path, files: Sequence[GeneratedFile]) -> GenerationResult:
        """
        Write every file under output_dir.

        Args:
            output_dir: Destination directory (created if absent)
            files: Rendered files

        Returns:
            GenerationResult listing the written paths

        Raises:
            GenerationError: Wrapping the first filesystem error, after
                removing any file already written
        """
        output_dir = Path(output_dir)
        created_dir = not output_dir.exists()
        written: List[Path] = []

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise GenerationError(output_dir, e) from e

        for generated in files:
            target = output_dir / generated.relative_path
            try:
                self._write_file(target, generated.content)
            except OSError as e:
                self._rollback(output_dir, written + [target], created_dir)
                raise GenerationError(target, e) from e
            written.append(target)
            logger.debug(f"Wrote {target}")

        return GenerationResult(output_dir=output_dir, files=tuple(sorted(written)))

    def _write_file(self, target: Path, content: str) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        # newline="\n" keeps output byte-identical across platforms
        with open(target, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)

    @staticmethod
    def _rollback(output_dir: Path, written: List[Path], created_dir: bool) -> None:
        for path in reversed(written):
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Failed to remove partially generated file {path}: {e}")
        if created_dir:
            shutil.rmtree(output_dir, ignore_errors=True)
        logger.info(f"Rolled back {len(written)} generated files in {output_dir}")
