"""Unit tests for the all-or-nothing source writer."""

import pytest

from otelbuilder.build.source_writer import (
    GeneratedFile,
    GenerationError,
    SourceWriter,
)
from otelbuilder.errors import BuildStage

FILES = (
    GeneratedFile("go.mod", "module example.com/custom\n"),
    GeneratedFile("components.go", "package main\n"),
    GeneratedFile("main.go", "package main\n"),
)


class FailingWriter(SourceWriter):
    """Writer that fails on the n-th file."""

    def __init__(self, fail_on: int):
        self.fail_on = fail_on
        self.attempts = 0

    def _write_file(self, target, content):
        self.attempts += 1
        if self.attempts == self.fail_on:
            raise OSError(28, "No space left on device")
        super()._write_file(target, content)


class TestSourceWriter:
    """Test cases for SourceWriter."""

    def test_writes_every_file(self, tmp_path):
        output_dir = tmp_path / "nested" / "out"
        result = SourceWriter().write_all(output_dir, FILES)

        assert result.output_dir == output_dir
        assert result.files == tuple(sorted(output_dir / f.relative_path for f in FILES))
        assert (output_dir / "go.mod").read_text() == "module example.com/custom\n"

    def test_uses_unix_newlines(self, tmp_path):
        SourceWriter().write_all(tmp_path, [GeneratedFile("main.go", "a\nb\n")])
        assert (tmp_path / "main.go").read_bytes() == b"a\nb\n"

    def test_failure_removes_created_directory(self, tmp_path):
        output_dir = tmp_path / "out"
        with pytest.raises(GenerationError) as exc_info:
            FailingWriter(fail_on=2).write_all(output_dir, FILES)

        assert not output_dir.exists()
        assert exc_info.value.path == output_dir / "components.go"
        assert exc_info.value.stage == BuildStage.GENERATION
        assert exc_info.value.exit_code == 4
        assert isinstance(exc_info.value.cause, OSError)

    def test_failure_keeps_existing_directory_content(self, tmp_path):
        unrelated = tmp_path / "README"
        unrelated.write_text("keep me")

        with pytest.raises(GenerationError):
            FailingWriter(fail_on=3).write_all(tmp_path, FILES)

        assert unrelated.read_text() == "keep me"
        for generated in FILES:
            assert not (tmp_path / generated.relative_path).exists()

    def test_output_dir_is_a_file(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(GenerationError):
            SourceWriter().write_all(blocker / "out", FILES)
