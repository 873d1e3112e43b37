"""
Unit tests for the build pipeline.

The pipeline runs end to end against a toolchain double, so these tests
cover every stage except the real go command.
"""

import dataclasses
import threading
from pathlib import Path

from otelbuilder.build import BuildPipeline, CompileOrchestrator
from otelbuilder.build.code_generator import CodeGenerator
from otelbuilder.build.compile_orchestrator import CompileError
from otelbuilder.build.pipeline import DEFAULT_OUTPUT_PREFIX
from otelbuilder.build.source_writer import SourceWriter
from otelbuilder.build.toolchain import ToolchainResult
from otelbuilder.config import BASE_COLLECTOR_PATH, ComponentEntry, Distribution
from otelbuilder.errors import BuildStage

GENERATED = ["components.go", "go.mod", "main.go"]


def make_pipeline(toolchain, **kwargs):
    return BuildPipeline(
        orchestrator=CompileOrchestrator(lambda override: toolchain), **kwargs
    )


class ExplodingWriter(SourceWriter):
    def _write_file(self, target, content):
        raise PermissionError(13, "Permission denied")


class TestBuildPipeline:
    """Test cases for BuildPipeline."""

    def test_end_to_end(self, distribution, fake_toolchain):
        outcome = make_pipeline(fake_toolchain).run(distribution)

        assert outcome.success
        assert outcome.exit_code == 0
        assert outcome.binary_path == distribution.output_path / "otelcol-custom"
        assert outcome.binary_path.exists()
        assert outcome.manifest.import_paths() == [
            "example.com/receiver-x",
            BASE_COLLECTOR_PATH,
        ]
        assert sorted(p.name for p in distribution.output_path.iterdir()) == sorted(
            GENERATED + ["otelcol-custom"]
        )
        assert outcome.build_time >= 0

    def test_skip_compilation(self, distribution, fake_toolchain):
        dist = dataclasses.replace(distribution, skip_compilation=True)
        outcome = make_pipeline(fake_toolchain).run(dist)

        assert outcome.success
        assert outcome.binary_path is None
        assert "compilation skipped" in outcome.message
        assert fake_toolchain.calls == []
        assert sorted(p.name for p in dist.output_path.iterdir()) == GENERATED

    def test_default_output_directory(self, distribution, fake_toolchain, tmp_path, monkeypatch):
        monkeypatch.setattr("tempfile.tempdir", str(tmp_path))
        dist = dataclasses.replace(distribution, output_path=None, skip_compilation=True)

        outcome = make_pipeline(fake_toolchain).run(dist)

        assert outcome.success
        assert outcome.output_dir.parent == tmp_path
        assert outcome.output_dir.name.startswith(DEFAULT_OUTPUT_PREFIX)
        assert (outcome.output_dir / "go.mod").exists()

    def test_validation_failure(self, distribution, fake_toolchain):
        dist = dataclasses.replace(distribution, name="")
        outcome = make_pipeline(fake_toolchain).run(dist)

        assert not outcome.success
        assert outcome.stage == BuildStage.VALIDATION
        assert outcome.exit_code == 2
        assert outcome.manifest is None
        assert not distribution.output_path.exists()

    def test_resolution_failure_writes_nothing(self, distribution, fake_toolchain, receiver_entry):
        dist = dataclasses.replace(
            distribution, components=(receiver_entry, receiver_entry)
        )
        outcome = make_pipeline(fake_toolchain).run(dist)

        assert outcome.stage == BuildStage.RESOLUTION
        assert outcome.exit_code == 3
        assert "example.com/receiver-x" in outcome.message
        assert not distribution.output_path.exists()
        assert fake_toolchain.calls == []

    def test_generation_failure_leaves_nothing(self, distribution, fake_toolchain):
        pipeline = make_pipeline(
            fake_toolchain, generator=CodeGenerator(writer=ExplodingWriter())
        )
        outcome = pipeline.run(distribution)

        assert outcome.stage == BuildStage.GENERATION
        assert outcome.exit_code == 4
        assert outcome.manifest is not None
        assert not distribution.output_path.exists()
        assert fake_toolchain.calls == []

    def test_resolution_failure_creates_no_temporary_directory(
        self, distribution, fake_toolchain, receiver_entry, tmp_path, monkeypatch
    ):
        monkeypatch.setattr("tempfile.tempdir", str(tmp_path))
        dist = dataclasses.replace(
            distribution, output_path=None, components=(receiver_entry, receiver_entry)
        )
        outcome = make_pipeline(fake_toolchain).run(dist)

        assert outcome.stage == BuildStage.RESOLUTION
        assert outcome.output_dir is None
        assert list(tmp_path.glob(f"{DEFAULT_OUTPUT_PREFIX}*")) == []

    def test_generation_failure_removes_temporary_directory(
        self, distribution, fake_toolchain, tmp_path, monkeypatch
    ):
        monkeypatch.setattr("tempfile.tempdir", str(tmp_path))
        dist = dataclasses.replace(distribution, output_path=None)
        pipeline = make_pipeline(
            fake_toolchain, generator=CodeGenerator(writer=ExplodingWriter())
        )
        outcome = pipeline.run(dist)

        assert outcome.stage == BuildStage.GENERATION
        assert outcome.output_dir is None
        assert list(tmp_path.glob(f"{DEFAULT_OUTPUT_PREFIX}*")) == []

    def test_fetch_failure_keeps_sources(self, distribution, fake_toolchain_class):
        toolchain = fake_toolchain_class(
            fetch_result=ToolchainResult(("go", "mod", "tidy"), 1, stderr="unknown revision")
        )
        outcome = make_pipeline(toolchain).run(distribution)

        assert outcome.stage == BuildStage.FETCH
        assert outcome.exit_code == 5
        assert outcome.output_dir == distribution.output_path
        assert (distribution.output_path / "go.mod").exists()

    def test_compile_failure_keeps_sources(self, distribution, fake_toolchain_class):
        toolchain = fake_toolchain_class(
            compile_result=ToolchainResult(("go", "build"), 1, stderr="undefined: foo")
        )
        outcome = make_pipeline(toolchain).run(distribution)

        assert outcome.stage == BuildStage.COMPILE
        assert outcome.exit_code == 6
        assert isinstance(outcome.error, CompileError)
        assert outcome.error.stderr == "undefined: foo"
        assert outcome.message.startswith("[compile]")
        for name in GENERATED:
            assert (distribution.output_path / name).exists()

    def test_cancellation(self, distribution, fake_toolchain):
        cancel_event = threading.Event()
        cancel_event.set()
        outcome = make_pipeline(fake_toolchain).run(distribution, cancel_event=cancel_event)

        assert outcome.stage == BuildStage.CANCELLATION
        assert outcome.exit_code == 130
        assert fake_toolchain.calls == []

    def test_repeated_builds_are_identical(self, tmp_path, fake_toolchain, receiver_entry):
        extra = ComponentEntry(import_path="example.com/lib", version="1.0.0")
        outputs = []
        for name, components in (
            ("one", (receiver_entry, extra)),
            ("two", (extra, receiver_entry)),
        ):
            dist = Distribution(
                module="example.com/custom",
                output_path=tmp_path / name,
                skip_compilation=True,
                components=components,
            )
            make_pipeline(fake_toolchain).run(dist)
            outputs.append({n: (Path(tmp_path / name) / n).read_bytes() for n in GENERATED})

        assert outputs[0] == outputs[1]
