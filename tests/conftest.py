"""Shared fixtures for otelbuilder tests."""

import threading
from pathlib import Path
from typing import List, Optional

import pytest

from otelbuilder.build.toolchain import Toolchain, ToolchainResult
from otelbuilder.config import ComponentEntry, ComponentKind, Distribution


class FakeToolchain(Toolchain):
    """Toolchain double that records calls and never spawns a process."""

    def __init__(
        self,
        fetch_result: Optional[ToolchainResult] = None,
        compile_result: Optional[ToolchainResult] = None,
    ):
        self.fetch_result = fetch_result or ToolchainResult(("go", "mod", "tidy"), 0)
        self.compile_result = compile_result or ToolchainResult(("go", "build"), 0)
        self.calls: List[tuple] = []

    def fetch(self, workdir: Path, cancel_event: Optional[threading.Event] = None):
        self.calls.append(("fetch", Path(workdir)))
        return self.fetch_result

    def compile(
        self,
        workdir: Path,
        exe_name: str,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.calls.append(("compile", Path(workdir), exe_name))
        (Path(workdir) / exe_name).write_text("binary")
        return self.compile_result


@pytest.fixture
def fake_toolchain():
    """Create a toolchain double that always succeeds."""
    return FakeToolchain()


@pytest.fixture
def fake_toolchain_class():
    """Expose the double for tests that configure their own results."""
    return FakeToolchain


@pytest.fixture
def receiver_entry():
    return ComponentEntry(
        import_path="example.com/receiver-x",
        version="v1.0.0",
        kind=ComponentKind.RECEIVER,
    )


@pytest.fixture
def distribution(tmp_path, receiver_entry):
    """Create the distribution used by the end-to-end scenarios."""
    return Distribution(
        name="otelcol-custom",
        module="example.com/custom",
        otelcol_version="v1.2.3",
        output_path=tmp_path / "dist",
        components=(receiver_entry,),
    )
