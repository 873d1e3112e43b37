"""
Build system components for otelbuilder.

This module provides the build system implementation including:
- Source generation (main.go, components.go, go.mod)
- Toolchain invocation (go mod tidy, go build)
- Build orchestration
"""

from .code_generator import CodeGenerator, render_sources
from .compile_orchestrator import (
    CancellationError,
    CompileError,
    CompileOrchestrator,
    FetchError,
)
from .outcome import BuildOutcome
from .pipeline import BuildPipeline, run
from .source_writer import GeneratedFile, GenerationError, GenerationResult, SourceWriter
from .toolchain import GoToolchain, Toolchain, ToolchainNotFoundError, ToolchainResult

__all__ = [
    "BuildOutcome",
    "BuildPipeline",
    "CancellationError",
    "CodeGenerator",
    "CompileError",
    "CompileOrchestrator",
    "FetchError",
    "GeneratedFile",
    "GenerationError",
    "GenerationResult",
    "GoToolchain",
    "SourceWriter",
    "Toolchain",
    "ToolchainNotFoundError",
    "ToolchainResult",
    "render_sources",
    "run",
]
