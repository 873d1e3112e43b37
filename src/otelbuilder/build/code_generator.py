"""
Code generation for collector distributions.

Rendering is a pure function from (Distribution, DependencyManifest) to a
sequence of GeneratedFile values; writing them is delegated to SourceWriter.
Three files are produced:
- go.mod: module manifest consumed by the Go toolchain
- components.go: factory registration, grouped by component kind
- main.go: entry point wiring the registry into the collector service
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from ..config.distribution import ComponentEntry, ComponentKind, Distribution
from ..packages.module_resolver import DependencyManifest
from . import templates
from .source_writer import GeneratedFile, GenerationResult, SourceWriter

logger = logging.getLogger(__name__)

GO_MOD_FILE = "go.mod"
COMPONENTS_FILE = "components.go"
MAIN_FILE = "main.go"

# Identifiers the generated code already uses
RESERVED_IDENTIFIERS = {
    # Go keywords
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type",
    "var",
    # predeclared identifiers
    "any", "bool", "byte", "comparable", "complex64", "complex128", "error",
    "float32", "float64", "int", "int8", "int16", "int32", "int64", "rune",
    "string", "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
    "true", "false", "iota", "nil",
    "append", "cap", "clear", "close", "complex", "copy", "delete", "imag",
    "len", "make", "max", "min", "new", "panic", "print", "println", "real",
    "recover",
    # not allowed as a package name
    "init",
    # names in generated files
    "component", "defaultcomponents", "service", "log", "main", "run",
    "components", "err", "factories", "factory", "info", "settings", "cmd",
    "extensions", "receivers", "processors", "exporters",
}

_MAJOR_SUFFIX_RE = re.compile(r"^v\d+$")
_INVALID_IDENT_RE = re.compile(r"[^A-Za-z0-9_]")


def import_alias(entry: ComponentEntry) -> str:
    """Derive a Go identifier for an entry's import.

    Uses the explicit name when set, otherwise the last path element
    (skipping a trailing major-version element such as "v2").
    """
    if entry.name:
        base = entry.name
    else:
        elements = [part for part in entry.import_path.split("/") if part]
        base = elements[-1] if elements else "component"
        if _MAJOR_SUFFIX_RE.match(base) and len(elements) > 1:
            base = elements[-2]
    alias = _INVALID_IDENT_RE.sub("_", base)
    if not alias or alias[0].isdigit():
        alias = "_" + alias
    return alias


def assign_aliases(entries: List[ComponentEntry]) -> Dict[str, str]:
    """Map each import path to a unique alias, in manifest order."""
    used: Set[str] = set(RESERVED_IDENTIFIERS)
    aliases: Dict[str, str] = {}
    for entry in entries:
        base = import_alias(entry)
        alias = base
        suffix = 2
        while alias in used or alias == "_":
            alias = f"{base}{suffix}"
            suffix += 1
        used.add(alias)
        aliases[entry.import_path] = alias
    return aliases


def render_sources(
    distribution: Distribution, manifest: DependencyManifest
) -> Tuple[GeneratedFile, ...]:
    """
    Render the distribution sources.

    Args:
        distribution: Target distribution metadata
        manifest: Resolved dependency manifest

    Returns:
        Files in the fixed order go.mod, components.go, main.go
    """
    kinded = [entry for entry in manifest.entries if entry.kind is not None]
    aliases = assign_aliases(kinded)

    slots: List[Tuple[ComponentKind, List[Tuple[str, str]]]] = []
    for kind in ComponentKind:
        members = [
            (aliases[entry.import_path], entry.import_path)
            for entry in manifest.components_of(kind)
        ]
        slots.append((kind, members))

    blank_imports = [
        entry.import_path
        for entry in manifest.components_of(None)
        if entry.import_path != manifest.base.import_path
    ]

    go_mod = templates.render_go_mod(
        module=distribution.module.strip(),
        requires=manifest.require_lines(),
        replaces=[directive.render(templates.go_mod_token) for directive in manifest.replaces],
    )
    components_go = templates.render_components_go(distribution.include_core, slots)
    main_go = templates.render_main_go(
        exe_name=distribution.name,
        long_name=distribution.long_name,
        version=distribution.version,
        blank_imports=blank_imports,
    )
    return (
        GeneratedFile(GO_MOD_FILE, go_mod),
        GeneratedFile(COMPONENTS_FILE, components_go),
        GeneratedFile(MAIN_FILE, main_go),
    )


class CodeGenerator:
    """
    Renders distribution sources and writes them to an output directory.

    Usage:
        generator = CodeGenerator()
        result = generator.generate(distribution, manifest, Path("/tmp/dist"))
        for path in result.files:
            print(path)
    """

    def __init__(self, writer: Optional[SourceWriter] = None):
        """
        Initialize code generator.

        Args:
            writer: File writer (defaults to SourceWriter)
        """
        self.writer = writer or SourceWriter()

    def generate(
        self,
        distribution: Distribution,
        manifest: DependencyManifest,
        output_dir: Path,
    ) -> GenerationResult:
        """
        Generate sources for a distribution.

        Args:
            distribution: Target distribution metadata
            manifest: Resolved dependency manifest
            output_dir: Directory to write into (created if absent)

        Returns:
            GenerationResult with the written file paths

        Raises:
            GenerationError: If any file cannot be written; no generated
                file is left behind
        """
        files = render_sources(distribution, manifest)
        result = self.writer.write_all(Path(output_dir), files)
        logger.info(f"Generated {len(result.files)} source files in {result.output_dir}")
        return result
