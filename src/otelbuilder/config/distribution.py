"""
Distribution model for custom collector builds.

This module defines the data structures describing the target binary and the
components it is assembled from. Instances are immutable: the configuration
provider builds them once per invocation and hands them to the pipeline.

Example:
    dist = Distribution(
        name="otelcol-custom",
        module="example.com/custom",
        otelcol_version="v0.36.0",
        components=(
            ComponentEntry(
                import_path="example.com/receiver-x",
                version="v1.0.0",
                kind=ComponentKind.RECEIVER,
            ),
        ),
    )
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

DEFAULT_NAME = "otelcol-custom"
DEFAULT_LONG_NAME = "Custom OpenTelemetry Collector distribution"
DEFAULT_VERSION = "1.0.0"
DEFAULT_MODULE = "go.opentelemetry.io/collector/cmd/builder"
DEFAULT_OTELCOL_VERSION = "0.36.0"

# Import path of the base collector every distribution depends on
BASE_COLLECTOR_PATH = "go.opentelemetry.io/collector"


class ComponentKind(str, Enum):
    """Kind of pluggable component, in registration order."""

    EXTENSION = "extension"
    RECEIVER = "receiver"
    PROCESSOR = "processor"
    EXPORTER = "exporter"


@dataclass(frozen=True)
class ComponentEntry:
    """One requested component.

    Attributes:
        import_path: Go package import path (unique key)
        version: Tagged semantic version or pseudo-version
        replacement_path: Optional local directory replacing the module
        kind: Component kind, or None for a plain library dependency
        name: Optional Go import alias (defaults to the last path element)
        module: Optional Go module path when the package lives below the
            module root (defaults to import_path)
    """

    import_path: str
    version: str
    replacement_path: Optional[str] = None
    kind: Optional[ComponentKind] = None
    name: Optional[str] = None
    module: Optional[str] = None

    @property
    def module_path(self) -> str:
        """Go module that provides this component."""
        return self.module or self.import_path

    @classmethod
    def parse_gomod(
        cls,
        gomod: str,
        import_path: Optional[str] = None,
        kind: Optional[ComponentKind] = None,
        name: Optional[str] = None,
        replacement_path: Optional[str] = None,
    ) -> "ComponentEntry":
        """Build an entry from the "<module> <version>" shorthand.

        Args:
            gomod: Module and version separated by whitespace
                (e.g., "github.com/org/receiver v0.1.0")
            import_path: Package path inside the module (defaults to module)
            kind: Component kind
            name: Import alias
            replacement_path: Local replacement directory

        Returns:
            ComponentEntry instance

        Raises:
            ValueError: If gomod does not contain exactly a module and version
        """
        parts = gomod.split()
        if len(parts) != 2:
            raise ValueError(
                f"Invalid gomod value '{gomod}': expected '<module> <version>'"
            )
        module, version = parts
        path = import_path or module
        return cls(
            import_path=path,
            version=version,
            replacement_path=replacement_path,
            kind=kind,
            name=name,
            module=module if module != path else None,
        )


@dataclass(frozen=True)
class Distribution:
    """Description of the collector binary to build.

    Attributes:
        name: Executable name (filesystem-safe, no path separators)
        long_name: Human-readable description
        version: Version reported by the built binary
        output_path: Where generated sources and the binary are written
            (None selects a fresh temporary directory)
        include_core: Whether the core collector components are included
        otelcol_version: Version of the base collector module
        module: Go module path of the generated program
        go: Optional path to the go binary (defaults to go on PATH)
        skip_compilation: Only generate sources, do not invoke the toolchain
        components: Requested components
        replaces: Extra raw go.mod replace directives ("old => new")
    """

    name: str = DEFAULT_NAME
    long_name: str = DEFAULT_LONG_NAME
    version: str = DEFAULT_VERSION
    output_path: Optional[Path] = None
    include_core: bool = True
    otelcol_version: str = DEFAULT_OTELCOL_VERSION
    module: str = DEFAULT_MODULE
    go: Optional[str] = None
    skip_compilation: bool = False
    components: Tuple[ComponentEntry, ...] = field(default_factory=tuple)
    replaces: Tuple[str, ...] = field(default_factory=tuple)

    def all_components(self) -> Tuple[ComponentEntry, ...]:
        """Return every requested component, across all kinds."""
        return tuple(self.components)

    def with_output_path(self, path: Union[str, Path]) -> "Distribution":
        """Return a copy of this distribution writing to path."""
        return replace(self, output_path=Path(path))
