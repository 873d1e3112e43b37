"""
Module resolution for collector distributions.

This module turns the raw component list of a Distribution into a
DependencyManifest: a deduplicated, version-consistent, deterministically
ordered set of Go module requirements plus replace directives.

No transitive dependency resolution happens here. The resolver only checks
and normalizes the explicit request; the Go toolchain resolves the rest.
"""

import logging
import shlex
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config.distribution import BASE_COLLECTOR_PATH, ComponentEntry, ComponentKind
from ..errors import BuildStage, PipelineError
from .version_utils import VersionError, is_pseudo_version, normalize_version

logger = logging.getLogger(__name__)


class ResolutionError(PipelineError):
    """Raised when the requested component set cannot be resolved."""

    stage = BuildStage.RESOLUTION
    exit_code = 3

    def __init__(self, message: str, paths: Sequence[str] = ()):
        super().__init__(message)
        self.paths = tuple(paths)


@dataclass(frozen=True)
class ReplaceDirective:
    """A go.mod replace directive ("old [version] => new [version]")."""

    old_path: str
    new_path: str
    old_version: Optional[str] = None
    new_version: Optional[str] = None

    @property
    def key(self) -> str:
        """Module path being replaced, without any version qualifier."""
        return self.old_path

    @property
    def old(self) -> Tuple[str, ...]:
        return _tokens(self.old_path, self.old_version)

    @property
    def new(self) -> Tuple[str, ...]:
        return _tokens(self.new_path, self.new_version)

    def render(self, quote: Callable[[str], str] = str) -> str:
        """Render the directive, passing every token through quote."""
        old = " ".join(quote(token) for token in self.old)
        new = " ".join(quote(token) for token in self.new)
        return f"{old} => {new}"

    @classmethod
    def parse(cls, raw: str) -> "ReplaceDirective":
        """Parse "old [version] => new [version]".

        Paths containing spaces must be quoted ('"../my module"').

        Raises:
            ValueError: If the directive is malformed
        """
        old, sep, new = raw.partition("=>")
        if not sep or "=>" in new:
            raise ValueError(f"malformed replace directive '{raw}'")
        try:
            old_tokens, new_tokens = shlex.split(old), shlex.split(new)
        except ValueError as e:
            raise ValueError(f"malformed replace directive '{raw}': {e}") from e
        if not 1 <= len(old_tokens) <= 2 or not 1 <= len(new_tokens) <= 2:
            raise ValueError(f"malformed replace directive '{raw}'")
        return cls(
            old_path=old_tokens[0],
            new_path=new_tokens[0],
            old_version=old_tokens[1] if len(old_tokens) == 2 else None,
            new_version=new_tokens[1] if len(new_tokens) == 2 else None,
        )


def _tokens(path: str, version: Optional[str]) -> Tuple[str, ...]:
    return (path, version) if version else (path,)


@dataclass(frozen=True)
class DependencyManifest:
    """Resolved, ordered dependency set of a distribution.

    Attributes:
        entries: Components sorted by import path, base collector included
        replaces: Replace directives sorted by replaced module path
        base: The base collector entry (a user entry if it overrides it)
        warnings: Non-fatal notes recorded during resolution
    """

    entries: Tuple[ComponentEntry, ...]
    replaces: Tuple[ReplaceDirective, ...]
    base: ComponentEntry
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def import_paths(self) -> List[str]:
        return [entry.import_path for entry in self.entries]

    def components_of(self, kind: Optional[ComponentKind]) -> List[ComponentEntry]:
        """Return the entries of one kind, in manifest order."""
        return [entry for entry in self.entries if entry.kind == kind]

    def require_lines(self) -> List[Tuple[str, str]]:
        """Return one (module, version) pair per distinct Go module, sorted."""
        modules: Dict[str, str] = {}
        for entry in self.entries:
            modules.setdefault(entry.module_path, entry.version)
        return sorted(modules.items())

    def to_text(self) -> str:
        """Render a canonical text form of the manifest."""
        lines = []
        for entry in self.entries:
            kind = entry.kind.value if entry.kind else "-"
            line = f"{entry.import_path} {entry.version} kind={kind}"
            if entry.module:
                line += f" module={entry.module}"
            if entry.replacement_path:
                line += f" replace={entry.replacement_path}"
            lines.append(line)
        lines.extend(f"replace {directive.render()}" for directive in self.replaces)
        return "\n".join(lines) + "\n"


class ModuleResolver:
    """
    Normalizes and validates a raw component list.

    Resolution steps:
    1. Reject duplicate import paths (all duplicates reported at once)
    2. Check that local replacement paths exist
    3. Normalize versions (tagged and pseudo-versions)
    4. Add the base collector entry (a user entry for the same path wins)
    5. Reject conflicting versions of the same Go module
    6. Merge replace directives
    7. Sort entries by import path

    Per-entry checks run on a thread pool; results are collected in sorted
    order, so the outcome never depends on scheduling.

    Usage:
        resolver = ModuleResolver()
        manifest = resolver.resolve(distribution.components, "v0.36.0")
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        base_path: str = BASE_COLLECTOR_PATH,
    ):
        """
        Initialize resolver.

        Args:
            max_workers: Thread pool size for per-entry checks (None = default)
            base_path: Import path of the base collector module
        """
        self.max_workers = max_workers
        self.base_path = base_path

    def resolve(
        self,
        entries: Iterable[ComponentEntry],
        base_version: str,
        replaces: Iterable[str] = (),
    ) -> DependencyManifest:
        """
        Resolve a component list into a manifest.

        Args:
            entries: Requested components
            base_version: Version of the base collector module
            replaces: Extra raw replace directives ("old => new")

        Returns:
            DependencyManifest with entries sorted by import path

        Raises:
            ResolutionError: On duplicates, missing replacement paths,
                malformed versions, version conflicts or bad replaces
        """
        requested = list(entries)
        self._check_duplicates(requested)

        ordered = sorted(requested, key=lambda entry: entry.import_path)
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            # map() re-raises the first failure in input order
            ordered = list(executor.map(self._check_replacement, ordered))
            ordered = list(executor.map(self._check_version, ordered))

        base, warnings = self._merge_base(ordered, base_version)
        if base not in ordered:
            ordered.append(base)
        ordered.sort(key=lambda entry: entry.import_path)

        self._check_module_versions(ordered)
        directives = self._merge_replaces(ordered, replaces)

        for entry in ordered:
            if is_pseudo_version(entry.version):
                logger.debug(f"{entry.import_path} pinned to pseudo-version {entry.version}")
        logger.info(
            f"Resolved {len(ordered)} modules ({len(directives)} replace directives)"
        )
        return DependencyManifest(
            entries=tuple(ordered),
            replaces=tuple(directives),
            base=base,
            warnings=tuple(warnings),
        )

    @staticmethod
    def _check_duplicates(entries: List[ComponentEntry]) -> None:
        counts: Dict[str, int] = defaultdict(int)
        for entry in entries:
            counts[entry.import_path] += 1
        duplicates = sorted(path for path, count in counts.items() if count > 1)
        if duplicates:
            raise ResolutionError(
                f"duplicate import paths: {', '.join(duplicates)}", paths=duplicates
            )

    @staticmethod
    def _check_replacement(entry: ComponentEntry) -> ComponentEntry:
        if not entry.replacement_path:
            return entry
        local = Path(entry.replacement_path).expanduser()
        if not local.exists():
            raise ResolutionError(
                f"replacement path for {entry.import_path} does not exist: "
                + f"{entry.replacement_path}",
                paths=[entry.import_path],
            )
        return replace(entry, replacement_path=str(local.resolve()))

    @staticmethod
    def _check_version(entry: ComponentEntry) -> ComponentEntry:
        try:
            version = normalize_version(entry.version)
        except VersionError as e:
            raise ResolutionError(
                f"invalid version for {entry.import_path}: {e}",
                paths=[entry.import_path],
            ) from e
        return replace(entry, version=version)

    def _merge_base(
        self, entries: List[ComponentEntry], base_version: str
    ) -> Tuple[ComponentEntry, List[str]]:
        """Return the base collector entry and any override warnings."""
        try:
            version = normalize_version(base_version)
        except VersionError as e:
            raise ResolutionError(
                f"invalid base collector version: {e}", paths=[self.base_path]
            ) from e

        for entry in entries:
            if entry.import_path == self.base_path:
                warning = (
                    f"{self.base_path} is requested explicitly; using {entry.version} "
                    + f"instead of the base collector version {version}"
                )
                logger.warning(warning)
                return entry, [warning]

        return ComponentEntry(import_path=self.base_path, version=version), []

    @staticmethod
    def _check_module_versions(entries: List[ComponentEntry]) -> None:
        versions: Dict[str, set] = defaultdict(set)
        targets: Dict[str, set] = defaultdict(set)
        for entry in entries:
            versions[entry.module_path].add(entry.version)
            if entry.replacement_path:
                targets[entry.module_path].add(entry.replacement_path)

        conflicts = sorted(
            module
            for module in versions
            if len(versions[module]) > 1 or len(targets[module]) > 1
        )
        if conflicts:
            details = "; ".join(
                f"{module} ({', '.join(sorted(versions[module] | targets[module]))})"
                for module in conflicts
            )
            raise ResolutionError(f"conflicting module versions: {details}", paths=conflicts)

    @staticmethod
    def _merge_replaces(
        entries: List[ComponentEntry], raw_replaces: Iterable[str]
    ) -> List[ReplaceDirective]:
        directives: Dict[str, ReplaceDirective] = {}

        def add(directive: ReplaceDirective) -> None:
            existing = directives.get(directive.key)
            if existing is not None and existing != directive:
                raise ResolutionError(
                    f"conflicting replace directives for {directive.key}: "
                    + f"'{existing.render()}' and '{directive.render()}'",
                    paths=[directive.key],
                )
            directives[directive.key] = directive

        for entry in entries:
            if entry.replacement_path:
                add(
                    ReplaceDirective(old_path=entry.module_path, new_path=entry.replacement_path)
                )

        for raw in raw_replaces:
            try:
                add(ReplaceDirective.parse(raw))
            except ValueError as e:
                raise ResolutionError(str(e)) from e

        return [directives[key] for key in sorted(directives)]


def resolve(
    entries: Iterable[ComponentEntry],
    base_version: str,
    replaces: Iterable[str] = (),
) -> DependencyManifest:
    """Resolve entries with the default resolver."""
    return ModuleResolver().resolve(entries, base_version, replaces)
