"""
Command-line interface for otelbuilder.

This module provides the `otelcol-builder` CLI tool for building custom
OpenTelemetry Collector distributions.
"""

import argparse
import logging
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from otelbuilder import __version__
from otelbuilder.build import BuildPipeline
from otelbuilder.cli_utils import ErrorFormatter, cancel_on_interrupt
from otelbuilder.config import ConfigLoadError, load_config
from otelbuilder.logging_utils import setup_logging

PROG = "otelcol-builder"

logger = logging.getLogger(__name__)


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    config: Optional[Path] = None
    skip_compilation: Optional[bool] = None
    name: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None
    include_core: Optional[bool] = None
    otelcol_version: Optional[str] = None
    output_path: Optional[str] = None
    go: Optional[str] = None
    module: Optional[str] = None
    verbose: bool = False
    log_file: Optional[Path] = None

    def overrides(self) -> Dict[str, Any]:
        """Map flags to configuration keys; unset flags are omitted."""
        values = {
            "skip_compilation": self.skip_compilation,
            "dist.name": self.name,
            "dist.description": self.description,
            "dist.version": self.version,
            "dist.include_core": self.include_core,
            "dist.otelcol_version": self.otelcol_version,
            "dist.output_path": self.output_path,
            "dist.go": self.go,
            "dist.module": self.module,
        }
        return {key: value for key, value in values.items() if value is not None}


def build_command(args: BuildArgs) -> int:
    """Generate and compile a collector distribution.

    Examples:
        otelcol-builder build --config builder.yaml
        otelcol-builder build --config builder.yaml --skip-compilation
        otelcol-builder build --name otelcol-dev --output-path ./dist

    Returns:
        Process exit code (0 on success)
    """
    setup_logging(verbose=args.verbose, log_file=args.log_file)
    logger.info(f"OpenTelemetry Collector distribution builder {__version__}")

    try:
        distribution = load_config(args.config, overrides=args.overrides())
    except ConfigLoadError as e:
        ErrorFormatter.print_error("Invalid configuration", str(e))
        return 2

    pipeline = BuildPipeline(show_progress=not args.verbose and sys.stderr.isatty())

    try:
        with cancel_on_interrupt(threading.Event()) as cancel_event:
            outcome = pipeline.run(distribution, cancel_event=cancel_event)
    except Exception as e:
        ErrorFormatter.print_unexpected_error(e, args.verbose)
        return 1

    for warning in outcome.manifest.warnings if outcome.manifest else ():
        ErrorFormatter.print_warning(warning)

    if outcome.success:
        ErrorFormatter.print_success(outcome.message)
        print(f"Build time: {outcome.build_time:.2f}s")
    else:
        ErrorFormatter.print_outcome_failure(outcome)
    return outcome.exit_code


def version_command() -> int:
    print(f"{PROG} version {__version__}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description=f"OpenTelemetry Collector distribution builder ({__version__})",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser(
        "build",
        help="Generate and compile a collector distribution",
    )
    build_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: $HOME/.otelcol-builder.yaml if present)",
    )
    build_parser.add_argument(
        "--skip-compilation",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Only generate sources, do not compile the collector",
    )
    build_parser.add_argument(
        "--name",
        default=None,
        help="Executable name for the distribution (default: otelcol-custom)",
    )
    build_parser.add_argument(
        "--description",
        default=None,
        help="Descriptive name for the distribution",
    )
    build_parser.add_argument(
        "--version",
        default=None,
        help="Version of the distribution (default: 1.0.0)",
    )
    build_parser.add_argument(
        "--include-core",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Include the core collector components (default: true)",
    )
    build_parser.add_argument(
        "--otelcol-version",
        default=None,
        help="Version of the OpenTelemetry Collector to use as base",
    )
    build_parser.add_argument(
        "--output-path",
        default=None,
        help="Where to write the resulting files (default: a temporary directory)",
    )
    build_parser.add_argument(
        "--go",
        default=None,
        help="Go binary to use for compilation (default: go from PATH)",
    )
    build_parser.add_argument(
        "--module",
        default=None,
        help="Go module for the new distribution",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )
    build_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file",
    )

    subparsers.add_parser(
        "version",
        help="Print the version of the builder",
    )
    return parser


def main(argv: Optional[list] = None) -> None:
    """otelcol-builder - custom OpenTelemetry Collector distribution builder."""
    parser = create_parser()
    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    if parsed_args.command == "version":
        sys.exit(version_command())

    build_args = BuildArgs(
        config=parsed_args.config,
        skip_compilation=parsed_args.skip_compilation,
        name=parsed_args.name,
        description=parsed_args.description,
        version=parsed_args.version,
        include_core=parsed_args.include_core,
        otelcol_version=parsed_args.otelcol_version,
        output_path=parsed_args.output_path,
        go=parsed_args.go,
        module=parsed_args.module,
        verbose=parsed_args.verbose,
        log_file=parsed_args.log_file,
    )
    sys.exit(build_command(build_args))


if __name__ == "__main__":
    main()
