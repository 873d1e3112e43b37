"""CLI utility functions for otelbuilder.

This module provides common utilities used across CLI commands including:
- Error handling and formatting
- Cancellation on Ctrl-C
"""

import signal
import threading
from contextlib import contextmanager
from typing import Iterator

from otelbuilder.build import BuildOutcome, CompileError, FetchError


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Build failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}! {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_outcome_failure(outcome: BuildOutcome) -> None:
        """Print a failed outcome, including raw toolchain diagnostics.

        Args:
            outcome: Failed BuildOutcome
        """
        stage = outcome.stage.value if outcome.stage else "unknown"
        message = str(outcome.error) if outcome.error else "build failed"
        error = outcome.error
        if isinstance(error, (FetchError, CompileError)) and error.diagnostics:
            message += "\n\n" + error.diagnostics.rstrip()
        if outcome.output_dir is not None and outcome.stage in (
            FetchError.stage,
            CompileError.stage,
        ):
            message += f"\n\nGenerated sources kept in {outcome.output_dir}"
        ErrorFormatter.print_error(f"Build failed ({stage})", message)

    @staticmethod
    def print_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Print an unexpected error with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())


@contextmanager
def cancel_on_interrupt(cancel_event: threading.Event) -> Iterator[threading.Event]:
    """Set cancel_event on SIGINT instead of raising KeyboardInterrupt.

    The toolchain polls the event, stops the running process tree and the
    pipeline reports a cancellation failure. Outside the main thread the
    handler cannot be installed and the event is yielded unchanged.
    """
    if threading.current_thread() is not threading.main_thread():
        yield cancel_event
        return

    def _handler(signum, frame):
        ErrorFormatter.print_warning("Cancelling build...")
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield cancel_event
    finally:
        signal.signal(signal.SIGINT, previous)
