"""Toolchain capability for fetching dependencies and compiling.

The pipeline never spawns processes directly: it talks to a Toolchain, which
has two operations (fetch and compile), each run against a working directory
and returning a structured ToolchainResult. GoToolchain drives the real go
command; tests substitute a double that never spawns anything.

Design:
    - Synchronous subprocess invocation with captured stdout/stderr
    - Polls the child so a cancellation event can stop it mid-phase
    - Cancellation and timeouts terminate the whole process tree
"""

import logging
import os
import shutil
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from .process_utils import kill_process_tree

logger = logging.getLogger(__name__)


class ToolchainNotFoundError(Exception):
    """Raised when the toolchain binary cannot be located."""

    pass


@dataclass(frozen=True)
class ToolchainResult:
    """Outcome of one toolchain invocation.

    Attributes:
        command: Command line that was run
        returncode: Exit status of the process
        stdout: Captured standard output, verbatim
        stderr: Captured standard error, verbatim
        cancelled: True if the run was stopped by a cancellation event
        timed_out: True if the run was stopped by the timeout
    """

    command: Tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    cancelled: bool = False
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.cancelled and not self.timed_out


class Toolchain(ABC):
    """External fetch/compile capability."""

    @abstractmethod
    def fetch(
        self, workdir: Path, cancel_event: Optional[threading.Event] = None
    ) -> ToolchainResult:
        """Reconcile and download the dependencies declared in workdir."""

    @abstractmethod
    def compile(
        self,
        workdir: Path,
        exe_name: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> ToolchainResult:
        """Compile the program in workdir into an executable named exe_name."""


class GoToolchain(Toolchain):
    """
    Go toolchain driver.

    Runs "go mod tidy" for the fetch phase and
    "go build -trimpath -o <exe> -ldflags=-s -w" for the compile phase.

    Example usage:
        toolchain = GoToolchain()
        result = toolchain.fetch(Path("/tmp/dist"))
        if not result.success:
            print(result.stderr)
    """

    POLL_INTERVAL = 0.1

    def __init__(
        self,
        go_binary: Optional[str] = None,
        timeout: Optional[float] = None,
        env: Optional[Dict[str, str]] = None,
        ldflags: str = "-s -w",
    ):
        """
        Initialize Go toolchain.

        Args:
            go_binary: Path to the go binary (defaults to go on PATH)
            timeout: Per-phase timeout in seconds (None = no timeout)
            env: Extra environment variables for the go command
            ldflags: Linker flags passed to go build
        """
        self.go_binary = go_binary
        self.timeout = timeout
        self.env = dict(env or {})
        self.ldflags = ldflags

    def resolve_binary(self) -> str:
        """
        Locate the go binary.

        Returns:
            Path to the go executable

        Raises:
            ToolchainNotFoundError: If the binary cannot be found
        """
        candidate = self.go_binary or "go"
        resolved = shutil.which(candidate)
        if resolved is None:
            if self.go_binary:
                raise ToolchainNotFoundError(f"Go binary not found: {self.go_binary}")
            raise ToolchainNotFoundError(
                "Go binary not found on PATH. Install Go or pass an explicit path."
            )
        return resolved

    def fetch(
        self, workdir: Path, cancel_event: Optional[threading.Event] = None
    ) -> ToolchainResult:
        command = [self.resolve_binary(), "mod", "tidy"]
        return self._run(command, workdir, cancel_event)

    def compile(
        self,
        workdir: Path,
        exe_name: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> ToolchainResult:
        command = [
            self.resolve_binary(),
            "build",
            "-trimpath",
            "-o",
            exe_name,
            f"-ldflags={self.ldflags}",
        ]
        return self._run(command, workdir, cancel_event)

    def _run(
        self,
        command: Sequence[str],
        workdir: Path,
        cancel_event: Optional[threading.Event],
    ) -> ToolchainResult:
        """Run a command, honoring the cancellation event and timeout."""
        logger.info(f"Running {' '.join(command)} in {workdir}")
        env = None
        if self.env:
            env = {**os.environ, **self.env}

        process = subprocess.Popen(
            list(command),
            cwd=str(workdir),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )
        deadline = time.monotonic() + self.timeout if self.timeout else None

        try:
            while True:
                try:
                    stdout, stderr = process.communicate(timeout=self.POLL_INTERVAL)
                    break
                except subprocess.TimeoutExpired:
                    if cancel_event is not None and cancel_event.is_set():
                        logger.warning(f"Cancelling {command[1]} (pid {process.pid})")
                        return self._stop(process, command, cancelled=True)
                    if deadline is not None and time.monotonic() > deadline:
                        logger.warning(f"{command[1]} timed out after {self.timeout}s")
                        return self._stop(process, command, timed_out=True)
        except KeyboardInterrupt:
            kill_process_tree(process.pid)
            process.wait()
            raise

        logger.debug(f"{command[1]} exited with status {process.returncode}")
        return ToolchainResult(
            command=tuple(command),
            returncode=process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
        )

    @staticmethod
    def _stop(
        process: subprocess.Popen,
        command: Sequence[str],
        cancelled: bool = False,
        timed_out: bool = False,
    ) -> ToolchainResult:
        kill_process_tree(process.pid)
        stdout, stderr = process.communicate()
        return ToolchainResult(
            command=tuple(command),
            returncode=process.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            cancelled=cancelled,
            timed_out=timed_out,
        )
