"""
Process tree termination.

The go command spawns compilers and linkers of its own, so stopping only the
top-level process would orphan them. kill_process_tree terminates the root
and every descendant, children first, then force-kills stragglers.
"""

import logging
from typing import List

import psutil

logger = logging.getLogger(__name__)


def kill_process_tree(root_pid: int, timeout: float = 3.0) -> int:
    """Terminate a process and all of its descendants.

    Args:
        root_pid: PID of the root process
        timeout: Seconds to wait for graceful termination before killing

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(root_pid)
    except psutil.NoSuchProcess:
        return 0

    try:
        children = root.children(recursive=True)
    except psutil.NoSuchProcess:
        children = []

    # Children first (bottom-up to avoid orphans)
    processes: List[psutil.Process] = list(reversed(children)) + [root]

    signalled: List[psutil.Process] = []
    for proc in processes:
        try:
            proc.terminate()
            signalled.append(proc)
            logger.debug(f"Terminated process {proc.pid}")
        except psutil.NoSuchProcess:
            pass  # Already dead
        except psutil.AccessDenied as e:
            logger.warning(f"Failed to terminate process {proc.pid}: {e}")

    _gone, alive = psutil.wait_procs(signalled, timeout=timeout)

    for proc in alive:
        try:
            proc.kill()
            logger.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            pass
        except psutil.AccessDenied as e:
            logger.warning(f"Failed to force kill process {proc.pid}: {e}")

    return len(signalled)
