"""
Command execution utilities.

This module provides functions for executing the OS utilities the metric
source shells out to, and for checking that they are installed.
"""

import asyncio
import logging
import shutil
from typing import Sequence, Tuple

logger = logging.getLogger(__name__)


async def run_command_async(
    args: Sequence[str], timeout: float = 5.0
) -> Tuple[int, str, str]:
    """Execute a command without blocking the event loop and capture its output.

    Args:
        args: Program and arguments; no shell is involved.
        timeout: Seconds to wait before the process is killed.

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 for execution errors and timeouts.

    Note:
        Uses UTF-8 decoding with error replacement for robust text handling.
    """
    logger.debug(f"Executing command: {' '.join(args)}")
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        logger.debug(f"Command not found: {args[0]}")
        return -1, "", f"Error: Command not found '{args[0]}'"
    except OSError as e:
        logger.error(f"Failed to start '{args[0]}': {type(e).__name__}: {e}")
        return -1, "", f"An unexpected error occurred: {e}"

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        logger.warning(f"Command '{args[0]}' timed out after {timeout}s")
        return -1, "", f"Error: Command timed out after {timeout}s"

    return (
        process.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


def is_command_available(name: str) -> bool:
    """Check if a command is available on the system PATH."""
    return shutil.which(name) is not None


def check_nvidia_smi_installed() -> bool:
    """Check if 'nvidia-smi' is available; without it the GPU is reported as absent."""
    return is_command_available("nvidia-smi")
