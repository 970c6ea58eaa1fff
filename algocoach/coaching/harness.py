#!/usr/bin/env python3
"""
Execution harness - runs the learner's test command and reports the outcome.
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Union

from .errors import HarnessError
from .state import ExecutionResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
TIMEOUT_EXIT_CODE = 124


def _as_text(output: Union[str, bytes, None]) -> str:
    if output is None:
        return ''
    if isinstance(output, bytes):
        return output.decode('utf-8', errors='replace')
    return output


def run_tests(
    command: str,
    cwd: Optional[Union[str, Path]] = None,
    timeout: float = DEFAULT_TIMEOUT
) -> ExecutionResult:
    """
    Run a shell test command and capture its output.

    Args:
        command: Shell command, e.g. "pytest -q test_solution.py"
        cwd: Working directory for the command
        timeout: Seconds before the run is abandoned

    Returns:
        ExecutionResult; passed is True only for exit code 0

    Raises:
        HarnessError: the command could not be started
    """
    logger.debug("Running test command %r in %s", command, cwd or '.')

    try:
        completed = subprocess.run(
            command,
            shell=True,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        logger.debug("Test command timed out after %ss", timeout)
        stderr = _as_text(e.stderr)
        if stderr and not stderr.endswith('\n'):
            stderr += '\n'
        return ExecutionResult(
            stdout=_as_text(e.stdout),
            stderr=stderr + f"Timed out after {timeout:g} seconds",
            passed=False,
            exit_code=TIMEOUT_EXIT_CODE,
        )
    except OSError as e:
        raise HarnessError(
            f"Could not run test command: {e}",
            {'command': command, 'cwd': str(cwd) if cwd is not None else None},
        ) from e

    logger.debug("Test command exited with %d", completed.returncode)
    return ExecutionResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        passed=completed.returncode == 0,
        exit_code=completed.returncode,
    )
