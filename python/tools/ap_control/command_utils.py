#!/usr/bin/env python3
"""
Command execution utilities for the access point controller.
Runs platform tools (nmcli, ping) and wraps their output in CommandResult.
"""

import subprocess
from typing import List, Optional
from loguru import logger

from .models import CommandResult


def run_command(
    cmd: List[str],
    timeout: Optional[float] = None,
    log_failures: bool = True,
) -> CommandResult:
    """
    Run a command synchronously and return the result.

    Args:
        cmd: List of command parts to execute
        timeout: Seconds to wait before giving up on the command
        log_failures: Whether a non-zero exit status or a timeout is logged
            above debug level

    Returns:
        CommandResult object containing the command output and status
    """
    logger.debug(f"Running command: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
        )
        success = result.returncode == 0

        if not success and log_failures:
            logger.error(f"Command failed: {' '.join(cmd)}")
            logger.error(f"Error: {result.stderr}")

        return CommandResult(
            success=success,
            stdout=result.stdout,
            stderr=result.stderr,
            return_code=result.returncode,
            command=cmd
        )
    except subprocess.TimeoutExpired as e:
        message = f"Command timed out after {timeout}s: {' '.join(cmd)}"
        if log_failures:
            logger.warning(message)
        else:
            logger.debug(message)
        return CommandResult(
            success=False,
            stderr=str(e),
            return_code=-1,
            command=cmd
        )
    except Exception as e:
        logger.exception(f"Exception running command: {e}")
        return CommandResult(
            success=False,
            stderr=str(e),
            return_code=-1,
            command=cmd
        )
