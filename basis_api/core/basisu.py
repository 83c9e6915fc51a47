"""
Invocation of the external basisu executable.

basisu is run synchronously with the job directory as its working
directory. Its output is logged; failures are raised as ToolError.
"""
import logging
import subprocess
from pathlib import Path
from typing import Dict, Any, Optional, Sequence

from basis_api.core.command import render_command
from basis_api.core.errors import ToolError

# Set up logging
logger = logging.getLogger(__name__)


def run_basisu(argv: Sequence[str], cwd: Path) -> subprocess.CompletedProcess:
    """
    Run one basisu command to completion.

    Args:
        argv: Full argument list, executable first
        cwd: Working directory for the process

    Returns:
        The completed process

    Raises:
        ToolError: If basisu cannot be started or exits with a non-zero code
    """
    logger.info(f"Executing command: {render_command(argv)}")
    try:
        result = subprocess.run(
            list(argv),
            cwd=str(cwd),
            check=True,
            capture_output=True,
            text=True
        )
    except subprocess.CalledProcessError as e:
        if e.stdout:
            logger.info(f"Command output: {e.stdout}")
        logger.error(f"Command stderr: {e.stderr}")
        message = (e.stderr or e.stdout or "").strip() or f"basisu exited with code {e.returncode}"
        raise ToolError(message) from e
    except OSError as e:
        # Missing executable or missing permission
        raise ToolError(f"Unable to run basisu at {argv[0]}: {e}") from e

    logger.info(f"Command output: {result.stdout}")
    if result.stderr:
        logger.error(f"Command stderr: {result.stderr}")
    return result


def check_basisu(basisu_path: Path) -> Dict[str, Any]:
    """
    Probe the basisu executable for the health check.

    Returns:
        Dictionary with a status field and either the version line or an error
    """
    try:
        result = subprocess.run(
            [str(basisu_path), "-version"],
            capture_output=True, text=True, check=True
        )
    except (subprocess.SubprocessError, OSError) as e:
        return {"status": "error", "path": str(basisu_path), "message": str(e)}

    version: Optional[str] = None
    for line in result.stdout.splitlines():
        if line.strip():
            version = line.strip()
            break
    return {"status": "ok", "path": str(basisu_path), "version": version}
