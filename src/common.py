"""Common utilities and types for manifest management."""

import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of a child process run.

    A run counts as successful when nothing was written to stderr; package
    managers frequently exit 0 while reporting problems there.
    """
    returncode: int
    stdout: str = ''
    stderr: str = ''
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.stderr == ''


def run_command(
    cmd: list[str],
    cwd: Optional[Path] = None,
    timeout: Optional[int] = None,
    env: Optional[dict] = None
) -> CommandResult:
    """Run a command synchronously and capture its output as UTF-8 text.

    Never raises for a failed run: timeouts and spawn failures (e.g. a missing
    executable) come back with returncode -1 and the reason in stderr.
    """
    logger.debug(f"Running: {' '.join(cmd)}")
    start = time.time()
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding='utf-8',
            errors='replace',
            timeout=timeout,
            env=env,
            check=False  # We handle return codes explicitly
        )
        return CommandResult(
            returncode=result.returncode,
            stdout=result.stdout or '',
            stderr=result.stderr or '',
            duration=time.time() - start
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            returncode=-1,
            stderr=f'Command timed out after {timeout}s',
            duration=time.time() - start
        )
    except OSError as e:
        return CommandResult(returncode=-1, stderr=str(e), duration=time.time() - start)
