"""
Process runner — the single place adapters call ``subprocess.run``.

Every command-line tool the provisioner drives (apt-get, docker, git,
python3, npm, sh) goes through ``run_process`` so timing, output
capture and error shaping are identical across adapters.
"""

from __future__ import annotations

import logging
import subprocess
import time

from geonode_devenv.core.models.action import Receipt

logger = logging.getLogger(__name__)

# Tail kept from long outputs (compose builds, npm installs)
_OUTPUT_TAIL = 4000


def _tail(text: str) -> str:
    text = text.strip()
    return text[-_OUTPUT_TAIL:] if len(text) > _OUTPUT_TAIL else text


def describe(cmd: list[str] | str) -> str:
    """Human-readable command line for logs and receipts."""
    return cmd if isinstance(cmd, str) else " ".join(cmd)


def run_process(
    adapter: str,
    action_id: str,
    cmd: list[str] | str,
    *,
    cwd: str | None = None,
    timeout: float | None = 300,
    stdin: str | None = None,
    shell: bool = False,
    env: dict[str, str] | None = None,
) -> Receipt:
    """Run a command and shape the outcome into a Receipt.

    Args:
        adapter: Name of the calling adapter (stamped on the receipt).
        action_id: Action being executed.
        cmd: Argument list, or a string when ``shell`` is True.
        cwd: Working directory.
        timeout: Seconds before giving up. None waits indefinitely.
        stdin: Text piped to the process.
        shell: Run through ``/bin/sh``.
        env: Full environment for the process (None inherits).

    Returns:
        ok receipt with stdout, or failed receipt with stderr.
    """
    command = describe(cmd)
    logger.debug("Executing: %s (cwd=%s)", command, cwd)
    start = time.monotonic()

    try:
        result = subprocess.run(
            cmd,
            shell=shell,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            input=stdin,
            env=env,
        )
    except subprocess.TimeoutExpired:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command timed out after {timeout}s",
            metadata={"command": command, "timeout": timeout},
        )
    except FileNotFoundError as e:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command not found: {e.filename or command}",
            metadata={"command": command, "return_code": 127},
        )
    except OSError as e:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command execution error: {e}",
            metadata={"command": command},
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = _tail(result.stdout or "")
    stderr = _tail(result.stderr or "")

    if result.returncode == 0:
        return Receipt.success(
            adapter=adapter,
            action_id=action_id,
            output=stdout,
            duration_ms=elapsed_ms,
            metadata={"command": command, "return_code": 0, "stderr": stderr},
        )

    return Receipt.failure(
        adapter=adapter,
        action_id=action_id,
        error=stderr or f"Command exited with code {result.returncode}",
        duration_ms=elapsed_ms,
        metadata={"command": command, "return_code": result.returncode, "stdout": stdout},
    )
