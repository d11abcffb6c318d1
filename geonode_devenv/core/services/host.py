"""
Host probes — read-only questions the idempotency guards ask.

Nothing here changes the machine. The probes are collected on one
object so the runner can be handed a fake host in tests and the plan
command can evaluate every guard without side effects.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class HostProbe:
    """Probes against the real host."""

    def is_root(self) -> bool:
        return os.geteuid() == 0

    def command_exists(self, name: str) -> bool:
        """Equivalent of ``command -v NAME``."""
        return shutil.which(name) is not None

    def command_succeeds(self, argv: list[str], timeout: float = 15) -> bool:
        """Whether a command runs and exits 0."""
        try:
            r = subprocess.run(argv, capture_output=True, timeout=timeout)
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return False
        except OSError as exc:
            logger.warning("Cannot run %s: %s", argv[0], exc)
            return False
        return r.returncode == 0

    def package_installed(self, package: str) -> bool:
        """Whether a Debian package is installed.

        Asks dpkg first; on hosts without dpkg falls back to looking
        for a command of the same name.
        """
        try:
            r = subprocess.run(
                ["dpkg-query", "-W", "-f=${Status}", package],
                capture_output=True, text=True, timeout=10,
            )
        except FileNotFoundError:
            return self.command_exists(package)
        except subprocess.TimeoutExpired:
            logger.warning("Timeout checking package %s", package)
            return False
        except OSError as exc:
            logger.warning("OS error checking package %s: %s", package, exc)
            return False
        if "install ok installed" in r.stdout:
            return True
        # Installed outside apt (e.g. nodejs from a tarball)
        return self.command_exists(package)

    def path_exists(self, path: Path) -> bool:
        return path.exists()

    def read_text(self, path: Path) -> str | None:
        """File content, or None when unreadable.

        Bytes that are not UTF-8 come back as surrogates, so the text
        round-trips through ``set_env_values`` unchanged.
        """
        try:
            return path.read_text(encoding="utf-8", errors="surrogateescape")
        except (OSError, ValueError) as exc:
            logger.debug("Cannot read %s: %s", path, exc)
            return None

    def dpkg_architecture(self) -> str:
        """``dpkg --print-architecture``, defaulting to amd64."""
        try:
            r = subprocess.run(
                ["dpkg", "--print-architecture"],
                capture_output=True, text=True, timeout=10,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return "amd64"
        arch = r.stdout.strip()
        return arch if r.returncode == 0 and arch else "amd64"
