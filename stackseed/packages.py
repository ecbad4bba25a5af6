from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from .config import PACKAGE_MANAGERS, PROBE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class InstallError(RuntimeError):
    pass


def probe_tool(command: str, timeout: float = PROBE_TIMEOUT_SECONDS) -> str | None:
    """Return the trimmed ``<command> --version`` output, or None if the tool is unusable."""
    if shutil.which(command) is None:
        return None
    try:
        result = subprocess.run(
            [command, "--version"],
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as error:
        logger.debug("Probing %s failed: %s", command, error)
        return None
    return result.stdout.strip() or result.stderr.strip() or "unknown"


def detect_package_manager(project_path: Path) -> str:
    if (project_path / "yarn.lock").exists():
        return "yarn"
    if (project_path / "pnpm-lock.yaml").exists():
        return "pnpm"
    if probe_tool("yarn") is not None:
        return "yarn"
    if probe_tool("npm") is None:
        logger.warning("Neither npm nor yarn could be detected. Defaulting to npm.")
    return "npm"


def install_command(package_manager: str) -> list[str]:
    if package_manager not in PACKAGE_MANAGERS:
        raise InstallError(f"Unsupported package manager: {package_manager}")
    return [package_manager, "install"]


def install_dependencies(project_path: Path, package_manager: str) -> str:
    """Run the package manager's install in ``project_path`` and return its output."""
    command = install_command(package_manager)
    executable = shutil.which(package_manager)
    if executable is None:
        raise InstallError(f"{package_manager} is not installed or not found in PATH")

    logger.info("Running: %s", " ".join(command))
    try:
        result = subprocess.run(
            [executable, *command[1:]],
            cwd=project_path,
            capture_output=True,
            text=True,
            check=True,
            env={**os.environ, "FORCE_COLOR": "0"},
        )
    except subprocess.CalledProcessError as error:
        detail = (error.stderr or error.stdout or "").strip()
        message = f"Package installation failed with code {error.returncode}"
        raise InstallError(f"{message}: {detail}" if detail else message) from error
    except OSError as error:
        raise InstallError(f"Failed to start package installation: {error}") from error

    if result.stderr.strip():
        logger.debug("Installation warnings:\n%s", result.stderr.strip())
    return result.stdout.strip()
