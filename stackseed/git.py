from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .config import DEFAULT_BRANCH, DEFAULT_COMMIT_MESSAGE, PROBE_TIMEOUT_SECONDS, templates_root
from .packages import probe_tool

logger = logging.getLogger(__name__)


class GitError(RuntimeError):
    pass


@dataclass(frozen=True)
class GitUserConfig:
    user_name: str | None
    user_email: str | None

    @property
    def complete(self) -> bool:
        return bool(self.user_name) and bool(self.user_email)


def git_available() -> bool:
    return probe_tool("git") is not None


def is_git_repository(path: Path) -> bool:
    return (path / ".git").exists()


def _git(path: Path, *args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=path,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as error:
        detail = (error.stderr or error.stdout or "").strip()
        raise GitError(f"git {' '.join(args)} failed: {detail or error.returncode}") from error
    except OSError as error:
        raise GitError(f"git {' '.join(args)} failed: {error}") from error
    return result.stdout.strip()


def _config_value(key: str) -> str | None:
    try:
        result = subprocess.run(
            ["git", "config", "--get", key],
            capture_output=True,
            text=True,
            timeout=PROBE_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    return result.stdout.strip() or None


def git_user_config() -> GitUserConfig:
    return GitUserConfig(user_name=_config_value("user.name"), user_email=_config_value("user.email"))


def write_gitignore(path: Path, extra_patterns: Iterable[str] = ()) -> Path:
    content = (templates_root() / "_shared" / "gitignore").read_text(encoding="utf-8")
    extra = [pattern for pattern in extra_patterns if pattern.strip()]
    if extra:
        content = content.rstrip("\n") + "\n\n# Additional patterns\n" + "\n".join(extra) + "\n"
    destination = path / ".gitignore"
    destination.write_text(content, encoding="utf-8")
    return destination


def initialize_repository(
    path: Path,
    initial_branch: str = DEFAULT_BRANCH,
    commit_message: str = DEFAULT_COMMIT_MESSAGE,
    extra_ignore_patterns: Iterable[str] = (),
) -> str:
    """Create a repository with an ignore file and one commit holding every file.

    Returns the hash of the initial commit.
    """
    _git(path, "init", f"--initial-branch={initial_branch}")
    try:
        write_gitignore(path, extra_ignore_patterns)
    except OSError as error:
        raise GitError(f"Could not write .gitignore: {error}") from error
    _git(path, "add", ".")
    _git(path, "commit", "-m", commit_message)
    commit = _git(path, "rev-parse", "HEAD")
    logger.info("Git repository initialized with initial commit %s", commit[:7])
    return commit
