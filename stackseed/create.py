from __future__ import annotations

import logging
import shutil
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional

from .bootstrap import bootstrap_template
from .config import (
    DEFAULT_BRANCH,
    DEFAULT_COMMIT_MESSAGE,
    MANIFEST_NAME,
    SKIP_NAMES,
    TEMPLATE_TYPES,
    template_search_roots,
)
from .copier import copy_tree
from .git import GitError, git_available, git_user_config, initialize_repository, is_git_repository
from .manifest import ManifestError, patch_manifest
from .naming import validate_project_name
from .packages import InstallError, detect_package_manager, install_dependencies
from .resolver import resolve_template
from .substitute import SubstitutionReport, substitute_tree

logger = logging.getLogger(__name__)

FEATURES = ("typescript", "tailwind")


@dataclass(frozen=True)
class CreateOptions:
    project_name: str
    destination_root: Path
    template: str | None = None
    typescript: bool = False
    tailwind: bool = False
    git: bool = True
    install: bool = True
    package_manager: str | None = None
    template_dirs: tuple[Path, ...] = ()
    initial_branch: str = DEFAULT_BRANCH
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    gitignore_patterns: tuple[str, ...] = ()

    @property
    def features(self) -> tuple[str, ...]:
        return tuple(feature for feature in FEATURES if getattr(self, feature))


@dataclass(frozen=True)
class CreateResult:
    path: Path
    template: str
    source: str
    package_manager: str
    installed: bool
    git_initialized: bool
    substitution: SubstitutionReport
    warnings: tuple[str, ...] = ()
    next_steps: tuple[str, ...] = ()


class CreateError(RuntimeError):
    pass


class InvalidProjectNameError(CreateError):
    def __init__(self, name: str, errors: tuple[str, ...], warnings: tuple[str, ...]) -> None:
        details = "; ".join(errors + warnings)
        super().__init__(f"Invalid project name: {name}" + (f" ({details})" if details else ""))
        self.name = name
        self.errors = errors
        self.warnings = warnings


class UnknownTemplateError(CreateError):
    pass


class TargetNotEmptyError(CreateError):
    pass


class TargetUnavailableError(CreateError):
    pass


def build_variables(options: CreateOptions, template: str) -> dict[str, str]:
    return {
        "projectName": options.project_name,
        "templateType": template,
        "typescript": "true" if options.typescript else "false",
        "tailwind": "true" if options.tailwind else "false",
    }


def check_target(path: Path) -> tuple[bool, bool]:
    """Return ``(exists, is_empty)`` for the target path."""
    try:
        if not path.exists():
            return False, True
        if not path.is_dir():
            return True, False
        return True, not any(path.iterdir())
    except OSError as error:
        raise TargetUnavailableError(f"Cannot inspect {path}: {error}") from error


@contextmanager
def claimed_target(path: Path) -> Iterator[Path]:
    """Create ``path`` and remove it again if the block raises."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise TargetUnavailableError(f"Cannot create {path}: {error}") from error
    try:
        yield path
    except Exception:
        logger.debug("Removing %s after failure", path)
        try:
            shutil.rmtree(path)
        except OSError as cleanup_error:
            logger.error("Failed to clean up %s: %s", path, cleanup_error)
        raise


def next_steps(project_name: str, package_manager: str, installed: bool) -> tuple[str, ...]:
    steps = [f"cd {project_name}"]
    if not installed:
        steps.append(f"{package_manager} install")
    steps.append(f"{package_manager} run dev")
    return tuple(steps)


def _choose_template(options: CreateOptions, choose_template: Optional[Callable[[], str]]) -> str:
    if options.template is not None:
        template = options.template
    elif choose_template is not None:
        template = choose_template()
    else:
        raise CreateError("No template selected")

    if template not in TEMPLATE_TYPES:
        raise UnknownTemplateError(f"Unsupported template: {template}. Choose one of: {', '.join(TEMPLATE_TYPES)}")
    return template


def _setup_git(path: Path, options: CreateOptions, warnings: list[str]) -> bool:
    if not git_available():
        warnings.append("Git is not available. Skipping Git initialization.")
        return False
    if is_git_repository(path):
        warnings.append("Directory is already a Git repository. Skipping initialization.")
        return False
    if not git_user_config().complete:
        warnings.append(
            "Git user configuration is incomplete. "
            "Please set git config --global user.name and user.email"
        )
    try:
        initialize_repository(
            path,
            initial_branch=options.initial_branch,
            commit_message=options.commit_message,
            extra_ignore_patterns=options.gitignore_patterns,
        )
    except GitError as error:
        warnings.append(f"Git initialization failed: {error}")
        return False
    return True


def create_project(
    options: CreateOptions,
    choose_template: Optional[Callable[[], str]] = None,
    on_step: Optional[Callable[[str], None]] = None,
) -> CreateResult:
    """Create a new project directory from a template.

    Name validation, template choice and the target check happen before
    anything is written. Copy, bootstrap and substitution failures remove the
    target directory and re-raise. Manifest, install and git problems are
    collected as warnings on the result.
    """

    def step(message: str) -> None:
        logger.debug(message)
        if on_step is not None:
            on_step(message)

    validation = validate_project_name(options.project_name)
    if not validation.valid_for_new_packages:
        raise InvalidProjectNameError(options.project_name, validation.errors, validation.warnings)

    template = _choose_template(options, choose_template)

    target = options.destination_root / options.project_name
    exists, is_empty = check_target(target)
    if exists and not is_empty:
        raise TargetNotEmptyError(f"Directory {options.project_name} already exists and is not empty: {target}")

    warnings: list[str] = []
    variables = build_variables(options, template)

    step("Creating project directory...")
    with claimed_target(target):
        template_path = resolve_template(template, template_search_roots(options.template_dirs))
        if template_path is None:
            step(f"Creating basic {template} template...")
            bootstrap_template(target, template)
            source = "bootstrapped"
        else:
            step("Copying template files...")
            copy_tree(template_path, target, SKIP_NAMES)
            source = "copied"

        step("Processing template...")
        report = substitute_tree(target, variables)

    try:
        patch_manifest(target / MANIFEST_NAME, variables, options.features)
    except ManifestError as error:
        warnings.append(f"Could not update {MANIFEST_NAME}: {error}")

    package_manager = options.package_manager or detect_package_manager(target)
    installed = False
    if options.install:
        step(f"Installing dependencies with {package_manager}...")
        try:
            install_dependencies(target, package_manager)
            installed = True
        except InstallError as error:
            warnings.append(f"Failed to install dependencies automatically: {error}")

    git_initialized = False
    if options.git:
        step("Initializing Git repository...")
        git_initialized = _setup_git(target, options, warnings)

    return CreateResult(
        path=target,
        template=template,
        source=source,
        package_manager=package_manager,
        installed=installed,
        git_initialized=git_initialized,
        substitution=report,
        warnings=tuple(warnings),
        next_steps=next_steps(options.project_name, package_manager, installed),
    )
