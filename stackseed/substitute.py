from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, Mapping

from .config import SKIP_NAMES, TEMPLATE_SUFFIX, TEXT_EXTENSIONS

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}", re.ASCII)


@dataclass(frozen=True)
class SubstitutionReport:
    processed: tuple[Path, ...]
    renamed: tuple[Path, ...]
    skipped: tuple[Path, ...]
    unresolved: tuple[str, ...]


class SubstitutionError(RuntimeError):
    pass


def render_placeholders(text: str, variables: Mapping[str, str]) -> tuple[str, set[str]]:
    """Replace ``{{name}}`` tokens that have a value; leave the rest verbatim.

    Returns the rendered text and the names that had no value.
    """
    unresolved: set[str] = set()

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        unresolved.add(name)
        return match.group(0)

    return PLACEHOLDER_RE.sub(_replace, text), unresolved


def is_eligible(path: Path) -> bool:
    return path.name.endswith(TEMPLATE_SUFFIX) or path.suffix in TEXT_EXTENSIONS


def _stripped_name(path: Path) -> str | None:
    if not path.name.endswith(TEMPLATE_SUFFIX):
        return None
    name = path.name[: -len(TEMPLATE_SUFFIX)]
    return name or None


def substitute_tree(
    root: Path,
    variables: Mapping[str, str],
    exclude: Collection[str] = SKIP_NAMES,
) -> SubstitutionReport:
    processed: list[Path] = []
    renamed: list[Path] = []
    skipped: list[Path] = []
    unresolved: set[str] = set()

    def _process_file(path: Path) -> None:
        relative = path.relative_to(root)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as error:
            logger.warning("Could not process file %s: %s", relative, error)
            skipped.append(relative)
            return

        rendered, missing = render_placeholders(content, variables)
        unresolved.update(missing)
        try:
            if rendered != content:
                path.write_text(rendered, encoding="utf-8")
            new_name = _stripped_name(path)
            if new_name is not None:
                path.replace(path.with_name(new_name))
                renamed.append(relative.with_name(new_name))
        except OSError as error:
            logger.warning("Could not write file %s: %s", relative, error)
            skipped.append(relative)
            return
        processed.append(relative)

    def _walk(entries: list[Path]) -> None:
        for entry in entries:
            if entry.is_dir() and not entry.is_symlink():
                if entry.name in exclude:
                    continue
                try:
                    children = sorted(entry.iterdir())
                except OSError as error:
                    logger.warning("Could not list %s: %s", entry.relative_to(root), error)
                    skipped.append(entry.relative_to(root))
                    continue
                _walk(children)
            elif entry.is_file() and is_eligible(entry):
                _process_file(entry)

    try:
        top_entries = sorted(root.iterdir())
    except OSError as error:
        raise SubstitutionError(f"Cannot read template directory {root}: {error}") from error

    _walk(top_entries)

    if unresolved:
        logger.debug("Left unresolved placeholders: %s", ", ".join(sorted(unresolved)))

    return SubstitutionReport(
        processed=tuple(processed),
        renamed=tuple(renamed),
        skipped=tuple(skipped),
        unresolved=tuple(sorted(unresolved)),
    )
