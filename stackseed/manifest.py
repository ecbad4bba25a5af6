from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Mapping

from .config import BASE_SCRIPTS, FEATURE_DEV_DEPENDENCIES

logger = logging.getLogger(__name__)


class ManifestError(RuntimeError):
    pass


def baseline_manifest(name: str) -> dict:
    return {
        "name": name,
        "version": "0.1.0",
        "private": True,
        "scripts": dict(BASE_SCRIPTS),
    }


def dump_manifest(manifest: Mapping) -> str:
    return json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"


def write_manifest(path: Path, manifest: Mapping) -> None:
    try:
        path.write_text(dump_manifest(manifest), encoding="utf-8")
    except OSError as error:
        raise ManifestError(f"Could not write {path}: {error}") from error


def read_manifest(path: Path) -> dict | None:
    """Parse a manifest; None when it is missing or not a JSON object."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as error:
        logger.warning("Could not parse %s, creating a new one: %s", path.name, error)
        return None
    if not isinstance(data, dict):
        logger.warning("%s is not a JSON object, creating a new one", path.name)
        return None
    return data


def _merge_missing(existing: object, additions: Mapping[str, str]) -> dict:
    merged = dict(existing) if isinstance(existing, dict) else {}
    for key, value in additions.items():
        merged.setdefault(key, value)
    return merged


def patch_manifest(path: Path, variables: Mapping[str, str], features: Iterable[str] = ()) -> dict:
    """Set the project name, seed baseline scripts and merge feature dev dependencies.

    Existing script and dependency entries always win over the seeded ones,
    so patching is idempotent. The patched manifest is written back and
    returned.
    """
    project_name = variables["projectName"]
    manifest = read_manifest(path)
    if manifest is None:
        manifest = baseline_manifest(project_name)

    manifest["name"] = project_name
    manifest["scripts"] = _merge_missing(manifest.get("scripts"), BASE_SCRIPTS)

    for feature in features:
        additions = FEATURE_DEV_DEPENDENCIES.get(feature)
        if additions is None:
            logger.debug("No dev dependencies registered for feature %s", feature)
            continue
        manifest["devDependencies"] = _merge_missing(manifest.get("devDependencies"), additions)

    write_manifest(path, manifest)
    return manifest
