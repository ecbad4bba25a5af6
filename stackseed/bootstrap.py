from __future__ import annotations

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from .config import (
    BASE_DEPENDENCIES,
    BASE_DEV_DEPENDENCIES,
    DEFAULT_DESCRIPTION,
    MANIFEST_NAME,
    TEMPLATE_DEPENDENCIES,
    TEMPLATE_DESCRIPTIONS,
    templates_root,
)
from .manifest import ManifestError, baseline_manifest, write_manifest

logger = logging.getLogger(__name__)

PROJECT_PLACEHOLDER = "{{projectName}}"

STARTER_FILES = (
    "README.md",
    "pages/index.js",
    "pages/_app.js",
    "styles/globals.css",
    "styles/Home.module.css",
)


class BootstrapError(RuntimeError):
    pass


def bootstrap_root() -> Path:
    return templates_root() / "_bootstrap"


def template_description(template_id: str) -> str:
    return TEMPLATE_DESCRIPTIONS.get(template_id, DEFAULT_DESCRIPTION)


def bootstrap_manifest(template_id: str) -> dict:
    manifest = baseline_manifest(PROJECT_PLACEHOLDER)
    manifest["dependencies"] = {**BASE_DEPENDENCIES, **TEMPLATE_DEPENDENCIES.get(template_id, {})}
    manifest["devDependencies"] = dict(BASE_DEV_DEPENDENCIES)
    return manifest


def bootstrap_template(target_dir: Path, template_id: str) -> list[Path]:
    """Write a minimal starter app for ``template_id`` into ``target_dir``.

    Used when no template directory exists on disk. The output keeps the
    ``{{projectName}}`` placeholder so it goes through the same substitution
    pass as a copied template.
    """
    env = Environment(
        loader=FileSystemLoader(str(bootstrap_root())),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )
    context = {
        "placeholder": PROJECT_PLACEHOLDER,
        "template_id": template_id,
        "template_title": template_id.capitalize(),
        "description": template_description(template_id),
    }

    written: list[Path] = []
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        write_manifest(target_dir / MANIFEST_NAME, bootstrap_manifest(template_id))
        written.append(Path(MANIFEST_NAME))

        for relative in STARTER_FILES:
            rendered = env.get_template(f"{relative}.j2").render(**context)
            destination = target_dir / relative
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(rendered, encoding="utf-8")
            written.append(Path(relative))
    except (OSError, TemplateError, ManifestError) as error:
        raise BootstrapError(f"Failed to create basic {template_id} template: {error}") from error

    logger.info("Created basic %s template in %s", template_id, target_dir)
    return written
