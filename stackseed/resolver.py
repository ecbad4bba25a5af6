from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


def resolve_template(template_id: str, search_roots: Iterable[Path]) -> Path | None:
    """Return the first ``<root>/<template_id>`` directory, or None when no root has it."""
    for root in search_roots:
        candidate = Path(root) / template_id
        if candidate.is_dir():
            logger.debug("Found template %s at %s", template_id, candidate)
            return candidate

    logger.info("Template %r not found in any search location", template_id)
    return None
