from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import yaml

TEMPLATE_TYPES = ("portfolio", "ecom", "dashboard", "webapp")

TEMPLATE_INFO = {
    "portfolio": ("Portfolio", "Personal/professional showcase"),
    "ecom": ("E-commerce", "Online store with cart & payments"),
    "dashboard": ("Dashboard", "Analytics & data visualization"),
    "webapp": ("Web App", "Full-stack application"),
}

TEMPLATE_DESCRIPTIONS = {
    "portfolio": "A beautiful portfolio template to showcase your work and projects.",
    "ecom": "An e-commerce template with shopping cart functionality and payment integration.",
    "dashboard": "A dashboard template with charts, analytics, and data visualization.",
    "webapp": "A full-stack web application template with modern features.",
}
DEFAULT_DESCRIPTION = "A Next.js application template created with stackseed."

SKIP_NAMES = frozenset(
    {
        ".git",
        "node_modules",
        ".next",
        "dist",
        "build",
        "out",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        ".env",
        ".env.local",
        ".env.development.local",
        ".env.test.local",
        ".env.production.local",
        ".DS_Store",
        "Thumbs.db",
    }
)

TEXT_EXTENSIONS = frozenset(
    {
        ".js",
        ".jsx",
        ".ts",
        ".tsx",
        ".mjs",
        ".cjs",
        ".json",
        ".md",
        ".html",
        ".css",
        ".scss",
        ".txt",
        ".yml",
        ".yaml",
    }
)
TEMPLATE_SUFFIX = ".template"

MANIFEST_NAME = "package.json"

BASE_SCRIPTS = {
    "dev": "next dev",
    "build": "next build",
    "start": "next start",
    "lint": "next lint",
}

BASE_DEPENDENCIES = {
    "next": "^14.0.0",
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
}

BASE_DEV_DEPENDENCIES = {
    "eslint": "^8.0.0",
    "eslint-config-next": "^14.0.0",
}

TEMPLATE_DEPENDENCIES = {
    "dashboard": {"recharts": "^2.8.0", "lucide-react": "^0.292.0"},
    "ecom": {"stripe": "^14.0.0"},
    "portfolio": {"motion": "^10.0.0"},
}

FEATURE_DEV_DEPENDENCIES = {
    "typescript": {
        "typescript": "^5.0.0",
        "@types/node": "^20.0.0",
        "@types/react": "^18.0.0",
        "@types/react-dom": "^18.0.0",
    },
    "tailwind": {
        "tailwindcss": "^3.3.0",
        "postcss": "^8.4.0",
        "autoprefixer": "^10.4.0",
    },
}

PACKAGE_MANAGERS = ("npm", "yarn", "pnpm")
PROBE_TIMEOUT_SECONDS = 5

DEFAULT_BRANCH = "main"
DEFAULT_COMMIT_MESSAGE = "Initial commit from stackseed"

TEMPLATES_DIR_ENV = "STACKSEED_TEMPLATES_DIR"
CONFIG_ENV = "STACKSEED_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/stackseed/config.yml")


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class Settings:
    package_manager: str | None = None
    git: bool = True
    install: bool = True
    templates_dir: tuple[Path, ...] = ()
    initial_branch: str = DEFAULT_BRANCH
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    gitignore_patterns: tuple[str, ...] = ()


def templates_root() -> Path:
    return Path(__file__).resolve().parent / "templates"


def template_search_roots(extra: Iterable[Path] = ()) -> list[Path]:
    """Ordered candidate roots that may hold ``<root>/<template_id>`` directories.

    User-supplied roots come first, then the installed package layout, then
    the layout of a source checkout.
    """
    candidates = [Path(path).expanduser() for path in extra]
    candidates.append(templates_root())
    candidates.append(Path(__file__).resolve().parent.parent / "templates")

    roots: list[Path] = []
    for candidate in candidates:
        if candidate not in roots:
            roots.append(candidate)
    return roots


def _as_bool(key: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"Setting '{key}' must be true or false, got: {value!r}")
    return value


def _as_str(key: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Setting '{key}' must be a non-empty string, got: {value!r}")
    return value.strip()


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from YAML.

    When ``path`` is None the ``STACKSEED_CONFIG`` environment variable is
    consulted, then ``~/.config/stackseed/config.yml``. A missing default file
    yields default settings; a missing explicit file is an error.
    """
    explicit = path is not None or bool(os.environ.get(CONFIG_ENV))
    config_path = Path(path or os.environ.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH).expanduser()

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Config file does not exist: {config_path}")
        return Settings()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as error:
        raise ConfigError(f"Could not read config file {config_path}: {error}") from error

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")

    unknown = sorted(set(data) - set(Settings.__dataclass_fields__))
    if unknown:
        raise ConfigError(f"Unknown setting(s) in {config_path}: {', '.join(unknown)}")

    values: dict = {}
    if "package_manager" in data and data["package_manager"] is not None:
        manager = _as_str("package_manager", data["package_manager"])
        if manager not in PACKAGE_MANAGERS:
            raise ConfigError(f"Unsupported package manager: {manager}")
        values["package_manager"] = manager
    for key in ("git", "install"):
        if key in data:
            values[key] = _as_bool(key, data[key])
    for key in ("initial_branch", "commit_message"):
        if key in data:
            values[key] = _as_str(key, data[key])
    if "templates_dir" in data:
        raw = data["templates_dir"]
        entries = [raw] if isinstance(raw, str) else raw
        if not isinstance(entries, list):
            raise ConfigError("Setting 'templates_dir' must be a path or a list of paths")
        values["templates_dir"] = tuple(Path(_as_str("templates_dir", entry)).expanduser() for entry in entries)
    if "gitignore_patterns" in data:
        patterns = data["gitignore_patterns"]
        if not isinstance(patterns, list):
            raise ConfigError("Setting 'gitignore_patterns' must be a list of patterns")
        values["gitignore_patterns"] = tuple(_as_str("gitignore_patterns", pattern) for pattern in patterns)

    return Settings(**values)
