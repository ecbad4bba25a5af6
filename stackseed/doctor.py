from __future__ import annotations

import platform
from dataclasses import dataclass

from . import __version__
from .packages import probe_tool

REQUIRED_TOOLS = ("node", "npm", "git")
OPTIONAL_TOOLS = ("yarn", "pnpm")

TOOL_HINTS = {
    "node": "Install Node.js from https://nodejs.org/",
    "npm": "npm ships with Node.js: https://nodejs.org/",
    "git": "Needed unless you pass --no-git: https://git-scm.com/",
    "yarn": "Optional: https://yarnpkg.com/",
    "pnpm": "Optional: https://pnpm.io/",
}


@dataclass(frozen=True)
class ToolStatus:
    name: str
    version: str | None
    required: bool

    @property
    def found(self) -> bool:
        return self.version is not None

    @property
    def hint(self) -> str:
        return TOOL_HINTS.get(self.name, "")


def environment_info() -> dict[str, str]:
    return {
        "stackseed": __version__,
        "python": platform.python_version(),
        "platform": platform.system().lower() or "unknown",
        "architecture": platform.machine() or "unknown",
        "node": probe_tool("node") or "not found",
    }


def check_environment() -> list[ToolStatus]:
    statuses = [ToolStatus(name=tool, version=probe_tool(tool), required=True) for tool in REQUIRED_TOOLS]
    statuses.extend(ToolStatus(name=tool, version=probe_tool(tool), required=False) for tool in OPTIONAL_TOOLS)
    return statuses
