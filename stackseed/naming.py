from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import quote

MAX_NAME_LENGTH = 214
SPECIAL_CHARACTERS = "~'!()*"
BLACKLISTED_NAMES = frozenset({"node_modules", "favicon.ico"})
SCOPED_NAME_RE = re.compile(r"^(?:@([^/]+?)[/])?([^/]+?)$")

NODE_BUILTIN_MODULES = frozenset(
    {
        "assert",
        "async_hooks",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "domain",
        "events",
        "fs",
        "http",
        "http2",
        "https",
        "inspector",
        "module",
        "net",
        "os",
        "path",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "repl",
        "stream",
        "string_decoder",
        "sys",
        "timers",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "v8",
        "vm",
        "wasi",
        "worker_threads",
        "zlib",
    }
)


@dataclass(frozen=True)
class NameValidation:
    name: str
    errors: tuple[str, ...]
    warnings: tuple[str, ...]

    @property
    def valid_for_new_packages(self) -> bool:
        return not self.errors and not self.warnings


def _url_safe(value: str) -> bool:
    # Same safe set as JavaScript's encodeURIComponent.
    return quote(value, safe="!~*'()") == value


def validate_project_name(name: str) -> NameValidation:
    """Check ``name`` against npm's package naming rules.

    Errors make a name unusable for any package; warnings only rule it out
    for new packages. Project creation requires neither.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not name:
        errors.append("name length must be greater than zero")
        return NameValidation(name=name, errors=tuple(errors), warnings=())

    if name.startswith("."):
        errors.append("name cannot start with a period")
    if name.startswith("_"):
        errors.append("name cannot start with an underscore")
    if name.strip() != name:
        errors.append("name cannot contain leading or trailing spaces")
    if name.lower() in BLACKLISTED_NAMES:
        errors.append(f"{name} is a blacklisted name")

    if name.lower() in NODE_BUILTIN_MODULES:
        warnings.append(f"{name} is a core module name")
    if len(name) > MAX_NAME_LENGTH:
        warnings.append(f"name can no longer contain more than {MAX_NAME_LENGTH} characters")
    if name.lower() != name:
        warnings.append("name can no longer contain capital letters")
    if any(char in SPECIAL_CHARACTERS for char in name.split("/")[-1]):
        warnings.append(f'name can no longer contain special characters ("{SPECIAL_CHARACTERS}")')

    if not _url_safe(name):
        match = SCOPED_NAME_RE.match(name)
        scoped_ok = False
        if match and match.group(1) is not None:
            user, package = match.group(1), match.group(2)
            scoped_ok = _url_safe(user) and _url_safe(package) and not package.startswith(".")
        if not scoped_ok:
            errors.append("name can only contain URL-friendly characters")

    return NameValidation(name=name, errors=tuple(errors), warnings=tuple(warnings))
