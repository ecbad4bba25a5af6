from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, NoReturn, Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import IntPrompt
from rich.table import Table
from typer.core import TyperGroup

from . import __version__
from .bootstrap import BootstrapError
from .config import CONFIG_ENV, TEMPLATE_INFO, TEMPLATE_TYPES, TEMPLATES_DIR_ENV, ConfigError, load_settings
from .copier import CopyError
from .create import (
    CreateError,
    CreateOptions,
    InvalidProjectNameError,
    TargetNotEmptyError,
    TargetUnavailableError,
    UnknownTemplateError,
    create_project,
)
from .doctor import check_environment, environment_info
from .substitute import SubstitutionError


class DefaultCommandGroup(TyperGroup):
    """Route ``stackseed <project-name> ...`` to the create command."""

    default_command = "create"

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        group_options = {opt for param in self.get_params(ctx) for opt in param.opts}
        if args and args[0] not in self.commands and args[0] not in group_options:
            args = [self.default_command, *args]
        return super().parse_args(ctx, args)


app = typer.Typer(
    cls=DefaultCommandGroup,
    help="Create a new web app from a portfolio, ecom, dashboard or webapp template.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_ERROR = 1


class OutputFormat(str, Enum):
    table = "table"
    json = "json"
    md = "md"


class PackageManager(str, Enum):
    npm = "npm"
    yarn = "yarn"
    pnpm = "pnpm"


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("stackseed")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    package_logger.addHandler(RichHandler(console=err_console, show_path=False, show_time=False))
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _json_print(payload: dict) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=True, sort_keys=True))


def _print_key_value_table(title: str, rows: list[tuple[str, str]]) -> None:
    table = Table(title=title)
    table.add_column("Field")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, value)
    console.print(table)


def _emit_success(
    command: str,
    output_format: OutputFormat,
    data: dict,
    md_renderer: Callable[[dict], str] | None = None,
    table_renderer: Callable[[dict], None] | None = None,
) -> None:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": True,
                "command": command,
                "exit_code": EXIT_OK,
                "data": data,
            }
        )
        return

    if output_format == OutputFormat.md and md_renderer is not None:
        console.print(md_renderer(data))
        return

    if output_format == OutputFormat.table and table_renderer is not None:
        table_renderer(data)
        return

    # Fallback for simple commands without dedicated renderer.
    if output_format == OutputFormat.md:
        lines = [f"# {command}", ""]
        lines.extend(f"- **{key}**: {value}" for key, value in data.items())
        console.print("\n".join(lines))
    else:
        _print_key_value_table(
            title=command,
            rows=[(str(key), str(value)) for key, value in data.items()],
        )


def _emit_error(
    command: str,
    output_format: OutputFormat,
    code: str,
    message: str,
    details: list[str] | None = None,
    exit_code: int = EXIT_ERROR,
) -> NoReturn:
    details = details or []
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": False,
                "command": command,
                "exit_code": exit_code,
                "error": {
                    "code": code,
                    "message": message,
                    "details": details,
                },
            }
        )
    elif output_format == OutputFormat.md:
        lines = [f"# {command}", "", "- **status**: error", f"- **code**: {code}", f"- **message**: {message}"]
        lines.extend(f"  - {item}" for item in details)
        console.print("\n".join(lines))
    else:
        console.print(f"[red]Error ({code}):[/red] {message}")
        for item in details:
            console.print(f"[red]  - {item}[/red]")

    raise typer.Exit(code=exit_code)


def _prompt_template(prompt_console: Console) -> str:
    prompt_console.print("\n[bold]Which template would you like to use?[/bold]")
    for index, key in enumerate(TEMPLATE_TYPES, 1):
        title, description = TEMPLATE_INFO[key]
        prompt_console.print(f"{index}. [bold]{title}[/bold] - [dim]{description}[/dim]")
    choice = IntPrompt.ask(
        "Enter the number of your template choice",
        choices=[str(index) for index in range(1, len(TEMPLATE_TYPES) + 1)],
        default=1,
        console=prompt_console,
    )
    return TEMPLATE_TYPES[choice - 1]


def _render_doctor(payload: dict) -> None:
    table = Table(title="Environment check")
    table.add_column("Tool")
    table.add_column("Status")
    table.add_column("Version")
    table.add_column("Hint")
    for tool in payload["tools"]:
        if tool["found"]:
            status = "[green]found[/green]"
        elif tool["required"]:
            status = "[red]missing[/red]"
        else:
            status = "[dim]missing (optional)[/dim]"
        table.add_row(tool["name"], status, tool["version"] or "-", "" if tool["found"] else tool["hint"])
    console.print(table)


def _doctor_payload() -> dict:
    return {
        "tools": [
            {
                "name": status.name,
                "found": status.found,
                "required": status.required,
                "version": status.version,
                "hint": status.hint,
            }
            for status in check_environment()
        ]
    }


@app.command("create")
def create(
    name: str = typer.Argument(..., help="Project name, also used as the directory name."),
    portfolio: bool = typer.Option(False, "--portfolio", help="Create a portfolio template."),
    ecom: bool = typer.Option(False, "--ecom", help="Create an e-commerce template."),
    dashboard: bool = typer.Option(False, "--dashboard", help="Create a dashboard template."),
    webapp: bool = typer.Option(False, "--webapp", help="Create a web app template."),
    typescript: bool = typer.Option(False, "--typescript", help="Add TypeScript dev dependencies."),
    tailwind: bool = typer.Option(False, "--tailwind", help="Add Tailwind CSS dev dependencies."),
    git: Optional[bool] = typer.Option(None, "--git/--no-git", help="Initialize a Git repository."),
    install: Optional[bool] = typer.Option(None, "--install/--no-install", help="Install dependencies."),
    package_manager: Optional[PackageManager] = typer.Option(
        None, "--package-manager", help="Package manager used for install (detected when omitted)."
    ),
    destination: Path = typer.Option(Path("."), "--destination", "-d", help="Directory to create the project in."),
    templates_dir: Optional[List[Path]] = typer.Option(
        None, "--templates-dir", envvar=TEMPLATES_DIR_ENV, help="Extra directory holding template folders."
    ),
    config: Optional[Path] = typer.Option(None, "--config", envvar=CONFIG_ENV, help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output for debugging."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Create a new project from a template."""
    _configure_logging(verbose)

    try:
        settings = load_settings(config)
    except ConfigError as error:
        _emit_error(command="create", output_format=output_format, code="config_error", message=str(error))

    if verbose and output_format != OutputFormat.json:
        _render_doctor(_doctor_payload())

    flags = {"portfolio": portfolio, "ecom": ecom, "dashboard": dashboard, "webapp": webapp}
    template = next((key for key in TEMPLATE_TYPES if flags[key]), None)
    if template is not None and output_format == OutputFormat.table:
        console.print(f"[green]Using {TEMPLATE_INFO[template][0]} template[/green]")

    options = CreateOptions(
        project_name=name,
        destination_root=destination.resolve(),
        template=template,
        typescript=typescript,
        tailwind=tailwind,
        git=settings.git if git is None else git,
        install=settings.install if install is None else install,
        package_manager=package_manager.value if package_manager else settings.package_manager,
        template_dirs=tuple(templates_dir or ()) + settings.templates_dir,
        initial_branch=settings.initial_branch,
        commit_message=settings.commit_message,
        gitignore_patterns=settings.gitignore_patterns,
    )

    prompt_console = err_console if output_format == OutputFormat.json else console
    status = console.status("Setting up your project...")
    started = False

    def on_step(message: str) -> None:
        nonlocal started
        if not started:
            status.start()
            started = True
        status.update(message)

    try:
        result = create_project(
            options,
            choose_template=lambda: _prompt_template(prompt_console),
            on_step=None if output_format == OutputFormat.json else on_step,
        )
    except InvalidProjectNameError as error:
        _emit_error(
            command="create",
            output_format=output_format,
            code="invalid_project_name",
            message=f"Invalid project name: {name}",
            details=list(error.errors + error.warnings),
        )
    except UnknownTemplateError as error:
        _emit_error(command="create", output_format=output_format, code="unknown_template", message=str(error))
    except TargetNotEmptyError as error:
        _emit_error(command="create", output_format=output_format, code="target_not_empty", message=str(error))
    except TargetUnavailableError as error:
        _emit_error(command="create", output_format=output_format, code="target_unavailable", message=str(error))
    except CreateError as error:
        _emit_error(command="create", output_format=output_format, code="create_error", message=str(error))
    except (CopyError, SubstitutionError, BootstrapError) as error:
        _emit_error(command="create", output_format=output_format, code="create_failed", message=str(error))
    finally:
        if started:
            status.stop()

    data = {
        "path": str(result.path),
        "template": result.template,
        "source": result.source,
        "package_manager": result.package_manager,
        "installed": result.installed,
        "git_initialized": result.git_initialized,
        "warnings": list(result.warnings),
        "next_steps": list(result.next_steps),
        "skipped_files": [str(path) for path in result.substitution.skipped],
        "unresolved_placeholders": list(result.substitution.unresolved),
    }

    def render_md(payload: dict) -> str:
        lines = [f"# Created `{name}`", ""]
        lines.append(f"- **path**: `{payload['path']}`")
        lines.append(f"- **template**: {payload['template']} ({payload['source']})")
        lines.append(f"- **installed**: {payload['installed']}")
        lines.append(f"- **git_initialized**: {payload['git_initialized']}")
        if payload["warnings"]:
            lines.append("\n## Warnings")
            lines.extend(f"- {item}" for item in payload["warnings"])
        lines.append("\n## Next steps")
        lines.extend(f"- `{item}`" for item in payload["next_steps"])
        return "\n".join(lines)

    def render_table(payload: dict) -> None:
        console.print("[green]Successfully created your app![/green]")
        for item in payload["warnings"]:
            console.print(f"[yellow]Warning:[/yellow] {item}")
        _print_key_value_table(
            title=f"Created {name}",
            rows=[
                ("path", payload["path"]),
                ("template", f"{payload['template']} ({payload['source']})"),
                ("package_manager", payload["package_manager"]),
                ("installed", str(payload["installed"])),
                ("git_initialized", str(payload["git_initialized"])),
            ],
        )
        console.print("\n[cyan]Your project is ready![/cyan]\n\nNext steps:")
        for item in payload["next_steps"]:
            console.print(f"  [cyan]{item}[/cyan]")

    _emit_success(command="create", output_format=output_format, data=data, md_renderer=render_md, table_renderer=render_table)


@app.command("info")
def info(
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
) -> None:
    """Display environment information."""
    _emit_success(command="info", output_format=output_format, data=environment_info())


@app.command("doctor")
def doctor(
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
) -> None:
    """Check for Node.js, package managers and Git."""
    payload = _doctor_payload()

    def render_md(data: dict) -> str:
        lines = ["# Environment check", ""]
        for tool in data["tools"]:
            state = tool["version"] if tool["found"] else ("missing" if tool["required"] else "missing (optional)")
            lines.append(f"- **{tool['name']}**: {state}")
        return "\n".join(lines)

    _emit_success(command="doctor", output_format=output_format, data=payload, md_renderer=render_md, table_renderer=_render_doctor)


@app.command("version")
def version(
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
) -> None:
    """Print version."""
    _emit_success(command="version", output_format=output_format, data={"version": __version__})

if __name__ == "__main__":
    app()
