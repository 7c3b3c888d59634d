"""worktree CLI: all commands."""

import os
from typing import Annotated

import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

import worktree_io.settings as settings_module
from worktree_io import log
from worktree_io.errors import IssueRefParseError, WorktreeError
from worktree_io.hooks import HookContext, run_hook
from worktree_io.models import DeepLinkOptions
from worktree_io.opener import detect_editors, open_in_editor, open_with_hook, resolve_editor_command
from worktree_io.parse import parse_with_options
from worktree_io.settings import CONFIG_KEYS, WorktreeSettings, get_settings
from worktree_io.workspace import open_or_create

app = typer.Typer(help="Open GitHub and Linear issues as git worktree workspaces", no_args_is_help=True)
config_app = typer.Typer(help="Manage worktree configuration", no_args_is_help=True)
app.add_typer(config_app, name="config")

_DEFAULT_PRE_OPEN = '#!/usr/bin/env bash\necho "Opening worktree for {{owner}}/{{repo}}#{{issue}}…"\n'
_DEFAULT_POST_OPEN = '#!/usr/bin/env bash\necho "Worktree ready: {{owner}}/{{repo}}#{{issue}} ({{branch}})"\n'


def _fail(exc: Exception) -> typer.Exit:
    log.error(str(exc))
    return typer.Exit(1)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show git commands as they run")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only print warnings and errors")] = False,
) -> None:
    if verbose:
        log.set_level("debug")
    elif quiet:
        log.set_level("warning")
    else:
        log.set_level(os.environ.get("WORKTREE_LOG_LEVEL"))


# ---------------------------------------------------------------------------
# open
# ---------------------------------------------------------------------------


def _editor_command(options: DeepLinkOptions, settings: WorktreeSettings, force_editor: bool) -> str | None:
    """Pick the editor command: deep link override, then the configured command."""
    if options.editor:
        return resolve_editor_command(options.editor)
    if not (force_editor or settings.open_editor):
        return None
    if not settings.editor_command:
        log.warning("No editor configured. Run: worktree setup")
    return settings.editor_command


@app.command("open")
def open_cmd(
    issue_ref: Annotated[
        str,
        typer.Argument(
            metavar="REF",
            help="GitHub issue URL, worktree:// deep link, owner/repo#N or owner/repo@<linear-uuid>",
        ),
    ],
    editor: Annotated[bool, typer.Option("--editor", help="Force open in editor")] = False,
    print_path: Annotated[
        bool, typer.Option("--print-path", help="Print the workspace path and exit without opening anything")
    ] = False,
) -> None:
    """Resolve an issue reference, create or reuse its worktree, and open it."""
    try:
        issue, options = parse_with_options(issue_ref)
        settings = get_settings()
        workspace = open_or_create(issue, root=settings.workspace_root)
    except (IssueRefParseError, WorktreeError) as exc:
        raise _fail(exc) from exc

    if workspace.created:
        log.success(f"Created workspace at {workspace.path}")
    else:
        log.info(f"Workspace already exists at {workspace.path}")

    if print_path:
        typer.echo(str(workspace.path))
        return

    hook_ctx = HookContext.from_workspace(workspace)

    if settings.pre_open_hook:
        log.info("Running pre:open hook…")
        run_hook(settings.pre_open_hook, hook_ctx)

    command = _editor_command(options, settings, force_editor=editor)
    post_open = settings.post_open_hook
    try:
        if command and post_open:
            if not open_with_hook(workspace.path, command, hook_ctx.render(post_open)):
                log.info("Running post:open hook…")
                run_hook(post_open, hook_ctx)
        elif command:
            open_in_editor(workspace.path, command)
        elif post_open:
            log.info("Running post:open hook…")
            run_hook(post_open, hook_ctx)
    except WorktreeError as exc:
        raise _fail(exc) from exc


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show the resolved configuration."""
    table = Table(title="worktree configuration")
    table.add_column("Key", style="bold")
    table.add_column("Value")

    try:
        for key in CONFIG_KEYS:
            table.add_row(key, escape(settings_module.get_value(key)) or "[dim](not set)[/dim]")
    except WorktreeError as exc:
        raise _fail(exc) from exc

    rprint(table)
    rprint(f"[dim]{settings_module.CONFIG_PATH}[/dim]")


@config_app.command("path")
def config_path() -> None:
    """Print the configuration file path."""
    typer.echo(str(settings_module.CONFIG_PATH))


@config_app.command("init")
def config_init(
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing config file")] = False,
) -> None:
    """Write the default configuration to disk."""
    path = settings_module.CONFIG_PATH
    if path.exists() and not force:
        rprint(f"[yellow]{path} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    try:
        settings_module.write_default_config()
    except WorktreeError as exc:
        raise _fail(exc) from exc
    rprint(f"[green]✓[/green] Wrote default config to {path}")


@config_app.command("get")
def config_get(key: Annotated[str, typer.Argument(help="Dotted key, e.g. editor.command")]) -> None:
    """Print a configuration value."""
    try:
        typer.echo(settings_module.get_value(key))
    except WorktreeError as exc:
        raise _fail(exc) from exc


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help="Dotted key, e.g. editor.command")],
    value: Annotated[str, typer.Argument(help='Value, e.g. "code ." (an empty string unsets)')],
) -> None:
    """Set a configuration value."""
    try:
        settings_module.set_value(key, value)
    except WorktreeError as exc:
        raise _fail(exc) from exc
    rprint(f"[green]✓[/green] Set {key} = {escape(value)}")


# ---------------------------------------------------------------------------
# setup
# ---------------------------------------------------------------------------


def _prompt_editor(detected: list[tuple[str, str]]) -> str | None:
    rprint("")
    rprint("Select your default editor or terminal:")
    for i, (name, _) in enumerate(detected, start=1):
        rprint(f"  {i}. {name}")
    custom_idx = len(detected) + 1
    rprint(f"  {custom_idx}. Enter a custom command")
    rprint("  0. Skip (no editor configured)")

    choice = typer.prompt("Choice", default=1 if detected else 0, type=int)
    if choice == 0:
        return None
    if 1 <= choice <= len(detected):
        return detected[choice - 1][1]
    if choice == custom_idx:
        custom = typer.prompt('Editor command (e.g. "hx .")', default="", show_default=False).strip()
        return custom or None

    log.warning("Invalid choice, skipping editor configuration.")
    return None


@app.command("setup")
def setup_cmd() -> None:
    """Interactive first-time setup: pick an editor and write default hooks."""
    rprint("[bold]worktree setup[/bold]")
    path = settings_module.CONFIG_PATH
    already_existed = path.exists()

    try:
        command = _prompt_editor(detect_editors())
        if command:
            settings_module.set_value("editor.command", command)

        if not settings_module.get_value("hooks.pre:open"):
            settings_module.set_value("hooks.pre:open", _DEFAULT_PRE_OPEN)
        if not settings_module.get_value("hooks.post:open"):
            settings_module.set_value("hooks.post:open", _DEFAULT_POST_OPEN)
    except WorktreeError as exc:
        raise _fail(exc) from exc

    action = "Updated" if already_existed else "Created"
    rprint(f"[green]✓[/green] {action} config at {path}")
    rprint("")
    rprint("Setup complete! Run: worktree open <github-issue-url>")
