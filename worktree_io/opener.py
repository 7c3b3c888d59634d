"""Launch an editor or terminal on a workspace path."""

import os
import shlex
import shutil
import subprocess
import sys
from pathlib import Path
from tempfile import NamedTemporaryFile

from worktree_io.errors import WorktreeError

# Symbolic names accepted by the deep link ``editor`` param and by ``setup``.
EDITOR_COMMANDS: dict[str, str] = {
    "cursor": "cursor .",
    "code": "code .",
    "zed": "zed .",
    "subl": "subl .",
    "nvim": "nvim .",
    "vim": "vim .",
    "iterm": "open -a iTerm .",
    "iterm2": "open -a iTerm .",
    "warp": "open -a Warp .",
    "ghostty": "open -a Ghostty .",
    "alacritty": "alacritty --working-directory .",
    "kitty": "kitty --directory .",
    "wezterm": "wezterm start --cwd .",
    "wt": "wt -d .",
    "windowsterminal": "wt -d .",
}

# (display name, command) pairs offered by ``worktree setup`` when found on PATH.
_DETECTABLE = [
    ("Cursor", "cursor ."),
    ("VS Code", "code ."),
    ("Zed", "zed ."),
    ("Sublime Text", "subl ."),
    ("Neovim", "nvim ."),
    ("Vim", "vim ."),
    ("Alacritty", "alacritty --working-directory ."),
    ("Kitty", "kitty --directory ."),
    ("WezTerm", "wezterm start --cwd ."),
]

_EXTRA_PATH = ("/usr/local/bin", "/opt/homebrew/bin", "/opt/homebrew/sbin")

# macOS apps tried, in order, for the post:open script when the editor is an IDE.
_AUTO_TERMINALS = (("iTerm", "open -a iTerm ."), ("Terminal", "open -a Terminal ."))


def _terminal_command() -> str:
    if sys.platform == "darwin":
        return "open -a Terminal ."
    if sys.platform == "win32":
        return "wt -d ."
    return "gnome-terminal --working-directory ."


def resolve_editor_command(name: str) -> str:
    """Map a symbolic editor name to a command template; anything else is a raw command."""
    key = name.strip().lower()
    if key == "terminal":
        return _terminal_command()
    return EDITOR_COMMANDS.get(key, name)


def augmented_path() -> str:
    """PATH with Homebrew and /usr/local prepended. URL handlers start with a minimal PATH."""
    parts = list(_EXTRA_PATH)
    for entry in os.environ.get("PATH", "").split(os.pathsep):
        if entry and entry not in parts:
            parts.append(entry)
    return os.pathsep.join(parts)


def build_command(path: Path, template: str) -> list[str]:
    """Split template into argv, substituting the first standalone "." with path.

    Without a "." argument the path is appended.
    """
    argv = shlex.split(template)
    if not argv:
        raise WorktreeError("Empty editor command")
    if "." in argv:
        argv[argv.index(".")] = str(path)
    else:
        argv.append(str(path))
    return argv


def _spawn(argv: list[str]) -> None:
    subprocess.Popen(
        argv,
        env={**os.environ, "PATH": augmented_path()},
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def open_in_editor(path: Path, template: str) -> None:
    argv = build_command(path, template)
    try:
        _spawn(argv)
    except OSError as exc:
        raise WorktreeError(f"Failed to open editor with command: {shlex.join(argv)} ({exc})") from exc


def _terminal_kind(template: str) -> str | None:
    lower = template.strip().lower()
    if "iterm" in lower:
        return "iterm"
    if "open -a terminal" in lower:
        return "terminal"
    for name in ("alacritty", "kitty", "wezterm"):
        if lower.startswith(name):
            return name
    return None


def _terminal_argv(kind: str, path: Path, script: Path) -> list[str]:
    match kind:
        case "iterm":
            osa = f'tell application "iTerm2" to create window with default profile command "sh {script}"'
            return ["osascript", "-e", osa]
        case "terminal":
            return ["open", "-a", "Terminal", str(script)]
        case "alacritty":
            return ["alacritty", "--working-directory", str(path), "-e", "sh", str(script)]
        case "kitty":
            return ["kitty", "--directory", str(path), "sh", str(script)]
        case "wezterm":
            return ["wezterm", "start", "--cwd", str(path), "--", "sh", str(script)]
        case _:
            raise ValueError(f"unknown terminal: {kind}")


def _write_bootstrap(path: Path, init_script: str) -> Path:
    # The terminal reads the script after we exit, so it is left in the temp dir.
    with NamedTemporaryFile("w", prefix="worktree-hook-open-", suffix=".sh", delete=False) as fh:
        fh.write(f'#!/bin/sh\ncd {shlex.quote(str(path))}\n{init_script}\nexec "${{SHELL:-sh}}"\n')
    script = Path(fh.name)
    script.chmod(0o755)
    return script


def open_terminal_with_hook(path: Path, template: str, init_script: str) -> bool:
    """Open a terminal at path that runs init_script, then drops into the user's shell.

    Returns False without launching anything when template is not a terminal we know.
    """
    kind = _terminal_kind(template)
    if kind is None:
        return False
    try:
        _spawn(_terminal_argv(kind, path, _write_bootstrap(path, init_script)))
    except OSError as exc:
        raise WorktreeError(f"Failed to open terminal with command: {template} ({exc})") from exc
    return True


def _app_exists(name: str) -> bool:
    return Path(f"/Applications/{name}.app").exists() or Path(f"/System/Applications/{name}.app").exists()


def open_with_hook(path: Path, template: str, init_script: str) -> bool:
    """Open path with template and show the rendered post:open script in a terminal.

    A terminal template runs the script in its own window. An editor template
    opens the editor, then the script goes to the first installed macOS
    terminal. Returns False when no terminal ran it, so the caller runs it inline.
    """
    if open_terminal_with_hook(path, template, init_script):
        return True
    open_in_editor(path, template)
    for app, command in _AUTO_TERMINALS:
        if _app_exists(app) and open_terminal_with_hook(path, command, init_script):
            return True
    return False


def detect_editors() -> list[tuple[str, str]]:
    """Return (name, command) for every known editor/terminal found on PATH."""
    search = augmented_path()
    found = [(name, cmd) for name, cmd in _DETECTABLE if shutil.which(cmd.split()[0], path=search)]
    if sys.platform == "darwin":
        found.append(("Terminal", "open -a Terminal ."))
    return found
