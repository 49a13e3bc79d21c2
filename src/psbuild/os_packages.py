# os_packages.py
# OS-level tools the build shells out to (pwsh, git) and how to get them
# through the platform package manager when they are missing.

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from .errors import InstallError, ToolFailure, ToolMissing
from .model import SearchPathContext
from .process import run_tool
from .ui.console import get_console


WINGET_IDS: Dict[str, str] = {
    "pwsh": "Microsoft.PowerShell",
    "git": "Git.Git",
}

PACMAN_PACKAGES: Dict[str, str] = {
    "pwsh": "powershell-bin",
    "git": "git",
}


def install_command(tool: str, context: SearchPathContext) -> List[str]:
    """
    Package-manager argv that installs `tool`.

    winget on Windows, pacman otherwise (MSYS2 / Arch).
    """
    if context.is_windows and context.which("winget") is not None:
        pkg = WINGET_IDS.get(tool)
        if pkg:
            return [
                "winget", "install", "--id", pkg, "--exact",
                "--silent", "--accept-package-agreements", "--accept-source-agreements",
            ]
    if context.which("pacman") is not None:
        pkg = PACMAN_PACKAGES.get(tool)
        if pkg:
            return ["pacman", "-S", "--noconfirm", "--needed", pkg]
    raise ToolMissing(tool)


def ensure_tool(tool: str, context: SearchPathContext, *, install_missing: bool = False) -> Path:
    """
    Path of `tool` on the search path, installing it first if asked to.

    Raises:
        ToolMissing: not found and not installed
        InstallError: the package manager failed
    """
    found = context.which(tool)
    if found is not None:
        return found
    if not install_missing:
        raise ToolMissing(tool)

    argv = install_command(tool, context)
    get_console().print_info(f"Installing {tool} with {argv[0]}")
    try:
        run_tool(argv, search_path=context)
    except ToolFailure as e:
        raise InstallError(f"{argv[0]} could not install {tool} (exit={e.exit_code})") from e

    found = context.which(tool)
    if found is None:
        # winget installs land in a dir only new shells see on PATH
        raise InstallError(f"{tool} was installed but is not on PATH yet; open a new shell and retry")
    return found
