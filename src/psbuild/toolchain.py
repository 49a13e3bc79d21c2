# toolchain.py
# Locate (or install) the .NET SDK a build needs.
#
# Order of preference:
#   1. `dotnet` already on the search path with the exact SDK version
#   2. the per-user install dir (~/.dotnet, %LOCALAPPDATA%\Microsoft\dotnet)
#   3. install into (2) with the official dotnet-install script

from __future__ import annotations

import enum
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from . import settings
from .archive import download
from .errors import InstallError, ToolchainNotFound, ToolFailure, ToolMissing
from .model import SdkRequirement, SearchPathContext
from .process import run_tool
from .ui.console import get_console


class ToolchainLocation(enum.Enum):
    GLOBAL_PATH = "global"
    LOCAL_USER_DIR = "local"


@dataclass(frozen=True)
class ToolchainHandle:
    location: ToolchainLocation
    executable: Path
    version: str

    @property
    def root(self) -> Path:
        return self.executable.parent


def dotnet_exe_name(context: SearchPathContext) -> str:
    return "dotnet.exe" if context.is_windows else "dotnet"


def local_install_dir(context: SearchPathContext) -> Path:
    """Per-user SDK location, taken from the context's environment."""
    if context.is_windows:
        base = context.environ.get("LOCALAPPDATA")
        if base:
            return Path(base) / "Microsoft" / "dotnet"
        return Path.home() / "AppData" / "Local" / "Microsoft" / "dotnet"
    home = context.environ.get("HOME")
    return (Path(home) if home else Path.home()) / ".dotnet"


def list_sdks(executable: Path, context: SearchPathContext) -> List[str]:
    """
    SDK versions reported by `dotnet --list-sdks`.

    Output lines look like `6.0.100 [/usr/share/dotnet/sdk]`. A dotnet that
    cannot answer is treated as having no SDKs.
    """
    try:
        proc = run_tool([str(executable), "--list-sdks"], env=context.env())
    except (ToolFailure, ToolMissing) as e:
        get_console().print_debug(f"{executable} --list-sdks failed: {e}")
        return []

    versions: List[str] = []
    for line in proc.stdout.splitlines():
        line = line.strip()
        if not line:
            continue
        versions.append(line.split(" ", 1)[0])
    return versions


def version_matches(installed: List[str], required: str) -> bool:
    # exact match only; "6.0.100" is not satisfied by "6.0.101"
    return required in installed


def _same_dir(a: Path, b: Path, context: SearchPathContext) -> bool:
    if context.is_windows:
        return str(a).rstrip("\\/").lower() == str(b).rstrip("\\/").lower()
    return str(a).rstrip("/") == str(b).rstrip("/")


def resolve(requirement: SdkRequirement, context: SearchPathContext) -> ToolchainHandle:
    """
    Find a dotnet that has `requirement.version`.

    The context is only changed when the local install dir has to be used,
    and then only once: the dir is prepended if it is not already on it.

    Raises:
        ToolchainNotFound
    """
    console = get_console()
    searched: List[str] = []
    local_dir = local_install_dir(context)

    on_path = context.which("dotnet")
    if on_path is not None:
        searched.append(str(on_path))
        if version_matches(list_sdks(on_path, context), requirement.version):
            location = (
                ToolchainLocation.LOCAL_USER_DIR
                if _same_dir(on_path.parent, local_dir, context)
                else ToolchainLocation.GLOBAL_PATH
            )
            console.print_debug(f"SDK {requirement.version} found on PATH: {on_path}")
            return ToolchainHandle(location, on_path, requirement.version)

    local_exe = local_dir / dotnet_exe_name(context)
    searched.append(str(local_exe))
    if local_exe.is_file() and version_matches(list_sdks(local_exe, context), requirement.version):
        if context.prepend(str(local_dir)):
            console.print_debug(f"Prepended {local_dir} to PATH")
        return ToolchainHandle(ToolchainLocation.LOCAL_USER_DIR, local_exe, requirement.version)

    raise ToolchainNotFound(requirement.version, searched)


def _install_command(script: Path, channel: str, version: str, install_dir: Path, context: SearchPathContext) -> List[str]:
    if context.is_windows:
        return [
            "powershell", "-NoLogo", "-NoProfile", "-ExecutionPolicy", "Bypass",
            "-File", str(script),
            "-Channel", channel,
            "-Version", version,
            "-InstallDir", str(install_dir),
            "-NoPath",
        ]
    return [
        "bash", str(script),
        "--channel", channel,
        "--version", version,
        "--install-dir", str(install_dir),
        "--no-path",
    ]


def install(channel: str, version: str, context: SearchPathContext) -> ToolchainHandle:
    """
    Install SDK `version` into the per-user dir and resolve it.

    A no-op when the SDK can already be resolved. The downloaded install
    script is deleted whether or not the install works.

    Raises:
        InstallError: download failed, script failed, or the SDK still
            cannot be resolved afterwards
    """
    requirement = SdkRequirement(version=version)
    try:
        return resolve(requirement, context)
    except ToolchainNotFound:
        pass

    console = get_console()
    install_dir = local_install_dir(context)
    install_dir.mkdir(parents=True, exist_ok=True)

    ext = "ps1" if context.is_windows else "sh"
    url = settings.INSTALL_SCRIPT_URL.format(ext=ext)

    fd, tmp_name = tempfile.mkstemp(prefix="dotnet-install-", suffix=f".{ext}")
    os.close(fd)
    script = Path(tmp_name)

    console.print_info(f"Installing .NET SDK {version} (channel {channel}) into {install_dir}")
    try:
        download(url, script)
        if not context.is_windows:
            script.chmod(0o755)
        argv = _install_command(script, channel, version, install_dir, context)
        try:
            run_tool(argv, search_path=context)
        except ToolFailure as e:
            raise InstallError(
                f"dotnet-install script failed (exit={e.exit_code})",
                script=url,
                **{k: v for k, v in e.details.items() if k == "output"},
            ) from e
        except ToolMissing as e:
            raise InstallError(f"Cannot run the install script: {e.message}", script=url) from e
    finally:
        script.unlink(missing_ok=True)

    try:
        return resolve(requirement, context)
    except ToolchainNotFound as e:
        raise InstallError(
            f".NET SDK {version} still not found after install",
            install_dir=str(install_dir),
        ) from e


def ensure_toolchain(
    requirement: SdkRequirement,
    context: SearchPathContext,
    *,
    install_missing: bool = True,
) -> ToolchainHandle:
    """resolve(), falling back to install() on the requirement's channel."""
    try:
        return resolve(requirement, context)
    except ToolchainNotFound:
        if not install_missing:
            raise
    return install(requirement.channel, requirement.version, context)
