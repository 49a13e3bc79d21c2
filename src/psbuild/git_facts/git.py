# git.py
# Small wrapper around the Git CLI, used for the build header and for
# stamping the commit the module was built from.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional


def _git(args: list[str], cwd: Optional[str | Path] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    Raises:
        subprocess.CalledProcessError: git exited non-zero
        FileNotFoundError: git is not installed
    """
    out = subprocess.check_output(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        text=True,
        stderr=subprocess.DEVNULL,
    )
    return out.strip()


def head_sha(cwd: Optional[str | Path] = None) -> str:
    """Full SHA of HEAD."""
    return _git(["rev-parse", "HEAD"], cwd=cwd)


def is_dirty(cwd: Optional[str | Path] = None) -> bool:
    """True when the working tree has modified, staged or untracked files."""
    return _git(["status", "--porcelain"], cwd=cwd) != ""


def get_remote_url(remote: str = "origin", cwd: Optional[str | Path] = None) -> str:
    return _git(["remote", "get-url", remote], cwd=cwd)


def describe_commit(cwd: Optional[str | Path] = None) -> Optional[str]:
    """
    Short provenance string, e.g. `3f2c1ab` or `3f2c1ab-dirty`.

    None when `cwd` is not inside a git checkout or git is unavailable.
    """
    try:
        sha = head_sha(cwd)[:7]
        return f"{sha}-dirty" if is_dirty(cwd) else sha
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None
