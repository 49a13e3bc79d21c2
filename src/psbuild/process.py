# process.py
# Every external tool (dotnet, pwsh, git, winget, pacman, install scripts)
# is started from here, always with an explicit argument list.

from __future__ import annotations

import os
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from .errors import ToolFailure, ToolMissing
from .model import SearchPathContext


def run_tool(
    argv: Sequence[str],
    *,
    search_path: Optional[SearchPathContext] = None,
    cwd: str | Path | None = None,
    env: Optional[Dict[str, str]] = None,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run an external tool and wait for it.

    argv[0] is looked up on `search_path` (when given) so the child runs the
    same executable the resolver picked. The child environment is `env`, or
    the search path's rendered environment, or the current one.

    Raises:
        ToolMissing: argv[0] cannot be found
        ToolFailure: non-zero exit and check=True
    """
    args: List[str] = [str(a) for a in argv]
    if not args:
        raise ValueError("run_tool() needs at least the program name")

    if search_path is not None:
        exe = search_path.which(args[0]) if not os.path.dirname(args[0]) else Path(args[0])
        if exe is None:
            raise ToolMissing(args[0])
        args[0] = str(exe)
        if env is None:
            env = search_path.env()

    if cwd is not None and not Path(cwd).exists():
        raise FileNotFoundError(f"working directory not found: {cwd}")

    try:
        proc = subprocess.run(
            args,
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            text=True,
            capture_output=True,  # shown on failure
        )
    except FileNotFoundError:
        raise ToolMissing(Path(args[0]).name) from None

    if check and proc.returncode != 0:
        raise ToolFailure(
            args,
            proc.returncode,
            stdout=proc.stdout[-4000:],
            stderr=proc.stderr[-4000:],
        )
    return proc


@contextmanager
def scoped_cwd(path: str | Path) -> Iterator[Path]:
    """chdir into `path` for the duration of the block; the old cwd always comes back."""
    target = Path(path).resolve()
    original_cwd = os.getcwd()
    os.chdir(target)
    try:
        yield target
    finally:
        os.chdir(original_cwd)


def pwsh_command(script: str) -> List[str]:
    """argv for running a PowerShell snippet non-interactively."""
    return ["pwsh", "-NoLogo", "-NoProfile", "-NonInteractive", "-Command", script]


def ps_quote(value: str | Path) -> str:
    """Single-quoted PowerShell string literal."""
    return "'" + str(value).replace("'", "''") + "'"


def ps_array(values: Sequence[str]) -> str:
    return "@(" + ", ".join(ps_quote(v) for v in values) + ")"
