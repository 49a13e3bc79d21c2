# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


TOOL_HINTS = {
    "dotnet": "Install the .NET SDK or let psbuild bootstrap it (drop --skip-bootstrap).",
    "pwsh": "Install PowerShell 7 (winget install Microsoft.PowerShell) or fix PATH.",
    "git": "Install Git or fix PATH.",
    "winget": "winget ships with App Installer on Windows 10/11.",
    "pacman": "pacman is only available on MSYS2 / Arch based systems.",
}


@dataclass(eq=False)
class BuildError(Exception):
    """
    Structured build error with enough context for:
      - clean CLI output
      - debugging without full tracebacks
    """
    kind: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class ManifestNotFound(BuildError):
    def __init__(self, path: str):
        super().__init__("manifest_not_found", f"Manifest file not found: {path}", {"path": path})


class ManifestSchemaInvalid(BuildError):
    def __init__(self, path: str, reason: str):
        super().__init__("manifest_schema_invalid", f"Manifest {path} is invalid: {reason}", {"path": path})


class ToolchainNotFound(BuildError):
    def __init__(self, version: str, searched: List[str]):
        super().__init__(
            "toolchain_not_found",
            f".NET SDK {version} was not found",
            {"searched": ", ".join(searched) or "(nothing)"},
        )
        self.version = version


class InstallError(BuildError):
    def __init__(self, message: str, **details: Any):
        super().__init__("install_error", message, dict(details))


class UnknownTask(BuildError):
    def __init__(self, name: str, known: List[str], required_by: Optional[str] = None):
        details: Dict[str, Any] = {"known": ", ".join(sorted(known))}
        if required_by:
            details["required_by"] = required_by
        super().__init__("unknown_task", f"Unknown task: {name}", details)
        self.name = name


class TaskCycleError(BuildError):
    def __init__(self, cycle: List[str]):
        super().__init__("task_cycle", "Task graph has a cycle: " + " -> ".join(cycle), {})
        self.cycle = cycle


class ToolMissing(BuildError):
    def __init__(self, tool: str):
        super().__init__(
            "tool_missing",
            f"Required tool not found on PATH: {tool}",
            {"hint": TOOL_HINTS.get(tool, f"Install {tool} or fix PATH.")},
        )
        self.tool = tool


class ToolFailure(BuildError):
    def __init__(self, argv: List[str], exit_code: int, stdout: str = "", stderr: str = ""):
        details: Dict[str, Any] = {"command": " ".join(argv), "exit": exit_code}
        tail = (stderr or stdout).strip()
        if tail:
            details["output"] = tail[-2000:]
        super().__init__("tool_failed", f"{argv[0]} exited with code {exit_code}", details)
        self.argv = argv
        self.exit_code = exit_code


class TaskBodyError(BuildError):
    def __init__(self, task: str, cause: BaseException):
        details: Dict[str, Any] = {"task": task}
        exit_code = getattr(cause, "exit_code", None)
        if exit_code is not None:
            details["exit"] = exit_code
        output = cause.details.get("output") if isinstance(cause, BuildError) else None
        if output:
            details["output"] = output
        super().__init__("task_failed", f"Task '{task}' failed: {_first_line(cause)}", details)
        self.task = task
        self.cause = cause
        self.exit_code = exit_code
        self.run: Any = None  # the TaskRun that stopped here


def _first_line(exc: BaseException) -> str:
    text = str(exc) or type(exc).__name__
    return text.splitlines()[0]
