"""Console output formatting utilities for psbuild."""

from __future__ import annotations

import sys
from typing import Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        project: str,
        task: str,
        configuration: str,
        version: Optional[str] = None,
    ) -> None:
        """Print build start information."""
        print("\nBUILD STARTED")
        print(f"Project: {project}")
        if version:
            print(f"Version: {version}")
        print(f"Task: {task}")
        print(f"Configuration: {configuration}")
        print()

    def print_toolchain(self, executable: str, version: str, location: str) -> None:
        """Print which SDK the build will use."""
        print(f"SDK: {version} ({location}) {executable}")

    def print_plan(self, order: list[str]) -> None:
        """Print resolved task order."""
        print("PLAN: " + " -> ".join(order))

    def print_task_start(self, name: str) -> None:
        """Print task start message."""
        print(f"\nTASK STARTED: {name}")

    def print_task_done(self, name: str, duration: Optional[float] = None) -> None:
        """Print task success message."""
        if duration is not None:
            print(f"STATUS: success ({duration:.1f}s)")
        else:
            print("STATUS: success")

    def print_skipped(self, name: str, reason: str) -> None:
        """Print a skipped unit of work."""
        print(f"SKIPPED: {name} ({reason})")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        """
        Print task failure message.

        Args:
            name: Task name
            reason: Failure reason/error message
            exit_code: Optional exit code of the failing tool
            hint: Optional hint for user
        """
        print(f"TASK FAILED: {name}", file=sys.stderr)
        if exit_code is not None:
            print(f"Exit code: {exit_code}", file=sys.stderr)
        if hint:
            print(f"Hint: {hint}", file=sys.stderr)
        if self.debug:
            print(f"Error details: {reason}", file=sys.stderr)

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for task, status in results.items():
            status_display = status.upper() if status != "ok" else "SUCCESS"
            print(f"  {task}: {status_display}")

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
