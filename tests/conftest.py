"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from psbuild.model import BuildContext, ProjectSettings, SearchPathContext
from psbuild.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def console() -> Console:
    """Fresh non-debug console for every test."""
    c = Console(debug=False)
    set_console(c)
    return c


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An empty module project directory."""
    root = tmp_path / "MyModule"
    root.mkdir()
    return root


@pytest.fixture
def project_settings(project_dir: Path) -> ProjectSettings:
    return ProjectSettings(root=project_dir, module_name="MyModule", module_version="1.2.0")


@pytest.fixture
def search_path(tmp_path: Path) -> SearchPathContext:
    """A POSIX style search path with nothing on it and HOME under tmp."""
    home = tmp_path / "home"
    home.mkdir()
    return SearchPathContext(entries=[], environ={"HOME": str(home), "PATH": ""}, is_windows=False)


@pytest.fixture
def build_context(project_settings: ProjectSettings, search_path: SearchPathContext, console: Console) -> BuildContext:
    return BuildContext(settings=project_settings, search_path=search_path, console=console)


def make_executable(directory: Path, name: str = "dotnet") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    exe = directory / name
    exe.write_text("#!/bin/sh\nexit 0\n")
    exe.chmod(0o755)
    return exe


@pytest.fixture
def fake_exe():
    """Factory: fake_exe(dir, name="dotnet") -> Path to an executable stub."""
    return make_executable
