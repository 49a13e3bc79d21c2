# project.py
from __future__ import annotations

import runpy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from . import settings as env_settings
from .dag import TaskRegistry
from .errors import BuildError
from .manifest import read_module_manifest
from .model import ProjectSettings, Task
from .builtin_tasks import register_default_tasks


@dataclass
class Project:
    settings: ProjectSettings
    registry: TaskRegistry
    project_file: Optional[Path] = None


def _default_settings(root: Path) -> ProjectSettings:
    s = ProjectSettings(root=root, module_name=root.name)

    # a single manifest in the module dir names the module
    module_src = s.path(s.module_dir)
    manifests = sorted(module_src.glob("*.psd1")) if module_src.is_dir() else []
    if len(manifests) == 1:
        s.module_name = manifests[0].stem
    return s


def _apply_module_manifest(s: ProjectSettings, pinned_version: bool) -> None:
    psd1 = s.path(s.module_dir) / f"{s.module_name}.psd1"
    if pinned_version or not psd1.is_file():
        return
    version, prerelease = read_module_manifest(psd1)
    if version:
        s.module_version = version
    if prerelease:
        s.prerelease = prerelease


def load_project(root: str | Path, project_file: str | Path | None = None) -> Project:
    """
    Settings and task graph for the module project at `root`.

    The optional project file (psbuild_project.py) may define:
      - PROJECT = ProjectSettings(...)  or  project(root) -> ProjectSettings
      - TASKS = [Task, ...]             added after the defaults (last wins)
      - register(registry)              called after TASKS, free to define/replace
    """
    root_p = Path(root).expanduser().resolve()
    if not root_p.is_dir():
        raise BuildError("project_not_found", f"Project root not found: {root_p}", {})

    registry = register_default_tasks(TaskRegistry())
    s = _default_settings(root_p)
    pinned_version = False

    pf = root_p / (project_file or env_settings.PROJECT_FILE)
    globals_dict: Dict[str, Any] = {}
    if pf.is_file():
        globals_dict = runpy.run_path(str(pf), run_name=f"psbuild_project_{pf.stem}")
    elif project_file is not None:
        raise BuildError("project_not_found", f"Project file not found: {pf}", {})
    else:
        pf = None

    if "PROJECT" in globals_dict:
        s = _expect_settings(globals_dict["PROJECT"], pf)
        pinned_version = True
    elif callable(globals_dict.get("project")):
        s = _expect_settings(globals_dict["project"](root_p), pf)
        pinned_version = True

    if env_settings.MODULES_DIR:
        s.modules_dir = env_settings.MODULES_DIR
    _apply_module_manifest(s, pinned_version)

    for t in _expect_tasks(globals_dict.get("TASKS", []), pf):
        registry.add(t)
    hook: Optional[Callable[[TaskRegistry], Any]] = globals_dict.get("register")
    if callable(hook):
        hook(registry)

    return Project(settings=s, registry=registry, project_file=pf)


def _expect_settings(value: Any, pf: Optional[Path]) -> ProjectSettings:
    if not isinstance(value, ProjectSettings):
        raise TypeError(f"{pf}: PROJECT must be a ProjectSettings, got {type(value).__name__}")
    return value


def _expect_tasks(value: Any, pf: Optional[Path]) -> List[Task]:
    if not isinstance(value, list) or not all(isinstance(t, Task) for t in value):
        raise TypeError(f"{pf}: TASKS must be a List[Task]")
    return value
