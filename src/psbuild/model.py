# model.py
from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Tuple

if TYPE_CHECKING:
    from .toolchain import ToolchainHandle
    from .ui.console import Console


CONFIGURATIONS = ("Debug", "Release")


@dataclass(frozen=True)
class SdkRequirement:
    """The exact .NET SDK version a build needs (global.json: sdk.version)."""
    version: str
    roll_forward: str | None = None

    @property
    def channel(self) -> str:
        # "6.0.100" -> "6.0"
        parts = self.version.split(".")
        return ".".join(parts[:2])


@dataclass(frozen=True)
class DependencyManifest:
    """Build-time helper modules: name -> version, in declared order."""
    packages: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_mapping(cls, mapping: Dict[str, str]) -> DependencyManifest:
        return cls(packages=tuple(mapping.items()))

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)


@dataclass
class SearchPathContext:
    """
    Explicit stand-in for the process PATH.

    The resolver and the task bodies read and extend this object; child
    processes get `env()` as their environment. `os.environ` is never touched.
    """
    entries: List[str]
    environ: Dict[str, str] = field(default_factory=dict)
    is_windows: bool = os.name == "nt"

    @classmethod
    def from_environ(
        cls,
        environ: Dict[str, str] | None = None,
        *,
        is_windows: bool | None = None,
    ) -> SearchPathContext:
        env = dict(os.environ if environ is None else environ)
        windows = (os.name == "nt") if is_windows is None else is_windows
        sep = ";" if windows else ":"
        raw = env.get("PATH", "")
        entries = [p for p in raw.split(sep) if p]
        return cls(entries=entries, environ=env, is_windows=windows)

    @property
    def separator(self) -> str:
        return ";" if self.is_windows else ":"

    def _norm(self, directory: str) -> str:
        d = str(directory).rstrip("/\\") or str(directory)
        if self.is_windows:
            d = d.replace("/", "\\").lower()
        return d

    def contains(self, directory: str | Path) -> bool:
        wanted = self._norm(str(directory))
        return any(self._norm(e) == wanted for e in self.entries)

    def prepend(self, directory: str | Path) -> bool:
        """Put `directory` first on the search path. Returns False if it was already there."""
        if self.contains(directory):
            return False
        self.entries.insert(0, str(directory))
        return True

    @property
    def path_value(self) -> str:
        return self.separator.join(self.entries)

    def env(self, extra: Dict[str, str] | None = None) -> Dict[str, str]:
        out = dict(self.environ)
        out["PATH"] = self.path_value
        if extra:
            out.update(extra)
        return out

    def which(self, name: str) -> Optional[Path]:
        found = shutil.which(name, path=os.pathsep.join(self.entries))
        return Path(found) if found else None


@dataclass
class ProjectSettings:
    """
    Where things live in the module project.

    Relative paths are resolved against `root`.
    """
    root: Path
    module_name: str
    module_version: str = "0.1.0"
    prerelease: str | None = None

    src_dir: str = "src"
    module_dir: str = "module"
    test_dir: str = "test"
    docs_dir: str = "docs"
    out_dir: str = "out"
    modules_dir: str = ".psbuild/modules"

    help_culture: str = "en-US"
    feed_name: str = "psbuild-local"

    sdk_manifest: str = "global.json"
    requirements_manifest: str = "build.requirements.json"

    def path(self, rel: str) -> Path:
        p = Path(rel).expanduser()
        return p if p.is_absolute() else (self.root / p)

    @property
    def out_path(self) -> Path:
        return self.path(self.out_dir)

    @property
    def module_out_path(self) -> Path:
        return self.out_path / self.module_name / self.module_version

    @property
    def test_results_path(self) -> Path:
        return self.out_path / "TestResults"

    @property
    def full_version(self) -> str:
        if self.prerelease:
            return f"{self.module_version}-{self.prerelease}"
        return self.module_version

    @property
    def package_file_name(self) -> str:
        return f"{self.module_name}.{self.full_version}.nupkg"


@dataclass
class BuildContext:
    """Everything a task body gets to look at."""
    settings: ProjectSettings
    search_path: SearchPathContext
    configuration: str = "Debug"
    tag_filter: Tuple[str, ...] = ()
    toolchain: Optional["ToolchainHandle"] = None
    console: Optional["Console"] = None

    def pwsh_env(self) -> Dict[str, str]:
        """Child env with the built module and the helper modules on PSModulePath."""
        sep = self.search_path.separator
        extra = [str(self.settings.out_path), str(self.settings.path(self.settings.modules_dir))]
        current = self.search_path.environ.get("PSModulePath", "")
        value = sep.join(extra + ([current] if current else []))
        return self.search_path.env({"PSModulePath": value})


TaskAction = Callable[[BuildContext], None]


@dataclass
class Task:
    """
    A named unit of build work.

    `needs` lists tasks that must run BEFORE this one, in the order given.
    A task without an action is a composite: it only pulls in its needs.
    `tools` names the executables (besides dotnet) the action shells out to.
    """
    name: str
    needs: List[str] = field(default_factory=list)
    action: Optional[TaskAction] = None
    description: str = ""
    tools: List[str] = field(default_factory=list)

    @property
    def is_composite(self) -> bool:
        return self.action is None


@dataclass
class TaskRun:
    """One invocation of the runner: pending -> resolving -> executing -> done | failed."""
    target: str
    order: List[str] = field(default_factory=list)
    status: str = "pending"
    results: Dict[str, str] = field(default_factory=dict)
    error: Optional[BaseException] = None

    @property
    def executed(self) -> List[str]:
        return [name for name in self.order if self.results.get(name) == "ok"]
