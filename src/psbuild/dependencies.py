# dependencies.py
# Build-time helper modules (platyPS, Pester, ...) saved under the project's
# modules dir as <name>/<version>, the layout Save-Module produces.

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import List

from . import settings
from .archive import download, expand_archive, strip_package_metadata
from .model import DependencyManifest
from .ui.console import get_console


def module_path(modules_dir: Path, name: str, version: str) -> Path:
    return modules_dir / name / version


def is_installed(modules_dir: Path, name: str, version: str) -> bool:
    return module_path(modules_dir, name, version).is_dir()


def package_url(name: str, version: str, gallery_url: str | None = None) -> str:
    base = (gallery_url or settings.GALLERY_URL).rstrip("/")
    return f"{base}/package/{name}/{version}"


def fetch_package(name: str, version: str, modules_dir: Path, *, gallery_url: str | None = None) -> Path:
    """
    Download one package and expand it into modules_dir/<name>/<version>.

    Staging happens in a hidden dir inside modules_dir, so the last step is a
    same-device rename: the target only appears once it is complete, and an
    interrupted fetch is simply retried next time.
    """
    target = module_path(modules_dir, name, version)
    url = package_url(name, version, gallery_url)
    modules_dir.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory(prefix=".psbuild-", dir=modules_dir) as tmp:
        pkg = Path(tmp) / f"{name}.{version}.nupkg"
        download(url, pkg)

        staging = Path(tmp) / "expanded"
        expand_archive(pkg, staging)
        strip_package_metadata(staging)

        target.parent.mkdir(parents=True, exist_ok=True)
        if target.exists():
            shutil.rmtree(target)
        os.replace(staging, target)

    return target


def install_dependencies(
    manifest: DependencyManifest,
    modules_dir: Path,
    *,
    gallery_url: str | None = None,
) -> List[str]:
    """
    Fetch every manifest entry not yet on disk.

    Returns:
        names of the packages that were fetched (in manifest order)
    """
    console = get_console()
    fetched: List[str] = []
    for name, version in manifest.items():
        if is_installed(modules_dir, name, version):
            console.print_debug(f"{name} {version} already present")
            continue
        console.print_info(f"Fetching {name} {version}")
        fetch_package(name, version, modules_dir, gallery_url=gallery_url)
        fetched.append(name)
    return fetched
