# archive.py
from __future__ import annotations

import shutil
import urllib.error
import urllib.request
import zipfile
from pathlib import Path

from .errors import BuildError, InstallError


USER_AGENT = "psbuild/0.1"

# what nuget packs around the module payload
NUPKG_METADATA = ("_rels", "package", "[Content_Types].xml")


class ArchiveError(BuildError):
    def __init__(self, path: str, reason: str):
        super().__init__("archive_error", f"Could not expand {path}: {reason}", {"path": path})


def download(url: str, dest: Path, *, timeout: int = 60) -> Path:
    """
    Single-shot HTTPS GET of `url` into `dest`. No retries, no resume.

    Raises:
        InstallError: on any HTTP or network failure
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response, dest.open("wb") as f:
            shutil.copyfileobj(response, f)
    except urllib.error.HTTPError as e:
        raise InstallError(f"Download failed: HTTP {e.code} {e.reason}", url=url) from e
    except urllib.error.URLError as e:
        raise InstallError(f"Download failed: {e.reason}", url=url) from e
    return dest


def expand_archive(src: Path, dest: Path) -> Path:
    """
    Extract a zip (.zip / .nupkg) into `dest`.

    Members that would land outside `dest` are rejected.
    """
    dest.mkdir(parents=True, exist_ok=True)
    root = dest.resolve()
    try:
        with zipfile.ZipFile(src) as zf:
            for member in zf.namelist():
                target = (root / member).resolve()
                if target != root and root not in target.parents:
                    raise ArchiveError(str(src), f"member escapes target dir: {member}")
            zf.extractall(root)
    except zipfile.BadZipFile as e:
        raise ArchiveError(str(src), str(e)) from e
    return dest


def strip_package_metadata(directory: Path) -> None:
    """Drop nuget packaging files so only the module payload remains."""
    for name in NUPKG_METADATA:
        p = directory / name
        if p.is_dir():
            shutil.rmtree(p)
        elif p.exists():
            p.unlink()
    for nuspec in directory.glob("*.nuspec"):
        nuspec.unlink()
