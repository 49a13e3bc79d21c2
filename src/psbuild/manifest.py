# manifest.py
from __future__ import annotations

import codecs
import json
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictStr, TypeAdapter, ValidationError

from .errors import ManifestNotFound, ManifestSchemaInvalid
from .model import DependencyManifest, SdkRequirement


# -------------------- Schemas --------------------

class SdkSection(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    version: StrictStr
    roll_forward: Optional[StrictStr] = Field(default=None, alias="rollForward")


class GlobalJson(BaseModel):
    model_config = ConfigDict(extra="allow")

    sdk: SdkSection


_requirements_adapter = TypeAdapter(Dict[StrictStr, StrictStr])


# -------------------- Loading --------------------

_BOMS = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


def _read_text(path: Path) -> str:
    """
    Decode a manifest the way PowerShell writes them: UTF-8 with or without
    a BOM, or UTF-16 (Windows PowerShell 5.1 New-ModuleManifest).
    """
    raw = path.read_bytes()
    encoding = "utf-8"
    for bom, name in _BOMS:
        if raw.startswith(bom):
            encoding = name
            break
    else:
        if raw[1:2] == b"\x00":
            encoding = "utf-16-le"
    try:
        return raw.decode(encoding)
    except UnicodeDecodeError as e:
        raise ManifestSchemaInvalid(str(path), f"cannot decode as {encoding} (byte {e.start})") from e


def _load_json(path: Path) -> Any:
    if not path.is_file():
        raise ManifestNotFound(str(path))
    try:
        return json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        raise ManifestSchemaInvalid(str(path), f"not valid JSON ({e.msg}, line {e.lineno})") from e


def _schema_reason(e: ValidationError) -> str:
    first = e.errors()[0]
    loc = ".".join(str(p) for p in first.get("loc", ())) or "(root)"
    return f"{loc}: {first.get('msg', 'invalid')}"


def read_sdk_requirement(path: str | Path) -> SdkRequirement:
    """
    Read `sdk.version` from a global.json style manifest.

    Raises:
        ManifestNotFound: file does not exist
        ManifestSchemaInvalid: bad JSON, or `sdk.version` missing / not a string / empty
    """
    path = Path(path)
    data = _load_json(path)
    try:
        parsed = GlobalJson.model_validate(data)
    except ValidationError as e:
        raise ManifestSchemaInvalid(str(path), _schema_reason(e)) from e

    version = parsed.sdk.version.strip()
    if not version:
        raise ManifestSchemaInvalid(str(path), "sdk.version: must not be empty")
    return SdkRequirement(version=version, roll_forward=parsed.sdk.roll_forward)


def read_dependency_manifest(path: str | Path) -> DependencyManifest:
    """
    Read the build dependency manifest: a JSON object of module name -> version.

    Declared order is kept.
    """
    path = Path(path)
    data = _load_json(path)
    try:
        mapping = _requirements_adapter.validate_python(data)
    except ValidationError as e:
        raise ManifestSchemaInvalid(str(path), _schema_reason(e)) from e

    for name, version in mapping.items():
        if not name.strip() or not version.strip():
            raise ManifestSchemaInvalid(str(path), f"{name!r}: name and version must not be empty")
    return DependencyManifest.from_mapping(mapping)


# -------------------- Module manifest (.psd1) --------------------

_PSD1_VERSION = re.compile(r"""(?<![\w.$-])ModuleVersion\s*=\s*['"]([^'"]+)['"]""", re.IGNORECASE)
_PSD1_PRERELEASE = re.compile(r"""(?<![\w.$-])Prerelease\s*=\s*['"]([^'"]*)['"]""", re.IGNORECASE)
# quoted strings are kept, comments (<# ... #> and # to end of line) are dropped
_PSD1_COMMENT = re.compile(r"""('[^']*'|"[^"]*")|<#.*?#>|#[^\r\n]*""", re.DOTALL)


def _strip_comments(text: str) -> str:
    return _PSD1_COMMENT.sub(lambda m: m.group(1) or "", text)


def read_module_manifest(path: str | Path) -> Tuple[Optional[str], Optional[str]]:
    """
    (ModuleVersion, Prerelease) from a PowerShell module manifest.

    Only the literal `Key = 'value'` form is understood, on its own line or
    inline (`@{ Prerelease = 'rc1' }`); anything else gives None.
    """
    text = _strip_comments(_read_text(Path(path)))
    version = _PSD1_VERSION.search(text)
    prerelease = _PSD1_PRERELEASE.search(text)
    return (
        version.group(1) if version else None,
        (prerelease.group(1) or None) if prerelease else None,
    )
