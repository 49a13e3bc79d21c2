from __future__ import annotations
import os

CONFIGURATION = os.environ.get("PSBUILD_CONFIGURATION", "Debug")
PROJECT_ROOT = os.environ.get("PSBUILD_PROJECT_ROOT", ".")
PROJECT_FILE = os.environ.get("PSBUILD_PROJECT_FILE", "psbuild_project.py")
GALLERY_URL = os.environ.get("PSBUILD_GALLERY_URL", "https://www.powershellgallery.com/api/v2")
INSTALL_SCRIPT_URL = os.environ.get("PSBUILD_INSTALL_SCRIPT_URL", "https://dot.net/v1/dotnet-install.{ext}")
MODULES_DIR = os.environ.get("PSBUILD_MODULES_DIR")  # None -> ProjectSettings.modules_dir
