# builtin_tasks.py
# The built-in task graph for a PowerShell module with a compiled assembly.
#
#   Build       = Restore, Clean, Publish, ExternalHelp, Package
#   Test        = Publish, BuildTestProjects, RunPesterTests
#   TestPackage = BuildTestProjects, RunPesterTests
#   Docs        = Publish, MarkdownHelp

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List

from .dag import TaskRegistry
from .dsl import task
from .errors import BuildError
from .model import BuildContext
from .process import ps_array, ps_quote, pwsh_command, run_tool, scoped_cwd
from .ui.console import get_console


MODULE_FILE_PATTERNS = ("*.psd1", "*.psm1", "*.ps1xml", "*.ps1")
TEST_RESULTS_FILE = "TestResults.xml"


def _console(ctx: BuildContext):
    return ctx.console or get_console()


def _pwsh(ctx: BuildContext, script: str) -> None:
    run_tool(pwsh_command(script), search_path=ctx.search_path, env=ctx.pwsh_env())


# ---------------------------------------------------------------------
# Task bodies
# ---------------------------------------------------------------------

def clean(ctx: BuildContext) -> None:
    out = ctx.settings.out_path
    if not out.exists():
        _console(ctx).print_skipped("Clean", f"{out} does not exist")
        return
    shutil.rmtree(out)


def restore(ctx: BuildContext) -> None:
    src = ctx.settings.path(ctx.settings.src_dir)
    if not src.is_dir():
        _console(ctx).print_skipped("Restore", f"no source dir {src}")
        return
    with scoped_cwd(src):
        run_tool(["dotnet", "restore"], search_path=ctx.search_path)


def publish(ctx: BuildContext) -> None:
    """Compile the assembly into the versioned module dir and copy the module files next to it."""
    s = ctx.settings
    src = s.path(s.src_dir)
    module_src = s.path(s.module_dir)
    dest = s.module_out_path

    if not src.is_dir() and not module_src.is_dir():
        raise BuildError(
            "nothing_to_publish",
            f"Neither {src} nor {module_src} exists",
            {"module": s.module_name},
        )

    dest.mkdir(parents=True, exist_ok=True)

    if src.is_dir():
        with scoped_cwd(src):
            run_tool(
                ["dotnet", "publish", "--configuration", ctx.configuration, "--output", str(dest)],
                search_path=ctx.search_path,
            )

    if module_src.is_dir():
        for pattern in MODULE_FILE_PATTERNS:
            for f in sorted(module_src.glob(pattern)):
                shutil.copy2(f, dest / f.name)


def external_help(ctx: BuildContext) -> None:
    s = ctx.settings
    docs = s.path(s.docs_dir)
    if not docs.is_dir():
        _console(ctx).print_skipped("ExternalHelp", f"no docs dir {docs}")
        return
    out = s.module_out_path / s.help_culture
    script = "; ".join([
        "$ErrorActionPreference = 'Stop'",
        "Import-Module platyPS",
        f"New-ExternalHelp -Path {ps_quote(docs)} -OutputPath {ps_quote(out)} -Force | Out-Null",
    ])
    _pwsh(ctx, script)


def markdown_help(ctx: BuildContext) -> None:
    s = ctx.settings
    manifest = s.module_out_path / f"{s.module_name}.psd1"
    if not manifest.is_file():
        raise BuildError("module_not_built", f"Built module manifest not found: {manifest}", {})

    docs = s.path(s.docs_dir)
    docs.mkdir(parents=True, exist_ok=True)

    if any(docs.glob("*.md")):
        generate = f"Update-MarkdownHelpModule -Path {ps_quote(docs)} -RefreshModulePage -AlphabeticParamsOrder | Out-Null"
    else:
        generate = (
            f"New-MarkdownHelp -Module {ps_quote(s.module_name)} -OutputFolder {ps_quote(docs)} "
            "-WithModulePage -AlphabeticParamsOrder | Out-Null"
        )
    script = "; ".join([
        "$ErrorActionPreference = 'Stop'",
        "Import-Module platyPS",
        f"Import-Module {ps_quote(manifest)} -Force",
        generate,
    ])
    _pwsh(ctx, script)


def package(ctx: BuildContext) -> None:
    """
    Publish the built module to a throwaway local feed rooted at the output dir,
    which leaves <module>.<version>[-<prerelease>].nupkg behind.

    The feed is unregistered even when publishing fails.
    """
    s = ctx.settings
    feed = ps_quote(s.feed_name)
    feed_dir = s.out_path
    feed_dir.mkdir(parents=True, exist_ok=True)

    _pwsh(ctx, f"Register-PSResourceRepository -Name {feed} -Uri {ps_quote(feed_dir)} -Trusted -Force")
    try:
        _pwsh(ctx, f"Publish-PSResource -Path {ps_quote(s.module_out_path)} -Repository {feed}")
    finally:
        proc = run_tool(
            pwsh_command(f"Unregister-PSResourceRepository -Name {feed}"),
            search_path=ctx.search_path,
            env=ctx.pwsh_env(),
            check=False,
        )
        if proc.returncode != 0:
            _console(ctx).print_info(f"warning: could not unregister feed {s.feed_name} (exit={proc.returncode})")

    archive = feed_dir / s.package_file_name
    if not archive.is_file():
        raise BuildError("package_missing", f"Expected package not produced: {archive}", {})
    _console(ctx).print_info(f"Package: {archive}")


def build_test_projects(ctx: BuildContext) -> None:
    test_dir = ctx.settings.path(ctx.settings.test_dir)
    projects: List[Path] = sorted(test_dir.rglob("*.csproj")) if test_dir.is_dir() else []
    if not projects:
        _console(ctx).print_skipped("BuildTestProjects", "no test projects")
        return
    for project in projects:
        with scoped_cwd(project.parent):
            run_tool(
                ["dotnet", "build", "--configuration", ctx.configuration, project.name],
                search_path=ctx.search_path,
            )


def pester_script(ctx: BuildContext) -> str:
    """Invoke-Pester call with an NUnit report; the tag filter is passed through as is."""
    s = ctx.settings
    results = s.test_results_path / TEST_RESULTS_FILE
    lines = [
        "$ErrorActionPreference = 'Stop'",
        "Import-Module Pester -MinimumVersion 5.0",
        "$c = New-PesterConfiguration",
        f"$c.Run.Path = {ps_quote(s.path(s.test_dir))}",
        "$c.Run.Exit = $true",
        "$c.TestResult.Enabled = $true",
        "$c.TestResult.OutputFormat = 'NUnitXml'",
        f"$c.TestResult.OutputPath = {ps_quote(results)}",
        "$c.Output.Verbosity = 'Detailed'",
    ]
    if ctx.tag_filter:
        lines.append(f"$c.Filter.Tag = {ps_array(list(ctx.tag_filter))}")
    lines.append("Invoke-Pester -Configuration $c")
    return "; ".join(lines)


def run_pester_tests(ctx: BuildContext) -> None:
    s = ctx.settings
    test_dir = s.path(s.test_dir)
    if not test_dir.is_dir():
        _console(ctx).print_skipped("RunPesterTests", f"no test dir {test_dir}")
        return
    s.test_results_path.mkdir(parents=True, exist_ok=True)
    _pwsh(ctx, pester_script(ctx))


# ---------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------

DEFAULT_TASK = "Build"


def default_tasks():
    return [
        task("Clean", clean, description="remove the output directory"),
        task("Restore", restore, description="dotnet restore"),
        task("Publish", publish, description="compile and lay out the module"),
        task("ExternalHelp", external_help, description="MAML help from markdown", tools=["pwsh"]),
        task("MarkdownHelp", markdown_help, description="refresh markdown help from the built module", tools=["pwsh"]),
        task("Package", package, description="create the .nupkg", tools=["pwsh"]),
        task("BuildTestProjects", build_test_projects, description="compile test projects"),
        task("RunPesterTests", run_pester_tests, description="run Pester tests", tools=["pwsh"]),
        task("Build", needs=["Restore", "Clean", "Publish", "ExternalHelp", "Package"]),
        task("Test", needs=["Publish", "BuildTestProjects", "RunPesterTests"]),
        task("TestPackage", needs=["BuildTestProjects", "RunPesterTests"]),
        task("Docs", needs=["Publish", "MarkdownHelp"]),
    ]


def register_default_tasks(registry: TaskRegistry) -> TaskRegistry:
    for t in default_tasks():
        registry.add(t)
    return registry
