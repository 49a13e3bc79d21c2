"""
Tests for the built-in task bodies: external tools are faked.
"""

import os
import subprocess
from pathlib import Path

import pytest

from psbuild import builtin_tasks
from psbuild.errors import BuildError, ToolFailure


class FakeTools:
    """Stands in for run_tool: records argv + cwd, can fail on a marker."""

    def __init__(self):
        self.calls: list[tuple[list[str], str]] = []
        self.fail_on: str | None = None
        self.on_call = None

    def __call__(self, argv, *, search_path=None, cwd=None, env=None, check=True):
        argv = [str(a) for a in argv]
        self.calls.append((argv, os.getcwd()))
        if self.on_call:
            self.on_call(argv)
        if self.fail_on and any(self.fail_on in a for a in argv):
            if check:
                raise ToolFailure(argv, 1, stderr="failed")
            return subprocess.CompletedProcess(argv, 1, stdout="", stderr="failed")
        return subprocess.CompletedProcess(argv, 0, stdout="", stderr="")

    def scripts(self) -> list[str]:
        return [argv[-1] for argv, _ in self.calls if argv[0] == "pwsh"]


@pytest.fixture
def tools(monkeypatch) -> FakeTools:
    fake = FakeTools()
    monkeypatch.setattr(builtin_tasks, "run_tool", fake)
    return fake


# ── Clean ────────────────────────────────────────────────────────────


def test_clean_removes_output(build_context):
    out = build_context.settings.out_path
    (out / "MyModule").mkdir(parents=True)
    builtin_tasks.clean(build_context)
    assert not out.exists()


def test_clean_without_output_is_fine(build_context, capsys):
    builtin_tasks.clean(build_context)
    builtin_tasks.clean(build_context)
    assert "SKIPPED: Clean" in capsys.readouterr().out


# ── Publish ──────────────────────────────────────────────────────────


def test_publish_runs_from_source_dir_and_restores_cwd(build_context, tools):
    s = build_context.settings
    src = s.path(s.src_dir)
    src.mkdir()
    module_src = s.path(s.module_dir)
    module_src.mkdir()
    (module_src / "MyModule.psd1").write_text("@{ ModuleVersion = '1.2.0' }")
    (module_src / "MyModule.psm1").write_text("")
    (module_src / "notes.txt").write_text("")
    build_context.configuration = "Release"

    before = os.getcwd()
    builtin_tasks.publish(build_context)

    argv, cwd = tools.calls[0]
    assert argv[:2] == ["dotnet", "publish"]
    assert argv[argv.index("--configuration") + 1] == "Release"
    assert argv[argv.index("--output") + 1] == str(s.module_out_path)
    assert Path(cwd) == src.resolve()
    assert os.getcwd() == before
    assert (s.module_out_path / "MyModule.psd1").is_file()
    assert (s.module_out_path / "MyModule.psm1").is_file()
    assert not (s.module_out_path / "notes.txt").exists()


def test_publish_restores_cwd_on_failure(build_context, tools):
    s = build_context.settings
    s.path(s.src_dir).mkdir()
    tools.fail_on = "publish"

    before = os.getcwd()
    with pytest.raises(ToolFailure):
        builtin_tasks.publish(build_context)
    assert os.getcwd() == before


def test_publish_with_nothing_to_publish(build_context, tools):
    with pytest.raises(BuildError, match="nothing_to_publish"):
        builtin_tasks.publish(build_context)


# ── Package ──────────────────────────────────────────────────────────


def test_package_unregisters_feed_when_publish_fails(build_context, tools):
    tools.fail_on = "Publish-PSResource"

    with pytest.raises(ToolFailure):
        builtin_tasks.package(build_context)

    scripts = tools.scripts()
    assert scripts[0].startswith("Register-PSResourceRepository")
    assert scripts[1].startswith("Publish-PSResource")
    assert scripts[2].startswith("Unregister-PSResourceRepository -Name 'psbuild-local'")


def test_package_success_checks_archive(build_context, tools):
    s = build_context.settings
    s.prerelease = "beta1"

    def _publish(argv):
        if "Publish-PSResource" in argv[-1]:
            (s.out_path / "MyModule.1.2.0-beta1.nupkg").write_text("pkg")

    tools.on_call = _publish
    builtin_tasks.package(build_context)

    assert [sc.split(" ", 1)[0] for sc in tools.scripts()] == [
        "Register-PSResourceRepository",
        "Publish-PSResource",
        "Unregister-PSResourceRepository",
    ]


def test_package_missing_archive(build_context, tools):
    with pytest.raises(BuildError, match="package_missing"):
        builtin_tasks.package(build_context)
    assert tools.scripts()[-1].startswith("Unregister-PSResourceRepository")


# ── Help ─────────────────────────────────────────────────────────────


def test_external_help_skipped_without_docs(build_context, tools):
    builtin_tasks.external_help(build_context)
    assert tools.calls == []


def test_external_help_writes_into_culture_dir(build_context, tools):
    s = build_context.settings
    s.path(s.docs_dir).mkdir()
    builtin_tasks.external_help(build_context)
    script = tools.scripts()[0]
    assert "New-ExternalHelp" in script
    assert str(s.module_out_path / "en-US") in script


def test_markdown_help_needs_built_module(build_context, tools):
    with pytest.raises(BuildError, match="module_not_built"):
        builtin_tasks.markdown_help(build_context)


def test_markdown_help_new_then_update(build_context, tools):
    s = build_context.settings
    s.module_out_path.mkdir(parents=True)
    (s.module_out_path / "MyModule.psd1").write_text("@{}")

    builtin_tasks.markdown_help(build_context)
    assert "New-MarkdownHelp -Module 'MyModule'" in tools.scripts()[-1]

    (s.path(s.docs_dir) / "Get-Thing.md").write_text("# Get-Thing")
    builtin_tasks.markdown_help(build_context)
    assert "Update-MarkdownHelpModule" in tools.scripts()[-1]


# ── Tests ────────────────────────────────────────────────────────────


def test_build_test_projects(build_context, tools):
    s = build_context.settings
    proj_dir = s.path(s.test_dir) / "tools"
    proj_dir.mkdir(parents=True)
    (proj_dir / "TestHelper.csproj").write_text("<Project />")

    before = os.getcwd()
    builtin_tasks.build_test_projects(build_context)

    argv, cwd = tools.calls[0]
    assert argv == ["dotnet", "build", "--configuration", "Debug", "TestHelper.csproj"]
    assert Path(cwd) == proj_dir.resolve()
    assert os.getcwd() == before


def test_pester_script_without_tags(build_context):
    script = builtin_tasks.pester_script(build_context)
    assert "Filter.Tag" not in script
    assert "'NUnitXml'" in script
    assert str(build_context.settings.test_results_path / "TestResults.xml") in script


def test_pester_script_passes_tags_through(build_context):
    build_context.tag_filter = ("Unit", "it's")
    script = builtin_tasks.pester_script(build_context)
    assert "$c.Filter.Tag = @('Unit', 'it''s')" in script


def test_run_pester_tests_creates_results_dir(build_context, tools):
    s = build_context.settings
    s.path(s.test_dir).mkdir()
    builtin_tasks.run_pester_tests(build_context)
    assert s.test_results_path.is_dir()
    assert "Invoke-Pester" in tools.scripts()[0]


def test_pester_env_has_module_paths(build_context):
    env = build_context.pwsh_env()
    parts = env["PSModulePath"].split(":")
    assert parts[0] == str(build_context.settings.out_path)
    assert parts[1].endswith(os.path.join(".psbuild", "modules"))
