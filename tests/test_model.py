"""
Tests for the model types.
"""

import os

from psbuild.model import ProjectSettings, SearchPathContext


class TestSearchPathContext:
    def test_from_environ_splits_path(self):
        ctx = SearchPathContext.from_environ({"PATH": "/usr/bin::/bin"}, is_windows=False)
        assert ctx.entries == ["/usr/bin", "/bin"]

    def test_prepend_is_idempotent(self):
        ctx = SearchPathContext(entries=["/usr/bin"], is_windows=False)
        assert ctx.prepend("/home/me/.dotnet") is True
        assert ctx.prepend("/home/me/.dotnet/") is False
        assert ctx.entries == ["/home/me/.dotnet", "/usr/bin"]

    def test_windows_comparison_ignores_case_and_slashes(self):
        ctx = SearchPathContext(entries=[r"C:\Users\Me\AppData\Local\Microsoft\dotnet"], is_windows=True)
        assert ctx.prepend("c:/users/me/appdata/local/microsoft/dotnet/") is False
        assert ctx.path_value == r"C:\Users\Me\AppData\Local\Microsoft\dotnet"

    def test_env_does_not_touch_process_environment(self):
        before = os.environ.get("PATH")
        ctx = SearchPathContext.from_environ({"PATH": "/bin", "HOME": "/home/me"}, is_windows=False)
        ctx.prepend("/opt/dotnet")

        env = ctx.env({"DOTNET_NOLOGO": "1"})

        assert env["PATH"] == "/opt/dotnet:/bin"
        assert env["HOME"] == "/home/me"
        assert env["DOTNET_NOLOGO"] == "1"
        assert os.environ.get("PATH") == before
        assert "DOTNET_NOLOGO" not in ctx.environ


class TestProjectSettings:
    def test_layout(self, tmp_path):
        s = ProjectSettings(root=tmp_path, module_name="MyModule", module_version="1.2.0")
        assert s.module_out_path == tmp_path / "out" / "MyModule" / "1.2.0"
        assert s.test_results_path == tmp_path / "out" / "TestResults"
        assert s.package_file_name == "MyModule.1.2.0.nupkg"

    def test_prerelease_package_name(self, tmp_path):
        s = ProjectSettings(root=tmp_path, module_name="MyModule", module_version="1.2.0", prerelease="rc1")
        assert s.full_version == "1.2.0-rc1"
        assert s.package_file_name == "MyModule.1.2.0-rc1.nupkg"

    def test_absolute_paths_are_kept(self, tmp_path):
        s = ProjectSettings(root=tmp_path / "proj", module_name="M", out_dir=str(tmp_path / "artifacts"))
        assert s.out_path == tmp_path / "artifacts"
