"""
Tests for external tool invocation and scoped working directories.
"""

import os
import sys
from pathlib import Path

import pytest

from psbuild.errors import ToolFailure, ToolMissing
from psbuild.model import SearchPathContext
from psbuild.process import ps_array, ps_quote, pwsh_command, run_tool, scoped_cwd


def test_scoped_cwd_restores_on_error(tmp_path):
    before = os.getcwd()
    with pytest.raises(RuntimeError):
        with scoped_cwd(tmp_path) as cwd:
            assert Path(os.getcwd()) == tmp_path.resolve()
            assert cwd == tmp_path.resolve()
            raise RuntimeError("boom")
    assert os.getcwd() == before


def test_run_tool_success_captures_output():
    proc = run_tool([sys.executable, "-c", "print('hello')"])
    assert proc.stdout.strip() == "hello"


def test_run_tool_failure_carries_exit_code():
    with pytest.raises(ToolFailure) as exc:
        run_tool([sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"])
    assert exc.value.exit_code == 3
    assert exc.value.details["output"] == "bad"


def test_run_tool_unchecked_returns_process():
    proc = run_tool([sys.executable, "-c", "import sys; sys.exit(2)"], check=False)
    assert proc.returncode == 2


def test_run_tool_missing_on_search_path(tmp_path):
    ctx = SearchPathContext(entries=[str(tmp_path)], is_windows=os.name == "nt")
    with pytest.raises(ToolMissing) as exc:
        run_tool(["definitely-not-a-tool"], search_path=ctx)
    assert exc.value.tool == "definitely-not-a-tool"


def test_run_tool_missing_executable():
    with pytest.raises(ToolMissing):
        run_tool(["definitely-not-a-tool-either"])


def test_run_tool_uses_search_path_env(tmp_path):
    ctx = SearchPathContext.from_environ()
    ctx.environ["PSBUILD_MARKER"] = "42"
    proc = run_tool([sys.executable, "-c", "import os; print(os.environ['PSBUILD_MARKER'])"], search_path=ctx)
    assert proc.stdout.strip() == "42"


def test_powershell_quoting():
    assert ps_quote("it's") == "'it''s'"
    assert ps_array(["a", "b"]) == "@('a', 'b')"
    assert pwsh_command("Get-Date")[-2:] == ["-Command", "Get-Date"]
