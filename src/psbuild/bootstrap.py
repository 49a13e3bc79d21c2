# bootstrap.py
# entry point -> SDK -> helper modules -> task graph

from __future__ import annotations

from typing import Iterable, List, Optional

from .dag import TaskRegistry, resolve_order, validate_graph
from .dependencies import install_dependencies
from .manifest import read_dependency_manifest, read_sdk_requirement
from .model import BuildContext, SearchPathContext, TaskRun
from .os_packages import ensure_tool
from .project import Project
from .runner import run_task
from .toolchain import ToolchainHandle, ensure_toolchain
from .ui.console import Console, get_console


def prepare_environment(
    project: Project,
    search_path: SearchPathContext,
    *,
    install_missing: bool = True,
    console: Optional[Console] = None,
) -> ToolchainHandle:
    """Make sure the SDK and the helper modules are there before any task runs."""
    console = console or get_console()
    s = project.settings

    requirement = read_sdk_requirement(s.path(s.sdk_manifest))
    handle = ensure_toolchain(requirement, search_path, install_missing=install_missing)
    console.print_toolchain(str(handle.executable), handle.version, handle.location.value)

    requirements = s.path(s.requirements_manifest)
    if requirements.is_file():
        manifest = read_dependency_manifest(requirements)
        fetched = install_dependencies(manifest, s.path(s.modules_dir))
        if fetched:
            console.print_info(f"Fetched: {', '.join(fetched)}")
    else:
        console.print_debug(f"No dependency manifest at {requirements}")

    return handle


def required_tools(registry: TaskRegistry, order: Iterable[str]) -> List[str]:
    """Tools declared by the tasks in `order`, first use first."""
    seen: List[str] = []
    for name in order:
        for tool in registry.get(name).tools:
            if tool not in seen:
                seen.append(tool)
    return seen


def execute(
    project: Project,
    target: str,
    *,
    configuration: str = "Debug",
    tag_filter: Iterable[str] = (),
    search_path: Optional[SearchPathContext] = None,
    skip_bootstrap: bool = False,
    install_tools: bool = False,
    print_plan: bool = True,
    console: Optional[Console] = None,
) -> TaskRun:
    console = console or get_console()
    search_path = search_path or SearchPathContext.from_environ()

    ctx = BuildContext(
        settings=project.settings,
        search_path=search_path,
        configuration=configuration,
        tag_filter=tuple(tag_filter),
        console=console,
    )

    # a bad graph or unknown target fails before anything is downloaded
    validate_graph(project.registry)
    order = resolve_order(project.registry, target)

    if not skip_bootstrap:
        ctx.toolchain = prepare_environment(project, search_path, console=console)
        for tool in required_tools(project.registry, order):
            ensure_tool(tool, search_path, install_missing=install_tools)

    return run_task(project.registry, target, ctx, print_plan=print_plan)
