# cli.py
from __future__ import annotations

import subprocess
import sys
from typing import Iterable, Tuple

import click

from psbuild import settings
from psbuild.bootstrap import execute
from psbuild.git_facts.git import describe_commit, get_remote_url
from psbuild.model import CONFIGURATIONS
from psbuild.project import Project, load_project
from psbuild.builtin_tasks import DEFAULT_TASK
from psbuild.ui.console import Console, get_console, set_console


def split_tags(values: Iterable[str]) -> Tuple[str, ...]:
    """--tag-filter a --tag-filter b,c  ->  ("a", "b", "c")"""
    tags = []
    for value in values:
        for tag in value.split(","):
            tag = tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
    return tuple(tags)


def _display_name(project: Project) -> str:
    root = project.settings.root
    try:
        url = get_remote_url("origin", cwd=root)
        return url.rstrip("/").split("/")[-1].replace(".git", "")
    except (subprocess.CalledProcessError, FileNotFoundError):
        return root.name


def _print_task_list(project: Project) -> None:
    console = get_console()
    console.print_header("Tasks")
    for t in project.registry:
        needs = f" <- {', '.join(t.needs)}" if t.needs else ""
        desc = f"  {t.description}" if t.description else ""
        console.print_info(f"  {t.name}{needs}{desc}")


@click.command()
@click.option(
    "--configuration",
    type=click.Choice(CONFIGURATIONS, case_sensitive=False),
    default=settings.CONFIGURATION,
    show_default=True,
    help="Build configuration",
)
@click.option(
    "--task",
    "task_name",
    default=DEFAULT_TASK,
    show_default=True,
    help="Task to run: Build, Test, TestPackage, Docs (or one defined by the project file)",
)
@click.option(
    "--tag-filter",
    multiple=True,
    help="Only run Pester tests with one of these tags (repeatable, comma separated)",
)
@click.option("--project-root", default=settings.PROJECT_ROOT, show_default=True, help="Module project directory")
@click.option("--project-file", default=None, help="Project file (defaults to psbuild_project.py if present)")
@click.option("--skip-bootstrap", is_flag=True, default=False, help="Do not resolve/install the SDK or helper modules")
@click.option("--install-tools", is_flag=True, default=False, help="Install missing pwsh via winget/pacman")
@click.option("--print-plan/--no-print-plan", default=True, show_default=True, help="Print the resolved task order")
@click.option("--list-tasks", is_flag=True, default=False, help="List known tasks and exit")
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
def main(
    configuration,
    task_name,
    tag_filter,
    project_root,
    project_file,
    skip_bootstrap,
    install_tools,
    print_plan,
    list_tasks,
    debug,
):
    """psbuild: bootstrap the .NET SDK and build a PowerShell module."""
    console = Console(debug=debug)
    set_console(console)

    try:
        project = load_project(project_root, project_file)

        if list_tasks:
            _print_task_list(project)
            return

        s = project.settings
        commit = describe_commit(s.root)
        version = s.full_version + (f" ({commit})" if commit else "")
        console.print_run_started(
            project=_display_name(project),
            task=task_name,
            configuration=configuration,
            version=version,
        )

        run = execute(
            project,
            task_name,
            configuration=configuration,
            tag_filter=split_tags(tag_filter),
            skip_bootstrap=skip_bootstrap,
            install_tools=install_tools,
            print_plan=print_plan,
            console=console,
        )
        console.print_results(run.results)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


if __name__ == "__main__":
    main()
