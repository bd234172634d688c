"""CLI entry point — ChapterSmith story builder.

Usage:
  chaptersmith new -n "Title" -o outline.md -c 4 --pov dual
  chaptersmith projects
  chaptersmith chapters -p <id>
  chaptersmith generate -p <id> -c 2
  chaptersmith edit -p <id> -c 2 [--file chapter2.txt]
  chaptersmith --help
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import click
from rich.markup import escape

from cli.theme import (
    get_console,
    app_header,
    command_panel,
    success_panel,
    prompt_panel,
    chapters_table,
    projects_table,
    chapter_panel,
    word_count_text,
)
from config.exceptions import ChapterSmithError, InvalidConfigError, NoActiveProjectError
from config.logging_config import setup_logging
from config.settings import get_settings
from models.chapter import Chapter
from models.enums import Pov, PovMode
from models.project import MAX_CHAPTERS, MIN_CHAPTERS, Project
from tools.backend_client import BackendClient
from workflow.orchestrator import OutcomeKind
from workflow.workspace import WorkspaceController

console = get_console()
logger = logging.getLogger(__name__)

T = TypeVar("T")


class RichCallback:
    """Workspace callback that reports to the terminal."""

    def __init__(self, console):
        self.console = console
        self._reported: set[int] = set()

    def was_reported(self, error: Exception) -> bool:
        return id(error) in self._reported

    def on_chapters_loaded(self, project: Project, chapters: list[Chapter]) -> None:
        logger.debug("Loaded %d chapters for %s", len(chapters), project.id)

    def on_chapter_updated(self, chapter: Chapter, in_range: bool) -> None:
        if not in_range:
            self.console.print(
                f"[warning]Chapter {chapter.number} has {chapter.words:,} words, "
                f"outside the target range.[/]"
            )

    def on_prompt_ready(self, chapter_num: int, prompt: str, copied: bool) -> None:
        self.console.print(prompt_panel(chapter_num, prompt, copied))

    def on_error(self, action: str, error: Exception) -> None:
        self._reported.add(id(error))
        self.console.print(f"[error]{escape(action)} failed: {escape(str(error))}[/]")


def _init_logging(verbose: bool):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    try:
        settings = get_settings()
    except InvalidConfigError as e:
        console.print(f"[error]{escape(str(e))}[/]")
        sys.exit(1)
    setup_logging(level=level, log_dir=settings.log_dir)


async def _open(workspace: WorkspaceController, project_id: str) -> Project:
    """Find a project by id and open it in the workspace."""
    for project in await workspace.list_projects():
        if project.id == project_id:
            await workspace.open_project(project)
            return project
    raise NoActiveProjectError(f"Project {project_id} not found")


def _execute(
    action: Callable[[WorkspaceController], Awaitable[T]],
    project_id: Optional[str] = None,
) -> T:
    """Run ``action`` inside a workspace session, exiting 1 on failure."""
    settings = get_settings()
    callback = RichCallback(console)

    async def _session() -> T:
        async with BackendClient(settings) as backend:
            workspace = WorkspaceController(backend, settings=settings, callback=callback)
            try:
                if project_id is not None:
                    await _open(workspace, project_id)
                return await action(workspace)
            finally:
                workspace.close()

    try:
        return asyncio.run(_session())
    except ChapterSmithError as e:
        if not callback.was_reported(e):
            console.print(f"[error]{escape(str(e))}[/]")
        sys.exit(1)


def _show_chapters(workspace: WorkspaceController) -> None:
    settings = workspace.settings
    console.print(chapters_table(workspace.chapter_views(), settings.word_count_min, settings.word_count_max))
    summary = workspace.store.summary()
    console.print(
        f"[stat.label]Total:[/] [stat.value]{summary['total_words']:,}[/] words  "
        f"[muted]|[/]  [stat.label]In range:[/] [stat.value]{summary['in_range']}/{summary['chapters']}[/]"
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """ChapterSmith — turn an outline into a complete 3–6 chapter story.

    \b
    Generation runs on the story backend (CHAPTERSMITH_BACKEND_URL).
    When the backend has no model configured, the chapter prompt is
    copied to your clipboard instead; run it through your own model and
    save the result with `chaptersmith edit`.
    """
    _init_logging(verbose)


# ---------------------------------------------------------------------------
# Project commands
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--name", "-n", default="New Project", show_default=True, help="Project name")
@click.option("--outline", "-o", "outline_file", required=True, type=click.File("r", encoding="utf-8"),
              help="Outline file ('-' for stdin)")
@click.option("--chapters", "-c", default=MIN_CHAPTERS, show_default=True,
              type=click.IntRange(MIN_CHAPTERS, MAX_CHAPTERS), help="Number of chapters")
@click.option("--pov", "pov_mode", default=PovMode.FEMALE.value, show_default=True,
              type=click.Choice([m.value for m in PovMode]), help="POV mode")
@click.option("--default-pov", default=None, type=click.Choice([p.value for p in Pov]),
              help="Default POV for single-POV projects")
@click.option("--rules", "rules_file", default=None, type=click.File("r", encoding="utf-8"),
              help="File with one generation rule per line (replaces the presets)")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable)")
def new(name, outline_file, chapters, pov_mode, default_pov, rules_file, tags):
    """Create a project and initialize its chapters.

    Examples:
      chaptersmith new -n "Harbor Lights" -o outline.md -c 4 --pov dual
    """
    outline = outline_file.read()
    rules = None
    if rules_file is not None:
        rules = [line.strip() for line in rules_file if line.strip()]

    console.print(app_header())
    console.print(command_panel("New project", {
        "Name": escape(name),
        "Chapters": str(chapters),
        "POV mode": pov_mode,
        "Rules": "custom" if rules is not None else "presets",
    }))

    async def _create(workspace: WorkspaceController) -> Project:
        project = await workspace.create_project(
            name, outline, chapters, pov_mode, default_pov, rules=rules, tags=list(tags),
        )
        await workspace.open_project(project)
        console.print(success_panel("Project created", f"  [stat.label]ID:[/] [stat.value]{project.id}[/]"))
        _show_chapters(workspace)
        return project

    _execute(_create)


@cli.command()
def projects():
    """List all projects."""
    async def _list(workspace: WorkspaceController) -> list[Project]:
        return await workspace.list_projects()

    items = _execute(_list)
    if not items:
        console.print("[warning]No projects yet. Use [info]chaptersmith new[/] to create one.[/]")
        return
    console.print(projects_table(items))


@cli.command()
@click.option("--project", "-p", "project_id", required=True, help="Project ID")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
def delete(project_id, force):
    """Delete a project and all of its chapters."""
    if not force and not click.confirm(f"Delete project {project_id}? This cannot be undone", default=False):
        console.print("[warning]Cancelled[/]")
        return

    async def _delete(workspace: WorkspaceController) -> None:
        await workspace.delete_project(project_id)

    _execute(_delete)
    console.print(f"[success]Deleted project {escape(project_id)}[/]")


# ---------------------------------------------------------------------------
# Chapter commands
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--project", "-p", "project_id", required=True, help="Project ID")
def chapters(project_id):
    """Show the chapters of a project."""
    async def _show(workspace: WorkspaceController) -> None:
        _show_chapters(workspace)

    _execute(_show, project_id)


@cli.command()
@click.option("--project", "-p", "project_id", required=True, help="Project ID")
@click.option("--chapter", "-c", "number", required=True, type=int, help="Chapter number")
@click.option("--json", "as_json", is_flag=True, help="Print the chapter record as JSON")
def show(project_id, number, as_json):
    """Print one chapter's text."""
    async def _show(workspace: WorkspaceController) -> None:
        chapter = workspace.store.get(number)
        pov = workspace.resolved_pov(number).value
        in_range = workspace.store.in_range(chapter)
        if as_json:
            record = chapter.to_dict()
            record.update(resolved_pov=pov, in_range=in_range)
            click.echo(json.dumps(record, ensure_ascii=False, indent=2))
            return
        console.print(chapter_panel(chapter, pov, in_range))

    _execute(_show, project_id)


@cli.command()
@click.option("--project", "-p", "project_id", required=True, help="Project ID")
@click.option("--chapter", "-c", "number", required=True, type=int, help="Chapter number")
def generate(project_id, number):
    """Generate a chapter on the backend."""
    async def _generate(workspace: WorkspaceController) -> None:
        with console.status(f"Generating chapter {number}..."):
            outcome = await workspace.generate(number)
        if outcome.kind == OutcomeKind.CONTENT:
            chapter = outcome.chapter
            console.print(
                f"[success]Chapter {number} generated[/] "
                f"[muted](POV {outcome.pov.value})[/] — "
                f"{word_count_text(chapter.words, workspace.store.in_range(chapter))} words"
            )
        elif outcome.kind == OutcomeKind.SUPERSEDED:
            console.print(f"[warning]Chapter {number}: response discarded[/]")

    _execute(_generate, project_id)


@cli.command()
@click.option("--project", "-p", "project_id", required=True, help="Project ID")
@click.option("--chapter", "-c", "number", required=True, type=int, help="Chapter number")
def prompt(project_id, number):
    """Copy a chapter's generation prompt to the clipboard."""
    async def _prompt(workspace: WorkspaceController) -> None:
        await workspace.build_prompt(number)

    _execute(_prompt, project_id)


@cli.command()
@click.option("--project", "-p", "project_id", required=True, help="Project ID")
@click.option("--chapter", "-c", "number", required=True, type=int, help="Chapter number")
@click.option("--title", default=None, help="New chapter title")
@click.option("--file", "source", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Read chapter text from a file instead of opening $EDITOR")
def edit(project_id, number, title, source):
    """Edit a chapter and save it as a draft.

    Examples:
      chaptersmith edit -p 1 -c 2                  # open $EDITOR
      chaptersmith edit -p 1 -c 2 --file ch2.txt   # paste from a file
    """
    async def _edit(workspace: WorkspaceController) -> None:
        buffer = workspace.edit(number)
        if source is not None:
            content = source.read_text(encoding="utf-8")
        else:
            content = click.edit(buffer.content, extension=".md")
        if content is None and title is None:
            workspace.cancel_edit(number)
            console.print("[warning]No changes; edit cancelled[/]")
            return
        workspace.update_draft(number, title=title, content=content)
        chapter = await workspace.save(number)
        if chapter is not None:
            console.print(
                f"[success]Chapter {number} saved as draft[/] — "
                f"{word_count_text(chapter.words, workspace.store.in_range(chapter))} words"
            )

    _execute(_edit, project_id)


@cli.command()
@click.option("--project", "-p", "project_id", required=True, help="Project ID")
@click.option("--chapter", "-c", "number", required=True, type=int, help="Chapter number")
@click.argument("pov", type=click.Choice([p.value for p in Pov]))
def pov(project_id, number, pov):
    """Override a chapter's POV."""
    async def _set(workspace: WorkspaceController) -> None:
        chapter = await workspace.set_pov_override(number, pov)
        if chapter is not None:
            console.print(f"[success]Chapter {number} POV set to {pov}[/]")

    _execute(_set, project_id)


@cli.command()
@click.option("--project", "-p", "project_id", required=True, help="Project ID")
@click.option("--chapter", "-c", "number", required=True, type=int, help="Chapter number")
def copy(project_id, number):
    """Copy a chapter (title and text) to the clipboard."""
    async def _copy(workspace: WorkspaceController) -> None:
        await workspace.copy_chapter(number)
        console.print(f"[success]Chapter {number} copied to clipboard[/]")

    _execute(_copy, project_id)


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
