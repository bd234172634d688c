"""Unified Rich theme and reusable UI helper functions for the CLI."""

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from models.enums import LifecycleState
from tools.text_utils import preview

STORY_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "stat.label": "dim",
    "stat.value": "bold",
    "chapter.num": "blue",
    "words.ok": "green",
    "words.off": "bold yellow",
})

_STATE_STYLES = {
    LifecycleState.EMPTY: "muted",
    LifecycleState.GENERATING: "accent",
    LifecycleState.PROMPT_PENDING: "warning",
    LifecycleState.GENERATED: "success",
    LifecycleState.EDITING: "info",
    LifecycleState.DRAFT: "info",
}


def get_console() -> Console:
    """Return a Console instance with the story theme applied."""
    return Console(theme=STORY_THEME)


def app_header(title: str = "ChapterSmith") -> Rule:
    """Return a Rule element for the application header banner."""
    return Rule(title=f"[bold]{title}[/]", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "New project").
        fields: Ordered dict of label -> value pairs.
    """
    lines = []
    for label, value in fields.items():
        lines.append(f"  [stat.label]{label}:[/] [stat.value]{value}[/]")
    body = "\n".join(lines)
    return Panel(body, title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def prompt_panel(chapter_num: int, prompt: str, copied: bool) -> Panel:
    """Return a Panel telling the user what to do with a prompt."""
    if copied:
        head = "[success]Prompt copied to clipboard.[/]"
    else:
        head = "[warning]Prompt could not be copied; it is shown below.[/]"
    body = (
        f"{head}\n"
        "Run it through your model, then save the result with "
        "[info]chaptersmith edit[/].\n\n"
        f"[muted]{escape(preview(prompt, 400) if copied else prompt)}[/]"
    )
    return Panel(body, title=f"[bold]Chapter {chapter_num} prompt[/]", box=box.ROUNDED, border_style="yellow", padding=(0, 2))


def word_count_text(words: int, in_range: bool) -> str:
    style = "words.ok" if in_range else "words.off"
    return f"[{style}]{words:,}[/]"


def chapters_table(views: list, word_min: int, word_max: int) -> Table:
    """Build a Rich Table of chapter display rows.

    Args:
        views: List of ChapterView rows.
        word_min: Lower bound of the target word band, for the caption.
        word_max: Upper bound of the target word band, for the caption.
    """
    table = Table(
        box=box.ROUNDED,
        border_style="dim",
        show_header=True,
        padding=(0, 1),
        caption=f"[muted]target {word_min:,}–{word_max:,} words[/]",
    )
    table.add_column("#", style="chapter.num", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("State")
    table.add_column("POV")
    table.add_column("Words", justify="right")

    for v in views:
        state_style = _STATE_STYLES.get(v.state, "white")
        pov = v.pov.value + (" [accent](manual)[/]" if v.pov_overridden else "")
        title = escape(v.title) if v.title else "[muted]untitled[/]"
        table.add_row(
            str(v.number),
            title,
            f"[{state_style}]{v.state.value}[/]",
            pov,
            word_count_text(v.words, v.in_range),
        )
    return table


def projects_table(projects: list) -> Table:
    """Build a Rich Table listing projects."""
    table = Table(title="Projects", show_lines=True, border_style="dim")
    table.add_column("ID", style="chapter.num")
    table.add_column("Name", style="bold")
    table.add_column("Chapters", justify="right")
    table.add_column("POV mode")
    table.add_column("Tags", style="muted")

    for p in projects:
        table.add_row(
            p.id,
            p.name,
            str(p.chapter_count),
            p.pov_mode.value,
            ", ".join(p.tags),
        )
    return table


def chapter_panel(chapter, pov: str, in_range: bool) -> Panel:
    """Return a Panel showing a chapter's text."""
    body = Text(chapter.content) if chapter.content else "[muted]Not generated yet. Run generate to create this chapter.[/]"
    subtitle = f"POV: {pov} | words: {word_count_text(chapter.words, in_range)}"
    title = f"Chapter {chapter.number}" + (f": {escape(chapter.title)}" if chapter.title else "")
    return Panel(body, title=f"[bold]{title}[/]", subtitle=subtitle, box=box.ROUNDED, border_style="dim", padding=(0, 2))
