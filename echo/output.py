"""Rich console output for transcript messages, summaries, plans and marketing posts."""

import logging
import mimetypes
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from echo.models import USER, Agent, ImplementationPlan, MarketingPost, Message, Summary
from echo.transcription import decode_data_uri

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

_PLAN_SECTIONS = (
    ("Timeframe", "timeframe"),
    ("Project Phases", "project_phases_flowchart"),
    ("Cost Estimation", "cost_estimation_flowchart"),
    ("Resource Allocation", "resource_allocation"),
    ("Feasibility Assessment", "feasibility_assessment"),
    ("Refined Strategy", "refined_strategy"),
)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def print_message(message: Message, agents: dict[str, Agent]) -> None:
    """Print one transcript entry. Pending placeholders print as a dim line."""
    if message.is_pending:
        console.print(Text(message.text, style="dim italic"))
        return

    if message.sender == USER:
        title = "[bold]You[/bold] (voice)" if message.is_voice_input else "[bold]You[/bold]"
        console.print(Panel(message.text, title=title, border_style="cyan", title_align="left"))
        return

    agent = agents.get(message.sender)
    subtitle = f"{agent.role} · {agent.provider_label}" if agent and agent.provider_label else (agent.role if agent else None)
    console.print(
        Panel(
            message.text,
            title=f"[bold]{message.sender}[/bold]",
            subtitle=subtitle,
            border_style=(agent.color if agent and agent.color else "dim"),
            title_align="left",
        )
    )


def print_summary(summary: Summary, title: str = "Final Evolved Idea") -> None:
    console.print(Rule(f"[bold green]{title}[/bold green]"))
    console.print(Markdown(f"### Summary of Idea\n\n{summary.summary}"))
    console.print(Markdown(f"### Key Contributions\n\n{summary.key_contributions}"))


def print_plan(plan: ImplementationPlan) -> None:
    console.print(Rule("[bold magenta]Implementation Plan[/bold magenta]"))
    for heading, attr in _PLAN_SECTIONS:
        console.print(Panel(getattr(plan, attr), title=f"[bold]{heading}[/bold]", border_style="magenta"))


def _write_markdown(lines: list[str], output_dir: Path, stem: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_dir / f"{timestamp}_{stem}.md"
    filepath.write_text("\n".join(lines), encoding="utf-8")
    return filepath


def save_summary(summary: Summary, output_dir: Path, idea: str) -> Path:
    """Save the final summary as a markdown file.

    Args:
        summary: The final Summary of the run.
        output_dir: Directory to save the file in. Created if missing.
        idea: The idea the run started from; names the file.

    Returns:
        Path to the saved file.
    """
    lines = [
        f"# Evolving Echo Summary: {idea.strip()[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "---",
        "",
        "## Summary of Idea",
        "",
        summary.summary,
        "",
        "## Key Contributions",
        "",
        summary.key_contributions,
        "",
    ]
    filepath = _write_markdown(lines, output_dir, f"{_slug(idea) or 'idea'}_summary")
    logger.info("Summary saved to: %s", filepath)
    return filepath


def save_plan(plan: ImplementationPlan, output_dir: Path, idea: str) -> Path:
    """Save the implementation plan as a markdown file, one section per field."""
    lines = [
        f"# Implementation Plan: {idea.strip()[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "",
    ]
    for heading, attr in _PLAN_SECTIONS:
        lines += [f"## {heading}", "", getattr(plan, attr), ""]
    filepath = _write_markdown(lines, output_dir, f"{_slug(idea) or 'idea'}_plan")
    logger.info("Implementation plan saved to: %s", filepath)
    return filepath


def save_marketing_image(post: MarketingPost, output_dir: Path, theme: str) -> Path:
    """Write the generated image next to other session output and return its path."""
    mime_type, data = decode_data_uri(post.image_uri)
    extension = mimetypes.guess_extension(mime_type) or ".png"
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = output_dir / f"{timestamp}_{_slug(theme) or 'marketing'}{extension}"
    path.write_bytes(data)
    logger.info("Marketing image saved to: %s", path)
    return path


def print_marketing(post: MarketingPost, image_path: Path | None) -> None:
    console.print(Rule("[bold yellow]Marketing Post[/bold yellow]"))
    console.print(Text(f"Image keywords: {post.image_keywords}", style="dim"))
    if image_path is not None:
        console.print(Text(f"Image: {image_path}", style="dim"))
    console.print(Panel(post.caption, title="[bold]Caption[/bold]", border_style="yellow"))
