"""Tests for echo/output.py."""

from pathlib import Path

from echo.models import ImplementationPlan, MarketingPost, Message, Summary
from echo.output import (
    _slug,
    console,
    print_message,
    print_summary,
    save_marketing_image,
    save_plan,
    save_summary,
)


def test_slug_basic():
    assert _slug("A platform for local artists?") == "a-platform-for-local-artists"


def test_slug_max_len():
    assert len(_slug("a" * 100)) <= 40


def test_save_summary_creates_markdown(tmp_path: Path, sample_summary: Summary):
    output_dir = tmp_path / "nested" / "output"

    saved = save_summary(sample_summary, output_dir, "A platform for local artists")

    assert saved.exists()
    assert saved.parent == output_dir
    assert saved.suffix == ".md"
    assert saved.name.endswith("a-platform-for-local-artists_summary.md")
    content = saved.read_text(encoding="utf-8")
    assert "# Evolving Echo Summary: A platform for local artists" in content
    assert "## Summary of Idea" in content
    assert sample_summary.summary in content
    assert "## Key Contributions" in content
    assert sample_summary.key_contributions in content


def test_save_plan_writes_every_section(tmp_path: Path):
    plan = ImplementationPlan(
        timeframe="Research: 2 weeks",
        project_phases_flowchart="Research\n  -> Design",
        cost_estimation_flowchart="Costs\n  -> API usage",
        resource_allocation="PM: oversight",
        feasibility_assessment="Feasible.",
        refined_strategy="Pilot with ten artists.",
    )

    saved = save_plan(plan, tmp_path, "A platform for local artists")

    content = saved.read_text(encoding="utf-8")
    assert saved.name.endswith("_plan.md")
    for heading in ("Timeframe", "Project Phases", "Cost Estimation", "Resource Allocation",
                    "Feasibility Assessment", "Refined Strategy"):
        assert f"## {heading}" in content
    assert "Research\n  -> Design" in content
    assert content.index("## Timeframe") < content.index("## Refined Strategy")


def test_save_marketing_image_writes_decoded_bytes(tmp_path: Path):
    post = MarketingPost(image_uri="data:image/png;base64,iVBORw0KGgo=", caption="Hi", image_keywords="art")
    output_dir = tmp_path / "nested" / "output"

    saved = save_marketing_image(post, output_dir, "Local Artists!")

    assert saved.exists()
    assert saved.parent == output_dir
    assert saved.suffix == ".png"
    assert "local-artists" in saved.name
    assert saved.read_bytes() == b"\x89PNG\r\n\x1a\n"


def test_print_message_renders_agent_and_pending(sample_agents):
    agents = {a.name: a for a in sample_agents}
    with console.capture() as capture:
        print_message(Message(1, "Claude", "Claude is thinking...", is_pending=True), agents)
        print_message(Message(2, "Claude", "Add a fair-pay pledge."), agents)
        print_message(Message(3, "User", "Voice Input: go mobile", is_user=True, is_voice_input=True), agents)
    out = capture.get()
    assert "Claude is thinking..." in out
    assert "fair-pay pledge" in out
    assert "The Ethicist" in out
    assert "go mobile" in out


def test_print_summary(sample_summary: Summary):
    with console.capture() as capture:
        print_summary(sample_summary)
    out = capture.get()
    assert "Final Evolved Idea" in out
    assert "Key Contributions" in out
