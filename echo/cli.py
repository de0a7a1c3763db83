"""Click CLI: loads config, picks providers, runs a brainstorming session, prints results."""

import asyncio
import logging
import sys
from functools import partial
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from echo.errors import EchoError
from echo.healthcheck import run_health_checks
from echo.idea_file import parse_idea_file
from echo.marketing import MarketingGenerator
from echo.models import Agent, RefinementRequest, Summary, TurnOutcome
from echo.output import (
    print_marketing,
    print_message,
    print_plan,
    print_summary,
    save_marketing_image,
    save_plan,
    save_summary,
)
from echo.plan import PlanGenerator
from echo.providers.anthropic import AnthropicProvider
from echo.providers.base import AIProvider
from echo.providers.gemini import GeminiProvider
from echo.providers.openai_provider import OpenAIProvider
from echo.providers.xai import XAIProvider
from echo.refinement import refine_idea
from echo.scheduler import RefineFn, TurnScheduler
from echo.summary import summarize_discussion
from echo.transcription import audio_file_to_data_uri, transcribe_voice_input

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "claude": AnthropicProvider,
    "grok": XAIProvider,
}

_SERVICE_CAPABILITY = {"transcriber": "transcribe", "image": "image"}

_INTERACTIVE_HELP = (
    "Commands: [bold]p[/bold] pause/resume, [bold]s[/bold] interim summary, "
    "[bold]say <text>[/bold] steer, [bold]voice <audio file>[/bold] steer by voice, [bold]q[/bold] stop"
)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_all_providers(config: AppConfig) -> dict[str, AIProvider]:
    """Build all available providers. Returns dict keyed by name."""
    providers: dict[str, AIProvider] = {}
    for name in sorted(config.available_providers):
        if name not in PROVIDER_CLASSES:
            logging.warning("Provider '%s' unknown, skipping", name)
            continue
        try:
            providers[name] = PROVIDER_CLASSES[name](config.models[name])
        except Exception as exc:
            logging.warning("Failed to instantiate provider '%s': %s", name, exc)
    return providers


def _build_agents(config: AppConfig) -> list[Agent]:
    return [
        Agent(
            id=a.id,
            name=a.name,
            role=a.role,
            provider_label=a.provider_label,
            color=a.color,
            model=a.model,
        )
        for a in config.agents
    ]


def _pick_service_provider(
    all_providers: dict[str, AIProvider],
    service: str,
    preferred: str | None,
) -> AIProvider | None:
    """Preferred provider if it can serve ``service``, else the first one that can."""
    capability = _SERVICE_CAPABILITY.get(service, "text")
    if preferred in all_providers and all_providers[preferred].supports(capability):
        return all_providers[preferred]
    for name in sorted(all_providers):
        if all_providers[name].supports(capability):
            if preferred:
                logger.info("Service %s: %s unavailable, using %s", service, preferred, name)
            return all_providers[name]
    return None


def _make_refiner(
    agents: list[Agent],
    all_providers: dict[str, AIProvider],
    default: AIProvider,
    config: AppConfig,
) -> RefineFn:
    """Route each agent's turn to its own provider, falling back to the default refiner."""
    voices = {a.name: all_providers.get(a.model or "", default) for a in agents}

    async def refine(request: RefinementRequest) -> str:
        provider = voices.get(request.agent_name, default)
        return await refine_idea(request, provider, config.prompts)

    return refine


def _check_and_filter_providers(all_providers: dict[str, AIProvider]) -> dict[str, AIProvider]:
    """Run health checks, print results, and ask the user what to do on failures."""
    console.print("\n[bold]Checking providers...[/bold]")
    results: dict[str, tuple[bool, str]] = asyncio.run(run_health_checks(all_providers))

    failed_names: list[str] = []
    for name in sorted(results):
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {short_err}")
            failed_names.append(name)

    if not failed_names:
        console.print()
        return all_providers

    working = {n: p for n, p in all_providers.items() if n not in failed_names}
    if not working:
        console.print("\n[bold red]Error:[/bold red] No providers passed the health check.")
        sys.exit(1)

    console.print(f"\n[yellow]{len(failed_names)} provider(s) failed:[/yellow] {', '.join(failed_names)}")
    console.print(f"Working providers: {', '.join(sorted(working))}")
    if not click.confirm("Continue with working providers only?", default=True):
        sys.exit(0)

    console.print()
    return working


async def _interactive_loop(
    scheduler: TurnScheduler,
    transcriber: AIProvider | None,
    config: AppConfig,
) -> None:
    """Read steering commands from stdin until the user stops or input ends."""
    console.print(_INTERACTIVE_HELP)
    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            return
        command, _, arg = line.strip().partition(" ")
        command = command.lower()
        try:
            if command in ("q", "quit", "stop"):
                return
            elif command in ("p", "pause", "resume"):
                paused = scheduler.toggle_pause()
                console.print("[yellow]Paused[/yellow]" if paused else "[green]Resumed[/green]")
            elif command in ("s", "summary"):
                summary = await scheduler.summarize_interim()
                if summary is not None:
                    print_summary(summary, title="Interim Summary")
            elif command == "say":
                scheduler.interject(arg)
            elif command == "voice":
                if transcriber is None:
                    console.print("[red]No provider supports transcription.[/red]")
                    continue
                data_uri = audio_file_to_data_uri(Path(arg).expanduser())
                text = await transcribe_voice_input(data_uri, transcriber, config.prompts)
                scheduler.interject(text)
            elif command:
                console.print(_INTERACTIVE_HELP)
        except (EchoError, OSError) as exc:
            console.print(f"[red]{exc}[/red]")


async def _run_session(
    idea: str,
    config: AppConfig,
    all_providers: dict[str, AIProvider],
    turns: int,
    interactive: bool,
    want_plan: bool,
    want_marketing: bool,
    theme: str | None,
    output_dir: Path,
) -> Summary | None:
    """Run one brainstorming session end to end. Returns the final summary, if any."""
    services = config.defaults.services
    refiner = _pick_service_provider(all_providers, "refiner", services.get("refiner"))
    summarizer = _pick_service_provider(all_providers, "summarizer", services.get("summarizer"))
    if refiner is None or summarizer is None:
        console.print("[bold red]Error:[/bold red] No text-capable provider available.")
        sys.exit(1)
    transcriber = _pick_service_provider(all_providers, "transcriber", services.get("transcriber"))

    agents = _build_agents(config)
    by_name = {a.name: a for a in agents}
    enough = asyncio.Event()

    def on_turn_complete(outcome: TurnOutcome) -> None:
        if not interactive and scheduler.run.turns_completed >= turns:
            enough.set()

    scheduler = TurnScheduler(
        agents,
        _make_refiner(agents, all_providers, refiner, config),
        partial(summarize_discussion, summarizer=summarizer, prompts=config.prompts),
        turn_delay_sec=config.scheduler.turn_delay_sec,
        initial_delay_sec=config.scheduler.initial_delay_sec,
        on_message=lambda m: print_message(m, by_name),
        on_turn_complete=on_turn_complete,
    )

    console.print(f"\n[bold cyan]Evolving Echo[/bold cyan] — {len(agents)} agents: {', '.join(by_name)}")
    console.print(f"Refiner: {refiner.name()} | Summarizer: {summarizer.name()}\n")

    scheduler.start(idea)
    if interactive:
        await _interactive_loop(scheduler, transcriber, config)
    else:
        await enough.wait()

    summary: Summary | None = None
    try:
        with console.status("Summarizing discussion..."):
            summary = await scheduler.stop()
    except EchoError as exc:
        console.print(f"[bold red]Summarization error:[/bold red] {exc}")
    await scheduler.wait_for_turn()

    if summary is not None:
        print_summary(summary)
        saved = save_summary(summary, output_dir, idea)
        console.print(f"[dim]Summary saved to: {saved}[/dim]")

    if want_plan:
        planner = _pick_service_provider(all_providers, "planner", services.get("planner"))
        try:
            with console.status("Generating implementation plan..."):
                plan = await PlanGenerator(planner or summarizer, config.prompts).generate(
                    summary.summary if summary else None
                )
            print_plan(plan)
            saved = save_plan(plan, output_dir, idea)
            console.print(f"[dim]Plan saved to: {saved}[/dim]")
        except EchoError as exc:
            console.print(f"[bold red]Plan error:[/bold red] {exc}")

    if want_marketing:
        writer = _pick_service_provider(all_providers, "marketing", services.get("marketing")) or summarizer
        illustrator = _pick_service_provider(all_providers, "image", services.get("image"))
        post_theme = theme or (summary.summary if summary else None)
        if illustrator is None:
            console.print("[bold red]Marketing error:[/bold red] No provider supports image generation.")
        else:
            try:
                with console.status("Generating marketing post..."):
                    post = await MarketingGenerator(writer, illustrator, config.prompts).generate(post_theme)
                print_marketing(post, save_marketing_image(post, output_dir, post_theme or "marketing"))
            except EchoError as exc:
                console.print(f"[bold red]Marketing error:[/bold red] {exc}")

    return summary


@click.command()
@click.argument("idea", required=False)
@click.option("--file", "idea_file", type=click.Path(exists=True), help="Read the idea from a .md file")
@click.option("--turns", default=None, type=int, help="Agent turns before stopping (default: from config)")
@click.option("--interactive", is_flag=True, help="Steer from stdin: pause, summarize, say, voice, stop")
@click.option("--plan", "want_plan", is_flag=True, help="Generate an implementation plan from the summary")
@click.option("--marketing", "want_marketing", is_flag=True, help="Generate a marketing image and caption")
@click.option("--theme", default=None, help="Marketing theme (default: the final summary)")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
def main(
    idea: str | None,
    idea_file: str | None,
    turns: int | None,
    interactive: bool,
    want_plan: bool,
    want_marketing: bool,
    theme: str | None,
    output_path: str | None,
    verbose: bool,
    skip_health_check: bool,
) -> None:
    """Evolving Echo -- a round-robin of AI personas refines your idea.

    \b
    Examples:
      python -m echo.cli "A platform for local artists" --turns 6
      python -m echo.cli "A platform for local artists" --interactive --plan
      python -m echo.cli --file idea.md --marketing
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    meta: dict = {}
    if idea_file:
        try:
            idea_text, meta = parse_idea_file(Path(idea_file))
        except ValueError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            sys.exit(1)
    elif idea:
        idea_text = idea
    else:
        console.print("[bold red]Error:[/bold red] Provide an IDEA argument or --file.")
        sys.exit(1)

    if not idea_text.strip():
        console.print("[bold red]Error:[/bold red] Please enter an idea to start the simulation.")
        sys.exit(1)

    # CLI flags win; frontmatter only fills in what the CLI left unset
    effective_turns = turns if turns is not None else int(meta.get("turns", config.defaults.turns))
    effective_output = Path(output_path) if output_path else config.defaults.output_dir

    all_providers = _build_all_providers(config)
    if not all_providers:
        console.print("[bold red]Error:[/bold red] No providers available. Check API keys in .env.")
        sys.exit(1)

    if not skip_health_check:
        all_providers = _check_and_filter_providers(all_providers)

    asyncio.run(
        _run_session(
            idea=idea_text,
            config=config,
            all_providers=all_providers,
            turns=max(1, effective_turns),
            interactive=interactive,
            want_plan=want_plan or bool(meta.get("plan", False)),
            want_marketing=want_marketing or bool(meta.get("marketing", False)),
            theme=theme or meta.get("theme"),
            output_dir=effective_output,
        )
    )


if __name__ == "__main__":
    main()
