"""
Typer CLI for the adaptive practice scheduler.

Commands:
    practice classify TEXT       - Classify a problem's topic
    practice mastery TURNS       - Classify the mastery of one attempt
    practice record TEXT         - Record a solved problem and reschedule its topic
    practice due                 - Show due and upcoming reviews
    practice plan                - Compose a mixed practice session
    practice tier                - Show the learner's performance tier
    practice progress            - Show topic strength and trends
    practice reset               - Delete the local progress file

Usage:
    practice --help
    practice classify "Solve x^2 - 5x + 6 > 0" --explain
    practice record "Solve 2x + 3 = 7" --turns 4
    practice plan --count 6 --seed 42
"""

from __future__ import annotations

import random
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from adaptive_scheduler.classification import (
    SemanticTopicClassifier,
    build_topic_classifier,
    classify_topic_with_confidence,
    explain_topic_classification,
)
from adaptive_scheduler.cli.progress_store import ProgressStore
from adaptive_scheduler.core.errors import SchedulerError
from adaptive_scheduler.core.mastery import AttemptOutcome, MasteryClassifier, StruggleData
from adaptive_scheduler.core.topics import MathTopic, utc_now
from adaptive_scheduler.study.adaptive_intervals import (
    compute_adaptive_tier,
    get_adaptive_new_topic_schedule,
    initial_schedule_for_tier,
    should_use_adaptive_intervals,
)
from adaptive_scheduler.study.prioritizer import (
    PracticePrioritizer,
    PrioritizationConfig,
    plan_for_new_learner,
    suggest_session_size,
)
from adaptive_scheduler.study.progress import (
    analyze_topic_progress,
    identify_strong_topics,
    identify_weak_topics,
    recommend_next_topic,
)
from adaptive_scheduler.study.spaced_repetition import (
    SM2Scheduler,
    get_topics_due_for_review,
    get_upcoming_reviews,
    is_topic_lapsed,
)
from config import get_settings

app = typer.Typer(
    help="Adaptive practice scheduler: mastery, topics, SM-2 reviews and mixed practice",
    no_args_is_help=True,
)

console = Console()

MASTERY_STYLES = {
    "mastered": "green",
    "competent": "yellow",
    "struggling": "red",
}


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )


def _store(ctx: typer.Context) -> ProgressStore:
    return ctx.obj["store"]


def _fmt_date(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


@app.callback()
def main_callback(
    ctx: typer.Context,
    store_path: Optional[Path] = typer.Option(
        None, "--store", help="Progress file (defaults to PROGRESS_STORE_PATH)"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"
    ),
):
    """Adaptive practice scheduler."""
    settings = get_settings()
    _configure_logging((log_level or settings.log_level).upper())
    ctx.obj = {
        "settings": settings,
        "store": ProgressStore(store_path or settings.progress_store_path),
    }


# ========================================
# Classification
# ========================================


@app.command("classify")
def classify_command(
    text: str = typer.Argument(..., help="Problem text"),
    explain: bool = typer.Option(False, "--explain", help="Show keyword scoring breakdown"),
    semantic: bool = typer.Option(
        False, "--semantic", help="Use the external classifier when configured"
    ),
):
    """Classify a problem into a topic."""
    if semantic:
        classifier = build_topic_classifier()
        try:
            topic = classifier.classify(text)
        finally:
            if isinstance(classifier, SemanticTopicClassifier):
                classifier.close()
        console.print(f"Topic: [bold cyan]{topic.value}[/bold cyan]")
        return

    result = classify_topic_with_confidence(text)
    console.print(f"Topic: [bold cyan]{result.topic.value}[/bold cyan]")
    console.print(f"Confidence: {result.confidence:.2f}")
    if result.alternatives:
        console.print(f"Alternatives: {', '.join(t.value for t in result.alternatives)}")

    if explain:
        console.print()
        console.print(explain_topic_classification(text))


@app.command("mastery")
def mastery_command(
    turns: int = typer.Argument(..., help="Dialogue turns taken"),
    steps: Optional[int] = typer.Option(None, "--steps", help="Steps in the solution approach"),
    hints: int = typer.Option(0, "--hints", help="Hints requested"),
    mistakes: int = typer.Option(0, "--mistakes", help="Incorrect attempts"),
    clarifications: int = typer.Option(0, "--clarifications", help="Clarification requests"),
    problem_type: Optional[str] = typer.Option(None, "--type", help="Problem type, e.g. 'Calculus'"),
):
    """Classify the mastery of one attempt."""
    classifier = MasteryClassifier.from_settings()
    struggle = None
    if hints or mistakes or clarifications:
        struggle = StruggleData(
            hints_requested=hints,
            incorrect_attempts=mistakes,
            clarification_requests=clarifications,
        )

    mastery = classifier.classify(turns, step_count=steps, struggle_data=struggle, problem_type=problem_type)
    style = MASTERY_STYLES[mastery.value]
    console.print(f"Mastery: [bold {style}]{mastery.value}[/bold {style}] (quality {mastery.quality})")
    if struggle is not None:
        console.print(f"Struggle penalty: {classifier.struggle_penalty(struggle):.2f}")


# ========================================
# Scheduling
# ========================================


@app.command("record")
def record_command(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Problem text"),
    turns: int = typer.Option(..., "--turns", help="Dialogue turns taken"),
    steps: Optional[int] = typer.Option(None, "--steps", help="Steps in the solution approach"),
    hints: int = typer.Option(0, "--hints", help="Hints requested"),
    mistakes: int = typer.Option(0, "--mistakes", help="Incorrect attempts"),
    topic: Optional[str] = typer.Option(None, "--topic", help="Topic label (skips classification)"),
):
    """Record a solved problem and reschedule its topic."""
    settings = ctx.obj["settings"]
    store = _store(ctx)

    if topic:
        try:
            resolved = MathTopic.parse(topic)
        except SchedulerError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
    else:
        classifier = build_topic_classifier()
        try:
            resolved = classifier.classify(text)
        finally:
            if isinstance(classifier, SemanticTopicClassifier):
                classifier.close()

    struggle = StruggleData(hints_requested=hints, incorrect_attempts=mistakes) if hints or mistakes else None
    mastery = MasteryClassifier.from_settings().classify(turns, step_count=steps, struggle_data=struggle)

    snapshot = store.load()
    previous = snapshot.state_for(resolved)

    initial = None
    if previous is None and should_use_adaptive_intervals(snapshot.states, snapshot.attempts):
        tier = compute_adaptive_tier(
            snapshot.states,
            snapshot.attempts,
            recent_window=settings.adaptive_recent_window,
            min_attempts=settings.adaptive_min_attempts,
        )
        initial = get_adaptive_new_topic_schedule(tier, mastery)

    now = utc_now()
    state = SM2Scheduler.from_settings().compute_next_schedule(
        previous, mastery, topic=resolved, now=now, initial=initial
    )
    store.record(
        state,
        AttemptOutcome(
            problem_text=text,
            turns_taken=turns,
            struggle_data=struggle,
            step_count=steps,
            topic=resolved.value,
            mastery_level=mastery,
            created_at=now,
        ),
    )

    style = MASTERY_STYLES[mastery.value]
    table = Table(title=f"Recorded: {resolved.display_name}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Mastery", f"[{style}]{mastery.value}[/{style}]")
    table.add_row("Strength", f"{state.strength:.2f}")
    table.add_row("Ease factor", f"{state.ease_factor:.2f}")
    table.add_row("Interval", f"{state.interval_days} days")
    table.add_row("Reviews", str(state.review_count))
    table.add_row("Next review", _fmt_date(state.next_review))
    console.print(table)


@app.command("due")
def due_command(
    ctx: typer.Context,
    days: int = typer.Option(7, "--days", help="Look-ahead for upcoming reviews"),
):
    """Show due and upcoming reviews."""
    snapshot = _store(ctx).load()
    now = utc_now()
    due = get_topics_due_for_review(snapshot.states, now)
    upcoming = get_upcoming_reviews(snapshot.states, days_ahead=days, now=now)

    if not due and not upcoming:
        console.print("[dim]Nothing due.[/dim]")
        return

    table = Table(title="Reviews")
    table.add_column("Topic", style="cyan")
    table.add_column("Status")
    table.add_column("Next review")
    table.add_column("Strength", justify="right")
    for state in due:
        status = "[red]lapsed[/red]" if is_topic_lapsed(state, now) else "[yellow]due[/yellow]"
        table.add_row(state.topic.value, status, _fmt_date(state.next_review), f"{state.strength:.2f}")
    for state in upcoming:
        table.add_row(state.topic.value, "[dim]upcoming[/dim]", _fmt_date(state.next_review), f"{state.strength:.2f}")
    console.print(table)


@app.command("plan")
def plan_command(
    ctx: typer.Context,
    count: Optional[int] = typer.Option(None, "--count", "-n", help="Number of topics"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for a reproducible plan"),
):
    """Compose a mixed practice session."""
    snapshot = _store(ctx).load()
    config = PrioritizationConfig.from_settings()

    if not snapshot.states:
        topics = plan_for_new_learner(count or config.min_problems)
        console.print("[dim]No history yet, starting with foundational topics.[/dim]")
        for index, topic in enumerate(topics, start=1):
            console.print(f"{index}. {topic.display_name}")
        return

    count = count or suggest_session_size(len(snapshot.states), config)
    prioritizer = PracticePrioritizer(config=config, rng=random.Random(seed))
    plan = prioritizer.plan(
        snapshot.states,
        count,
        recent_topics=snapshot.recent_topics(config.min_spacing),
    )

    table = Table(title=f"Practice Session ({len(plan.topics)} topics)")
    table.add_column("#", justify="right")
    table.add_column("Topic", style="cyan")
    table.add_column("Reason")
    table.add_column("Strength", justify="right")
    for index, topic in enumerate(plan.topics, start=1):
        state = snapshot.state_for(topic)
        strength = f"{state.strength:.2f}" if state else "-"
        table.add_row(str(index), topic.value, plan.sources.get(topic, ""), strength)
    console.print(table)

    if plan.spacing_violations:
        console.print(f"[yellow]{plan.spacing_violations} spacing violation(s) unavoidable[/yellow]")


@app.command("tier")
def tier_command(ctx: typer.Context):
    """Show the learner's performance tier and starting parameters."""
    settings = ctx.obj["settings"]
    snapshot = _store(ctx).load()
    tier = compute_adaptive_tier(
        snapshot.states,
        snapshot.attempts,
        recent_window=settings.adaptive_recent_window,
        min_attempts=settings.adaptive_min_attempts,
    )
    params = initial_schedule_for_tier(tier)
    console.print(f"Tier: [bold]{tier.value}[/bold]")
    console.print(f"New topics start at {params.interval_days} day(s), ease {params.ease_factor:.1f}")


@app.command("progress")
def progress_command(ctx: typer.Context):
    """Show topic strength, trend and the recommended next topic."""
    config = ctx.obj["settings"].get_progress_config()
    snapshot = _store(ctx).load()
    if not snapshot.states:
        console.print("[dim]No progress recorded yet.[/dim]")
        return

    table = Table(title="Topic Progress")
    table.add_column("Topic", style="cyan")
    table.add_column("Strength", justify="right")
    table.add_column("Recent", justify="right")
    table.add_column("Trend")
    table.add_column("Reviews", justify="right")
    table.add_column("Avg turns", justify="right")
    table.add_column("Next review")
    for state in sorted(snapshot.states, key=lambda s: s.strength):
        summary = analyze_topic_progress(
            state.topic,
            snapshot.attempts,
            state,
            decay_factor=config["decay_factor"],
            default_strength=config["default_strength"],
        )
        table.add_row(
            state.topic.value,
            f"{state.strength:.2f}",
            f"{summary.strength:.2f}",
            summary.trend.value,
            str(state.review_count),
            f"{summary.average_turns:.1f}",
            _fmt_date(state.next_review),
        )
    console.print(table)

    weak = identify_weak_topics(snapshot.states, config["weak_threshold"])
    strong = identify_strong_topics(snapshot.states, config["strong_threshold"])
    if weak:
        console.print(f"Weak: {', '.join(s.topic.value for s in weak)}")
    if strong:
        console.print(f"Strong: {', '.join(s.topic.value for s in strong)}")

    recommended = recommend_next_topic(snapshot.states, weak_threshold=config["weak_threshold"])
    if recommended:
        console.print(f"Next: [bold cyan]{recommended.value}[/bold cyan]")


@app.command("reset")
def reset_command(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete the local progress file."""
    store = _store(ctx)
    if not yes and not typer.confirm(f"Delete {store.path}?"):
        raise typer.Abort()
    if store.reset():
        console.print(f"[green]Deleted {store.path}[/green]")
    else:
        console.print("[dim]Nothing to delete.[/dim]")


def run() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    run()
