"""
Typer CLI for the adaptive tutor engine.

Commands:
    tutor db init                 - Initialize database tables
    tutor recommend USER          - Recommend a difficulty tier
    tutor quiz USER               - Plan an adaptive quiz and fetch its questions
    tutor record-quiz USER        - Record a completed quiz
    tutor calibrate USER          - Check mid-quiz difficulty calibration
    tutor weaknesses USER         - Analyze weakness areas
    tutor path USER               - Plan a learning path toward a role/company
    tutor plan USER               - Generate a weekly study plan
    tutor session list            - List stored tutoring sessions
    tutor session export ID       - Export a tutoring session as JSON
    tutor session import FILE     - Import an exported tutoring session
    tutor session cleanup         - Remove sessions past the retention window

Usage:
    tutor --help
    tutor recommend alice --domain JavaScript --company Google
    tutor record-quiz alice --domain JavaScript --company Google --difficulty Medium --correct 7 --total 10
    tutor plan alice --role "Backend Developer" --company Amazon --weeks 8
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from src.adaptive import (
    AdaptiveEngineError,
    DifficultyRecommender,
    DifficultyTier,
    LearningPathPlanner,
    QuizProgress,
    QuizResult,
    RealTimeCalibrator,
    SkillLevel,
    StudyPlanGenerator,
    TargetGoals,
    WeaknessAnalyzer,
)

app = typer.Typer(help="Adaptive tutor CLI: difficulty, weaknesses, learning paths and study plans")
db_app = typer.Typer(help="Database operations")
session_app = typer.Typer(help="Tutoring session storage")
app.add_typer(db_app, name="db")
app.add_typer(session_app, name="session")

console = Console()


class CLIContext:
    """
    Dependency injection container for CLI commands.

    Lazily initializes the store so commands that never touch the database
    do not open a connection.
    """

    def __init__(self):
        self.settings = get_settings()
        self._store = None
        self._session_store = None

    @property
    def store(self):
        if self._store is None:
            from src.db.performance_store import PerformanceStore

            self._store = PerformanceStore()
        return self._store

    @property
    def session_store(self):
        if self._session_store is None:
            from src.tutor.session_store import SessionStore

            self._session_store = SessionStore()
        return self._session_store


def _parse_tier(label: str) -> DifficultyTier:
    tier = DifficultyTier.parse(label)
    if tier is None:
        rprint(f"[red]Unknown difficulty:[/red] {label} (expected Easy, Medium, Hard or Expert)")
        raise typer.Exit(code=1)
    return tier


def _fail(error: Exception) -> None:
    rprint(f"[red]✗ {error}[/red]")
    raise typer.Exit(code=1)


# ========================================
# DB COMMANDS
# ========================================


@db_app.command("init")
def db_init() -> None:
    """Create the performance and learning path tables."""
    from src.db.database import init_db

    init_db()
    rprint("[bold green]✓ Database initialized[/bold green]")


# ========================================
# DIFFICULTY COMMANDS
# ========================================


@app.command("recommend")
def recommend(
    user_id: str = typer.Argument(..., help="Learner id"),
    domain: str = typer.Option(..., "--domain", "-d", help="Target domain"),
    company: str = typer.Option(..., "--company", "-c", help="Target company"),
) -> None:
    """Recommend the difficulty tier for the next quiz."""
    ctx = CLIContext()
    model = ctx.store.load(user_id)

    try:
        rec = DifficultyRecommender().recommend(model, domain, company)
    except AdaptiveEngineError as e:
        _fail(e)

    rprint(f"\n[bold]Recommended:[/bold] [{rec.recommended_difficulty.color}]{rec.recommended_difficulty.value}[/]")
    rprint(f"  Confidence: {rec.confidence:.0%}")
    rprint(f"  Expected accuracy: {rec.expected_accuracy:.0f}%")
    rprint(f"  Time to mastery: {rec.estimated_time_to_mastery}")
    rprint(f"  Alternatives: {', '.join(t.value for t in rec.alternative_difficulties) or '-'}\n")
    for line in rec.reasoning:
        rprint(f"  [dim]• {line}[/dim]")
    rprint("")

    table = Table(title="Learning Objectives", show_header=False)
    table.add_column("Objective", style="cyan")
    for objective in rec.learning_objectives:
        table.add_row(objective)
    console.print(table)


@app.command("quiz")
def quiz(
    user_id: str = typer.Argument(..., help="Learner id"),
    domain: str = typer.Option(..., "--domain", "-d", help="Target domain"),
    company: str = typer.Option(..., "--company", "-c", help="Target company"),
    role: str = typer.Option("Software Engineer", "--role", "-r", help="Target role"),
    count: int = typer.Option(None, "--count", "-n", help="Number of questions"),
) -> None:
    """Plan an adaptive quiz and fetch its questions from the question service."""
    from src.integrations.question_client import QuestionGenerationClient, QuestionGenerationError

    ctx = CLIContext()
    model = ctx.store.load(user_id)
    question_count = count or ctx.settings.default_question_count

    async def _generate():
        async with QuestionGenerationClient.from_settings() as client:
            return await DifficultyRecommender().generate_adaptive_quiz(
                model, client, domain, company, role, question_count
            )

    try:
        plan = asyncio.run(_generate())
    except (AdaptiveEngineError, QuestionGenerationError) as e:
        _fail(e)

    rprint(f"\n[bold cyan]Adaptive quiz:[/bold cyan] {len(plan.questions)} questions")
    rprint(f"  Progression: {' → '.join(t.value for t in plan.difficulty_progression)}")
    rprint(f"  Focus areas: {', '.join(plan.focus_areas) or '-'}\n")

    table = Table(show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Difficulty")
    table.add_column("Question")
    for index, question in enumerate(plan.questions, 1):
        table.add_row(str(index), question.difficulty.value, question.question)
    console.print(table)


@app.command("record-quiz")
def record_quiz(
    user_id: str = typer.Argument(..., help="Learner id"),
    domain: str = typer.Option(..., "--domain", "-d", help="Quiz domain"),
    company: str = typer.Option(..., "--company", "-c", help="Quiz company"),
    difficulty: str = typer.Option(..., "--difficulty", help="Quiz difficulty tier"),
    correct: int = typer.Option(..., "--correct", help="Correct answers"),
    total: int = typer.Option(..., "--total", help="Total questions"),
    time_spent: list[float] = typer.Option([], "--time", "-t", help="Seconds spent per question"),
) -> None:
    """Fold a completed quiz into the learner's performance."""
    from src.db.performance_store import PerformanceStoreError

    ctx = CLIContext()
    result = QuizResult(
        domain=domain,
        company=company,
        difficulty=_parse_tier(difficulty),
        correct_answers=correct,
        total_questions=total,
        time_spent=list(time_spent),
    )

    try:
        model = ctx.store.record_quiz_result(user_id, result)
    except (ValueError, PerformanceStoreError) as e:
        _fail(e)

    table = Table(title=f"Performance: {user_id}", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Quizzes", str(model.total_quizzes))
    table.add_row("Questions", str(model.total_questions))
    table.add_row("Accuracy", f"{model.accuracy:.1f}%")
    table.add_row("Learning velocity", f"{model.learning_velocity:.0f}")
    table.add_row("Consistency", f"{model.consistency_score:.0f}")
    table.add_row("Weakness areas", str(len(model.weakness_areas)))
    console.print(table)


@app.command("calibrate")
def calibrate(
    user_id: str = typer.Argument(..., help="Learner id"),
    difficulty: str = typer.Option(..., "--difficulty", help="Current difficulty tier"),
    answered: int = typer.Option(..., "--answered", help="Questions answered so far"),
    correct: int = typer.Option(..., "--correct", help="Correct answers so far"),
    avg_time: float = typer.Option(..., "--avg-time", help="Average seconds per question"),
) -> None:
    """Check whether an in-progress quiz should change difficulty."""
    ctx = CLIContext()
    model = ctx.store.load(user_id)
    result = RealTimeCalibrator().calibrate(
        model,
        QuizProgress(
            questions_answered=answered,
            correct_answers=correct,
            average_time_per_question=avg_time,
            current_difficulty=difficulty,
        ),
    )

    if result.should_adjust:
        rprint(f"\n[bold yellow]Adjust →[/bold yellow] [{result.new_difficulty.color}]{result.new_difficulty.value}[/]")
    else:
        rprint("\n[bold green]Keep current difficulty[/bold green]")
    rprint(f"  {result.reasoning}")
    if result.time_analysis:
        rprint(f"  [dim]{result.time_analysis}[/dim]")
    rprint(f"  Confidence: {result.confidence:.0%}\n")


# ========================================
# ANALYSIS & PLANNING COMMANDS
# ========================================


@app.command("weaknesses")
def weaknesses(user_id: str = typer.Argument(..., help="Learner id")) -> None:
    """Rank the learner's weakness areas."""
    ctx = CLIContext()
    model = ctx.store.load(user_id)

    try:
        analysis = WeaknessAnalyzer().analyze(model)
    except AdaptiveEngineError as e:
        _fail(e)

    if analysis.total_weaknesses == 0:
        rprint("\n[green]No weakness areas recorded.[/green]\n")
        return

    table = Table(title="Weakness Analysis", show_header=True)
    table.add_column("Area", style="cyan")
    table.add_column("Severity")
    table.add_column("Accuracy", justify="right")
    table.add_column("Trend")
    table.add_column("Impact", justify="right")
    table.add_column("Urgency", justify="right")

    for weakness in [*analysis.critical_weaknesses, *analysis.moderate_weaknesses]:
        table.add_row(
            weakness.area,
            f"[{weakness.severity.color}]{weakness.severity.value}[/]",
            f"{weakness.accuracy:.0f}%",
            weakness.trend.direction.value,
            f"{weakness.impact_score:.0f}",
            f"{weakness.urgency_score:.0f}",
        )
    console.print(table)

    rprint(f"\n  Focus next: [bold]{', '.join(analysis.recommended_focus_areas)}[/bold]")
    rprint(f"  Analysis confidence: {analysis.analysis_confidence:.0%}\n")


@app.command("path")
def path(
    user_id: str = typer.Argument(..., help="Learner id"),
    role: str = typer.Option(..., "--role", "-r", help="Target role"),
    company: str = typer.Option(..., "--company", "-c", help="Target company"),
    save: bool = typer.Option(False, "--save", help="Store the path for tracking"),
) -> None:
    """Plan a milestone path toward a role at a company."""
    ctx = CLIContext()
    model = ctx.store.load(user_id)

    try:
        learning_path = LearningPathPlanner().plan(model, role, company)
    except AdaptiveEngineError as e:
        _fail(e)

    rprint(
        f"\n[bold cyan]{learning_path.current_level.value} → {learning_path.target_level.value}[/bold cyan]"
        f"  ({learning_path.estimated_duration})"
    )

    table = Table(show_header=True)
    table.add_column("Milestone", style="cyan")
    table.add_column("Difficulty")
    table.add_column("Accuracy", justify="right")
    table.add_column("Quizzes", justify="right")
    for milestone in learning_path.milestones:
        table.add_row(
            milestone.title,
            f"[{milestone.target_difficulty.color}]{milestone.target_difficulty.value}[/]",
            f"{milestone.required_accuracy:.0f}%",
            str(milestone.estimated_quizzes),
        )
    console.print(table)

    rprint(f"\n  Role skills: {', '.join(learning_path.role_skills)}")
    rprint(f"  Company skills: {', '.join(learning_path.company_skills)}\n")

    if save:
        ctx.store.save_learning_path(learning_path)
        rprint(f"[green]✓[/green] Saved as {learning_path.path_id}")


@app.command("plan")
def plan(
    user_id: str = typer.Argument(..., help="Learner id"),
    role: str = typer.Option(..., "--role", "-r", help="Target role"),
    company: str = typer.Option(..., "--company", "-c", help="Target company"),
    weeks: int = typer.Option(None, "--weeks", "-w", help="Timeframe in weeks"),
    current_level: str = typer.Option("Beginner", "--current-level", help="Current skill level"),
    target_level: str = typer.Option("Advanced", "--target-level", help="Target skill level"),
) -> None:
    """Generate a week-by-week study plan."""
    ctx = CLIContext()
    model = ctx.store.load(user_id)

    try:
        goals = TargetGoals(
            target_role=role,
            target_company=company,
            timeframe_weeks=weeks or ctx.settings.default_study_weeks,
            current_level=SkillLevel.parse(current_level),
            target_level=SkillLevel.parse(target_level),
        )
        study_plan = StudyPlanGenerator().generate(model, goals)
    except (ValueError, AdaptiveEngineError) as e:
        _fail(e)

    focus = study_plan.focus_distribution
    rprint(f"\n[bold cyan]Study plan[/bold cyan] ({study_plan.estimated_duration})")
    rprint(
        f"  Focus: weaknesses {focus.weakness_areas}% · strengths {focus.strength_reinforcement}% · "
        f"new topics {focus.new_topics}% · review {focus.review}%\n"
    )

    table = Table(show_header=True)
    table.add_column("Week", justify="right")
    table.add_column("Focus areas", style="cyan")
    table.add_column("Quizzes", justify="right")
    table.add_column("Easy/Med/Hard", justify="right")
    table.add_column("Practice", justify="right")
    table.add_column("Review", justify="right")
    for week in study_plan.weekly_schedule:
        mix = "/".join(f"{week.difficulty_mix[t]:.0f}" for t in (DifficultyTier.EASY, DifficultyTier.MEDIUM, DifficultyTier.HARD))
        table.add_row(
            str(week.week),
            ", ".join(week.focus_areas),
            str(week.recommended_quizzes),
            mix,
            f"{week.practice_time}m",
            f"{week.review_time}m",
        )
    console.print(table)


# ========================================
# SESSION COMMANDS
# ========================================


@session_app.command("list")
def session_list(user_id: str | None = typer.Option(None, "--user", "-u", help="Filter by learner")) -> None:
    """List stored tutoring sessions, newest first."""
    store = CLIContext().session_store
    entries = store.sessions_for_user(user_id) if user_id else store.list_sessions()

    table = Table(title="Tutoring Sessions", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("User")
    table.add_column("Problem", style="cyan")
    table.add_column("Messages", justify="right")
    table.add_column("Last activity")
    for entry in entries:
        table.add_row(
            entry.id,
            entry.user_id,
            entry.problem_title,
            str(entry.message_count),
            entry.last_activity.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@session_app.command("export")
def session_export(
    session_id: str = typer.Argument(..., help="Session id"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
) -> None:
    """Export a tutoring session as JSON."""
    data = CLIContext().session_store.export_session(session_id)
    if data is None:
        rprint(f"[red]Session not found:[/red] {session_id}")
        raise typer.Exit(code=1)

    if output:
        output.write_text(data, encoding="utf-8")
        rprint(f"[green]✓[/green] Exported to {output}")
    else:
        typer.echo(data)


@session_app.command("import")
def session_import(file: Path = typer.Argument(..., exists=True, help="Exported session JSON")) -> None:
    """Import a tutoring session from an export file."""
    from src.tutor.session_store import SessionImportError

    try:
        session = CLIContext().session_store.import_session(file.read_text(encoding="utf-8"))
    except SessionImportError as e:
        _fail(e)
    rprint(f"[green]✓[/green] Imported session {session.id} ({session.problem.title})")


@session_app.command("cleanup")
def session_cleanup() -> None:
    """Remove sessions idle longer than the retention window."""
    removed = CLIContext().session_store.cleanup_old_sessions()
    rprint(f"[green]✓[/green] Removed {removed} old sessions")


def main() -> None:
    """Entry point for the CLI."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )
    app()


if __name__ == "__main__":
    main()
