"""
LSF Exercises CLI.

Commands:
    lsf-exercises generate --type MultipleChoice --level A1 --difficulty 0.2
    lsf-exercises concepts --level A1 --category politesse
    lsf-exercises stats
"""

from __future__ import annotations

import asyncio
import json
import random
import sys
from typing import Any, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from lsf_exercises.core.errors import ExerciseError
from lsf_exercises.core.levels import parse_level
from lsf_exercises.core.models import Exercise, ExerciseType
from lsf_exercises.data import ConceptSearchCriteria, build_concept_provider
from lsf_exercises.generation import ExerciseGeneratorService

app = typer.Typer(
    help="Adaptive LSF exercise generation",
    no_args_is_help=True,
)

console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


# =============================================================================
# Rendering
# =============================================================================


def _render_exercise(exercise: Exercise) -> None:
    content = exercise.content
    lines = []
    prompt = content.get("question") or content.get("instructions") or ""
    if prompt:
        lines.append(f"[bold]{prompt}[/bold]")

    if exercise.type == ExerciseType.MULTIPLE_CHOICE:
        for option in content["options"]:
            lines.append(f"  [cyan]{option['id']}[/cyan]  {option['text']}")
    elif exercise.type == ExerciseType.DRAG_DROP:
        for item in content["items"]:
            lines.append(f"  [cyan]{item['id']}[/cyan]  {item['text']}")
        lines.append("")
        for target in content["targets"]:
            lines.append(f"  [magenta]{target['id']}[/magenta]  {target['text']}")
    elif exercise.type == ExerciseType.FILL_BLANK:
        lines.append(content["text"])
        lines.append("[dim]Choix : " + ", ".join(content["options"]) + "[/dim]")
    elif exercise.type == ExerciseType.TEXT_ENTRY:
        lines.append(f"[dim]Vidéo : {content['video_url']}[/dim]")
    elif exercise.type == ExerciseType.VIDEO_RESPONSE:
        lines.append(f"« {content['phrase']} »")
        lines.append("[dim]Critères : " + ", ".join(content["evaluation_criteria"]) + "[/dim]")
    elif exercise.type == ExerciseType.SIGNING_PRACTICE:
        for number, step in enumerate(content["steps"], start=1):
            lines.append(f"  {number}. {step}")

    for number, hint in enumerate(exercise.hints, start=1):
        lines.append(f"[yellow]Indice {number} :[/yellow] {hint}")

    subtitle = (
        f"{exercise.level.value} | difficulté {exercise.difficulty:.2f} | {exercise.time_limit}s"
    )
    console.print(
        Panel("\n".join(lines), title=f"{exercise.type.value} [dim]{exercise.id}[/dim]", subtitle=subtitle)
    )


# =============================================================================
# Commands
# =============================================================================


@app.command("generate")
def generate(
    exercise_type: str = typer.Option("MultipleChoice", "--type", "-t", help="Exercise type"),
    level: Optional[str] = typer.Option(None, "--level", "-l", help="CECRL level (A1-C2)"),
    difficulty: float = typer.Option(0.5, "--difficulty", "-d", help="Difficulty in [0, 1]"),
    focus: list[str] = typer.Option([], "--focus", "-f", help="Focus category (repeatable)"),
    concept: list[str] = typer.Option([], "--concept", "-c", help="Concept id (repeatable)"),
    skill: Optional[float] = typer.Option(None, "--skill", "-s", help="Learner skill estimate in [0, 1]"),
    hints: bool = typer.Option(False, "--hints", help="Attach hints"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed"),
    answer: Optional[str] = typer.Option(None, "--answer", "-a", help="Evaluate this answer (JSON or text)"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a panel"),
):
    """
    Generate one exercise.

    Examples:
        lsf-exercises generate --type MultipleChoice --level A1 --difficulty 0.2
        lsf-exercises generate -t FillBlank -l B1 --hints --seed 7 --json
    """
    params: dict[str, Any] = {
        "type": exercise_type,
        "level": level,
        "difficulty": difficulty,
        "focus_areas": focus,
        "concept_ids": concept,
        "skill_estimate": skill,
        "include_hints": hints,
    }
    settings = get_settings()

    async def run():
        service = ExerciseGeneratorService(
            build_concept_provider(settings), rng=random.Random(seed), settings=settings
        )
        async with service:
            exercise = await service.generate_exercise(params)
            result = None
            if answer is not None:
                try:
                    response = json.loads(answer)
                except json.JSONDecodeError:
                    response = answer
                result = service.evaluate_response(exercise, response)
            return exercise, result

    try:
        exercise, result = asyncio.run(run())
    except ExerciseError as exc:
        _fail(str(exc))
        return

    if as_json:
        payload = exercise.to_dict()
        if result is not None:
            payload = {"exercise": payload, "evaluation": result.to_dict()}
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    _render_exercise(exercise)
    if result is not None:
        colour = "green" if result.correct else "red"
        console.print(f"[{colour}]Score : {result.score:.2f}[/{colour}]  {result.explanation}")


@app.command("concepts")
def concepts(
    level: Optional[str] = typer.Option(None, "--level", "-l", help="CECRL level (A1-C2)"),
    category: list[str] = typer.Option([], "--category", "-c", help="Category (repeatable)"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Text search"),
    limit: int = typer.Option(20, "--limit", "-n", help="Max rows"),
    by_frequency: bool = typer.Option(False, "--by-frequency", help="Most used first"),
):
    """List catalog concepts."""
    settings = get_settings()

    async def run():
        criteria = ConceptSearchCriteria(
            level=parse_level(level) if level else None,
            categories=tuple(category),
            search_text=search,
            limit=limit,
            sort_by_frequency=by_frequency,
        )
        provider = build_concept_provider(settings)
        await provider.initialize()
        try:
            return await provider.search(criteria)
        finally:
            await provider.dispose()

    try:
        found = asyncio.run(run())
    except ExerciseError as exc:
        _fail(str(exc))
        return

    if not found:
        console.print("[yellow]No concept matches.[/yellow]")
        return

    table = Table(title=f"{len(found)} concepts")
    table.add_column("ID", style="cyan")
    table.add_column("Signe")
    table.add_column("Niveau")
    table.add_column("Catégories")
    table.add_column("Difficulté", justify="right")
    table.add_column("Fréquence", justify="right")
    for c in found:
        table.add_row(c.id, c.text, c.level.value, ", ".join(c.categories), f"{c.difficulty:.2f}", str(c.frequency))
    console.print(table)


@app.command("stats")
def stats():
    """Show catalog statistics."""
    settings = get_settings()

    async def run():
        provider = build_concept_provider(settings)
        await provider.initialize()
        try:
            return await provider.get_statistics()
        finally:
            await provider.dispose()

    try:
        statistics = asyncio.run(run())
    except ExerciseError as exc:
        _fail(str(exc))
        return

    console.print(f"\n[bold cyan]Catalog[/bold cyan]: {statistics.total_concepts} concepts")
    console.print(f"  Average difficulty: {statistics.average_difficulty:.2f}")

    levels = Table(title="By level")
    levels.add_column("Level")
    levels.add_column("Concepts", justify="right")
    for name, count in sorted(statistics.level_distribution.items()):
        levels.add_row(name, str(count))
    console.print(levels)

    categories = Table(title="By category")
    categories.add_column("Category")
    categories.add_column("Concepts", justify="right")
    for name, count in sorted(statistics.category_distribution.items(), key=lambda kv: -kv[1]):
        categories.add_row(name, str(count))
    console.print(categories)

    if statistics.most_used:
        console.print(f"  Most used: {statistics.most_used}  Least used: {statistics.least_used}")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention=5)

    app()


if __name__ == "__main__":
    main()
