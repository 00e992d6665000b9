"""
Command-line interface for procmap.

Commands:
    render    Lay out a process description and write it as SVG or PNG.
    validate  Check a process description and summarise its contents.
    simulate  Run the block randomizer and print the assignment balance.
"""

from __future__ import annotations

import dataclasses
import logging
import random
from collections import Counter
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import DEFAULT_CONFIG
from .parser import ProcessDescriptionError, load_description
from .randomizer import Assignment, BlockRandomizer
from .session import ProcessMapSession

app = typer.Typer(no_args_is_help=True)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load(input_path: Path):
    try:
        return load_description(input_path)
    except ProcessDescriptionError as exc:
        console.print(f"[red]Invalid process description:[/] {escape(str(exc))}")
        raise typer.Exit(code=1)


@app.command("render")
def render(
    input_path: Path = typer.Argument(..., help="Process description JSON file."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file; defaults to INPUT with the format's suffix.",
    ),
    fmt: str = typer.Option("svg", "--format", help="Output format: svg or png."),
    expand: Optional[List[str]] = typer.Option(
        None, "--expand", help="Step id to draw expanded; repeatable.",
    ),
    zones: bool = typer.Option(True, "--zones/--no-zones", help="Draw estimation zone brackets."),
    zone_min_height: Optional[List[float]] = typer.Option(
        None, "--zone-min-height", help="Minimum zone height in px, in zone order; repeatable.",
    ),
    step_width: Optional[float] = typer.Option(None, "--step-width", help="Task box width in px."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log layout details."),
) -> None:
    _configure_logging(verbose)
    fmt = fmt.lower()
    if fmt not in ("svg", "png"):
        console.print(f"[red]Unknown format:[/] {fmt}")
        raise typer.Exit(code=2)

    description = _load(input_path)
    config = DEFAULT_CONFIG
    if step_width is not None:
        config = dataclasses.replace(config, step_w=step_width)

    session = ProcessMapSession(description, config=config, expanded=expand or ())
    if zone_min_height:
        session.set_zone_min_heights(zone_min_height)

    target = output or input_path.with_suffix(f".{fmt}")
    session.save(target, fmt=fmt, with_zones=zones)
    console.print(f"[green]Wrote[/] {target}")


@app.command("validate")
def validate(
    input_path: Path = typer.Argument(..., help="Process description JSON file to validate."),
) -> None:
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)

    description = _load(input_path)
    steps = [step for _, step in description.iter_steps()]
    decisions = sum(1 for step in steps if step.is_decision_point)
    blocks = sum(len(phase.estimation_blocks) for phase in description.phases)
    console.print(f"[green]OK[/] {escape(description.title or input_path.name)}")
    console.print(
        f"{len(description.phases)} phases, {len(steps)} steps, "
        f"{decisions} decisions, {blocks} estimation blocks"
    )


@app.command("simulate")
def simulate(
    count: int = typer.Option(20, "--count", "-n", min=1, help="Participants to assign."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for a reproducible run."),
    restart_at: Optional[List[int]] = typer.Option(
        None, "--restart-at", help="Drop the block cache before this participant (0-based); repeatable.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log block starts."),
) -> None:
    _configure_logging(verbose)
    randomizer = BlockRandomizer(rng=random.Random(seed))
    restarts = set(restart_at or ())
    log: List[Assignment] = []

    for i in range(count):
        if i in restarts:
            randomizer.reset()
        log.append(Assignment(randomizer.assign(log)))

    sequence = " ".join(a.label[0].upper() for a in log)
    console.print(f"Sequence: {sequence}")

    counts = Counter(a.label for a in log)
    table = Table(title=f"{count} assignments")
    table.add_column("Arm")
    table.add_column("Count", justify="right")
    for arm in randomizer.arms:
        table.add_row(arm, str(counts[arm]))
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
