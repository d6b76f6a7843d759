"""
Team Feedback CLI.

Command-line interface over the feedback pipeline.

Usage:
    team-feedback show responses.csv --search sam
    team-feedback show responses.csv --mode reflection
    team-feedback students responses.csv
    team-feedback export responses.csv --merge sam=samuel -o class_feedback.csv
    team-feedback check responses.csv --format json
    team-feedback init-config config/config.yml
"""

from __future__ import annotations

import json
import logging
import math
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from team_feedback import __version__
from team_feedback.config import FeedbackConfig, load_config, save_config
from team_feedback.models import IngestIssue, ReflectionCategory, Severity, ViewMode
from team_feedback.pipeline import FeedbackPipeline

console = Console()

SEVERITY_COLORS = {
    "critical": "red",
    "major": "yellow",
    "minor": "blue",
    "info": "dim",
}


def setup_logging(
    level: str,
    rich_console: bool = True,
    log_file: Optional[Path] = None,
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
) -> None:
    """Configure logging with optional rich formatting and a log file."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: List[logging.Handler] = []
    if rich_console:
        handlers.append(RichHandler(console=console, rich_tracebacks=True))
    else:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(logging.Formatter(log_format))
        handlers.append(stream)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )


def format_score(score: float, places: int = 2) -> str:
    """Render a score; the no-match sentinel shows as ``-inf``."""
    if math.isinf(score):
        return "-inf" if score < 0 else "inf"
    return f"{score:.{places}f}"


def parse_merge(
    ctx: click.Context, param: click.Parameter, values: Tuple[str, ...]
) -> List[Tuple[str, str]]:
    """Parse repeated ``SOURCE=TARGET`` options."""
    pairs: List[Tuple[str, str]] = []
    for value in values:
        source, sep, target = value.partition("=")
        if not sep or not source.strip() or not target.strip():
            raise click.BadParameter(f"expected SOURCE=TARGET, got {value!r}")
        pairs.append((source.strip(), target.strip()))
    return pairs


def _prepare(
    config: Optional[Path],
    log_level: str,
    quiet: bool,
    overrides: Optional[dict] = None,
) -> FeedbackConfig:
    """Load configuration and set up logging, exiting on bad configuration."""
    try:
        cfg = load_config(config_path=config, project_root=Path.cwd(), overrides=overrides)
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        sys.exit(1)

    log_file = None
    if cfg.logging.file_logging:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = cfg.get_resolved_paths().logs_dir / cfg.logging.log_file_pattern.format(
            timestamp=timestamp
        )

    setup_logging(
        log_level,
        rich_console=cfg.logging.rich_console and not quiet,
        log_file=log_file,
        log_format=cfg.logging.format,
    )
    return cfg


def _run(
    cfg: FeedbackConfig, file: Path, merges: List[Tuple[str, str]], quiet: bool
) -> FeedbackPipeline:
    """Load a file into a pipeline and apply merges in order."""
    pipeline = FeedbackPipeline(cfg)
    result = pipeline.load_file(file)

    if not quiet:
        for issue in result.issues:
            if issue.severity == "critical":
                console.print(f"[red]{issue.kind.value}:[/red] {issue.message}")

    for source, target in merges:
        event = pipeline.merge(source, target)
        if not quiet:
            console.print(
                f"Merged [bold]{source}[/bold] -> [bold]{target}[/bold] "
                f"({event.matched} records)"
            )

    return pipeline


# Shared options
config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration YAML file.",
)
log_level_option = click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging verbosity level.",
)
quiet_option = click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress console output other than results.",
)
merge_option = click.option(
    "--merge",
    "-m",
    "merges",
    multiple=True,
    callback=parse_merge,
    metavar="SOURCE=TARGET",
    help="Merge one student identity into another (repeatable, applied in order).",
)
variant_option = click.option(
    "--variant",
    type=click.Choice(["auto", "feedback", "combined"]),
    default=None,
    help="Override the export layout instead of detecting it.",
)
format_option = click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)


def _echo_json(data: dict) -> None:
    click.echo(json.dumps(data, indent=2))


def _by_severity(issues: List[IngestIssue]) -> List[IngestIssue]:
    """Most severe first; issues of equal severity keep their order."""
    return sorted(issues, key=lambda i: Severity(i.severity).priority, reverse=True)


def _variant_overrides(variant: Optional[str]) -> Optional[dict]:
    return {"schema.variant": variant} if variant else None


@click.group()
@click.version_option(version=__version__, prog_name="team-feedback")
def main() -> None:
    """
    Team Feedback - peer feedback and self-reflection scoring.

    Reads a survey export with one row per reviewer, splits it into one
    record per reviewed teammate, scores the answers and groups them by
    student.

    \b
    Examples:
        team-feedback show responses.csv
        team-feedback show responses.csv --mode reflection --search ann
        team-feedback export responses.csv -m sam=samuel
    """
    pass


@main.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.option(
    "--mode",
    type=click.Choice([m.value for m in ViewMode]),
    default=ViewMode.FEEDBACK.value,
    help="Show peer feedback or self-reflections.",
)
@click.option("--search", "-s", default="", help="Only show students whose name contains this.")
@merge_option
@variant_option
@format_option
@config_option
@log_level_option
@quiet_option
def show(
    file: Path,
    mode: str,
    search: str,
    merges: List[Tuple[str, str]],
    variant: Optional[str],
    output_format: str,
    config: Optional[Path],
    log_level: str,
    quiet: bool,
) -> None:
    """
    Show scored feedback per student, or reflections with outcome scores.

    \b
    Examples:
        team-feedback show responses.csv --search sam
        team-feedback show responses.csv --mode reflection
        team-feedback show responses.csv -m sam=samuel -f json
    """
    as_json = output_format == "json"
    cfg = _prepare(config, log_level, quiet or as_json, _variant_overrides(variant))
    pipeline = _run(cfg, file, merges, quiet or as_json)
    view = pipeline.view(search, ViewMode(mode))

    if as_json:
        data = view.to_dict()
        data["merges"] = [event.to_dict() for event in pipeline.merge_log]
        data["issues"] = [i.to_dict() for i in _by_severity(pipeline.ingest_issues) if i.is_blocking]
        _echo_json(data)
        return

    if view.is_empty:
        console.print("[yellow]No matching students.[/yellow]")
        return

    if view.mode is ViewMode.FEEDBACK:
        for student, group in view.groups.items():
            table = Table(title=student, title_justify="left", show_lines=False)
            for column in ("Reviewer", "Planning", "Cooking", "Cleaning", "Comments"):
                table.add_column(column)
            for record, p, c, cl in zip(
                group.records, group.planning_scores, group.cooking_scores, group.cleaning_scores
            ):
                table.add_row(
                    record.reviewer_name,
                    format_score(p, 0),
                    format_score(c, 0),
                    format_score(cl, 0),
                    record.comments,
                )
            console.print(table)
            console.print(
                f"  Average planning: {format_score(group.mean_planning)}  "
                f"cooking: {format_score(group.mean_cooking)}  "
                f"cleaning: {format_score(group.mean_cleaning)}"
            )
            console.print()
        return

    for name, reflection in view.reflections.items():
        outcome = view.outcomes[name]
        table = Table(title=name, title_justify="left")
        table.add_column("Question")
        table.add_column("Answer")
        table.add_column("Score", justify="right")
        for i, category in enumerate(ReflectionCategory, 1):
            table.add_row(
                f"Question {i}",
                reflection.answer(category),
                format_score(outcome.scores[category], 0),
            )
        console.print(table)
        console.print(
            f"  Professionalism: {format_score(outcome.professionalism)}  "
            f"Interest: {format_score(outcome.interest)}  "
            f"SpecialProject: {format_score(outcome.special_project)}"
        )
        console.print()


@main.command()
@click.argument("file", type=click.Path(path_type=Path))
@merge_option
@variant_option
@config_option
@log_level_option
@quiet_option
def students(
    file: Path,
    merges: List[Tuple[str, str]],
    variant: Optional[str],
    config: Optional[Path],
    log_level: str,
    quiet: bool,
) -> None:
    """
    List distinct student identities with record counts.

    These are the names accepted by --merge.
    """
    cfg = _prepare(config, log_level, quiet, _variant_overrides(variant))
    pipeline = _run(cfg, file, merges, quiet)

    table = Table(title="Students")
    table.add_column("Student")
    table.add_column("Records", justify="right")
    for key, group in pipeline.groups().items():
        table.add_row(key, str(group.size))
    console.print(table)


@main.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file (default: <output_dir>/<export.filename>).",
)
@merge_option
@variant_option
@config_option
@log_level_option
@quiet_option
def export(
    file: Path,
    output: Optional[Path],
    merges: List[Tuple[str, str]],
    variant: Optional[str],
    config: Optional[Path],
    log_level: str,
    quiet: bool,
) -> None:
    """
    Export one CSV row per feedback record, sorted by student.

    \b
    Example:
        team-feedback export responses.csv -m sam=samuel -o class_feedback.csv
    """
    cfg = _prepare(config, log_level, quiet, _variant_overrides(variant))
    pipeline = _run(cfg, file, merges, quiet)

    written = pipeline.export(output)
    if written is None:
        if not quiet:
            console.print("[yellow]Nothing to export.[/yellow]")
        return

    if not quiet:
        console.print(f"Exported {len(pipeline.records)} records to: {written}")


@main.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show every issue, including info-level ones.",
)
@variant_option
@format_option
@config_option
@log_level_option
def check(
    file: Path,
    verbose: bool,
    variant: Optional[str],
    output_format: str,
    config: Optional[Path],
    log_level: str,
) -> None:
    """
    Report ingestion problems and answers that matched no known phrase.

    Issues are listed most severe first.

    \b
    Examples:
        team-feedback check responses.csv --verbose
        team-feedback check responses.csv -f json
    """
    as_json = output_format == "json"
    cfg = _prepare(config, log_level, as_json, _variant_overrides(variant))
    pipeline = FeedbackPipeline(cfg)
    pipeline.load_file(file)

    summary = pipeline.summary()
    issues = _by_severity(pipeline.all_issues())

    if as_json:
        _echo_json({"file": str(file), "summary": summary, "issues": [i.to_dict() for i in issues]})
        return

    console.print(f"[bold]Checking:[/bold] {file}")
    console.print(
        f"Layout: {summary['variant'] or 'unknown'}  records: {summary['records']}  "
        f"students: {summary['students']}  reflections: {summary['reflections']}"
    )

    if not issues:
        console.print("[green]✓ No issues found![/green]")
        return

    counts = {s.value: 0 for s in Severity}
    for issue in issues:
        counts[issue.severity] += 1

    console.print(f"[yellow]Found {len(issues)} issues:[/yellow]")
    for severity, count in counts.items():
        if count > 0:
            color = SEVERITY_COLORS[severity]
            console.print(f"  [{color}]{severity}:[/{color}] {count}")

    shown = issues if verbose else [i for i in issues if i.severity != "info"]
    if shown:
        console.print()
        console.print("[bold]Issue Details:[/bold]")
        for issue in shown:
            color = SEVERITY_COLORS[issue.severity]
            console.print(f"  [{color}]{issue.kind.value}:[/{color}] {issue.message}")


@main.command("init-config")
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
def init_config(path: Path, force: bool) -> None:
    """Write the default configuration to PATH as YAML."""
    if path.exists() and not force:
        console.print(f"[red]{path} already exists[/red] (use --force to overwrite)")
        sys.exit(1)

    save_config(FeedbackConfig(), path)
    console.print(f"Configuration written to: {path}")


if __name__ == "__main__":
    main()
