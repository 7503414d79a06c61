"""CLI interface for internmatch using Typer."""

import json
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.config.loader import load_config
from ..core.errors import ConfigError
from ..core.models.candidate import Candidate
from ..core.models.profile import Profile
from ..core.models.rules import RuleSet
from ..core.rules.engine import RuleEngine
from ..core.rules.loader import load_default_rules, load_rules, validate_rules
from ..observability.logger import configure_from_config, get_logger
from ..recommendations.service import RecommendationService

logger = get_logger(__name__)
console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="internmatch",
    help="Rule-based internship matching - rank internships for a student profile",
    add_completion=False,
)

_candidate_list = TypeAdapter(list[Candidate])

ProfileOption = Annotated[
    Path,
    typer.Option(
        "--profile",
        "-p",
        help="Path to profile JSON",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
]
CandidatesOption = Annotated[
    Path,
    typer.Option(
        "--candidates",
        "-c",
        help="Path to JSON list of internships",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
]
RulesOption = Annotated[
    Path | None,
    typer.Option("--rules", "-r", help="Rule file (defaults to rules.path from config)"),
]


@app.callback()
def main() -> None:
    """Configure logging from the application config."""
    try:
        configure_from_config(load_config())
    except ConfigError as e:
        _fail(str(e))


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]! Error:[/red] {escape(message)}")
    raise typer.Exit(code=1)


def _load_rule_set(rules_file: Path | None) -> RuleSet:
    try:
        if rules_file is None:
            return load_default_rules()
        return load_rules(rules_file)
    except ConfigError as e:
        _fail(str(e))


def _load_inputs(profile_file: Path, candidates_file: Path) -> tuple[Profile, list[Candidate]]:
    try:
        profile = Profile.model_validate_json(profile_file.read_text(encoding="utf-8"))
        candidates = _candidate_list.validate_json(candidates_file.read_text(encoding="utf-8"))
    except (IOError, UnicodeDecodeError) as e:
        _fail(f"Cannot read input: {e}")
    except ValidationError as e:
        _fail(f"Invalid input: {e}")
    return profile, candidates


@app.command()
def recommend(
    profile_file: ProfileOption,
    candidates_file: CandidatesOption,
    rules_file: RulesOption = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", help="Max number of recommendations"),
    ] = None,
    output_file: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Path to save output JSON"),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print JSON instead of a table"),
    ] = False,
):
    """Rank internships for a profile.

    Inactive, unverified and expired internships are dropped before the
    rules run.
    """
    if limit is not None and limit < 0:
        _fail("--limit must not be negative")

    rule_set = _load_rule_set(rules_file)
    profile, candidates = _load_inputs(profile_file, candidates_file)

    service = RecommendationService(rule_set)
    response = service.recommend(profile, candidates, limit=limit)
    payload = response.model_dump(mode="json")

    if as_json:
        typer.echo(json.dumps(payload, indent=2))
    else:
        console.print(
            f"\n[bold blue]Top {response.count} internships for[/bold blue] {profile.name or profile.id}"
        )
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Rank", style="dim", width=6)
        table.add_column("Title")
        table.add_column("Org")
        table.add_column("Location")
        table.add_column("Stipend", justify="right")
        table.add_column("Score", justify="right")

        for rank, item in enumerate(response.items, start=1):
            table.add_row(
                str(rank),
                item.title,
                item.org,
                item.display_location,
                f"{item.stipend:,.0f}",
                f"{item.score:.3f}",
            )
        console.print(table)

    if output_file:
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            err_console.print(f"[green]Output saved to:[/green] {output_file}")
            logger.info("output_saved", path=str(output_file), count=response.count)
        except (IOError, TypeError) as e:
            _fail(f"Cannot save output: {e}")


@app.command()
def explain(
    profile_file: ProfileOption,
    candidates_file: CandidatesOption,
    candidate_id: Annotated[
        str, typer.Option("--candidate-id", "-i", help="Internship to explain")
    ],
    rules_file: RulesOption = None,
):
    """Show how the rules judged one internship, including failed hard rules.

    No pre-filtering is applied, so expired or unverified postings can be
    inspected too.
    """
    rule_set = _load_rule_set(rules_file)
    profile, candidates = _load_inputs(profile_file, candidates_file)

    candidate = next((c for c in candidates if c.id == candidate_id), None)
    if candidate is None:
        _fail(f"No internship with id {candidate_id}")

    result = RuleEngine(rule_set).evaluate_one(profile, candidate)
    typer.echo(result.model_dump_json(indent=2))


@app.command("validate-rules")
def validate_rules_command(
    rules_file: Annotated[
        Path | None,
        typer.Argument(help="Rule file (defaults to rules.path from config)"),
    ] = None,
):
    """Load a rule file and compile every expression in it."""
    rule_set = _load_rule_set(rules_file)
    errors = validate_rules(rule_set)

    if errors:
        for error in errors:
            err_console.print(f"[red]x[/red] {error.rule_id}: {escape(error.message)}")
            if error.expression:
                err_console.print(f"  [dim]{escape(error.expression)}[/dim]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]OK[/green] {len(rule_set.hard_rules)} hard rules, "
        f"{len(rule_set.soft_rules)} soft rules, {len(rule_set.tie_breakers)} tie-breakers"
    )


if __name__ == "__main__":
    app()
