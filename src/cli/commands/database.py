"""Database bootstrap and health check commands."""

import click
from rich.console import Console
from rich.table import Table

console = Console()


def _repository():
    from cli.utils import get_components

    ctx = click.get_current_context()
    config_path = (ctx.obj or {}).get("config_path")
    return get_components(config_path, use_llm=False)["repository"]


@click.group()
def db():
    """Create, seed and check the skills database."""
    pass


@db.command()
def init():
    """Create the skills schema (existing data is kept)."""
    repository = _repository()
    repository.init_schema()
    console.print(f"[green]Schema ready:[/] {repository.db_path}")


@db.command()
def seed():
    """Load a small demo organization."""
    repository = _repository()
    counts = repository.seed_sample_data()

    table = Table(title="Sample Data", show_header=True)
    table.add_column("Table")
    table.add_column("Rows", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    console.print(table)
    console.print(f"Seeded [bold]{repository.db_path}[/]")


@db.command()
def check():
    """Check whether the database can support a real analysis."""
    from skills_gap import DataUnavailable, StorageError

    repository = _repository()
    try:
        repository.check_available()
    except DataUnavailable as e:
        console.print(f"[yellow]Data unavailable:[/] {e}")
        console.print("  Analyses will return fallback data. Run: [bold]skills-gap db seed[/]")
        raise SystemExit(1)
    except StorageError as e:
        console.print(f"[red]Database error:[/] {e}")
        console.print("  Run: [bold]skills-gap db init[/]")
        raise SystemExit(1)
    console.print(f"[green]ok[/] {repository.db_path}")
