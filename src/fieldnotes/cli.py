"""CLI interface for fieldnotes."""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from fieldnotes.checks import CheckReport, Severity, run_checks
from fieldnotes.config import FieldnotesConfig, load_config, merge_cli_overrides
from fieldnotes.content.scaffold import new_page, new_post
from fieldnotes.content.store import ContentStore, parse_date
from fieldnotes.errors import FieldnotesError

app = typer.Typer(
    name="fieldnotes",
    help="Check, list, and scaffold the blog's posts and pages.",
    no_args_is_help=True,
)
new_app = typer.Typer(help="Create a new post or page.", no_args_is_help=True)
app.add_typer(new_app, name="new")

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from fieldnotes import __version__

        console.print(f"fieldnotes {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, show_time=False)],
        force=True,
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(1)


def _load_store(config: FieldnotesConfig) -> ContentStore:
    try:
        return ContentStore(config.site_dir, config)
    except FieldnotesError as exc:
        raise _fail(str(exc)) from exc


def _relative(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    site: Annotated[
        Optional[Path],
        typer.Option(
            "--site",
            "-s",
            help="Site root containing the posts and pages directories.",
            file_okay=False,
            dir_okay=True,
        ),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", help="Explicit .fieldnotes.toml to load."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr."),
    ] = False,
) -> None:
    """fieldnotes - authoring toolkit for the blog's content store."""
    _configure_logging(verbose)
    try:
        config = load_config(config_path, site_dir=site)
        config = merge_cli_overrides(config, site_directory=site)
    except ValueError as exc:
        raise _fail(f"Invalid configuration: {exc}") from exc
    ctx.obj = config


def _print_report(report: CheckReport, site_dir: Path) -> None:
    for issue in report.issues:
        color = "red" if issue.severity == Severity.ERROR else "yellow"
        where = _relative(issue.path, site_dir)
        if issue.line is not None:
            where += f":{issue.line}"
        console.print(
            f"[{color}]{issue.severity}[/{color}] {escape(where)} "
            f"[dim]{issue.code}[/dim] {escape(issue.message)}",
            soft_wrap=True,
        )

    summary = (
        f"Checked {report.files_checked} file(s): "
        f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)"
    )
    if report.ok:
        console.print(f"[bold green]OK[/bold green] {summary}")
    else:
        console.print(f"[bold red]FAILED[/bold red] {summary}")


@app.command()
def check(
    ctx: typer.Context,
    strict: Annotated[
        Optional[bool],
        typer.Option("--strict/--no-strict", help="Fail on warnings as well as errors."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the report as JSON."),
    ] = False,
) -> None:
    """Validate front-matter, duplicates, and internal links.

    Exits with status 1 when any error is found (or any warning, with
    --strict).
    """
    config: FieldnotesConfig = ctx.obj
    store = _load_store(config)
    report = run_checks(store, strict=strict)

    if as_json:
        payload = {
            "ok": report.ok,
            "files_checked": report.files_checked,
            "errors": len(report.errors),
            "warnings": len(report.warnings),
            "issues": [i.model_dump(mode="json") for i in report.issues],
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        _print_report(report, store.site_dir)

    if not report.ok:
        raise typer.Exit(1)


@app.command()
def posts(
    ctx: typer.Context,
    category: Annotated[
        Optional[str], typer.Option("--category", "-c", help="Only posts in this category.")
    ] = None,
    tag: Annotated[Optional[str], typer.Option("--tag", "-t", help="Only posts with this tag.")] = None,
    limit: Annotated[
        Optional[int], typer.Option("--limit", "-n", min=1, help="Show at most N posts.")
    ] = None,
) -> None:
    """List posts, newest first."""
    store = _load_store(ctx.obj)
    results = store.posts(category=category, tag=tag)
    if limit is not None:
        results = results[:limit]

    if not results:
        console.print("[yellow]No posts found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Posts ({len(results)})")
    table.add_column("Date", no_wrap=True)
    table.add_column("Title")
    table.add_column("Categories")
    table.add_column("Tags")
    for post in results:
        table.add_row(
            post.date.strftime("%Y-%m-%d"),
            escape(post.title),
            escape(", ".join(post.categories)),
            escape(", ".join(post.tags)),
        )
    console.print(table)


@app.command()
def pages(ctx: typer.Context) -> None:
    """List pages in navigation order."""
    store = _load_store(ctx.obj)
    results = store.pages()
    if not results:
        console.print("[yellow]No pages found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Pages ({len(results)})")
    table.add_column("Order", justify="right")
    table.add_column("Title")
    table.add_column("Icon")
    table.add_column("Permalink")
    for page in results:
        table.add_row(
            "" if page.order is None else str(page.order),
            escape(page.title),
            escape(page.icon),
            escape(store.permalink(page)),
        )
    console.print(table)


def _print_terms(label: str, counts: dict[str, int]) -> None:
    if not counts:
        console.print(f"[yellow]No {label.lower()} found.[/yellow]")
        return
    table = Table(title=f"{label} ({len(counts)})")
    table.add_column(label[:-1] if label != "Categories" else "Category")
    table.add_column("Posts", justify="right")
    for name, count in counts.items():
        table.add_row(escape(name), str(count))
    console.print(table)


@app.command()
def tags(ctx: typer.Context) -> None:
    """Show tags with post counts."""
    _print_terms("Tags", _load_store(ctx.obj).tags())


@app.command()
def categories(ctx: typer.Context) -> None:
    """Show categories with post counts."""
    _print_terms("Categories", _load_store(ctx.obj).categories())


@app.command()
def export(
    ctx: typer.Context,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the catalog here instead of stdout."),
    ] = None,
) -> None:
    """Export the content catalog as JSON."""
    store = _load_store(ctx.obj)
    data = store.catalog().model_dump_json(indent=2)
    if output is None:
        typer.echo(data)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(data + "\n", encoding="utf-8")
    err_console.print(f"Catalog written to {escape(str(output))}")


@new_app.command("post")
def new_post_cmd(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Post title.")],
    category: Annotated[
        Optional[list[str]], typer.Option("--category", "-c", help="Category (repeatable).")
    ] = None,
    tag: Annotated[Optional[list[str]], typer.Option("--tag", "-t", help="Tag (repeatable).")] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", help="Publish date, YYYY-MM-DD or 'YYYY-MM-DD HH:MM'."),
    ] = None,
    comments: Annotated[
        Optional[bool],
        typer.Option("--comments/--no-comments", help="Enable comments on the post."),
    ] = None,
    body: Annotated[str, typer.Option("--body", help="Initial body text.")] = "",
) -> None:
    """Create a new post file with front-matter."""
    config: FieldnotesConfig = ctx.obj
    post_date = None
    if date:
        try:
            post_date = parse_date(date, config.site.tz)
        except ValueError as exc:
            console.print(f"[red]Error:[/red] Invalid date format: {escape(date)}")
            console.print("Use YYYY-MM-DD or 'YYYY-MM-DD HH:MM' (e.g., 2025-01-15)")
            raise typer.Exit(1) from exc

    try:
        path = new_post(
            config.site_dir,
            config,
            title,
            categories=category or None,
            tags=tag or None,
            post_date=post_date,
            comments=comments,
            body=body,
        )
    except FieldnotesError as exc:
        raise _fail(str(exc)) from exc
    console.print(f"[green]Created[/green] {escape(_relative(path, config.site_dir))}", soft_wrap=True)


@new_app.command("page")
def new_page_cmd(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Page title.")],
    icon: Annotated[str, typer.Option("--icon", help="Navigation icon class.")] = "",
    order: Annotated[Optional[int], typer.Option("--order", help="Navigation position.")] = None,
    slug: Annotated[Optional[str], typer.Option("--slug", help="Filename; defaults to the title.")] = None,
    body: Annotated[str, typer.Option("--body", help="Initial body text.")] = "",
) -> None:
    """Create a new page file with front-matter."""
    config: FieldnotesConfig = ctx.obj
    try:
        path = new_page(config.site_dir, config, title, icon=icon, order=order, slug=slug, body=body)
    except FieldnotesError as exc:
        raise _fail(str(exc)) from exc
    console.print(f"[green]Created[/green] {escape(_relative(path, config.site_dir))}", soft_wrap=True)


if __name__ == "__main__":
    app()
