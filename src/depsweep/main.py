"""depsweep CLI - find and remove npm dependencies your code never imports."""
import sqlite3
from pathlib import Path
from typing import AbstractSet, Optional

import structlog
import typer
from rich.markup import escape
from rich.table import Table

from depsweep.analyzer.cache import ReferenceCache
from depsweep.analyzer.manifest import load_manifest
from depsweep.analyzer.reconciler import AnalysisReport, reconcile
from depsweep.analyzer.usage import UsageSetBuilder
from depsweep.config import Config, __version__, get_config
from depsweep.errors import ManifestError
from depsweep.ignore import load_ignore_list
from depsweep.reaper.cleaner import ManifestCleaner
from depsweep.utils.logger import setup_logging
from depsweep.utils.safe_console import SafeConsole

app = typer.Typer(
    name="depsweep",
    help="Scan a project for unused npm dependencies and remove them",
    add_completion=False
)
log = structlog.get_logger("depsweep.main")
console = SafeConsole()

# Cache management sub-command
cache_app = typer.Typer(name="cache", help="Manage the depsweep reference cache")


def analyze_project(project_path: Path, include_dev: bool = False, include_peer: bool = False,
                    include_optional: bool = False, ignore: AbstractSet[str] = frozenset(),
                    use_cache: bool = True, cache_dir: str = ".depsweep_cache",
                    workers: int = 1, error_recovery: bool = True) -> AnalysisReport:
    """Shared analysis logic for both scan and clean commands.

    1. Baseline: load declared dependencies (fatal on failure)
    2. Usage: extract and normalize references, apply heuristics
    3. Verdicts: reconcile declared vs. used vs. ignored

    Raises:
        ManifestError: If package.json is missing or invalid
    """
    manifest = load_manifest(project_path)
    declared = manifest.declared(
        include_dev=include_dev,
        include_peer=include_peer,
        include_optional=include_optional,
    )

    cache = None
    if use_cache:
        try:
            cache = ReferenceCache(project_path, cache_dir)
        except (OSError, sqlite3.Error) as e:
            log.warning("cache_unavailable", cache_dir=str(cache_dir), error=str(e),
                        hint="continuing without the reference cache")
    try:
        builder = UsageSetBuilder(
            project_path,
            include_dev=include_dev,
            include_peer=include_peer,
            include_optional=include_optional,
            cache=cache,
            workers=workers,
            error_recovery=error_recovery,
        )
        usage = builder.build()
    finally:
        if cache:
            cache.close()

    return AnalysisReport(
        verdicts=reconcile(declared, usage, ignore),
        diagnostics=builder.diagnostics,
        files_scanned=builder.files_scanned,
        usage=usage,
    )


def _resolve_project(project_path: str) -> Path:
    path = Path(project_path).resolve()
    if not path.is_dir():
        console.error(f"Project path does not exist: {path}")
        raise typer.Exit(1)
    return path


def _load_config() -> Config:
    try:
        return get_config()
    except ValueError as e:
        console.error(str(e))
        raise typer.Exit(1)


def _open_cache(project: Path) -> ReferenceCache:
    config = _load_config()
    try:
        return ReferenceCache(project, config.cache_dir)
    except (OSError, sqlite3.Error) as e:
        console.error(f"Cache unavailable at {config.cache_dir}: {e}")
        raise typer.Exit(1)


def _run_analysis(project_path: Path, dev: bool, peer: bool, optional: bool,
                  ignore_file: Optional[str], verbose: bool, no_cache: bool,
                  jobs: Optional[int], status_message: str) -> AnalysisReport:
    """Configure logging, load ignores and run the analysis for a command."""
    config = _load_config()
    setup_logging("DEBUG" if verbose else config.log_level, config.log_format)

    ignore = load_ignore_list(project_path, ignore_file)
    if verbose:
        console.print(f"[dim]Loaded ignores: {escape(', '.join(sorted(ignore)))}[/dim]")

    try:
        with console.status(status_message):
            report = analyze_project(
                project_path,
                include_dev=dev,
                include_peer=peer,
                include_optional=optional,
                ignore=ignore,
                use_cache=not no_cache,
                cache_dir=config.cache_dir,
                workers=jobs if jobs is not None else config.workers,
                error_recovery=config.error_recovery,
            )
    except ManifestError as e:
        console.error(str(e))
        raise typer.Exit(1)

    if verbose:
        _print_diagnostics(report)
    return report


def _print_diagnostics(report: AnalysisReport):
    console.print(f"[dim]Scanned {report.files_scanned} source file(s)[/dim]")
    if not report.diagnostics:
        return

    table = Table(title="Diagnostics")
    table.add_column("File", style="cyan", no_wrap=False)
    table.add_column("Problem", style="yellow")
    for diagnostic in report.diagnostics:
        table.add_row(escape(diagnostic.path), escape(diagnostic.message))
    console.print(table)


def _print_unused(verdicts):
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Dependency", style="red")
    table.add_column("Section", style="dim")
    for verdict in verdicts:
        section = verdict.section.manifest_key if verdict.section else ""
        table.add_row(escape(verdict.name), section)
    console.print(table)


@app.command()
def scan(
    project_path: str = typer.Argument(".", help="Project root containing package.json"),
    dev: bool = typer.Option(False, "--dev", help="Check devDependencies as well"),
    peer: bool = typer.Option(False, "--peer", help="Check peerDependencies as well"),
    optional: bool = typer.Option(False, "--optional", help="Check optionalDependencies as well"),
    ignore_file: Optional[str] = typer.Option(None, "--ignore", help="Path to custom ignore file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Do not read or write the reference cache"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", min=1, help="Parallel extraction threads"),
):
    """Scan project for unused dependencies."""
    project = _resolve_project(project_path)
    report = _run_analysis(project, dev, peer, optional, ignore_file, verbose, no_cache, jobs,
                           "Scanning project...")

    unused = report.unused
    if not unused:
        console.success("No unused dependencies found!")
        return

    console.warn(f"Found {len(unused)} unused dependencies:")
    _print_unused(unused)
    console.print("[dim]Use 'depsweep clean' to remove them from package.json[/dim]")


@app.command()
def clean(
    package_name: Optional[str] = typer.Argument(None, help="Remove only this dependency"),
    project_path: str = typer.Option(".", "--project", "-p", help="Project root containing package.json"),
    dev: bool = typer.Option(False, "--dev", help="Check devDependencies as well"),
    peer: bool = typer.Option(False, "--peer", help="Check peerDependencies as well"),
    optional: bool = typer.Option(False, "--optional", help="Check optionalDependencies as well"),
    ignore_file: Optional[str] = typer.Option(None, "--ignore", help="Path to custom ignore file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be removed without modifying files"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Do not read or write the reference cache"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", min=1, help="Parallel extraction threads"),
):
    """Remove unused dependencies (or a specific one if PACKAGE_NAME is provided)."""
    project = _resolve_project(project_path)
    report = _run_analysis(project, dev, peer, optional, ignore_file, verbose, no_cache, jobs,
                           "Analyzing project...")

    unused = report.unused
    if package_name:
        targeted = [v for v in unused if v.name == package_name]
        if not targeted:
            console.warn(f"Dependency '{package_name}' is either used or not found.")
            return
        unused = targeted
        console.info(f"Targeting specific dependency: {package_name}")

    if not unused:
        console.success("No unused dependencies found to clean.")
        return

    console.warn(f"Found {len(unused)} unused dependencies:")
    _print_unused(unused)

    if dry_run:
        console.info("Dry run enabled. No changes made.")
        return

    if not yes and not typer.confirm("Remove these dependencies from package.json?", default=False):
        console.info("Aborted. No changes made.")
        return

    cleaner = ManifestCleaner(project)
    try:
        result = cleaner.remove_dependencies(v.name for v in unused)
    except ManifestError as e:
        console.error(str(e))
        raise typer.Exit(1)

    console.info(f"Backed up package.json to {result.backup_path}")
    console.success(f"Removed {result.removed_count} unused dependencies.")
    console.info('Please run "npm install" or "yarn install" to update your lockfile and node_modules.')


@cache_app.command("clear")
def cache_clear(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Clear the reference cache for a project."""
    project = _resolve_project(project_path)

    try:
        with _open_cache(project) as cache:
            removed = cache.clear()
    except sqlite3.Error as e:
        console.error(f"Cache could not be cleared: {e}")
        raise typer.Exit(1)

    console.success(f"Cache cleared for {project} ({removed} entries)")


@cache_app.command("stats")
def cache_stats(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Display cache statistics for a project."""
    project = _resolve_project(project_path)

    try:
        with _open_cache(project) as cache:
            stats = cache.get_cache_stats()
    except sqlite3.Error as e:
        console.error(f"Cache could not be read: {e}")
        raise typer.Exit(1)

    table = Table(title="Cache Statistics", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="green")
    table.add_row("Files Cached", str(stats['total_files']))
    table.add_row("Files With Syntax Errors", str(stats['files_with_syntax_errors']))
    console.print(table)


# Register cache sub-command
app.add_typer(cache_app)


def _version_callback(value: bool):
    if value:
        console.print(f"depsweep {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show version and exit"),
):
    """depsweep - find and remove unused npm dependencies."""
    pass


if __name__ == "__main__":
    app()
