"""
envdoctor CLI - Environment variable doctor

Main entry point for the envdoctor command-line tool.
"""

import logging
import os
import sys
from typing import Dict, List, Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .core.config import Config, is_ci, load_config, should_skip
from .core.discovery import (
    detect_current_workspace,
    find_workspace,
    has_env_example,
    read_env_file,
    root_app,
    scan_workspaces,
)
from .core.errors import ConfigError, EnvDoctorError
from .core.export import (
    EXPORT_FORMATS,
    export_values,
    format_summaries,
    format_values,
    summarize_schema,
)
from .core.lexer import render_updates
from .core.reconciler import (
    build_context,
    collect_shared_values,
    compare_schema_to_actual,
    reconcile_app,
)
from .core.schema import get_app_schema, get_root_schema, root_local_path
from .core.types import AppInfo, ReconciliationResult, VariableDefinition
from .core.usage import diagnose_usage, scan_app_usage
from .plugins.deploy import deployable_values, execute_plan, plan_deployment
from .plugins.loader import load_plugins
from .plugins.registry import PluginRegistry


console = Console()
logger = logging.getLogger(__name__)


class Invocation:
    """State for one command invocation: root, config, and a fresh registry."""

    def __init__(self, root_dir: str, config: Config, registry: PluginRegistry):
        self.root_dir = root_dir
        self.config = config
        self.registry = registry


def setup_logging(verbose: bool) -> None:
    """Send envdoctor logs to stderr through rich."""
    package_logger = logging.getLogger("envdoctor")
    package_logger.handlers[:] = [
        RichHandler(console=Console(stderr=True), show_time=False, show_path=False)
    ]
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False


def _fail(message: str, hint: Optional[str] = None) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]")
    if hint:
        console.print(f"[dim]{escape(hint)}[/dim]")
    sys.exit(1)


def select_apps(inv: Invocation, app_name: Optional[str]) -> List[AppInfo]:
    """The named app, or every app that has an example file."""
    if app_name:
        app = find_workspace(app_name, inv.config, inv.root_dir)
        if app is None:
            _fail(f"App not found: {app_name}")
        return [app]

    return [app for app in scan_workspaces(inv.config, inv.root_dir) if has_env_example(app)]


def select_single_app(inv: Invocation, app_name: Optional[str], purpose: str) -> AppInfo:
    """The named app, the app containing cwd, or the only app there is."""
    if app_name:
        return select_apps(inv, app_name)[0]

    current = detect_current_workspace(inv.config, inv.root_dir)
    if current is not None:
        return current

    apps = select_apps(inv, None)
    if len(apps) == 1:
        return apps[0]

    names = ", ".join(app.name for app in apps) or "none"
    _fail(f"Choose an app with --app {purpose}", f"Available apps: {names}")


def _shared_context(inv: Invocation):
    root_schema = get_root_schema(inv.config, inv.root_dir, inv.registry)
    shared_names = {d.name for d in root_schema}
    shared_values = read_env_file(root_local_path(inv.config, inv.root_dir)).values
    return root_schema, shared_names, shared_values


def _print_missing(result: ReconciliationResult, verbose: bool) -> None:
    for variable in result.missing_required:
        console.print(f"  [red]✗ {variable.name}[/red] [dim](required)[/dim]")
    if verbose:
        for variable in result.missing_optional:
            console.print(f"  [yellow]○ {variable.name}[/yellow] [dim](optional)[/dim]")
    for name in result.deprecated:
        console.print(f"  [yellow]⛔ {name}[/yellow] [dim](deprecated, still set)[/dim]")


@click.group()
@click.option('--root', 'root_dir', default=".", help='Workspace root directory')
@click.option('--verbose', is_flag=True, help='Show debug logging and optional variables')
@click.pass_context
def cli(ctx, root_dir, verbose):
    """
    envdoctor - Keep .env.local files in line with their example schemas
    """
    setup_logging(verbose)

    try:
        config = load_config(root_dir).config
    except ConfigError as e:
        _fail(str(e))

    loaded = load_plugins(config)
    logger.debug("Loaded %d plugin(s)", len(loaded.plugins))
    for error in loaded.errors:
        console.print(f"[yellow]⚠ {escape(str(error))}[/yellow]")

    try:
        loaded.registry.run_on_init(config)
    except EnvDoctorError as e:
        _fail(str(e))

    ctx.obj = Invocation(root_dir, config, loaded.registry)
    ctx.meta["verbose"] = verbose


@cli.command()
@click.option('--app', 'app_name', default=None, help='Only sync this app')
@click.option('--force', is_flag=True, help='Never prompt; use placeholders instead')
@click.option('--dry-run', is_flag=True, help='Resolve values without writing files')
@click.pass_obj
def sync(inv: Invocation, app_name, force, dry_run):
    """
    Create or update .env.local files from their schemas.

    A shared variable already set in any selected app or in the root
    .env.local is reused. One resolved for an app is reused for the next.
    """
    apps = select_apps(inv, app_name)
    if not apps:
        console.print("[yellow]No apps with example files found[/yellow]")
        return

    try:
        inv.registry.run_before_sync(apps)
    except EnvDoctorError as e:
        _fail(str(e))

    interactive = not force and not is_ci(inv.config)
    if not interactive and not force:
        console.print("[dim]CI detected - running non-interactively[/dim]")

    root_schema, shared_names, shared_values = _shared_context(inv)
    if not root_schema:
        console.print("[dim]No root example file found - only app variables will be synced[/dim]")

    # A shared value already set anywhere is reused instead of asked again
    shared_resolved: Dict[str, str] = collect_shared_values(
        [read_env_file(app.env_local_path).values for app in apps] + [shared_values],
        shared_names,
    )
    results: List[ReconciliationResult] = []
    warnings: List[str] = []
    total_added = 0
    total_skipped = 0

    for app in apps:
        console.print(f"\n[cyan]Checking {app.name}...[/cyan]")
        schema = get_app_schema(app, inv.config, inv.root_dir, inv.registry)
        schema_names = {d.name for d in schema}
        actual = read_env_file(app.env_local_path)

        carried = {
            name: value
            for name, value in shared_resolved.items()
            if name in schema_names and not actual.values.get(name)
        }
        seed = dict(actual.values)
        seed.update(carried)
        context = build_context(app, seed, inv.config, inv.root_dir, interactive=interactive)

        try:
            reconciliation = reconcile_app(
                app, schema, actual, context, inv.registry, shared_values, shared_names
            )
        except EnvDoctorError as e:
            _fail(str(e))

        merged = dict(carried)
        merged.update(reconciliation.updates)
        updates = {d.name: merged[d.name] for d in schema if d.name in merged}
        warnings.extend(reconciliation.warnings)
        results.append(reconciliation.result)

        for name, value in reconciliation.updates.items():
            if name in shared_names:
                shared_resolved[name] = value

        by_name = {d.name: d for d in schema}
        for name in updates:
            directive = by_name[name].directive.type
            console.print(f"  [green]+ {name}[/green] [dim]({directive})[/dim]")
        for name in reconciliation.pass_result.skipped:
            label = "required" if by_name[name].is_required else "optional"
            console.print(f"  [yellow]- {name}[/yellow] [dim](skipped, {label})[/dim]")
        for name in reconciliation.result.overrides:
            console.print(f"  [blue]↺ {name}[/blue] [dim](overrides shared value)[/dim]")
        if not updates and not reconciliation.pass_result.skipped:
            console.print(f"  [green]✓ All {len(schema)} variables set[/green]")

        total_added += len(updates)
        total_skipped += len(reconciliation.pass_result.skipped)

        if updates and not dry_run:
            app.env_local_path.write_text(render_updates(actual, updates, schema))

    try:
        inv.registry.run_after_sync(results)
    except EnvDoctorError as e:
        _fail(str(e))

    if warnings:
        console.print()
        for warning in warnings:
            console.print(f"[yellow]⚠ {escape(warning)}[/yellow]")

    console.print()
    console.print(
        f"[green]✓ Synced {len(apps)} app(s): {total_added} added, "
        f"{total_skipped} skipped, {len(warnings)} warning(s)[/green]"
    )
    if dry_run:
        console.print("[dim]Dry run - no files were written.[/dim]")


@cli.command()
@click.option('--app', 'app_name', default=None, help='Only check this app')
@click.pass_context
def check(ctx, app_name):
    """
    Validate .env.local files without prompting.

    Exits with status 1 when a required variable is missing.
    """
    inv: Invocation = ctx.obj
    verbose = ctx.meta.get("verbose", False)
    apps = select_apps(inv, app_name)
    if not apps:
        console.print("[yellow]No apps with example files found[/yellow]")
        return

    has_errors = False
    for app in apps:
        console.print(f"[cyan]Checking {app.name}...[/cyan]")
        schema = get_app_schema(app, inv.config, inv.root_dir, inv.registry)
        actual = read_env_file(app.env_local_path)
        result = compare_schema_to_actual(
            schema, actual, app, deprecated_names=inv.config.deprecated
        )

        _print_missing(result, verbose)
        if result.missing_required:
            has_errors = True
        else:
            console.print(f"  [green]✓ {len(result.valid)} variables set[/green]")

    if has_errors:
        console.print("\n[red]Some required environment variables are missing.[/red]")
        console.print("[dim]Run 'envdoctor sync' to fill them in.[/dim]")
        sys.exit(1)


@cli.command()
@click.option('--app', 'app_name', default=None, help='Only show this app')
@click.pass_obj
def status(inv: Invocation, app_name):
    """
    Show environment variable status table.

    Displays: Variable, Status, Requirement, Directive, and Note.
    """
    apps = select_apps(inv, app_name)
    if not apps:
        console.print("[yellow]No apps with example files found[/yellow]")
        return

    _, shared_names, shared_values = _shared_context(inv)

    for app in apps:
        schema = get_app_schema(app, inv.config, inv.root_dir, inv.registry)
        actual = read_env_file(app.env_local_path)
        result = compare_schema_to_actual(
            schema, actual, app, shared_values, shared_names, inv.config.deprecated
        )

        table = Table(title=f"{app.name}", box=box.ROUNDED)
        table.add_column("Variable", style="cyan", no_wrap=True)
        table.add_column("Status", style="green")
        table.add_column("Requirement", style="magenta")
        table.add_column("Directive", style="blue")
        table.add_column("Note", style="yellow")

        valid = {v.name for v in result.valid}
        for variable in schema:
            if variable.name in valid:
                state = "✓ Set"
            elif variable.name in result.deprecated:
                state = "⛔ Deprecated"
            elif variable.deprecated:
                continue
            else:
                state = "✗ Missing"

            note = ""
            if variable.name in result.overrides:
                note = "overrides shared value"
            elif variable.name in shared_names:
                note = "shared"

            table.add_row(variable.name, state, variable.requirement, variable.directive.type, note)

        for name in result.extra:
            table.add_row(name, "? Extra", "-", "-", "not in schema")

        console.print(table)


@cli.command()
@click.option('--app', 'app_name', default=None, help='Only check this app')
@click.pass_obj
def ci(inv: Invocation, app_name):
    """
    Check the process environment against the schemas (for CI).

    Directives listed in ci.skip_directives are not checked.
    """
    if should_skip(inv.config):
        console.print(f"[dim]Skipping envdoctor check ({inv.config.ci.skip_env_var} is set)[/dim]")
        return

    apps = select_apps(inv, app_name)
    if not apps:
        console.print("[yellow]No apps with example files found[/yellow]")
        return

    skip_directives = set(inv.config.ci.skip_directives)
    has_errors = False

    for app in apps:
        console.print(f"[cyan]Checking {app.name} (environment)...[/cyan]")
        schema = get_app_schema(app, inv.config, inv.root_dir, inv.registry)
        checked: List[VariableDefinition] = []
        for variable in schema:
            if variable.directive.type in skip_directives:
                console.print(f"  [dim]- {variable.name} ({variable.directive.type} skipped in CI)[/dim]")
            else:
                checked.append(variable)

        environment = {d.name: os.environ[d.name] for d in checked if d.name in os.environ}
        result = compare_schema_to_actual(checked, environment, app)

        _print_missing(result, verbose=True)
        if result.missing_required:
            has_errors = True
        console.print(
            f"  [dim]{len(checked)} checked, {len(result.missing_required)} required missing, "
            f"{len(result.missing_optional)} optional missing[/dim]"
        )

    if has_errors:
        sys.exit(1)


@cli.command(name="export")
@click.option('--format', 'fmt', type=click.Choice(EXPORT_FORMATS), default="json",
              show_default=True, help='Output format')
@click.option('--app', 'app_name', default=None, help='App to export')
@click.pass_obj
def export_command(inv: Invocation, fmt, app_name):
    """
    Print schemas or values for other tools.

    json describes every app's variables: required, optional, shared and
    app-specific. shell and values print one app's set values.
    """
    _, shared_names, _ = _shared_context(inv)

    if fmt == "json":
        summaries = {
            app.name: summarize_schema(
                get_app_schema(app, inv.config, inv.root_dir, inv.registry), shared_names
            )
            for app in select_apps(inv, app_name)
        }
        click.echo(format_summaries(summaries))
        return

    app = select_single_app(inv, app_name, f"for the {fmt} format")
    schema = get_app_schema(app, inv.config, inv.root_dir, inv.registry)
    values = export_values(schema, read_env_file(app.env_local_path))
    if values:
        click.echo(format_values(values, fmt))


@cli.command()
@click.option('--app', 'app_name', default=None, help='Only clean this app')
@click.option('--force', is_flag=True, help='Delete without asking')
@click.pass_obj
def clean(inv: Invocation, app_name, force):
    """
    Delete generated .env.local files.

    Without --app, cleans the app containing the current directory, or
    every app plus the root file.
    """
    current = None if app_name else detect_current_workspace(inv.config, inv.root_dir)
    if app_name:
        apps = select_apps(inv, app_name)
    elif current is not None:
        apps = [current]
    else:
        apps = scan_workspaces(inv.config, inv.root_dir)

    candidates = [app.env_local_path for app in apps]
    if not app_name and current is None:
        candidates.append(root_local_path(inv.config, inv.root_dir))

    paths = []
    seen = set()
    for path in candidates:
        key = path.resolve()
        if path.is_file() and key not in seen:
            seen.add(key)
            paths.append(path)

    if not paths:
        console.print("[dim]No .env.local files to delete[/dim]")
        return

    for path in paths:
        console.print(f"  {escape(str(path))}")
    if not force and not click.confirm(f"Delete {len(paths)} .env.local file(s)?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return

    for path in paths:
        path.unlink()
        console.print(f"[red]Deleted:[/red] {escape(str(path))}")
    console.print(f"\n[green]✓ Deleted {len(paths)} file(s)[/green]")


@cli.command()
@click.option('--provider', 'provider_name', required=True, help='Deployment provider name')
@click.option('--app', 'app_name', default=None, help='Only deploy this app')
@click.option('--target', 'target_names', multiple=True, help='Deploy to this target only (repeatable)')
@click.option('--dry-run', is_flag=True, help='Show the plan without deploying')
@click.option('--yes', is_flag=True, help='Deploy without asking')
@click.pass_obj
def deploy(inv: Invocation, provider_name, app_name, target_names, dry_run, yes):
    """
    Push .env.local values to a plugin's deployment provider.

    local-only variables are never deployed. Exits with status 1 when a
    target fails.
    """
    provider = inv.registry.find_deployment_provider(provider_name)
    if provider is None:
        available = ", ".join(p.name for p in inv.registry.deployment_providers) or "none"
        _fail(f"Unknown deployment provider: {provider_name}", f"Available providers: {available}")

    apps = select_apps(inv, app_name)
    if not apps:
        console.print("[yellow]No apps with example files found[/yellow]")
        return

    plans = []
    for app in apps:
        schema = get_app_schema(app, inv.config, inv.root_dir, inv.registry)
        actual = read_env_file(app.env_local_path)
        context = build_context(app, actual, inv.config, inv.root_dir, interactive=False)
        try:
            plan = plan_deployment(
                provider, app, deployable_values(schema, actual), context, target_names
            )
        except EnvDoctorError as e:
            _fail(str(e))
        plans.append((plan, context))

        targets = ", ".join(t.name for t in plan.targets) or "no targets"
        console.print(
            f"[cyan]{app.name}[/cyan]: {len(plan.values)} variable(s) to {escape(targets)}"
        )
        missing = compare_schema_to_actual(schema, actual, app).missing_required
        for variable in missing:
            console.print(f"  [yellow]⚠ {variable.name} is required but not set[/yellow]")

    if dry_run:
        console.print("[dim]Dry run - nothing was deployed.[/dim]")
        return
    if not yes and not click.confirm(f"Deploy with {provider.name}?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return

    failed = 0
    for plan, context in plans:
        for target, result in execute_plan(plan, context):
            if result.success:
                console.print(f"  [green]✓ {plan.app.name} → {escape(target.name)}[/green] {escape(result.message)}")
            else:
                failed += 1
                console.print(f"  [red]✗ {plan.app.name} → {escape(target.name)}[/red] {escape(result.message)}")

    if failed:
        console.print(f"\n[red]{failed} deployment(s) failed.[/red]")
        sys.exit(1)


@cli.command()
@click.option('--app', 'app_name', default=None, help='Only scan this app')
@click.pass_context
def diagnose(ctx, app_name):
    """
    Scan source code for variables the schemas do not declare.

    Exits with status 1 when code reads an undeclared variable.
    """
    inv: Invocation = ctx.obj
    verbose = ctx.meta.get("verbose", False)
    apps = select_apps(inv, app_name)
    if not apps:
        console.print("[yellow]No apps with example files found[/yellow]")
        return

    ignored = inv.registry.ignore_missing()
    has_missing = False
    for app in apps:
        console.print(f"[cyan]Scanning {app.name}...[/cyan]")
        schema = get_app_schema(app, inv.config, inv.root_dir, inv.registry)
        usages = scan_app_usage(app, inv.config)
        result = diagnose_usage(usages, schema, inv.config, ignored)

        for name, places in result.missing.items():
            first = places[0]
            location = f"{os.path.relpath(first.file, inv.root_dir)}:{first.line}"
            console.print(f"  [red]✗ {name}[/red] [dim](used in {escape(location)}, not in schema)[/dim]")
        if verbose:
            for name in result.unused:
                console.print(f"  [yellow]○ {name}[/yellow] [dim](in schema, not used)[/dim]")
        elif result.unused:
            console.print(f"  [dim]{len(result.unused)} schema variable(s) not used in code[/dim]")

        if result.missing:
            has_missing = True
        else:
            console.print(f"  [green]✓ {len(usages)} used variable(s) declared or ignored[/green]")

    if has_missing:
        console.print("\n[red]Some variables used in code are missing from the schemas.[/red]")
        console.print("[dim]Add them to a .env.local.example file.[/dim]")
        sys.exit(1)


@cli.command(name="run", context_settings={"ignore_unknown_options": True})
@click.argument('name')
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
@click.option('--app', 'app_name', default=None, help='App to run the command for')
@click.pass_obj
def run_command(inv: Invocation, name, args, app_name):
    """
    Run a command contributed by a plugin.
    """
    command = inv.registry.find_command(name)
    if command is None:
        available = ", ".join(c.name for c in inv.registry.commands) or "none"
        _fail(f"Unknown plugin command: {name}", f"Available plugin commands: {available}")

    apps = select_apps(inv, app_name)
    app = apps[0] if apps else root_app(inv.root_dir, inv.config)

    actual = read_env_file(app.env_local_path)
    context = build_context(app, actual, inv.config, inv.root_dir, interactive=sys.stdin.isatty())

    try:
        exit_code = command.handler(list(args), context)
    except EnvDoctorError as e:
        _fail(str(e))

    sys.exit(exit_code or 0)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
