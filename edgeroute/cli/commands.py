from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from edgeroute.exceptions import ConfigError, RoutingError
from edgeroute.loader import load_config_file
from edgeroute.model import CacheBehavior, DistributionConfig
from edgeroute.router import RequestRouter

console = Console()


def _load(config_file: Path) -> DistributionConfig:
    try:
        return load_config_file(config_file)
    except ConfigError as e:
        _show_config_error(config_file, e)
        raise SystemExit(1) from None


def _show_config_error(config_file: Path, error: ConfigError) -> None:
    count = len(error.violations)
    plural = "s" if count != 1 else ""
    console.print(
        f"\n[bold red]✗ {escape(str(config_file))} has {count} error{plural}[/bold red]",
        highlight=False,
    )
    for violation in error.violations:
        console.print(
            f"  [red]•[/red] [cyan]{escape(violation.field)}[/cyan] {escape(violation.message)} "
            f"[dim]({violation.code})[/dim]",
            highlight=False,
        )


def _methods(methods: frozenset[str]) -> str:
    return ", ".join(sorted(methods))


def _ttl(behavior: CacheBehavior) -> str:
    ttl = behavior.ttl
    return f"{ttl.min}/{ttl.default}/{ttl.max}"


def _behaviors_table(config: DistributionConfig) -> Table:
    table = Table(title="Cache behaviors (evaluation order)")
    table.add_column("#", justify="right")
    table.add_column("Path pattern")
    table.add_column("Origin")
    table.add_column("Methods")
    table.add_column("TTL min/default/max")

    for behavior in config.ordered_behaviors:
        table.add_row(
            str(behavior.precedence),
            escape(behavior.path_pattern),
            escape(behavior.target_origin_id),
            _methods(behavior.allowed_methods),
            _ttl(behavior),
        )
    default = config.default_behavior
    table.add_row(
        "-",
        "(default)",
        escape(default.target_origin_id),
        _methods(default.allowed_methods),
        _ttl(default),
    )
    return table


def run_check(config_file: Path) -> None:
    config = _load(config_file)
    console.print(_behaviors_table(config))
    console.print(
        f"\n[bold green]✓[/bold green] {escape(str(config_file))} is valid: "
        f"{len(config.origins)} origins, {len(config.ordered_behaviors)} ordered behaviors",
        highlight=False,
    )


def run_resolve(config_file: Path, path: str, method: str) -> None:
    router = RequestRouter(_load(config_file))
    try:
        origin, behavior = router.resolve(path, method)
    except RoutingError as e:
        console.print(
            f"[bold red]✗ {type(e).__name__}:[/bold red] {escape(str(e))}", highlight=False
        )
        raise SystemExit(1) from None

    forwarding = behavior.forwarding
    console.print(f"[bold]{escape(method)} {escape(path)}[/bold]", highlight=False)
    console.print(f"  Behavior: {escape(behavior.path_pattern or '(default)')}", highlight=False)
    console.print(f"  Origin:   {escape(origin.id)} ({escape(origin.domain)})", highlight=False)
    console.print(f"  TTL:      {_ttl(behavior)}", highlight=False)
    console.print(
        f"  Forward:  query string {'yes' if forwarding.query_string else 'no'}, "
        f"cookies {forwarding.cookie_policy}",
        highlight=False,
    )
    console.print(f"  Viewer:   {behavior.viewer_protocol_policy}", highlight=False)
