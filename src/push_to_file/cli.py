"""CLI for push-to-file."""

import argparse
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from importlib.metadata import version
from pathlib import Path
from typing import Any, Callable

from rich.console import Console
from rich.markup import escape

from . import config as cfg
from . import messages
from .domain.secret import SecretGroup
from .errors import ConfigError
from .formats import available_formats
from .logging_setup import configure as configure_logging
from .push import push_group_to_file, validate_group_template
from .sources import SecretSource, create_source, fetch_group_secrets
from .tracing import configure_tracing, parse_headers, shutdown_tracing

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def _run_group_actions(
    groups: list[SecretGroup],
    action: Callable[[SecretGroup], int],
    *,
    failure_label: str,
    parallel: bool,
) -> int:
    """Run *action* per group. Distinct groups may run concurrently."""

    def _fail(group: SecretGroup, e: Exception) -> int:
        logger.error(messages.CSPFK061E, group.name, e)
        console.print(f"[yellow]Warning:[/yellow] failed to {failure_label} {group.name}: {escape(str(e))}")
        return 1

    rc = 0
    if not parallel or len(groups) <= 1:
        for group in groups:
            try:
                rc |= action(group)
            except Exception as e:
                rc |= _fail(group, e)
        return rc

    with ThreadPoolExecutor(max_workers=min(8, len(groups))) as ex:
        futures = {ex.submit(action, group): group for group in groups}
        for fut in as_completed(futures):
            group = futures[fut]
            try:
                rc |= fut.result()
            except Exception as e:
                rc |= _fail(group, e)
    return rc


def _load(args: argparse.Namespace) -> dict[str, Any]:
    config_file = getattr(args, "config", None)
    config = cfg.load_config(Path(config_file) if config_file else None)

    log_file = Path(config.get("log_file") or cfg.DEFAULT_LOG_FILE).expanduser()
    configure_logging(log_file, debug=bool(config.get("debug", False)))

    otlp = cfg.get_otlp_config(config)
    if otlp.get("endpoint"):
        configure_tracing(otlp["endpoint"], parse_headers(otlp.get("headers", "")))
    return config


def _select_groups(groups: list[SecretGroup], names: list[str] | None) -> list[SecretGroup]:
    if not names:
        return groups
    names = list(dict.fromkeys(names))
    by_name = {g.name: g for g in groups}
    unknown = [n for n in names if n not in by_name]
    if unknown:
        raise ConfigError(f"unknown secret group(s): {', '.join(unknown)}")
    return [by_name[n] for n in names]


def _parse_interval(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"invalid refresh interval {value!r}")
    try:
        seconds = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid refresh interval {value!r}") from exc
    if seconds < 1:
        raise ConfigError(f"refresh interval must be at least 1 second, got {seconds}")
    return seconds


def _push_one(group: SecretGroup, source: SecretSource) -> int:
    secrets = fetch_group_secrets(group, source)
    if push_group_to_file(group, secrets):
        console.print(f"[green]Updated.[/green] {group.name}: {group.file_path}")
    else:
        console.print(f"[dim]Unchanged.[/dim] {group.name}: {group.file_path}")
    return 0


def cmd_push(args: argparse.Namespace) -> int:
    try:
        config = _load(args)
        groups = _select_groups(cfg.parse_groups(config), getattr(args, "group", None))
        source = create_source(config)
        raw_interval = args.interval if getattr(args, "interval", None) is not None else config.get("interval")
        interval = _parse_interval(raw_interval)
    except ConfigError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return 1

    if not groups:
        console.print("[yellow]No secret groups configured.[/yellow]")
        return 0

    once = bool(getattr(args, "once", False)) or interval is None

    rc = 0
    try:
        while True:
            rc = _run_group_actions(
                groups,
                lambda group: _push_one(group, source),
                failure_label="push",
                parallel=len(groups) > 1,
            )
            if once:
                break
            logger.info(messages.CSPFK020I, interval)
            time.sleep(interval)
    except KeyboardInterrupt:
        console.print("[dim]Interrupted.[/dim]")
    finally:
        shutdown_tracing()
    return rc


def cmd_check(args: argparse.Namespace) -> int:
    from rich.table import Table

    try:
        config = _load(args)
        groups = cfg.parse_groups(config)
    except ConfigError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return 1

    table = Table(title="push-to-file groups")
    table.add_column("Group")
    table.add_column("Format")
    table.add_column("Mode")
    table.add_column("Secrets")
    table.add_column("Path")
    table.add_column("Template")

    issues: dict[str, str] = {}

    def _check_one(group: SecretGroup) -> int:
        try:
            validate_group_template(group)
        except Exception as e:
            issues[group.name] = str(e)
            return 1
        return 0

    rc = _run_group_actions(groups, _check_one, failure_label="check", parallel=False)

    for group in groups:
        status = f"[red]{escape(issues[group.name])}[/red]" if group.name in issues else "[green]ok[/green]"
        table.add_row(
            group.name,
            group.file_format,
            oct(group.file_permissions),
            ", ".join(group.aliases) or "(none)",
            str(group.file_path),
            status,
        )

    console.print(table)
    return rc


_STARTER_CONFIG: dict[str, Any] = {
    "source": {"type": "env"},
    "groups": {
        "example": {
            "format": "yaml",
            "path": "example.yaml",
            "permissions": "0640",
            "secrets": [{"password": "EXAMPLE_PASSWORD"}],
        },
    },
}


def cmd_init(args: argparse.Namespace) -> int:
    scope = cfg.Scope.GLOBAL if getattr(args, "global_scope", False) else cfg.Scope.PROJECT
    path = cfg.config_path(scope)
    if not getattr(args, "force", False):
        try:
            existing = cfg.load_raw_config(scope)
        except ConfigError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            return 1
        if existing:
            console.print(f"[yellow]{escape(str(path))} already exists.[/yellow] Use --force to overwrite.")
            return 1

    try:
        cfg.save_config(_STARTER_CONFIG, scope)
    except OSError as e:
        console.print(f"[red]Unable to write {escape(str(path))}: {escape(str(e))}[/red]")
        return 1
    console.print(f"[green]Wrote[/green] {path}")
    return 0


def cmd_formats(_args: argparse.Namespace) -> int:
    for name in available_formats():
        console.print(name)
    return 0


def _add_config_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", "-c", metavar="PATH",
                        help="Config file (default: global + project config)")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="push-to-file",
        description="Render secret groups through templates into files, atomically",
    )
    sub = parser.add_subparsers(dest="command")

    p_push = sub.add_parser("push", help="Fetch secrets and write group files")
    _add_config_flag(p_push)
    p_push.add_argument("--group", "-g", action="append",
                        help="Only push this group (repeatable)")
    p_push.add_argument("--interval", type=int,
                        help="Refresh every N seconds until interrupted")
    p_push.add_argument("--once", action="store_true",
                        help="Push once even if an interval is configured")

    p_check = sub.add_parser("check", help="Validate config and dry-run templates")
    _add_config_flag(p_check)

    p_init = sub.add_parser("init", help="Write a starter config file")
    p_init.add_argument("--global", dest="global_scope", action="store_true",
                        help="Write the global config instead of ./push-to-file.json")
    p_init.add_argument("--force", action="store_true", help="Overwrite an existing config")

    sub.add_parser("formats", help="List supported file formats")
    sub.add_parser("version", help="Show version")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(0)

    commands = {
        "push": cmd_push,
        "check": cmd_check,
        "init": cmd_init,
        "formats": cmd_formats,
        "version": lambda _: console.print(version("push-to-file")) or 0,
    }
    sys.exit(commands[args.command](args))


if __name__ == "__main__":
    main()
