"""Entry point for the scaffold-kit CLI."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Callable

import yaml

from scaffold_kit.config import get_settings
from scaffold_kit.core.context import ExecutionContext, MutationStatus
from scaffold_kit.core.errors import ScaffoldError
from scaffold_kit.core.files import set_ruby_version
from scaffold_kit.core.shell import run_eval
from scaffold_kit.mutators.concern import ConcernBlock, upsert_concern
from scaffold_kit.mutators.grouped import gem, remove_gem
from scaffold_kit.mutators.keyed import proc_file
from scaffold_kit.mutators.line_list import gitignore
from scaffold_kit.mutators.sentinel import environment, environment_generator
from scaffold_kit.mutators.structured import docker_compose

logger = logging.getLogger("scaffold_kit")


def log_level_for(verbose: bool = False, debug: bool = False, log_level: str = "WARNING") -> int:
    """Pick the root log level; the flags win over the configured level name."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.getLevelNamesMapping().get(log_level.upper(), logging.WARNING)


def setup_logging(verbose: bool = False, debug: bool = False, log_level: str = "WARNING") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=log_level_for(verbose, debug, log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _common_options() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--project",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without writing",
    )
    parent.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing files and blocks instead of skipping them",
    )
    parent.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parent.add_argument("--debug", action="store_true", help="Debug output")
    return parent


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="scaffold-kit",
        description="Idempotent edits to project manifests and settings files",
    )
    common = _common_options()
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    p = subparsers.add_parser("gitignore", parents=[common], help="Add entries to .gitignore")
    p.add_argument("entries", nargs="+", help="Entries to ignore")

    p = subparsers.add_parser("procfile", parents=[common], help="Set a Procfile process")
    p.add_argument("name", help="Process name, e.g. web")
    p.add_argument("process_command", metavar="command", help="Command starting the process")
    p.add_argument("--env", help="Write Procfile.<env> instead of Procfile")

    p = subparsers.add_parser("gem", parents=[common], help="Add or update a Gemfile entry")
    p.add_argument("name", help="Gem name")
    p.add_argument("versions", nargs="*", help="Version requirements")
    p.add_argument("--group", action="append", help="Gem group (repeatable)")
    p.add_argument("--comment", help="Comment placed above the directive")
    p.add_argument(
        "--option",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Directive option, e.g. require=false (repeatable)",
    )

    p = subparsers.add_parser("remove-gem", parents=[common], help="Remove a Gemfile entry")
    p.add_argument("name", help="Gem name")

    for name, help_text in (
        ("environment", "Set an application or environment config line"),
        ("generator-config", "Set a line inside config.generators"),
    ):
        p = subparsers.add_parser(name, parents=[common], help=help_text)
        p.add_argument("data", help='Config line, e.g. config.time_zone = "UTC"')
        p.add_argument("--env", action="append", help="Environment name (repeatable)")

    p = subparsers.add_parser("compose", parents=[common], help="Merge into docker-compose.yml")
    p.add_argument("fragment", help="YAML fragment file, or - for stdin")

    p = subparsers.add_parser("route", parents=[common], help="Write a resource routing concern")
    p.add_argument("resource", help="Underscored resource name, e.g. blog_post")
    p.add_argument("plural", help="Underscored plural, e.g. blog_posts")
    p.add_argument("--concern", action="append", default=[], help="Sub-concern (repeatable)")
    p.add_argument("--restricted", action="store_true", help="Register for admins only")
    p.add_argument("--entity", action="store_true", help="Insert above the entity routes marker")

    p = subparsers.add_parser("ruby-version", parents=[common], help="Pin the Ruby version")
    p.add_argument("version", nargs="?", help="Version (default: from settings)")

    p = subparsers.add_parser("run", parents=[common], help="Run a command in the project")
    p.add_argument("argv", nargs=argparse.REMAINDER, help="Command and arguments")

    return parser


def _parse_options(pairs: list[str]) -> dict[str, Any]:
    options: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ScaffoldError(f"Expected KEY=VALUE, got {pair!r}")
        options[key] = yaml.safe_load(value)
    return options


def _read_fragment(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def cmd_gitignore(ctx: ExecutionContext, args: argparse.Namespace) -> int:
    gitignore(ctx, *args.entries)
    return 0


def cmd_procfile(ctx: ExecutionContext, args: argparse.Namespace) -> int:
    proc_file(ctx, args.name, args.process_command, env=args.env)
    return 0


def cmd_gem(ctx: ExecutionContext, args: argparse.Namespace) -> int:
    gem(
        ctx,
        args.name,
        *args.versions,
        group=args.group,
        comment=args.comment,
        **_parse_options(args.option),
    )
    return 0


def cmd_remove_gem(ctx: ExecutionContext, args: argparse.Namespace) -> int:
    remove_gem(ctx, args.name)
    return 0


def cmd_environment(ctx: ExecutionContext, args: argparse.Namespace) -> int:
    environment(ctx, args.data, env=args.env)
    return 0


def cmd_generator_config(ctx: ExecutionContext, args: argparse.Namespace) -> int:
    environment_generator(ctx, args.data, env=args.env)
    return 0


def cmd_compose(ctx: ExecutionContext, args: argparse.Namespace) -> int:
    docker_compose(ctx, _read_fragment(args.fragment))
    return 0


def cmd_route(ctx: ExecutionContext, args: argparse.Namespace) -> int:
    block = ConcernBlock.build(
        args.resource,
        args.plural,
        concerns=args.concern,
        restricted=args.restricted,
    )
    upsert_concern(ctx, block, entity=args.entity, skip_existing=not ctx.force)
    return 0


def cmd_ruby_version(ctx: ExecutionContext, args: argparse.Namespace) -> int:
    set_ruby_version(ctx, args.version)
    return 0


def cmd_run(ctx: ExecutionContext, args: argparse.Namespace) -> int:
    if not args.argv:
        raise ScaffoldError("No command given")
    result = run_eval(ctx, args.argv)
    if result.output:
        print(result.output, end="" if result.output.endswith("\n") else "\n")
    if result.skipped:
        return 0
    return 0 if result.success else (result.exit_code or 1)


COMMANDS: dict[str, Callable[[ExecutionContext, argparse.Namespace], int]] = {
    "gitignore": cmd_gitignore,
    "procfile": cmd_procfile,
    "gem": cmd_gem,
    "remove-gem": cmd_remove_gem,
    "environment": cmd_environment,
    "generator-config": cmd_generator_config,
    "compose": cmd_compose,
    "route": cmd_route,
    "ruby-version": cmd_ruby_version,
    "run": cmd_run,
}


def print_summary(ctx: ExecutionContext) -> None:
    """Print one line per recorded mutation."""
    prefix = "[dry-run] " if ctx.dry_run else ""
    for record in ctx.records:
        if record.status == MutationStatus.UNCHANGED and not ctx.verbose:
            continue
        print(f"{prefix}{record.status.value:>9}  {record.path}  ({record.action})")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    settings = get_settings()
    setup_logging(
        verbose=args.verbose or settings.verbose,
        debug=args.debug or settings.debug,
        log_level=settings.log_level,
    )

    try:
        ctx = ExecutionContext.for_project(
            args.project,
            dry_run=args.dry_run,
            verbose=args.verbose,
            force=args.force,
        )
        code = COMMANDS[args.command](ctx, args)
    except (ScaffoldError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {args.command} failed: {e}", file=sys.stderr)
        return 1

    print_summary(ctx)
    return code


if __name__ == "__main__":
    sys.exit(main())
