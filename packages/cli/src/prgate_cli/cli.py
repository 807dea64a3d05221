"""CLI entry point for prgate.

Commands:
  handle  — process one delivered GitHub event (run from GitHub Actions)
  check   — show the resolved configuration and validate it
  init    — write .prgate.yml and a GitHub Actions workflow
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prgate_cli.commands.check import check_cmd
from prgate_cli.commands.handle import handle_cmd
from prgate_cli.commands.init import init_cmd

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # PyGithub logs every request at DEBUG.
    logging.getLogger("github").setLevel(logging.INFO)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prgate"),
    prog_name="prgate",
)
@click.option(
    "--config",
    "config_path",
    default=".prgate.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRGATE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Slash-command approvals and auto-merge for GitHub pull requests."""
    from prgate_core.config import ConfigError, load_config
    from prgate_cli.auth import resolve_github_token

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.UsageError(str(e))

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path


main.add_command(handle_cmd)
main.add_command(check_cmd)
main.add_command(init_cmd)
