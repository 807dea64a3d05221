"""check command — show and validate the resolved configuration."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from prgate_core.config import BotConfig, ConfigError

console = Console()


@click.command("check")
@click.pass_context
def check_cmd(ctx):
    """Print the settings `prgate handle` would run with.

    Exits non-zero when .prgate.yml holds an invalid value, so CI can
    validate config changes before they reach the bot.
    """
    config = ctx.obj.get("config", {}) if ctx.obj else {}
    config_path = ctx.obj.get("config_path", ".prgate.yml") if ctx.obj else ".prgate.yml"

    try:
        bot_config = BotConfig.from_dict(config)
    except ConfigError as e:
        raise click.UsageError(str(e))

    table = Table(title=f"prgate configuration — {config_path}", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("min_required_approvals", str(bot_config.min_required_approvals))
    table.add_row("merge_method", bot_config.merge_method)
    table.add_row("assign_owner_on_open", "yes" if bot_config.assign_owner_on_open else "no")
    table.add_row("bot_login", escape(bot_config.bot_login))
    table.add_row("hold_label", escape(bot_config.hold_label))
    table.add_row("github_token", "[green]found[/green]" if config.get("github_token") else "[red]missing[/red]")

    console.print(table)
