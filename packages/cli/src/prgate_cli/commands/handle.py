"""handle command — run the slash-command pipeline for one GitHub event."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from prgate_core.config import BotConfig, ConfigError
from prgate_core.events import parse_event
from prgate_core.gh.platform import GitHubPlatform, ShadowPlatform, get_repo
from prgate_core.handler import CommandHandler, Outcome

console = Console()

_OUTCOME_STYLE = {
    Outcome.MERGED: "green",
    Outcome.HOLD_ADDED: "green",
    Outcome.HOLD_REMOVED: "green",
    Outcome.REVIEWER_ASSIGNED: "green",
    Outcome.AWAITING_APPROVALS: "cyan",
    Outcome.IGNORED: "dim",
    Outcome.SELF: "dim",
    Outcome.REVIEW_FAILED: "red",
    Outcome.MERGE_FAILED: "red",
    Outcome.ERROR: "red",
}


def _load_payload(event_path: str) -> dict:
    path = Path(event_path)
    if not path.exists():
        raise click.UsageError(f"Event payload not found: {event_path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.UsageError(f"Event payload is not valid JSON: {e}")
    if not isinstance(payload, dict):
        raise click.UsageError("Event payload must be a JSON object.")
    return payload


@click.command("handle")
@click.option(
    "--event-name",
    envvar="GITHUB_EVENT_NAME",
    required=True,
    help="Webhook event name, e.g. issue_comment. Defaults to $GITHUB_EVENT_NAME.",
)
@click.option(
    "--event-path",
    envvar="GITHUB_EVENT_PATH",
    required=True,
    help="Path to the JSON event payload. Defaults to $GITHUB_EVENT_PATH.",
)
@click.option(
    "--repo",
    envvar="GITHUB_REPOSITORY",
    default=None,
    help="GitHub repository in owner/name format. Defaults to the payload's repository.",
)
@click.option(
    "--min-approvals",
    "min_approvals",
    type=int,
    default=None,
    help="Approvals required before auto-merge. Overrides config file.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print comments, labels, reviews and merges instead of sending them.",
)
@click.pass_context
def handle_cmd(
    ctx,
    event_name: str,
    event_path: str,
    repo: str | None,
    min_approvals: int | None,
    shadow: bool,
):
    """Handle /approve, /hold and /unhold comments for one event.

    \b
    Supported events:
      issue_comment.created         slash commands on pull requests
      pull_request_review.submitted accepted, carries no commands
      pull_request.opened           requests a review from the repo owner
    """
    config = dict(ctx.obj["config"]) if ctx.obj else {}
    if min_approvals is not None:
        config["min_required_approvals"] = min_approvals
    try:
        bot_config = BotConfig.from_dict(config)
    except ConfigError as e:
        raise click.UsageError(str(e))

    event = parse_event(event_name, _load_payload(event_path))
    if event is None:
        console.print(f"[yellow]Ignoring unsupported event: {event_name}[/yellow]")
        return

    token = config.get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )

    repo_name = repo or event.repo
    if not repo_name:
        raise click.UsageError("Repository unknown. Pass --repo owner/name.")

    platform = GitHubPlatform(get_repo(repo_name, token=token))
    if shadow:
        platform = ShadowPlatform(platform, console=console)

    outcome = CommandHandler(platform, bot_config).handle(event)

    style = _OUTCOME_STYLE.get(outcome, "yellow")
    target = f"#{event.number}" if event.number else repo_name
    console.print(f"[{style}]{event.kind.value} by {escape(event.actor)} on {target}: {outcome.value}[/{style}]")
