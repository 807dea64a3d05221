"""init command — write .prgate.yml and a GitHub Actions workflow.

The workflow runs `prgate handle` for every comment, review and newly
opened pull request; GitHub Actions exposes the event name, payload path
and repository through the GITHUB_EVENT_NAME, GITHUB_EVENT_PATH and
GITHUB_REPOSITORY variables that `handle` reads by default.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.markup import escape

from prgate_core.config import BOT_LOGIN, DEFAULT_CONFIG, MERGE_METHODS

console = Console()
logger = logging.getLogger(__name__)

_WORKFLOW_TEMPLATE = """\
name: prgate

on:
  issue_comment:
    types: [created]
  pull_request_review:
    types: [submitted]
  pull_request:
    types: [opened]

jobs:
  prgate:
    runs-on: ubuntu-latest
    permissions:
      contents: write
      issues: write
      pull-requests: write

    steps:
      - uses: actions/checkout@v4

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install prgate
        run: pip install "prgate=={version}"

      - name: Handle event
        env:
          GITHUB_TOKEN: ${{{{ secrets.{token_secret} }}}}
        run: prgate handle
"""


@click.command("init")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Auto-detected from git remote.")
@click.pass_context
def init_cmd(ctx, repo: str | None):
    """Set up prgate for a repository.

    Creates .prgate.yml with the approval threshold and merge method, and
    optionally generates a GitHub Actions workflow.
    """
    config_path = ctx.obj.get("config_path", ".prgate.yml") if ctx.obj else ".prgate.yml"

    console.print("\n[bold cyan]prgate init[/bold cyan] — repository setup\n")

    if repo is None:
        repo = _detect_repo_from_git()
        if repo:
            console.print(f"[dim]Detected repository: {repo}[/dim]")
        else:
            repo = click.prompt("GitHub repository (owner/name)")

    threshold = click.prompt(
        "Approvals required before auto-merge",
        type=click.IntRange(min=1),
        default=DEFAULT_CONFIG["min_required_approvals"],
    )
    merge_method = click.prompt(
        "Merge method",
        type=click.Choice(list(MERGE_METHODS)),
        default=DEFAULT_CONFIG["merge_method"],
    )

    _write_config(config_path, {"min_required_approvals": threshold, "merge_method": merge_method})
    console.print(f"[green]Created {config_path}[/green]")

    setup_ci = click.confirm("\nGenerate .github/workflows/prgate.yml for GitHub Actions?", default=True)
    if setup_ci:
        token_secret = click.prompt("Repository secret holding the bot token", default="GITHUB_TOKEN")
        _write_workflow(token_secret)
        console.print("[green]Created .github/workflows/prgate.yml[/green]")
        if token_secret != "GITHUB_TOKEN":
            console.print(
                f"\n[yellow]Remember to add [bold]{token_secret}[/bold] to your "
                "GitHub repository secrets (Settings → Secrets → Actions).[/yellow]"
            )
        console.print(
            f"\n[yellow]Note:[/yellow] the workflow acts as the owner of {token_secret} "
            f"(github-actions\\[bot] for GITHUB_TOKEN), not as {escape(BOT_LOGIN)}. "
            "The self-loop guard only recognises comments posted by the prgate GitHub App."
        )

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print(f"Comment [bold]/approve[/bold], [bold]/hold[/bold] or [bold]/unhold[/bold] on a PR in {repo}.")


def _detect_repo_from_git() -> str | None:
    """Try to detect the GitHub repo slug from the git remote URL."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode != 0:
            return None
        url = result.stdout.strip()
        # https://github.com/owner/repo.git  →  owner/repo
        # git@github.com:owner/repo.git      →  owner/repo
        if "github.com" not in url:
            return None
        slug = url.split("github.com")[-1].lstrip("/:").removesuffix(".git")
        return slug if "/" in slug else None
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None


def _write_config(config_path: str, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    path = Path(config_path)
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _get_version() -> str:
    """Read the current prgate version from the installed package metadata."""
    try:
        from importlib.metadata import version

        return version("prgate")
    except Exception:
        logger.debug("prgate is not installed; pinning workflow to the source version.")
        return "0.1.0"


def _write_workflow(token_secret: str) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    workflow_path = workflow_dir / "prgate.yml"
    workflow_path.write_text(_WORKFLOW_TEMPLATE.format(version=_get_version(), token_secret=token_secret))
