"""GitHub access for the command pipeline.

GitHubPlatform is the only place that touches PyGithub. Each method either
returns a snapshot from prgate_core.gh.models or raises PlatformError; the
pipeline decides per call site whether a failure blocks or is tolerated.
"""

from __future__ import annotations

import functools
import logging

import requests
from github import Github, GithubException
from rich.console import Console
from rich.markup import escape

from prgate_core.gh.models import CommentInfo, PullRequestInfo, ReviewInfo

logger = logging.getLogger(__name__)


class PlatformError(Exception):
    """A GitHub call failed. ``str(err)`` is the message shown in comments."""

    def __init__(self, operation: str, message: str):
        super().__init__(message)
        self.operation = operation
        self.message = message


def _error_message(exc: GithubException) -> str:
    data = exc.data if isinstance(exc.data, dict) else {}
    return data.get("message") or str(exc)


def _wrap(operation: str):
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except GithubException as e:
                logger.debug("GitHub call %s failed: %s", operation, e)
                raise PlatformError(operation, _error_message(e)) from e
            except requests.exceptions.RequestException as e:
                # Connection resets and timeouts are not wrapped by PyGithub.
                logger.debug("GitHub call %s failed in transport: %s", operation, e)
                raise PlatformError(operation, str(e) or type(e).__name__) from e

        return wrapper

    return decorator


def _login(user) -> str:
    # Deleted accounts come back as user=None.
    return user.login if user is not None else ""


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


class GitHubPlatform:
    """Synchronous PyGithub-backed implementation of the platform calls."""

    def __init__(self, repo):
        self._repo = repo

    @_wrap("get_pull_request")
    def get_pull_request(self, number: int) -> PullRequestInfo:
        pr = self._repo.get_pull(number)
        return PullRequestInfo(
            number=pr.number,
            draft=bool(pr.draft),
            labels=frozenset(label.name for label in pr.labels),
        )

    @_wrap("list_reviews")
    def list_reviews(self, number: int) -> list[ReviewInfo]:
        pr = self._repo.get_pull(number)
        return [ReviewInfo(actor=_login(r.user), state=r.state) for r in pr.get_reviews()]

    @_wrap("list_comments")
    def list_comments(self, issue_number: int) -> list[CommentInfo]:
        """Return every comment on the thread, oldest first."""
        issue = self._repo.get_issue(issue_number)
        return [CommentInfo(actor=_login(c.user), body=c.body or "") for c in issue.get_comments()]

    @_wrap("list_collaborators")
    def list_collaborators(self, affiliation: str = "direct") -> list[str]:
        return [user.login for user in self._repo.get_collaborators(affiliation=affiliation)]

    @_wrap("create_comment")
    def create_comment(self, issue_number: int, body: str) -> None:
        self._repo.get_issue(issue_number).create_comment(body)

    @_wrap("create_review")
    def create_review(self, number: int, body: str, event: str = "APPROVE") -> None:
        self._repo.get_pull(number).create_review(body=body, event=event)

    @_wrap("merge")
    def merge(self, number: int, merge_method: str = "merge") -> None:
        status = self._repo.get_pull(number).merge(merge_method=merge_method)
        if not status.merged:
            raise PlatformError("merge", status.message or f"PR #{number} was not merged.")

    @_wrap("add_labels")
    def add_labels(self, issue_number: int, labels: list[str]) -> None:
        self._repo.get_issue(issue_number).add_to_labels(*labels)

    @_wrap("remove_label")
    def remove_label(self, issue_number: int, label: str) -> None:
        self._repo.get_issue(issue_number).remove_from_labels(label)

    @_wrap("request_reviewers")
    def request_reviewers(self, number: int, reviewers: list[str]) -> None:
        self._repo.get_pull(number).create_review_request(reviewers=reviewers)


class ShadowPlatform:
    """Dry-run wrapper: reads hit GitHub, writes are printed instead of sent."""

    def __init__(self, inner, console: Console | None = None):
        self._inner = inner
        self._console = console or Console()

    def get_pull_request(self, number: int) -> PullRequestInfo:
        return self._inner.get_pull_request(number)

    def list_reviews(self, number: int) -> list[ReviewInfo]:
        return self._inner.list_reviews(number)

    def list_comments(self, issue_number: int) -> list[CommentInfo]:
        return self._inner.list_comments(issue_number)

    def list_collaborators(self, affiliation: str = "direct") -> list[str]:
        return self._inner.list_collaborators(affiliation=affiliation)

    def _show(self, action: str, number: int, detail: str = "") -> None:
        line = f"[dim]shadow[/dim] [bold cyan]{action}[/bold cyan] #{number}"
        if detail:
            line += f"  {escape(detail)}"
        self._console.print(line, markup=True, highlight=False)

    def create_comment(self, issue_number: int, body: str) -> None:
        self._show("comment", issue_number, body)

    def create_review(self, number: int, body: str, event: str = "APPROVE") -> None:
        self._show(f"review:{event}", number, body)

    def merge(self, number: int, merge_method: str = "merge") -> None:
        self._show(f"merge:{merge_method}", number)

    def add_labels(self, issue_number: int, labels: list[str]) -> None:
        self._show("add-labels", issue_number, ", ".join(labels))

    def remove_label(self, issue_number: int, label: str) -> None:
        self._show("remove-label", issue_number, label)

    def request_reviewers(self, number: int, reviewers: list[str]) -> None:
        self._show("request-reviewers", number, ", ".join(reviewers))
