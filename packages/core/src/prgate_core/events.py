"""Decoding of GitHub webhook payloads into the events the bot reacts to."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class EventKind(enum.Enum):
    REVIEW_SUBMITTED = "pull_request_review.submitted"
    COMMENT_CREATED = "issue_comment.created"
    PULL_REQUEST_OPENED = "pull_request.opened"


class Command(enum.Enum):
    APPROVE = "/approve"
    HOLD = "/hold"
    UNHOLD = "/unhold"
    NONE = None

    @classmethod
    def parse(cls, body: str | None) -> Command:
        """Exact match only: ``" /approve"`` or ``"/Approve"`` is not a command."""
        for command in (cls.APPROVE, cls.HOLD, cls.UNHOLD):
            if body == command.value:
                return command
        return cls.NONE


@dataclass(frozen=True)
class Event:
    kind: EventKind
    actor: str
    owner: str
    repo: str
    body: str | None = None
    number: int | None = None


def _login(obj: dict | None) -> str | None:
    return ((obj or {}).get("user") or {}).get("login")


def parse_event(event_name: str, payload: dict) -> Event | None:
    """Build an Event from a webhook name and its JSON payload.

    Returns None for event/action pairs the bot does not handle.
    """
    try:
        kind = EventKind(f"{event_name}.{payload.get('action')}")
    except ValueError:
        return None

    repository = payload.get("repository") or {}
    owner = (repository.get("owner") or {}).get("login", "")
    repo = repository.get("full_name", "")
    sender = (payload.get("sender") or {}).get("login", "")

    if kind is EventKind.COMMENT_CREATED:
        comment = payload.get("comment") or {}
        issue = payload.get("issue") or {}
        # Comments on plain issues carry no pull_request key.
        number = issue.get("number") if "pull_request" in issue else None
        return Event(
            kind=kind,
            actor=_login(comment) or sender,
            owner=owner,
            repo=repo,
            body=comment.get("body"),
            number=number,
        )

    pull_request = payload.get("pull_request") or {}
    if kind is EventKind.REVIEW_SUBMITTED:
        actor = _login(payload.get("review")) or sender
    else:
        actor = _login(pull_request) or sender
    return Event(kind=kind, actor=actor, owner=owner, repo=repo, number=pull_request.get("number"))


def extract_command(event: Event) -> Command | None:
    """Return the command carried by a comment event.

    None means the event is not a command candidate at all (no comment text
    or no pull request to act on).
    """
    if not event.body or not event.number:
        return None
    return Command.parse(event.body)
