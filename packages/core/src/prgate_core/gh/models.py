"""Read-only snapshots of the GitHub objects the command pipeline inspects.

Decoupled from PyGithub so the pipeline can be driven by any platform
implementation (including test fakes).
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PullRequestInfo:
    number: int
    draft: bool = False
    labels: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ReviewInfo:
    actor: str
    state: str  # "APPROVED" | "CHANGES_REQUESTED" | "COMMENTED" | "DISMISSED" | "PENDING"


@dataclass(frozen=True)
class CommentInfo:
    actor: str
    body: str
