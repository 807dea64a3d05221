"""Slash-command pipeline: who may run a command, and what each command does.

    event → extract_command → self-loop guard → authorization
          → duplicate filter → dispatch (approve | hold | unhold)

Pull-request-opened events skip the pipeline and go to assign_reviewer().
No PlatformError escapes handle(): each failure becomes a thread comment or
a log line, depending on the call site.
"""

from __future__ import annotations

import enum
import logging

from prgate_core.config import BotConfig
from prgate_core.events import Command, Event, EventKind, extract_command
from prgate_core.gh.models import ReviewInfo
from prgate_core.gh.platform import PlatformError

logger = logging.getLogger(__name__)

APPROVAL_REVIEW_BODY = "Approved via /approve command."


class Outcome(enum.Enum):
    IGNORED = "ignored"
    SELF = "self"
    DENIED = "denied"
    DUPLICATE = "duplicate"
    HELD = "held"
    DRAFT = "draft"
    ALREADY_APPROVED = "already-approved"
    REVIEW_FAILED = "review-failed"
    MERGED = "merged"
    MERGE_FAILED = "merge-failed"
    AWAITING_APPROVALS = "awaiting-approvals"
    HOLD_ADDED = "hold-added"
    HOLD_REMOVED = "hold-removed"
    REVIEWER_ASSIGNED = "reviewer-assigned"
    ERROR = "error"


def count_approvals(reviews: list[ReviewInfo], actor: str, just_approved: bool) -> int:
    """Approvals to weigh against the threshold.

    The review created for ``actor`` a moment ago may not be in ``reviews``
    yet, so the actor's own entries are skipped and the new approval is
    added explicitly.
    """
    prior = sum(1 for r in reviews if r.state == "APPROVED" and r.actor != actor)
    return prior + (1 if just_approved else 0)


class CommandHandler:
    def __init__(self, platform, config: BotConfig):
        self.platform = platform
        self.config = config

    # ------------------------------------------------------------------ #
    # Entry point                                                          #
    # ------------------------------------------------------------------ #

    def handle(self, event: Event) -> Outcome:
        if event.kind is EventKind.PULL_REQUEST_OPENED:
            return self.assign_reviewer(event)

        command = extract_command(event)
        if command is None or command is Command.NONE:
            return Outcome.IGNORED

        if event.actor == self.config.bot_login:
            logger.info("Ignoring comment from the bot itself to prevent an infinite loop.")
            return Outcome.SELF

        number = event.number
        if not self.is_authorized(event.actor, event.owner):
            self._comment(
                number,
                f"❌ @{event.actor}, you do not have permission to use this command. "
                "Only maintainers and the bot can use this command.",
            )
            return Outcome.DENIED

        if self.is_duplicate(event.actor, event.body, number):
            self._comment(number, f"@{event.actor}, you have already used this command in the thread.")
            return Outcome.DUPLICATE

        match command:
            case Command.APPROVE:
                return self.approve(number, event.actor)
            case Command.HOLD:
                return self.hold(number)
            case Command.UNHOLD:
                return self.unhold(number)
            case _:
                return Outcome.IGNORED

    # ------------------------------------------------------------------ #
    # Gatekeeping                                                          #
    # ------------------------------------------------------------------ #

    def is_authorized(self, actor: str, owner: str) -> bool:
        """Owner, bot, or a direct collaborator. Fails closed."""
        if actor in (self.config.bot_login, owner):
            return True
        try:
            collaborators = self.platform.list_collaborators(affiliation="direct")
        except PlatformError as e:
            logger.error("Failed to check maintainer status for %s: %s", actor, e)
            return False
        return actor in collaborators

    def is_duplicate(self, actor: str, body: str, number: int) -> bool:
        """True when ``actor`` already posted this exact text earlier in the thread.

        The last comment is the one being handled and is not compared with
        itself. Fails open: a read error never blocks a command.
        """
        try:
            comments = self.platform.list_comments(number)
        except PlatformError as e:
            logger.warning("Failed to check for duplicate command usage on #%d: %s", number, e)
            return False
        return any(c.actor == actor and c.body == body for c in comments[:-1])

    # ------------------------------------------------------------------ #
    # Commands                                                             #
    # ------------------------------------------------------------------ #

    def approve(self, number: int, actor: str) -> Outcome:
        try:
            pr = self.platform.get_pull_request(number)
            reviews = self.platform.list_reviews(number)
        except PlatformError as e:
            logger.error("Failed to load PR #%d: %s", number, e)
            self._comment(number, f"❌ Failed to load pull request #{number}: {e}")
            return Outcome.ERROR

        if self.config.hold_label in pr.labels:
            self._comment(number, "This PR is on hold and cannot be merged until the hold is removed.")
            return Outcome.HELD

        if pr.draft:
            self._comment(
                number,
                "This PR is a draft and cannot be approved. Please mark it as ready for review before approving.",
            )
            return Outcome.DRAFT

        # Dismissed approvals still count here; only the review state is checked.
        if any(r.actor == actor and r.state == "APPROVED" for r in reviews):
            self._comment(number, f"@{actor}, you have already approved this PR.")
            return Outcome.ALREADY_APPROVED

        try:
            self.platform.create_review(number, body=APPROVAL_REVIEW_BODY, event="APPROVE")
        except PlatformError as e:
            logger.error("Failed to create approval review on PR #%d: %s", number, e)
            self._comment(number, f"❌ Failed to create an approval review: {e}")
            return Outcome.REVIEW_FAILED
        logger.info("Approval review created for PR #%d via /approve command.", number)

        threshold = self.config.min_required_approvals
        approvals = count_approvals(reviews, actor, just_approved=True)
        if approvals < threshold:
            self._comment(
                number,
                f"This PR requires at least {threshold} approvals before it can be merged. "
                f"Current approvals: {approvals}.",
            )
            return Outcome.AWAITING_APPROVALS

        try:
            self.platform.merge(number, merge_method=self.config.merge_method)
        except PlatformError as e:
            logger.error("Failed to merge PR #%d: %s", number, e)
            self._comment(number, f"❌ Failed to merge the pull request: {e}")
            return Outcome.MERGE_FAILED
        logger.info("PR #%d merged with %d/%d approvals.", number, approvals, threshold)
        self._comment(number, f"✅ PR #{number} has met the required approvals and has been merged automatically.")
        return Outcome.MERGED

    def hold(self, number: int) -> Outcome:
        try:
            self.platform.add_labels(number, [self.config.hold_label])
        except PlatformError as e:
            logger.error("Failed to add '%s' label to PR #%d: %s", self.config.hold_label, number, e)
            return Outcome.ERROR
        logger.info("PR #%d has been placed on hold.", number)
        return Outcome.HOLD_ADDED

    def unhold(self, number: int) -> Outcome:
        try:
            self.platform.remove_label(number, self.config.hold_label)
        except PlatformError as e:
            # Also the path taken when the label was never there.
            logger.error("Failed to remove '%s' label from PR #%d: %s", self.config.hold_label, number, e)
            return Outcome.ERROR
        logger.info("PR #%d has been unheld and is ready for approval.", number)
        return Outcome.HOLD_REMOVED

    # ------------------------------------------------------------------ #
    # Pull request opened                                                  #
    # ------------------------------------------------------------------ #

    def assign_reviewer(self, event: Event) -> Outcome:
        if not self.config.assign_owner_on_open or not event.number or not event.owner:
            return Outcome.IGNORED
        if event.actor == event.owner:
            # GitHub refuses review requests addressed to the PR author.
            logger.info("PR #%d was opened by the owner; no reviewer requested.", event.number)
            return Outcome.IGNORED
        try:
            self.platform.request_reviewers(event.number, [event.owner])
        except PlatformError as e:
            logger.error("Failed to request review from %s on PR #%d: %s", event.owner, event.number, e)
            return Outcome.ERROR
        logger.info("Requested review from %s on PR #%d.", event.owner, event.number)
        return Outcome.REVIEWER_ASSIGNED

    def _comment(self, number: int, body: str) -> None:
        try:
            self.platform.create_comment(number, body)
        except PlatformError as e:
            logger.error("Failed to post comment on #%d: %s", number, e)
