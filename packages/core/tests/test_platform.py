"""Tests for the PyGithub-backed platform adapter and its shadow wrapper."""

from unittest.mock import MagicMock

import pytest
import requests
from github import GithubException
from rich.console import Console

from prgate_core.gh.models import CommentInfo, PullRequestInfo, ReviewInfo
from prgate_core.gh.platform import GitHubPlatform, PlatformError, ShadowPlatform


def _user(login):
    u = MagicMock()
    u.login = login
    return u


def _label(name):
    label = MagicMock()
    label.name = name
    return label


@pytest.fixture
def repo():
    return MagicMock()


class TestReads:
    def test_get_pull_request(self, repo):
        repo.get_pull.return_value = MagicMock(number=7, draft=True, labels=[_label("hold")])

        pr = GitHubPlatform(repo).get_pull_request(7)

        repo.get_pull.assert_called_once_with(7)
        assert pr == PullRequestInfo(number=7, draft=True, labels=frozenset({"hold"}))

    def test_list_reviews(self, repo):
        repo.get_pull.return_value.get_reviews.return_value = [
            MagicMock(user=_user("alice"), state="APPROVED"),
            MagicMock(user=None, state="COMMENTED"),
        ]

        reviews = GitHubPlatform(repo).list_reviews(7)

        assert reviews == [ReviewInfo("alice", "APPROVED"), ReviewInfo("", "COMMENTED")]

    def test_list_comments_keeps_order(self, repo):
        repo.get_issue.return_value.get_comments.return_value = [
            MagicMock(user=_user("alice"), body="/hold"),
            MagicMock(user=_user("bob"), body=None),
            MagicMock(user=_user("alice"), body="/unhold"),
        ]

        comments = GitHubPlatform(repo).list_comments(7)

        repo.get_issue.assert_called_once_with(7)
        assert comments == [
            CommentInfo("alice", "/hold"),
            CommentInfo("bob", ""),
            CommentInfo("alice", "/unhold"),
        ]

    def test_list_collaborators_direct_affiliation(self, repo):
        repo.get_collaborators.return_value = [_user("alice"), _user("bob")]

        assert GitHubPlatform(repo).list_collaborators() == ["alice", "bob"]
        repo.get_collaborators.assert_called_once_with(affiliation="direct")


class TestWrites:
    def test_create_comment(self, repo):
        GitHubPlatform(repo).create_comment(7, "hello")
        repo.get_issue.return_value.create_comment.assert_called_once_with("hello")

    def test_create_review(self, repo):
        GitHubPlatform(repo).create_review(7, body="ok")
        repo.get_pull.return_value.create_review.assert_called_once_with(body="ok", event="APPROVE")

    def test_merge_passes_method(self, repo):
        repo.get_pull.return_value.merge.return_value = MagicMock(merged=True)
        GitHubPlatform(repo).merge(7, merge_method="squash")
        repo.get_pull.return_value.merge.assert_called_once_with(merge_method="squash")

    def test_merge_not_merged_raises(self, repo):
        repo.get_pull.return_value.merge.return_value = MagicMock(merged=False, message="Head branch was modified")
        with pytest.raises(PlatformError, match="Head branch was modified"):
            GitHubPlatform(repo).merge(7)

    def test_labels(self, repo):
        platform = GitHubPlatform(repo)
        platform.add_labels(7, ["hold"])
        platform.remove_label(7, "hold")
        issue = repo.get_issue.return_value
        issue.add_to_labels.assert_called_once_with("hold")
        issue.remove_from_labels.assert_called_once_with("hold")

    def test_request_reviewers(self, repo):
        GitHubPlatform(repo).request_reviewers(7, ["acme"])
        repo.get_pull.return_value.create_review_request.assert_called_once_with(reviewers=["acme"])


class TestErrorWrapping:
    def test_github_exception_becomes_platform_error(self, repo):
        repo.get_issue.return_value.remove_from_labels.side_effect = GithubException(
            404, {"message": "Label does not exist"}, None
        )

        with pytest.raises(PlatformError) as excinfo:
            GitHubPlatform(repo).remove_label(7, "hold")

        assert excinfo.value.operation == "remove_label"
        assert str(excinfo.value) == "Label does not exist"
        assert isinstance(excinfo.value.__cause__, GithubException)

    def test_message_falls_back_to_exception_text(self, repo):
        repo.get_collaborators.side_effect = GithubException(500, "boom", None)

        with pytest.raises(PlatformError) as excinfo:
            GitHubPlatform(repo).list_collaborators()

        assert excinfo.value.operation == "list_collaborators"
        assert excinfo.value.message

    def test_connection_error_becomes_platform_error(self, repo):
        repo.get_collaborators.side_effect = requests.exceptions.ConnectionError("connection reset")

        with pytest.raises(PlatformError) as excinfo:
            GitHubPlatform(repo).list_collaborators()

        assert excinfo.value.operation == "list_collaborators"
        assert str(excinfo.value) == "connection reset"
        assert isinstance(excinfo.value.__cause__, requests.exceptions.ConnectionError)

    def test_timeout_becomes_platform_error(self, repo):
        repo.get_issue.return_value.remove_from_labels.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(PlatformError, match="read timed out"):
            GitHubPlatform(repo).remove_label(7, "hold")

    def test_transport_error_without_message_uses_type_name(self, repo):
        repo.get_pull.side_effect = requests.exceptions.ReadTimeout()

        with pytest.raises(PlatformError, match="ReadTimeout"):
            GitHubPlatform(repo).get_pull_request(7)


class TestShadowPlatform:
    def test_reads_delegate(self):
        inner = MagicMock()
        inner.list_comments.return_value = [CommentInfo("alice", "/hold")]
        shadow = ShadowPlatform(inner, console=Console(record=True))

        assert shadow.list_comments(7) == [CommentInfo("alice", "/hold")]
        inner.list_comments.assert_called_once_with(7)

    def test_writes_are_printed_not_sent(self):
        inner = MagicMock()
        console = Console(record=True, width=200)
        shadow = ShadowPlatform(inner, console=console)

        shadow.create_comment(7, "[not markup] hello")
        shadow.create_review(7, body="ok")
        shadow.merge(7, merge_method="squash")
        shadow.add_labels(7, ["hold"])
        shadow.remove_label(7, "hold")
        shadow.request_reviewers(7, ["acme"])

        assert inner.method_calls == []
        output = console.export_text()
        assert "[not markup] hello" in output
        assert "merge:squash #7" in output
        assert "remove-label #7" in output
