"""Tests for GitHub pull request helper functions."""

import json
from unittest.mock import MagicMock

import pytest
from github import GithubException

from dialectic_core.gh.pull_request import post_comment, read_package_json, read_text_file


def _contents(text):
    c = MagicMock()
    c.decoded_content = text.encode("utf-8")
    return c


class TestReadTextFile:
    def test_returns_decoded_text(self):
        repo = MagicMock()
        repo.get_contents.return_value = _contents("# Conventions")
        assert read_text_file(repo, "CONVENTIONS.md") == "# Conventions"
        repo.get_contents.assert_called_once_with("CONVENTIONS.md")

    def test_passes_ref_when_given(self):
        repo = MagicMock()
        repo.get_contents.return_value = _contents("x")
        read_text_file(repo, "a.md", "abc123")
        repo.get_contents.assert_called_once_with("a.md", ref="abc123")

    def test_missing_file_returns_none(self):
        repo = MagicMock()
        repo.get_contents.side_effect = GithubException(404, "Not Found")
        assert read_text_file(repo, "CONVENTIONS.md") is None

    def test_directory_returns_none(self):
        repo = MagicMock()
        repo.get_contents.return_value = [MagicMock(), MagicMock()]
        assert read_text_file(repo, "docs") is None

    def test_other_errors_propagate(self):
        repo = MagicMock()
        repo.get_contents.side_effect = GithubException(500, "Server Error")
        with pytest.raises(GithubException):
            read_text_file(repo, "CONVENTIONS.md")


class TestReadPackageJson:
    def test_parses_dependencies(self):
        repo = MagicMock()
        repo.get_contents.return_value = _contents(json.dumps({"dependencies": {"next": "^14.0.0"}}))
        assert read_package_json(repo, "sha")["dependencies"] == {"next": "^14.0.0"}

    def test_absent_file_is_empty(self):
        repo = MagicMock()
        repo.get_contents.side_effect = GithubException(404, "Not Found")
        assert read_package_json(repo) == {}

    def test_invalid_json_is_empty(self):
        repo = MagicMock()
        repo.get_contents.return_value = _contents("{not json")
        assert read_package_json(repo) == {}

    def test_non_object_is_empty(self):
        repo = MagicMock()
        repo.get_contents.return_value = _contents("[1, 2]")
        assert read_package_json(repo) == {}


class TestPostComment:
    def test_creates_issue_comment(self):
        pr = MagicMock()
        post_comment(pr, "body")
        pr.create_issue_comment.assert_called_once_with("body")
