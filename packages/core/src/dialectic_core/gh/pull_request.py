from __future__ import annotations

import json
import logging

from github import Github, GithubException

logger = logging.getLogger(__name__)

SUMMARY_MARKER = "<!-- dialectic-review -->"


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_pull_requests(repo, state: str = "open"):
    return repo.get_pulls(state=state)


def get_diff(pr):
    return pr.get_files()


def read_text_file(repo, path: str, ref: str | None = None) -> str | None:
    """Return the text of ``path`` at ``ref``, or None if it does not exist."""
    kwargs = {"ref": ref} if ref else {}
    try:
        contents = repo.get_contents(path, **kwargs)
    except GithubException as e:
        if e.status == 404:
            return None
        raise
    # A directory listing comes back as a list of ContentFile objects.
    if isinstance(contents, list):
        return None
    return contents.decoded_content.decode("utf-8", errors="replace")


def read_package_json(repo, ref: str | None = None) -> dict:
    """Return the parsed root package.json, or an empty dict when absent or invalid."""
    text = read_text_file(repo, "package.json", ref)
    if text is None:
        logger.info("package.json not found")
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("package.json is not valid JSON: %s", e)
        return {}
    return data if isinstance(data, dict) else {}


def post_comment(pr, body: str):
    return pr.create_issue_comment(body)
