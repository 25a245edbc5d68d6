import logging
from datetime import datetime, timedelta, timezone

import pytest

from oss_compass.schemas import Repository


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def ago(days):
    return (NOW - timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_record(**overrides):
    full_name = overrides.pop("full_name", "octo/widgets")
    record = {
        "id": abs(hash(full_name)) % 100000,
        "name": full_name.split("/")[-1],
        "full_name": full_name,
        "description": "Reusable widgets for building dashboards",
        "html_url": f"https://github.com/{full_name}",
        "homepage": None,
        "language": "Python",
        "topics": ["python", "widgets"],
        "stargazers_count": 300,
        "forks_count": 10,
        "open_issues_count": 20,
        "goodFirstIssues": 2,
        "created_at": ago(730),
        "updated_at": ago(10),
        "pushed_at": ago(10),
        "license": {"key": "mit", "name": "MIT License", "spdx_id": "MIT"},
        "owner": {"login": full_name.split("/")[0], "avatar_url": "", "html_url": "", "type": "User"},
    }
    record.update(overrides)
    return record


class IdentityRng:
    """Shuffle that leaves order untouched."""

    def shuffle(self, items):
        return None


class ReversingRng:
    def shuffle(self, items):
        items.reverse()


class FakeClient:
    def __init__(
        self,
        repositories=None,
        issue_repositories=None,
        trending=None,
        commits=None,
        branches=None,
        open_issues=None,
        closed_issues=None,
        files=None,
        readme=None,
    ):
        self.repositories = repositories or []
        self.issue_repositories = issue_repositories or []
        self.trending = trending or []
        self.commits = commits or []
        self.branches = branches or []
        self.open_issues = open_issues or []
        self.closed_issues = closed_issues or []
        self.files = files or {}
        self.readme = readme
        self.calls = []

    def search_repositories(self, skills, per_page=30, sort="stars", order="desc"):
        self.calls.append(("search_repositories", list(skills), per_page, sort))
        repos = list(self.repositories)
        return {"repositories": repos, "total": len(repos), "has_more": False}

    def search_issues_by_skills(self, skills, per_page=30):
        self.calls.append(("search_issues_by_skills", list(skills), per_page))
        repos = list(self.issue_repositories)
        return {"repositories": repos, "total": len(repos), "has_more": False}

    def get_trending_repositories(self, language="", since="weekly"):
        self.calls.append(("get_trending_repositories", language, since))
        return list(self.trending)

    def list_commits(self, owner, repo, per_page=100):
        self.calls.append(("list_commits", owner, repo))
        return list(self.commits)

    def list_branches(self, owner, repo, per_page=10):
        return list(self.branches)

    def list_issues(self, owner, repo, state="open", labels="", per_page=100):
        return list(self.open_issues if state == "open" else self.closed_issues)

    def get_file(self, owner, repo, path):
        return self.files.get(path)

    def get_readme(self, owner, repo):
        return self.readme


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def repo_record():
    return build_record


@pytest.fixture
def make_repo():
    def _make(**overrides):
        return Repository.model_validate(build_record(**overrides))

    return _make


@pytest.fixture
def identity_rng():
    return IdentityRng()


@pytest.fixture
def reversing_rng():
    return ReversingRng()


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("oss_compass")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
