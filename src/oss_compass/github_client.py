import base64
import binascii
import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime, timedelta, timezone

from .errors import GitHubError
from .skills import is_language


logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"

TRENDING_DAYS = {"daily": 1, "weekly": 7, "monthly": 30}

GOOD_FIRST_LABELS = ("good-first-issue", "good first issue")


class GitHubClient:
    """Thin REST client for the repository search and detail endpoints.

    HTTP, network and decoding failures are logged and returned as ``None``
    (or an empty list / empty result), never raised.
    """

    def __init__(self, token=None, timeout=20, api_url=API_URL, cache=None):
        self.token = token
        self.timeout = timeout
        self.api_url = api_url.rstrip("/")
        self.cache = cache

    @classmethod
    def from_config(cls, config, token=None, cache=None):
        github_config = config.get("github", {})
        return cls(
            token=token,
            timeout=int(github_config.get("request_timeout_sec", 20)),
            api_url=github_config.get("api_url", API_URL),
            cache=cache,
        )

    # Search

    def search_repositories(self, skills, per_page=30, sort="stars", order="desc"):
        """Merge three goldilocks-biased searches into one result page.

        Recent activity, topic and per-language searches get 40/30/30 percent
        of ``per_page``; the union is de-duplicated by ``full_name`` and
        sorted by stars.
        """
        skills = list(skills)
        key = ["repositories", skills, per_page, sort, order]
        cached = self._cache_get("search", key)
        if cached is not None:
            return cached

        merged = {}
        for repos in (
            self._search_recent(skills, int(per_page * 0.4)),
            self._search_topics(skills, int(per_page * 0.3)),
            self._search_languages(skills, int(per_page * 0.3)),
        ):
            for repo in repos:
                merged[repo.get("full_name")] = repo
        repos = sorted(merged.values(), key=lambda r: r.get("stargazers_count") or 0, reverse=True)
        repos = repos[:per_page]

        result = {
            "repositories": repos,
            "total": len(repos),
            "has_more": len(repos) == per_page,
        }
        self._cache_set("search", key, result)
        return result

    def _search_recent(self, skills, limit):
        if limit <= 0:
            return []
        query = "is:public" + _skill_clauses(skills)
        items = self._search("repositories", query, sort="updated", order="desc", per_page=limit * 2)
        return [r for r in items if 10 <= (r.get("stargazers_count") or 0) < 5000]

    def _search_topics(self, skills, limit):
        others = [s for s in skills if not is_language(s)]
        if not others or limit <= 0:
            return []
        query = "is:public (" + " OR ".join(f"topic:{s}" for s in others) + ")"
        items = self._search("repositories", query, sort="stars", order="desc", per_page=limit * 2)
        return [r for r in items if 20 <= (r.get("stargazers_count") or 0) < 2000]

    def _search_languages(self, skills, limit):
        languages = [s for s in skills if is_language(s)]
        if not languages or limit <= 0:
            return []
        per_language = max(1, limit // len(languages))
        repos = []
        for language in languages[:3]:
            query = f"language:{language} stars:>50 stars:<2000"
            repos.extend(
                self._search("repositories", query, sort="stars", order="desc", per_page=per_language)
            )
        return repos

    def search_issues_by_skills(self, skills, per_page=30):
        """Find open beginner-friendly issues and fold them into repository records."""
        skills = list(skills)
        key = ["issues", skills, per_page]
        cached = self._cache_get("search", key)
        if cached is not None:
            return cached

        query = (
            'is:issue is:open label:"good-first-issue" OR label:"good first issue" '
            'OR label:"help-wanted"' + _skill_clauses(skills)
        )
        fetch = min(per_page * 3, 100)
        items = self._search("issues", query, sort="updated", order="desc", per_page=fetch)

        repos = {}
        for issue in items:
            full_name = "/".join((issue.get("repository_url") or "").split("/")[-2:])
            if full_name not in repos:
                repos[full_name] = _repo_from_issue(full_name, issue)
            labels = [(label.get("name") or "").lower() for label in issue.get("labels") or []]
            if any(marker in name for name in labels for marker in GOOD_FIRST_LABELS):
                repos[full_name]["goodFirstIssues"] += 1

        repositories = list(repos.values())[:per_page]
        result = {
            "repositories": repositories,
            "total": len(repositories),
            "has_more": len(items) == per_page * 3,
        }
        self._cache_set("search", key, result)
        return result

    def get_trending_repositories(self, language="", since="weekly", now=None):
        key = ["trending", language or "", since]
        cached = self._cache_get("trending", key)
        if cached is not None:
            return cached

        now = now or datetime.now(timezone.utc)
        since_date = (now - timedelta(days=TRENDING_DAYS.get(since, 7))).strftime("%Y-%m-%d")
        query = f"created:>{since_date}"
        if language:
            query += f" language:{language}"
        repos = self._search("repositories", query, sort="stars", order="desc", per_page=30)
        if repos:
            self._cache_set("trending", key, repos)
        return repos

    def _search(self, kind, query, sort, order, per_page):
        data = self._get_json(
            f"/search/{kind}",
            {"q": query, "sort": sort, "order": order, "per_page": per_page},
        )
        if not isinstance(data, dict):
            return []
        return data.get("items") or []

    # Repository details

    def get_repository(self, owner, repo):
        path = _repo_path(owner, repo)
        key = [owner, repo]
        cached = self._cache_get("repository", key)
        if cached is not None:
            return cached

        data = self._get_json(path)
        if not isinstance(data, dict):
            return None
        topics = self._get_json(f"{path}/topics") or {}
        good_first = self.list_issues(owner, repo, state="open", labels="good first issue", per_page=10)
        data["languages"] = self._get_json(f"{path}/languages") or {}
        data["topics"] = topics.get("names") or data.get("topics") or []
        data["goodFirstIssues"] = len(good_first)
        self._cache_set("repository", key, data)
        return data

    def list_commits(self, owner, repo, per_page=100):
        return self._get_list(f"{_repo_path(owner, repo)}/commits", {"per_page": per_page})

    def list_issues(self, owner, repo, state="open", labels="", per_page=100):
        params = {"state": state, "per_page": per_page, "sort": "created", "direction": "desc"}
        if labels:
            params["labels"] = labels
        return self._get_list(f"{_repo_path(owner, repo)}/issues", params)

    def list_branches(self, owner, repo, per_page=10):
        return self._get_list(f"{_repo_path(owner, repo)}/branches", {"per_page": per_page})

    def get_readme(self, owner, repo):
        return _decode_content(self._get_json(f"{_repo_path(owner, repo)}/readme"))

    def get_file(self, owner, repo, path):
        quoted = urllib.parse.quote(path.lstrip("/"))
        return _decode_content(self._get_json(f"{_repo_path(owner, repo)}/contents/{quoted}"))

    def get_rate_limit(self):
        data = self._get_json("/rate_limit")
        core = (data or {}).get("resources", {}).get("core")
        if not core:
            return {"remaining": 0, "limit": 5000, "reset": int(time.time())}
        return {
            "remaining": core.get("remaining", 0),
            "limit": core.get("limit", 5000),
            "reset": core.get("reset", 0),
        }

    # Transport

    def _get_list(self, path, params=None):
        data = self._get_json(path, params)
        return data if isinstance(data, list) else []

    def _get_json(self, path, params=None):
        url = self.api_url + path
        if params:
            url += "?" + urllib.parse.urlencode(params)
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        req = urllib.request.Request(url, headers=headers)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                data = resp.read().decode("utf-8")
                return json.loads(data)
        except urllib.error.HTTPError as exc:
            logger.warning("GitHub request failed (%s): %s", exc.code, url)
            return None
        except urllib.error.URLError as exc:
            logger.warning("GitHub unreachable (%s): %s", exc.reason, url)
            return None
        except json.JSONDecodeError:
            logger.warning("GitHub returned invalid JSON: %s", url)
            return None

    def _cache_get(self, kind, key):
        if self.cache is None:
            return None
        return self.cache.get(kind, key)

    def _cache_set(self, kind, key, value):
        if self.cache is not None:
            self.cache.set(kind, key, value)


def _repo_path(owner, repo):
    if not owner or not repo:
        raise GitHubError(f"owner and repo are required, got {owner!r}/{repo!r}")
    return f"/repos/{urllib.parse.quote(owner)}/{urllib.parse.quote(repo)}"


def _skill_clauses(skills):
    languages = [s for s in skills if is_language(s)]
    others = [s for s in skills if not is_language(s)]
    query = ""
    if languages:
        query += " (" + " OR ".join(f"language:{s}" for s in languages) + ")"
    if others:
        query += " (" + " OR ".join(f'"{s}"' for s in others) + ")"
    return query


def _repo_from_issue(full_name, issue):
    repo = issue.get("repository") or {}
    return {
        "id": repo.get("id") or 0,
        "name": repo.get("name") or full_name.split("/")[-1],
        "full_name": full_name,
        "description": repo.get("description") or "",
        "html_url": repo.get("html_url") or f"https://github.com/{full_name}",
        "stargazers_count": repo.get("stargazers_count") or 0,
        "forks_count": repo.get("forks_count") or 0,
        "language": repo.get("language") or "",
        "topics": repo.get("topics") or [],
        "open_issues_count": repo.get("open_issues_count") or 0,
        "updated_at": repo.get("updated_at") or issue.get("updated_at"),
        "pushed_at": repo.get("pushed_at") or issue.get("updated_at"),
        "created_at": repo.get("created_at") or issue.get("created_at"),
        "goodFirstIssues": 0,
        "license": repo.get("license"),
        "homepage": repo.get("homepage"),
    }


def _decode_content(data):
    if not isinstance(data, dict) or not data.get("content"):
        return None
    try:
        return base64.b64decode(data["content"]).decode("utf-8", errors="ignore")
    except (binascii.Error, ValueError):
        logger.warning("Could not decode file content from GitHub")
        return None
