"""Heuristic analyzers that turn raw GitHub payloads into EnrichedData blocks.

The analyzers are pure functions over plain API payloads. Missing or empty
payloads produce the block's defaults; they never raise.
"""

import json
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from .errors import GitHubError
from .features import days_since, utc_now
from .schemas import (
    CommitAnalysis,
    DependencyAnalysis,
    EnrichedData,
    IssueAnalysis,
    ReadmeAnalysis,
)


logger = logging.getLogger(__name__)

TECH_KEYWORDS = [
    "react", "vue", "angular", "svelte", "nextjs", "nuxt",
    "nodejs", "express", "fastify", "koa",
    "python", "django", "flask", "fastapi",
    "java", "spring", "maven", "gradle",
    "go", "rust", "c++", "c#", "php", "ruby",
    "typescript", "javascript", "html", "css",
    "docker", "kubernetes", "aws", "azure", "gcp",
    "mongodb", "postgresql", "mysql", "redis",
    "tensorflow", "pytorch", "machine learning", "ai",
    "webpack", "vite", "babel", "eslint",
]

# Checked in order; the first project type with a matching marker wins.
PROJECT_TYPES = [
    ("web-frontend", ("web", "frontend", "ui")),
    ("web-backend", ("api", "backend", "server")),
    ("mobile", ("mobile", "ios", "android")),
    ("data-science", ("machine learning", "ai", "data science")),
    ("library", ("library", "package", "npm")),
    ("cli-tool", ("cli", "command line")),
]

LEARNING_MARKERS = [
    "tutorial", "example", "demo", "guide", "documentation",
    "wiki", "blog", "video", "course", "workshop",
]

FLAGGED_PACKAGES = ("request", "moment", "lodash")
COMPATIBLE_LICENSES = ("MIT", "Apache-2.0", "BSD-3-Clause", "ISC")


def parse_timestamp(value):
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _commit_date(commit):
    committer = (commit.get("commit") or {}).get("committer") or {}
    return parse_timestamp(committer.get("date"))


# Commits


def analyze_commits(commits, branches=None, now=None):
    if not commits:
        return CommitAnalysis()
    now = now or utc_now()
    total = len(commits)

    first = _commit_date(commits[-1]) or now
    last = _commit_date(commits[0]) or now
    weeks = max(1.0, days_since(first, now) / 7)
    frequency = total / weeks
    recency = days_since(last, now)

    authors = {}
    for commit in commits:
        name = ((commit.get("commit") or {}).get("author") or {}).get("name") or "unknown"
        authors[name] = authors.get(name, 0) + 1
    distribution = min(1.0, len(authors) / math.sqrt(total)) if len(authors) > 1 else 0.0

    return CommitAnalysis(
        frequency=min(10.0, frequency),
        recency=min(365.0, max(0.0, recency)),
        contributor_distribution=distribution,
        average_commit_size=_average_commit_size(commits),
        commit_message_quality=message_quality(commits),
        branch_activity=min(1.0, len(branches or []) / 10),
    )


def _average_commit_size(commits):
    sizes = [
        (commit.get("stats") or {}).get("total")
        for commit in commits
        if (commit.get("stats") or {}).get("total") is not None
    ]
    if not sizes:
        # The list endpoint carries no stats; count each commit as one unit.
        return 1.0
    return min(100.0, sum(sizes) / len(sizes))


def message_quality(commits):
    if not commits:
        return 0.0
    score = 0.0
    for commit in commits:
        message = (commit.get("commit") or {}).get("message") or ""
        if 10 < len(message) < 100:
            score += 0.1
        if "fix" in message or "feat" in message or "refactor" in message:
            score += 0.1
        if "merge" not in message.lower():
            score += 0.1
    return min(1.0, score / len(commits))


# Issues


def analyze_issues(open_issues, closed_issues, now=None):
    open_issues = open_issues or []
    closed_issues = closed_issues or []
    issues = open_issues + closed_issues
    if not issues:
        return IssueAnalysis()
    now = now or utc_now()
    total = len(issues)

    # Age of commented issues stands in for response time; comment timestamps
    # are not part of the list payload.
    response_hours = []
    for issue in issues:
        created = parse_timestamp(issue.get("created_at"))
        if (issue.get("comments") or 0) > 0 and created is not None:
            response_hours.append(days_since(created, now) * 24)
    response_time = sum(response_hours) / len(response_hours) if response_hours else 0.0

    maintainer = sum(
        1 for issue in issues
        if (issue.get("comments") or 0) > 0 and (issue.get("user") or {}).get("type") == "User"
    )
    engaged = sum(1 for issue in issues if (issue.get("comments") or 0) > 1)
    labeled = sum(1 for issue in issues if issue.get("labels"))

    return IssueAnalysis(
        response_time=min(168.0, max(0.0, response_time)),
        resolution_rate=min(1.0, len(closed_issues) / total),
        maintainer_activity=min(1.0, maintainer / total),
        community_engagement=min(1.0, engaged / total),
        issue_quality=min(1.0, issue_quality(issues)),
        label_usage=min(1.0, labeled / total),
    )


def issue_quality(issues):
    if not issues:
        return 0.0
    score = 0.0
    for issue in issues:
        body = issue.get("body") or ""
        if len(body) > 50:
            score += 0.1
        if "steps to reproduce" in body or "expected behavior" in body:
            score += 0.1
        if issue.get("labels"):
            score += 0.1
    return min(1.0, score / len(issues))


# Dependencies


def analyze_dependencies(package_json):
    """Score a parsed ``package.json``; anything without dependencies scores defaults."""
    if not isinstance(package_json, dict) or not package_json.get("dependencies"):
        return DependencyAnalysis()
    dependencies = package_json.get("dependencies") or {}
    count = len(dependencies)
    return DependencyAnalysis(
        health_score=min(1.0, _package_health(package_json)),
        security_score=min(1.0, _security_score(package_json)),
        update_frequency=min(1.0, count / 20),
        dependency_count=count,
        # No registry lookup; assume a fixed share is behind.
        outdated_dependencies=int(count * 0.3),
        license_compatibility=_license_compatibility(package_json.get("license")),
    )


def _package_health(package_json):
    scripts = package_json.get("scripts") or {}
    score = 0.5
    if scripts.get("test"):
        score += 0.1
    if scripts.get("build"):
        score += 0.1
    if package_json.get("engines"):
        score += 0.1
    if package_json.get("keywords"):
        score += 0.1
    if len(package_json.get("description") or "") > 10:
        score += 0.1
    return score


def _security_score(package_json):
    installed = dict(package_json.get("devDependencies") or {})
    installed.update(package_json.get("dependencies") or {})
    score = 0.8
    for name in FLAGGED_PACKAGES:
        if name in installed:
            score -= 0.1
    return max(0.0, score)


def _license_compatibility(license_name):
    if not license_name:
        return 0.5
    return 1.0 if license_name in COMPATIBLE_LICENSES else 0.7


# README


def analyze_readme(text):
    if not text:
        return ReadmeAnalysis()
    return ReadmeAnalysis(
        content_quality=min(1.0, content_quality(text)),
        skill_keywords=extract_skill_keywords(text),
        project_type=detect_project_type(text),
        complexity=min(1.0, _complexity(text)),
        learning_resources=min(10, sum(1 for marker in LEARNING_MARKERS if marker in text)),
        setup_difficulty=min(1.0, _setup_difficulty(text)),
    )


def content_quality(text):
    checks = [
        "# " in text,
        "## " in text,
        "```" in text,
        "Installation" in text or "Install" in text,
        "Usage" in text or "Example" in text,
        "Contributing" in text,
        "License" in text,
        len(text) > 500,
        "![" in text or "http" in text,
    ]
    return min(1.0, 0.1 * sum(checks))


def extract_skill_keywords(text):
    lowered = (text or "").lower()
    return [keyword for keyword in TECH_KEYWORDS if keyword in lowered]


def detect_project_type(text):
    lowered = (text or "").lower()
    for project_type, markers in PROJECT_TYPES:
        if any(marker in lowered for marker in markers):
            return project_type
    return "general"


def _complexity(text):
    score = 0.3
    if "architecture" in text or "microservices" in text:
        score += 0.2
    if "distributed" in text or "scalable" in text:
        score += 0.2
    if "algorithm" in text or "optimization" in text:
        score += 0.2
    if "machine learning" in text or "ai" in text:
        score += 0.2
    if "real-time" in text or "streaming" in text:
        score += 0.1
    return score


def _setup_difficulty(text):
    score = 0.5
    if "docker" in text or "kubernetes" in text:
        score += 0.2
    if "environment" in text or "configuration" in text:
        score += 0.1
    if "database" in text or "migration" in text:
        score += 0.1
    if "api key" in text or "credentials" in text:
        score += 0.1
    if "install" in text and "multiple" in text:
        score += 0.1
    return score


# Fetch and assemble


def enrich_repository(client, owner, repo, now=None):
    try:
        commits = client.list_commits(owner, repo)
        branches = client.list_branches(owner, repo) if commits else []
        open_issues = client.list_issues(owner, repo, state="open")
        closed_issues = client.list_issues(owner, repo, state="closed")
        package_text = client.get_file(owner, repo, "package.json")
        readme = client.get_readme(owner, repo)
    except GitHubError as exc:
        logger.warning("Skipping enrichment for %s/%s: %s", owner, repo, exc)
        return default_enriched_data()

    return EnrichedData(
        commit_analysis=analyze_commits(commits, branches, now=now),
        issue_analysis=analyze_issues(open_issues, closed_issues, now=now),
        dependency_analysis=analyze_dependencies(_parse_package_json(package_text, owner, repo)),
        readme_analysis=analyze_readme(readme),
    )


def default_enriched_data():
    return EnrichedData(
        commit_analysis=CommitAnalysis(),
        issue_analysis=IssueAnalysis(),
        dependency_analysis=DependencyAnalysis(),
        readme_analysis=ReadmeAnalysis(),
    )


def _parse_package_json(text, owner, repo):
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Invalid package.json in %s/%s", owner, repo)
        return None


def enrich_repositories(client, repos, max_repos=10, workers=8, now=None):
    """Attach EnrichedData to the first ``max_repos`` repositories in parallel.

    Repositories beyond ``max_repos`` and those without an owner/name are
    returned unchanged.
    """
    head = list(repos[:max_repos])
    tail = list(repos[max_repos:])

    def _enrich(repo):
        owner, _, name = (repo.full_name or "").partition("/")
        if not owner or not name:
            return repo
        data = enrich_repository(client, owner, name, now=now)
        return repo.model_copy(update={"enriched_data": data})

    if not head:
        return tail
    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        enriched = list(executor.map(_enrich, head))
    logger.debug("Enriched %d repositories", len(enriched))
    return enriched + tail
