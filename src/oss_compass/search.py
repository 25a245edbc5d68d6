"""Search pipeline: fetch candidates, filter, score, rank, sort and paginate."""

import logging
import random
import time
from datetime import datetime, timezone

from pydantic import ValidationError

from .enrichment import enrich_repositories
from .features import days_since
from .normalizer import SkillNormalizer, get_expanded_skills
from .scoring import get_scoring_explanation, score_repositories
from .schemas import Repository


logger = logging.getLogger(__name__)

LUCKY_PICKS = 5
LUCKY_SCORES = {"relevance": 0.8, "quality": 0.9, "opportunity": 0.7, "final": 0.8}
LUCKY_EXPLANATION = "Trending repository with high community interest"

EDUCATIONAL_WORDS = ("tutorial", "example", "learn", "beginner")
EDUCATIONAL_TOPICS = {"tutorial", "example", "learning", "beginner", "documentation", "education"}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def run_search(request, client, normalizer=None, config=None, rng=None, now=None):
    """Run one validated :class:`~oss_compass.schemas.SearchRequest`.

    Returns ``{"repositories": [...], "metadata": {...}}``.
    """
    started = time.monotonic()
    config = config or {}
    normalizer = normalizer or SkillNormalizer()
    rng = rng or random

    skills = normalizer.normalize(request.skills)
    expanded = get_expanded_skills(skills)

    if request.feeling_lucky:
        return _feeling_lucky(request, client, expanded, rng, started)

    if not skills:
        return _response([], 0, request, skills, expanded, started, has_more=False)

    candidates = _parse_repositories(_fetch_candidates(request, client))
    fetched = len(candidates)
    candidates = filter_for_mode(candidates, request.mode, now=now)
    candidates = filter_star_range(candidates, request.star_range)
    logger.debug("%d of %d candidates kept after filters", len(candidates), fetched)

    enrichment = config.get("enrichment", {})
    if enrichment.get("enabled") and candidates:
        candidates = enrich_repositories(
            client,
            candidates,
            max_repos=int(enrichment.get("max_repos", 10)),
            workers=int(enrichment.get("parallel_workers", 8)),
            now=now,
        )

    ranking = config.get("ranking", {})
    weights = request.weights or config.get("scoring", {}).get("weights") or None
    ranked = score_repositories(
        candidates,
        skills,
        mode=request.mode,
        weights=weights,
        now=now,
        rng=rng,
        limit=int(ranking.get("max_results", 50)),
        band=float(ranking.get("tie_band", 0.03)),
    )
    ordered = sort_results(ranked, request.sort)

    start = (request.page - 1) * request.limit
    end = start + request.limit
    page = [_format_scored(item, request.include_explanation) for item in ordered[start:end]]
    return _response(page, len(ordered), request, skills, expanded, started, has_more=end < len(ordered))


def _format_scored(item, include_explanation):
    scores = item.score.model_dump(include={"relevance", "quality", "opportunity", "final"})
    explanation = None
    if include_explanation:
        explanation = get_scoring_explanation(item.repository, item.score)
    return format_result(item.repository, scores, explanation)


def _fetch_candidates(request, client):
    limit = request.limit
    if request.mode == "quick-wins":
        per_page = min(limit * 3, 150)
        result = client.search_issues_by_skills(request.skills, per_page=per_page)
        if len(result.get("repositories") or []) < 5:
            logger.debug("Issue search returned too few repositories, using repository search")
            result = client.search_repositories(request.skills, per_page=per_page, sort="stars")
    elif request.mode == "learning":
        result = client.search_repositories(request.skills, per_page=min(limit * 4, 200), sort="updated")
    else:
        result = client.search_repositories(request.skills, per_page=min(limit * 2, 100), sort="stars")
    return (result or {}).get("repositories") or []


def _parse_repositories(records):
    repos = []
    for record in records:
        try:
            repos.append(Repository.model_validate(record))
        except ValidationError as exc:
            name = record.get("full_name") if isinstance(record, dict) else None
            logger.warning("Dropping malformed repository %s: %s", name or "<unknown>", exc.errors()[:1])
    return repos


def filter_for_mode(repos, mode, now=None):
    if mode == "learning":
        return [repo for repo in repos if _educational(repo)]
    if mode == "quick-wins":
        return [repo for repo in repos if _contributable(repo, now)]
    if mode == "profile-building":
        return [repo for repo in repos if _visible(repo, now)]
    return list(repos)


def _educational(repo):
    description = repo.description or ""
    if len(description) < 30:
        return False
    lowered = description.lower()
    return (
        repo.good_first_issues > 0
        or any(word in lowered for word in EDUCATIONAL_WORDS)
        or any(topic.lower() in EDUCATIONAL_TOPICS for topic in repo.topics)
    )


def _contributable(repo, now):
    issues = repo.open_issues_count
    if issues == 0 or issues > 500:
        return False
    updated = days_since(repo.updated_at, now)
    if updated is None or updated > 180:
        return False
    return repo.good_first_issues > 0 or issues <= 100


def _visible(repo, now):
    if repo.stargazers_count < 50:
        return False
    age = days_since(repo.created_at, now)
    if age is None or age < 30:
        return False
    return len(repo.description or "") >= 20


def filter_star_range(repos, star_range):
    if star_range is None:
        return list(repos)
    return [
        repo for repo in repos
        if (star_range.min is None or repo.stargazers_count >= star_range.min)
        and (star_range.max is None or repo.stargazers_count <= star_range.max)
    ]


def sort_results(ranked, sort):
    """Re-order ranked results. ``relevance`` keeps the ranker's order."""
    if sort == "stars":
        return sorted(ranked, key=lambda item: item.repository.stargazers_count, reverse=True)
    if sort == "activity":
        return sorted(ranked, key=lambda item: item.repository.updated_at or _EPOCH, reverse=True)
    if sort == "opportunity":
        return sorted(ranked, key=lambda item: item.score.opportunity, reverse=True)
    return list(ranked)


def generate_opportunities(repo):
    opportunities = []
    if repo.good_first_issues > 0:
        opportunities.append({
            "type": "good-first-issue",
            "count": repo.good_first_issues,
            "url": f"{repo.html_url}/issues?q=is%3Aopen+label%3A%22good+first+issue%22",
        })
    if repo.open_issues_count > 0:
        opportunities.append({
            "type": "open-issues",
            "count": repo.open_issues_count,
            "url": f"{repo.html_url}/issues",
        })
    if repo.forks_count > 0:
        opportunities.append({
            "type": "fork-opportunities",
            "count": repo.forks_count,
            "url": f"{repo.html_url}/forks",
        })
    return opportunities


def format_result(repo, scores, explanation=None):
    result = {
        "id": repo.id,
        "name": repo.name,
        "full_name": repo.full_name,
        "description": repo.description,
        "url": repo.html_url,
        "stars": repo.stargazers_count,
        "forks": repo.forks_count,
        "language": repo.language,
        "topics": list(repo.topics),
        "good_first_issues": repo.good_first_issues,
        "last_updated": repo.updated_at.isoformat() if repo.updated_at else None,
        "scores": {name: round(value, 2) for name, value in scores.items()},
        "opportunities": generate_opportunities(repo),
    }
    if explanation is not None:
        result["explanation"] = explanation
    return result


def _feeling_lucky(request, client, expanded, rng, started):
    trending = _parse_repositories(client.get_trending_repositories("", "weekly"))
    if expanded:
        trending = [repo for repo in trending if _mentions_any(repo, expanded)]
    picks = list(trending)
    rng.shuffle(picks)
    repositories = [
        format_result(repo, LUCKY_SCORES, LUCKY_EXPLANATION) for repo in picks[:LUCKY_PICKS]
    ]
    return {
        "repositories": repositories,
        "metadata": {
            "total": len(trending),
            "page": 1,
            "limit": LUCKY_PICKS,
            "has_more": False,
            "search_time_ms": _elapsed_ms(started),
            "skills": {"input": list(request.skills), "normalized": [], "expanded": expanded},
            "mode": "feeling-lucky",
            "sort": "random",
            "filters": {},
        },
    }


def _mentions_any(repo, keywords):
    language = (repo.language or "").lower()
    description = (repo.description or "").lower()
    topics = [topic.lower() for topic in repo.topics]
    for keyword in keywords:
        keyword = keyword.lower()
        if keyword in language or keyword in description or any(keyword in t for t in topics):
            return True
    return False


def _response(repositories, total, request, skills, expanded, started, has_more):
    filters = {}
    if request.star_range is not None:
        filters["star_range"] = request.star_range.model_dump(exclude_none=True)
    return {
        "repositories": repositories,
        "metadata": {
            "total": total,
            "page": request.page,
            "limit": request.limit,
            "has_more": has_more,
            "search_time_ms": _elapsed_ms(started),
            "skills": {
                "input": list(request.skills),
                "normalized": [
                    skill.model_dump(include={"original", "normalized", "category", "weight"})
                    for skill in skills
                ],
                "expanded": expanded,
            },
            "mode": request.mode,
            "sort": request.sort,
            "filters": filters,
        },
    }


def _elapsed_ms(started):
    return int((time.monotonic() - started) * 1000)
