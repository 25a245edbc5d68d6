import logging
import math

from pydantic import ValidationError

from . import features
from .features import days_since, _older_than, _within
from .ranking import MAX_RESULTS, TIE_BAND, rank
from .schemas import (
    DEFAULT_MODE,
    MODES,
    Repository,
    RepositoryScore,
    ScoreBreakdown,
    ScoredRepository,
    ScoringWeights,
)


logger = logging.getLogger(__name__)

MODE_WEIGHTS = {
    "profile-building": ScoringWeights(relevance=0.6, quality=0.3, opportunity=0.1),
    "learning": ScoringWeights(relevance=0.3, quality=0.5, opportunity=0.2),
    "quick-wins": ScoringWeights(relevance=0.2, quality=0.1, opportunity=0.7),
}

RELEVANCE_WEIGHTS = {
    "profile-building": {"language": 0.3, "topic": 0.3, "readme": 0.2, "skill_match": 0.2},
    "learning": {"language": 0.2, "topic": 0.4, "readme": 0.2, "skill_match": 0.2},
    "quick-wins": {"language": 0.2, "topic": 0.2, "readme": 0.3, "skill_match": 0.3},
}

QUALITY_WEIGHTS = {
    "profile-building": {
        "stars": 0.3, "activity": 0.2, "documentation": 0.15,
        "commit_activity": 0.15, "dependency_health": 0.1, "readme_quality": 0.1,
    },
    "learning": {
        "stars": 0.25, "activity": 0.15, "documentation": 0.25,
        "commit_activity": 0.15, "dependency_health": 0.1, "readme_quality": 0.1,
    },
    "quick-wins": {
        "stars": 0.4, "activity": 0.25, "documentation": 0.1,
        "commit_activity": 0.15, "dependency_health": 0.05, "readme_quality": 0.05,
    },
}

OPPORTUNITY_WEIGHTS = {
    "profile-building": {"issues": 0.5, "contributors": 0.3, "response": 0.2},
    "learning": {"issues": 0.6, "contributors": 0.2, "response": 0.2},
    "quick-wins": {"issues": 0.6, "contributors": 0.1, "response": 0.3},
}

FRESHNESS_DAYS = 7
FRESHNESS_MULTIPLIER = 1.2

LEARNING_TOPICS = {"tutorial", "example", "learning", "beginner", "documentation", "education"}
QUICK_WIN_TOPICS = {"good-first-issue", "help-wanted", "hacktoberfest", "contribution"}
PROFILE_TOPICS = {"popular", "trending", "awesome", "production", "enterprise"}


def resolve_mode(mode):
    if mode is None:
        return DEFAULT_MODE
    if mode not in MODES:
        logger.warning("Unknown scoring mode %r, using %s", mode, DEFAULT_MODE)
        return DEFAULT_MODE
    return mode


def resolve_weights(mode, overrides=None):
    return MODE_WEIGHTS[resolve_mode(mode)].with_overrides(overrides)


def score_repository(repo, skills, mode=DEFAULT_MODE, weights=None, now=None):
    """Score one repository against the normalized skills.

    The clamped score is multiplied by the freshness boost afterwards, so
    ``final`` can reach 1.2 for repositories active in the last week. It is
    not re-clamped.
    """
    mode = resolve_mode(mode)
    resolved = resolve_weights(mode, weights)
    breakdown = build_breakdown(repo, skills, now=now)

    relevance = _score_relevance(breakdown, mode)
    quality = _score_quality(repo, breakdown, mode)
    opportunity = _score_opportunity(breakdown, mode)

    final = (
        relevance * resolved.relevance
        + quality * resolved.quality
        + opportunity * resolved.opportunity
    )
    bonus = _mode_bonus(repo, mode, now)
    penalty = _size_penalty(repo) + _mode_penalty(repo, mode, now)
    final = max(0.0, min(final + bonus - penalty, 1.0))
    final = _apply_freshness(final, repo, now)

    return RepositoryScore(
        relevance=relevance,
        quality=quality,
        opportunity=opportunity,
        final=final,
        breakdown=breakdown,
    )


def build_breakdown(repo, skills, now=None):
    return ScoreBreakdown(
        language_match=features.language_match(repo, skills),
        topic_match=features.topic_match(repo, skills),
        readme_match=features.readme_match(repo, skills),
        stars_score=features.stars_score(repo.stargazers_count),
        activity_score=features.activity_score(repo, now),
        documentation_score=features.documentation_score(repo),
        issue_score=features.issue_score(repo),
        contributor_score=features.contributor_score(repo),
        commit_activity_score=features.commit_activity_score(repo),
        issue_response_score=features.issue_response_score(repo),
        dependency_health_score=features.dependency_health_score(repo),
        readme_quality_score=features.readme_quality_score(repo),
        skill_match_score=features.skill_match_score(repo, skills),
    )


def _score_relevance(b, mode):
    w = RELEVANCE_WEIGHTS[mode]
    return (
        b.language_match * w["language"]
        + b.topic_match * w["topic"]
        + b.readme_match * w["readme"]
        + b.skill_match_score * w["skill_match"]
    )


def _score_quality(repo, b, mode):
    w = QUALITY_WEIGHTS[mode]
    score = (
        b.stars_score * w["stars"]
        + b.activity_score * w["activity"]
        + b.documentation_score * w["documentation"]
        + b.commit_activity_score * w["commit_activity"]
        + b.dependency_health_score * w["dependency_health"]
        + b.readme_quality_score * w["readme_quality"]
    )
    # Goldilocks boost for 50-500 stars.
    if 50 <= repo.stargazers_count <= 500:
        score += 0.1
    if repo.forks_count > 0:
        score += min(repo.forks_count / 20, 0.05)
    return min(score, 1.0)


def _score_opportunity(b, mode):
    w = OPPORTUNITY_WEIGHTS[mode]
    return (
        b.issue_score * w["issues"]
        + b.contributor_score * w["contributors"]
        + b.issue_response_score * w["response"]
    )


def _mode_bonus(repo, mode, now):
    description = (repo.description or "").lower()
    topics = {topic.lower() for topic in repo.topics}
    stars = repo.stargazers_count
    bonus = 0.0

    if mode == "learning":
        gfi = repo.good_first_issues
        if gfi > 10:
            bonus += 0.3
        elif gfi > 5:
            bonus += 0.2
        elif gfi > 0:
            bonus += 0.1
        for keyword, value in (("tutorial", 0.15), ("example", 0.15), ("learn", 0.1), ("beginner", 0.1)):
            if keyword in description:
                bonus += value
        if topics & LEARNING_TOPICS:
            bonus += 0.2
        if len(description) > 100:
            bonus += 0.1

    elif mode == "quick-wins":
        issues = repo.open_issues_count
        if repo.good_first_issues > 0:
            bonus += 0.4
        if 5 <= issues <= 50:
            bonus += 0.3
        elif 50 < issues <= 100:
            bonus += 0.2
        elif 100 < issues <= 200:
            bonus += 0.1
        if 50 <= stars <= 2000:
            bonus += 0.2
        elif 2000 < stars <= 5000:
            bonus += 0.1
        if topics & QUICK_WIN_TOPICS:
            bonus += 0.3
        updated = days_since(repo.updated_at, now)
        if _within(updated, 7):
            bonus += 0.2
        elif _within(updated, 30):
            bonus += 0.1

    elif mode == "profile-building":
        if stars > 5000:
            bonus += 0.4
        elif stars > 1000:
            bonus += 0.3
        elif stars > 500:
            bonus += 0.2
        elif stars > 100:
            bonus += 0.1
        if topics & PROFILE_TOPICS:
            bonus += 0.2
        for keyword, value in (("production", 0.15), ("enterprise", 0.15), ("framework", 0.1), ("library", 0.1)):
            if keyword in description:
                bonus += value
        if _older_than(days_since(repo.created_at, now), 365):
            bonus += 0.1

    return bonus


def _size_penalty(repo):
    """Penalty for repositories too big or too noisy for a newcomer to matter in."""
    penalty = 0.0
    if repo.open_issues_count > 5000:
        penalty += 0.3
    elif repo.open_issues_count > 1000:
        penalty += 0.15
    if repo.stargazers_count > 1000:
        penalty += math.log10(repo.stargazers_count) * 0.08
    if repo.stargazers_count > 10000:
        penalty += 0.15
    return penalty


def _mode_penalty(repo, mode, now):
    stars = repo.stargazers_count
    penalty = 0.0

    if stars < 10:
        penalty += 0.3
    elif stars < 20:
        penalty += 0.15

    if mode == "learning":
        if repo.good_first_issues == 0:
            penalty += 0.5
        if not repo.description or len(repo.description) < 50:
            penalty += 0.3
        if _older_than(days_since(repo.updated_at, now), 365):
            penalty += 0.2

    elif mode == "quick-wins":
        issues = repo.open_issues_count
        if issues > 500:
            penalty += 0.6
        elif issues > 200:
            penalty += 0.4
        elif issues > 100:
            penalty += 0.2
        if issues == 0:
            penalty += 0.5
        if repo.good_first_issues == 0:
            penalty += 0.5
        if stars > 10000:
            penalty += 0.3
        if _older_than(days_since(repo.updated_at, now), 180):
            penalty += 0.3

    elif mode == "profile-building":
        if stars < 50:
            penalty += 0.5
        elif stars < 100:
            penalty += 0.3
        elif stars < 200:
            penalty += 0.1
        age = days_since(repo.created_at, now)
        if age is not None and age < 30:
            penalty += 0.3
        elif age is not None and age < 90:
            penalty += 0.1
        if stars > 50000:
            penalty += 0.2

    return penalty


def _apply_freshness(score, repo, now):
    if _within(days_since(repo.last_activity, now), FRESHNESS_DAYS):
        return score * FRESHNESS_MULTIPLIER
    return score


def score_repositories(
    repos, skills, mode=DEFAULT_MODE, weights=None, now=None, rng=None, limit=MAX_RESULTS, band=TIE_BAND
):
    """Score a batch and return it ranked and size-diversified.

    Records that cannot be read as a repository are skipped with a warning so
    the rest of the batch is still scored.
    """
    scored = []
    for item in repos:
        repo = _as_repository(item)
        if repo is None:
            continue
        scored.append(
            ScoredRepository(
                repository=repo,
                score=score_repository(repo, skills, mode=mode, weights=weights, now=now),
            )
        )
    logger.debug("Scored %d candidates in %s mode", len(scored), resolve_mode(mode))
    return rank(scored, rng=rng, limit=limit, band=band)


def _as_repository(item):
    if isinstance(item, Repository):
        return item
    try:
        return Repository.model_validate(item)
    except ValidationError as exc:
        name = item.get("full_name") if isinstance(item, dict) else None
        logger.warning("Skipping unreadable repository %s: %s", name or "<unknown>", exc.errors()[:1])
        return None


def _percent(value):
    return int(value * 100 + 0.5)


def get_scoring_explanation(repo, score):
    b = score.breakdown
    parts = []
    if b.language_match > 0.5:
        parts.append(f"Strong language match ({_percent(b.language_match)}%)")
    if b.topic_match > 0.5:
        parts.append(f"Good topic alignment ({_percent(b.topic_match)}%)")
    # stars_score never exceeds 0.7, so a strict bound would never fire.
    if b.stars_score >= 0.7:
        parts.append(f"High community interest ({repo.stargazers_count} stars)")
    if b.activity_score > 0.7:
        parts.append("Recently active")
    if b.issue_score > 0.6:
        parts.append(f"Good contribution opportunities ({repo.good_first_issues} good first issues)")
    return ", ".join(parts) or "Standard repository metrics"
