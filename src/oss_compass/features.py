"""Per-dimension repository scorers.

Every scorer is a pure function of a :class:`~oss_compass.schemas.Repository`
(plus the normalized skills where relevant) returning a value in ``[0, 1]``.
Missing optional data degrades to the scorer's documented default.
"""

from datetime import datetime, timezone

from .skills import is_language


SECONDS_PER_DAY = 86400


def utc_now():
    return datetime.now(timezone.utc)


def days_since(timestamp, now=None):
    if timestamp is None:
        return None
    now = now or utc_now()
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return (now - timestamp).total_seconds() / SECONDS_PER_DAY


def _within(days, limit):
    return days is not None and days <= limit


def _older_than(days, limit):
    return days is not None and days > limit


def _skill_keywords(skills):
    keywords = []
    for skill in skills:
        keywords.append(skill.normalized.lower())
        keywords.extend(keyword.lower() for keyword in skill.expanded)
    return keywords


def _overlaps(a, b):
    return a in b or b in a


# Relevance


def language_match(repo, skills):
    if not repo.language or not skills:
        return 0.0
    repo_language = repo.language.lower()

    skill_languages = [
        skill.normalized.lower() for skill in skills if skill.category == "language"
    ]
    if repo_language in skill_languages:
        return 1.0

    expanded = [keyword.lower() for skill in skills for keyword in skill.expanded]
    if repo_language in [keyword for keyword in expanded if is_language(keyword)]:
        return 0.8

    if any(_overlaps(keyword, repo_language) for keyword in expanded):
        return 0.6
    return 0.0


def topic_match(repo, skills):
    if not repo.topics or not skills:
        return 0.0
    keywords = _skill_keywords(skills)
    topics = [topic.lower() for topic in repo.topics]
    matches = [
        topic for topic in topics if any(_overlaps(topic, keyword) for keyword in keywords)
    ]
    return min(len(matches) / max(len(topics), 1) * 2, 1.0)


def readme_match(repo, skills):
    """Share of skill keywords mentioned in the repository description."""
    if not repo.description or not skills:
        return 0.0
    description = repo.description.lower()
    keywords = _skill_keywords(skills)
    matches = [keyword for keyword in keywords if keyword in description]
    return min(len(matches) / len(keywords) * 3, 1.0)


def skill_match_score(repo, skills):
    readme = repo.enriched_data.readme_analysis if repo.enriched_data else None
    if readme is None or not readme.skill_keywords or not skills:
        return 0.0
    readme_skills = [keyword.lower() for keyword in readme.skill_keywords]

    matches = 0.0
    for skill in skills:
        name = skill.normalized.lower()
        if any(_overlaps(name, keyword) for keyword in readme_skills):
            matches += 1
    for skill in skills:
        for expanded in skill.expanded:
            expanded = expanded.lower()
            if any(_overlaps(expanded, keyword) for keyword in readme_skills):
                matches += 0.5
    return min(matches / len(skills), 1.0)


# Quality


def stars_score(stars):
    # Linear up to 0.7, then stepped down for very popular repositories.
    if stars <= 0:
        return 0.0
    if stars > 20000:
        return 0.5
    if stars > 5000:
        return 0.6
    if stars > 1000:
        return 0.7
    return min(stars / 1000, 0.7)


def activity_score(repo, now=None):
    days = days_since(repo.last_activity, now)
    if days is None:
        return 0.1
    if days <= 1:
        score = 1.0
    elif days <= 7:
        score = 0.95
    elif days <= 30:
        score = 0.8
    elif days <= 90:
        score = 0.6
    elif days <= 365:
        score = 0.3
    else:
        score = 0.1
    if days <= 3:
        score += 0.05
    return min(score, 1.0)


def documentation_score(repo):
    score = 0.0
    if repo.description and len(repo.description) > 20:
        score += 0.3
    if repo.homepage:
        score += 0.2
    if repo.license is not None and repo.license.name != "Other":
        score += 0.2
    if repo.topics:
        score += 0.1
    if repo.good_first_issues > 0:
        score += 0.2
    return min(score, 1.0)


def commit_activity_score(repo):
    commits = repo.enriched_data.commit_analysis if repo.enriched_data else None
    if commits is None:
        return 0.0
    frequency = min(commits.frequency / 5, 1.0)
    recency = max(0.0, 1 - commits.recency / 30)
    score = (
        frequency * 0.3
        + recency * 0.3
        + commits.contributor_distribution * 0.2
        + commits.commit_message_quality * 0.1
        + commits.branch_activity * 0.1
    )
    return min(score, 1.0)


def dependency_health_score(repo):
    deps = repo.enriched_data.dependency_analysis if repo.enriched_data else None
    if deps is None:
        return 0.0
    outdated_ratio = (
        deps.outdated_dependencies / deps.dependency_count if deps.dependency_count > 0 else 0
    )
    score = (
        deps.health_score * 0.3
        + deps.security_score * 0.25
        + deps.update_frequency * 0.15
        + max(0.0, 1 - outdated_ratio) * 0.2
        + deps.license_compatibility * 0.1
    )
    return min(score, 1.0)


def readme_quality_score(repo):
    readme = repo.enriched_data.readme_analysis if repo.enriched_data else None
    if readme is None:
        return 0.0
    learning = min(readme.learning_resources / 5, 1.0)
    setup = max(0.0, 1 - readme.setup_difficulty)
    score = readme.content_quality * 0.5 + learning * 0.3 + setup * 0.2
    return min(score, 1.0)


# Opportunity


def issue_score(repo):
    """Good-first-issue density among open issues.

    Zero open issues is ambiguous (abandoned or flawless) and scores neutral.
    """
    total = repo.open_issues_count
    if total == 0:
        return 0.5
    density = repo.good_first_issues / total
    if density >= 0.1:
        score = 1.0
    elif density >= 0.05:
        score = 0.8
    elif density >= 0.02:
        score = 0.6
    elif density > 0:
        score = 0.4
    else:
        score = 0.2
    return min(score + min(total / 20, 0.1), 1.0)


def contributor_score(repo):
    # Forks and stars stand in for contributor data we do not fetch.
    fork_part = min(repo.forks_count / 100, 1.0) * 0.6
    star_part = min(repo.stargazers_count / 1000, 1.0) * 0.4
    return fork_part + star_part


def issue_response_score(repo):
    issues = repo.enriched_data.issue_analysis if repo.enriched_data else None
    if issues is None:
        return 0.0
    response = max(0.0, 1 - issues.response_time / 24)
    score = (
        response * 0.3
        + issues.resolution_rate * 0.25
        + issues.maintainer_activity * 0.2
        + issues.community_engagement * 0.15
        + issues.issue_quality * 0.05
        + issues.label_usage * 0.05
    )
    return min(score, 1.0)
