from datetime import timedelta

import pytest

from oss_compass import features
from oss_compass.normalizer import normalize_skills
from oss_compass.schemas import EnrichedData


def test_language_match_direct(make_repo):
    repo = make_repo(language="Python")
    assert features.language_match(repo, normalize_skills(["python"])) == 1.0


def test_language_match_through_expansion(make_repo):
    repo = make_repo(language="JavaScript")
    assert features.language_match(repo, normalize_skills(["react"])) == 0.8


def test_language_match_partial(make_repo):
    repo = make_repo(language="Jupyter Notebook")
    skills = normalize_skills(["zig", "notebook"])
    assert features.language_match(repo, skills) == 0.6


def test_language_match_missing_language(make_repo):
    repo = make_repo(language=None)
    assert features.language_match(repo, normalize_skills(["python"])) == 0.0


def test_topic_match(make_repo):
    repo = make_repo(topics=["react", "cooking", "gardening", "travel"])
    assert features.topic_match(repo, normalize_skills(["react"])) == pytest.approx(0.5)


def test_topic_match_without_topics(make_repo):
    repo = make_repo(topics=None)
    assert features.topic_match(repo, normalize_skills(["react"])) == 0.0


def test_readme_match(make_repo):
    repo = make_repo(description="A react hooks library")
    skills = normalize_skills(["react"])
    assert features.readme_match(repo, skills) == pytest.approx(min(3 * 3 / 11, 1.0))


def test_readme_match_without_description(make_repo):
    repo = make_repo(description=None)
    assert features.readme_match(repo, normalize_skills(["react"])) == 0.0


def test_skill_match_needs_enriched_readme(make_repo):
    repo = make_repo()
    assert features.skill_match_score(repo, normalize_skills(["react"])) == 0.0


def test_skill_match_score(make_repo):
    repo = make_repo(enrichedData={"readmeAnalysis": {"skillKeywords": ["react", "typescript"]}})
    skills = normalize_skills(["react", "rust", "zig"])
    # react matches directly, and its expansions react and reactjs add 0.5 each.
    assert features.skill_match_score(repo, skills) == pytest.approx(2 / 3)

    skills = normalize_skills(["rust", "zig", "docker"])
    assert features.skill_match_score(repo, skills) == 0.0


@pytest.mark.parametrize("stars, expected", [
    (0, 0.0),
    (-5, 0.0),
    (250, 0.25),
    (1000, 0.7),
    (1500, 0.7),
    (8000, 0.6),
    (50000, 0.5),
])
def test_stars_score(stars, expected):
    assert features.stars_score(stars) == pytest.approx(expected)


def test_stars_score_never_rewards_mega_popularity():
    assert features.stars_score(100000) < features.stars_score(2000)


@pytest.mark.parametrize("days, expected", [
    (0.5, 1.0),
    (5, 0.95),
    (20, 0.8),
    (60, 0.6),
    (200, 0.3),
    (400, 0.1),
])
def test_activity_score(make_repo, now, days, expected):
    stamp = (now - timedelta(days=days)).isoformat()
    repo = make_repo(updated_at=stamp, pushed_at=None)
    assert features.activity_score(repo, now) == pytest.approx(expected)


def test_activity_score_recent_boost(make_repo, now):
    stamp = (now - timedelta(days=2)).isoformat()
    repo = make_repo(updated_at=stamp, pushed_at=None)
    assert features.activity_score(repo, now) == pytest.approx(1.0)


def test_activity_score_uses_latest_timestamp(make_repo, now):
    repo = make_repo(
        updated_at=(now - timedelta(days=400)).isoformat(),
        pushed_at=(now - timedelta(days=20)).isoformat(),
    )
    assert features.activity_score(repo, now) == pytest.approx(0.8)


def test_activity_score_without_timestamps(make_repo, now):
    repo = make_repo(updated_at=None, pushed_at="")
    assert features.activity_score(repo, now) == 0.1


def test_documentation_score(make_repo):
    repo = make_repo(homepage="https://widgets.dev")
    assert features.documentation_score(repo) == pytest.approx(1.0)

    bare = make_repo(description=None, license=None, topics=[], goodFirstIssues=0)
    assert features.documentation_score(bare) == 0.0

    other_license = make_repo(license={"key": "other", "name": "Other"}, goodFirstIssues=0)
    assert features.documentation_score(other_license) == pytest.approx(0.4)


def test_enriched_scorers_default_to_zero(make_repo):
    repo = make_repo()
    assert features.commit_activity_score(repo) == 0.0
    assert features.dependency_health_score(repo) == 0.0
    assert features.readme_quality_score(repo) == 0.0
    assert features.issue_response_score(repo) == 0.0


def test_enriched_scorers_with_empty_blocks(make_repo):
    repo = make_repo(enriched_data=EnrichedData())
    assert features.commit_activity_score(repo) == 0.0
    assert features.issue_response_score(repo) == 0.0


def test_commit_activity_score(make_repo):
    repo = make_repo(enrichedData={
        "commitAnalysis": {
            "frequency": 10,
            "recency": 0,
            "contributorDistribution": 1.0,
            "commitMessageQuality": 0.5,
            "branchActivity": 0.5,
        }
    })
    assert features.commit_activity_score(repo) == pytest.approx(0.9)


def test_dependency_health_score(make_repo):
    repo = make_repo(enrichedData={
        "dependencyAnalysis": {
            "healthScore": 1.0,
            "securityScore": 0.8,
            "updateFrequency": 0.5,
            "dependencyCount": 10,
            "outdatedDependencies": 3,
            "licenseCompatibility": 1.0,
        }
    })
    expected = 0.3 + 0.8 * 0.25 + 0.5 * 0.15 + 0.7 * 0.2 + 0.1
    assert features.dependency_health_score(repo) == pytest.approx(expected)


def test_readme_quality_score(make_repo):
    repo = make_repo(enrichedData={
        "readmeAnalysis": {"contentQuality": 0.8, "learningResources": 10, "setupDifficulty": 0.5}
    })
    assert features.readme_quality_score(repo) == pytest.approx(0.4 + 0.3 + 0.1)


@pytest.mark.parametrize("open_issues, gfi, expected", [
    (0, 0, 0.5),
    (100, 3, 0.7),
    (10, 2, 1.0),
    (100, 0, 0.3),
    (50, 3, 0.9),
])
def test_issue_score(make_repo, open_issues, gfi, expected):
    repo = make_repo(open_issues_count=open_issues, goodFirstIssues=gfi)
    assert features.issue_score(repo) == pytest.approx(expected)


def test_contributor_score(make_repo):
    assert features.contributor_score(make_repo(forks_count=50, stargazers_count=500)) == pytest.approx(0.5)
    assert features.contributor_score(make_repo(forks_count=500, stargazers_count=5000)) == pytest.approx(1.0)


def test_issue_response_score(make_repo):
    repo = make_repo(enrichedData={
        "issueAnalysis": {
            "responseTime": 12,
            "resolutionRate": 1.0,
            "maintainerActivity": 1.0,
            "communityEngagement": 0.0,
            "issueQuality": 0.0,
            "labelUsage": 0.0,
        }
    })
    assert features.issue_response_score(repo) == pytest.approx(0.15 + 0.25 + 0.2)


def test_days_since_missing(now):
    assert features.days_since(None, now) is None
