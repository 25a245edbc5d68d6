from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel


MODES = ("profile-building", "learning", "quick-wins")
DEFAULT_MODE = "profile-building"
SORTS = ("relevance", "stars", "activity", "opportunity")


class _Model(BaseModel):
    # Accept both the external camelCase names and our snake_case field names.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class CommitAnalysis(_Model):
    frequency: float = 0.0
    recency: float = 365.0
    contributor_distribution: float = 0.0
    average_commit_size: float = 0.0
    commit_message_quality: float = 0.0
    branch_activity: float = 0.0


class IssueAnalysis(_Model):
    response_time: float = 168.0
    resolution_rate: float = 0.0
    maintainer_activity: float = 0.0
    community_engagement: float = 0.0
    issue_quality: float = 0.0
    label_usage: float = 0.0


class DependencyAnalysis(_Model):
    health_score: float = 0.0
    security_score: float = 0.0
    update_frequency: float = 0.0
    dependency_count: int = 0
    outdated_dependencies: int = 0
    license_compatibility: float = 0.0


class ReadmeAnalysis(_Model):
    content_quality: float = 0.0
    skill_keywords: List[str] = Field(default_factory=list)
    project_type: str = "general"
    complexity: float = 0.0
    learning_resources: float = 0.0
    setup_difficulty: float = 0.0


class EnrichedData(_Model):
    """Optional deeper analysis; any block may be missing."""

    commit_analysis: Optional[CommitAnalysis] = None
    issue_analysis: Optional[IssueAnalysis] = None
    dependency_analysis: Optional[DependencyAnalysis] = None
    readme_analysis: Optional[ReadmeAnalysis] = None


class License(_Model):
    key: Optional[str] = None
    name: Optional[str] = None
    spdx_id: Optional[str] = None


class Owner(_Model):
    login: str = ""
    avatar_url: str = ""
    html_url: str = ""
    type: str = ""


class Repository(_Model):
    """Read-only view of a candidate repository as the search API returns it."""

    id: Optional[int] = None
    name: str = ""
    full_name: str = ""
    description: Optional[str] = None
    html_url: str = ""
    homepage: Optional[str] = None
    language: Optional[str] = None
    languages: Dict[str, int] = Field(default_factory=dict)
    topics: List[str] = Field(default_factory=list)
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    good_first_issues: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pushed_at: Optional[datetime] = None
    license: Optional[License] = None
    owner: Optional[Owner] = None
    enriched_data: Optional[EnrichedData] = None

    @field_validator(
        "stargazers_count", "forks_count", "open_issues_count", "good_first_issues",
        mode="before",
    )
    @classmethod
    def _null_count(cls, value):
        return 0 if value is None else value

    @field_validator("topics", mode="before")
    @classmethod
    def _null_topics(cls, value):
        return [] if value is None else value

    @field_validator("languages", mode="before")
    @classmethod
    def _null_languages(cls, value):
        return {} if value is None else value

    @field_validator("created_at", "updated_at", "pushed_at", mode="before")
    @classmethod
    def _blank_timestamp(cls, value):
        return None if value == "" else value

    @field_validator("created_at", "updated_at", "pushed_at")
    @classmethod
    def _assume_utc(cls, value):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("license", mode="before")
    @classmethod
    def _license_name(cls, value):
        if isinstance(value, str):
            return {"name": value}
        return value

    @property
    def last_activity(self):
        stamps = [ts for ts in (self.updated_at, self.pushed_at) if ts is not None]
        return max(stamps) if stamps else None


class NormalizedSkill(_Model):
    original: str
    normalized: str
    category: str
    expanded: List[str]
    weight: float


class ScoringWeights(_Model):
    relevance: float
    quality: float
    opportunity: float

    def with_overrides(self, overrides):
        if not overrides:
            return self
        if isinstance(overrides, ScoringWeights):
            overrides = overrides.model_dump()
        update = {
            key: float(value)
            for key, value in overrides.items()
            if key in ("relevance", "quality", "opportunity") and value is not None
        }
        return self.model_copy(update=update)


class ScoreBreakdown(_Model):
    language_match: float = 0.0
    topic_match: float = 0.0
    readme_match: float = 0.0
    stars_score: float = 0.0
    activity_score: float = 0.0
    documentation_score: float = 0.0
    issue_score: float = 0.0
    contributor_score: float = 0.0
    commit_activity_score: float = 0.0
    issue_response_score: float = 0.0
    dependency_health_score: float = 0.0
    readme_quality_score: float = 0.0
    skill_match_score: float = 0.0


class RepositoryScore(_Model):
    relevance: float
    quality: float
    opportunity: float
    final: float
    breakdown: ScoreBreakdown


class ScoredRepository(_Model):
    repository: Repository
    score: RepositoryScore


class StarRange(_Model):
    min: Optional[int] = None
    max: Optional[int] = None


class SearchRequest(_Model):
    skills: List[str]
    mode: str = DEFAULT_MODE
    limit: int = Field(20, ge=1)
    page: int = Field(1, ge=1)
    sort: str = "relevance"
    include_explanation: bool = False
    feeling_lucky: bool = False
    star_range: Optional[StarRange] = None
    weights: Optional[Dict[str, float]] = None

    @field_validator("skills")
    @classmethod
    def _non_empty_skills(cls, value):
        if not value:
            raise ValueError("skills array is required and must not be empty")
        return value

    @field_validator("mode")
    @classmethod
    def _known_mode(cls, value):
        if value not in MODES:
            raise ValueError(f"mode must be one of: {', '.join(MODES)}")
        return value

    @field_validator("sort")
    @classmethod
    def _known_sort(cls, value):
        if value not in SORTS:
            raise ValueError(f"sort must be one of: {', '.join(SORTS)}")
        return value


def validate_search_request(body, max_limit=None):
    """Return ``(request, "ok")`` or ``(None, message)`` for a raw request body."""
    if not isinstance(body, dict):
        return None, "request body must be a JSON object"
    try:
        request = SearchRequest.model_validate(body)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in exc.errors()
        ]
        return None, "; ".join(problems)
    if max_limit is not None and request.limit > max_limit:
        return None, f"limit must not exceed {max_limit}"
    return request, "ok"
