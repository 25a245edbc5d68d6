"""Skill-based open-source repository recommendations."""

from .normalizer import SkillNormalizer, get_expanded_skills, normalize_skills
from .ranking import rank
from .scoring import get_scoring_explanation, score_repositories, score_repository
from .skills import DEFAULT_GRAPH, SkillGraph

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_GRAPH",
    "SkillGraph",
    "SkillNormalizer",
    "get_expanded_skills",
    "get_scoring_explanation",
    "normalize_skills",
    "rank",
    "score_repositories",
    "score_repository",
]
