"""Resolve free-text skill names to canonical skills from the skill graph.

Resolution order for each token (first match wins):

1. direct match on a canonical name (weight 1.0)
2. alias match (weight 0.9)
3. a generated variation that is a canonical name (weight 0.8)
4. fallback to the token itself as a "concept" (weight 0.5)

Repeated tokens that resolve to the same canonical skill are merged and their
weights added, so a skill named twice carries twice the influence.
"""

import logging
import re

from .schemas import NormalizedSkill
from .skills import DEFAULT_GRAPH


logger = logging.getLogger(__name__)

DIRECT_WEIGHT = 1.0
ALIAS_WEIGHT = 0.9
FUZZY_WEIGHT = 0.8
FALLBACK_WEIGHT = 0.5

ABBREVIATIONS = {
    "javascript": ["js"],
    "typescript": ["ts"],
    "python": ["py"],
    "react": ["reactjs"],
    "vue": ["vuejs"],
    "angular": ["angularjs"],
    "node": ["nodejs"],
    "machine learning": ["ml", "machinelearning"],
    "artificial intelligence": ["ai"],
    "user interface": ["ui"],
    "user experience": ["ux"],
    "application programming interface": ["api"],
    "representational state transfer": ["rest"],
    "graphql": ["gql"],
    "cascading style sheets": ["css"],
    "hypertext markup language": ["html"],
}

_DIGITS = re.compile(r"\d+")


def generate_variations(token):
    """Candidate spellings of ``token``; the token itself always comes first."""
    variations = [token]
    for full, abbrevs in ABBREVIATIONS.items():
        if full in token:
            variations.extend(abbrevs)
        for abbrev in abbrevs:
            if abbrev in token:
                variations.append(full)
    if _DIGITS.search(token):
        variations.append(_DIGITS.sub("", token))
    else:
        variations.extend([token + "3", token + "2", token + "1"])
    return variations


class SkillNormalizer:
    """Stateless resolver over a read-only :class:`SkillGraph`.

    ``cache`` is optional; results are identical with or without it.
    """

    def __init__(self, graph=None, cache=None):
        self.graph = graph or DEFAULT_GRAPH
        self.cache = cache

    def normalize(self, raw_skills):
        if not raw_skills:
            return []

        key = list(raw_skills)
        if self.cache is not None:
            cached = self.cache.get("skills", key)
            if cached is not None:
                logger.debug("Skill normalization cache hit for %d skills", len(key))
                return [NormalizedSkill.model_validate(item) for item in cached]

        merged = {}
        for raw in raw_skills:
            skill = self.normalize_one(raw)
            if skill is None:
                continue
            dedupe_key = skill.normalized.lower()
            if dedupe_key in merged:
                merged[dedupe_key].weight += skill.weight
            else:
                merged[dedupe_key] = skill
        result = list(merged.values())

        if self.cache is not None:
            self.cache.set("skills", key, [skill.model_dump(mode="json") for skill in result])
        return result

    def normalize_one(self, raw):
        if not isinstance(raw, str):
            return None
        token = raw.strip().lower()
        if not token:
            return None

        node = self.graph.get(token)
        if node is not None:
            return _from_node(raw, node, DIRECT_WEIGHT)

        node = self.graph.find_alias(token)
        if node is not None:
            return _from_node(raw, node, ALIAS_WEIGHT)

        node = self._fuzzy_match(token)
        if node is not None:
            return _from_node(raw, node, FUZZY_WEIGHT)

        return NormalizedSkill(
            original=raw,
            normalized=token,
            category="concept",
            expanded=[token],
            weight=FALLBACK_WEIGHT,
        )

    def _fuzzy_match(self, token):
        for variation in generate_variations(token):
            node = self.graph.get(variation)
            if node is not None:
                return node
        return None


def _from_node(raw, node, weight):
    return NormalizedSkill(
        original=raw,
        normalized=node.name,
        category=node.category,
        expanded=list(node.expanded),
        weight=weight,
    )


def normalize_skills(raw_skills, graph=None, cache=None):
    return SkillNormalizer(graph=graph, cache=cache).normalize(raw_skills)


def get_expanded_skills(skills):
    """Flat keyword bag: every canonical name plus every expansion, each once."""
    expanded = {}
    for skill in skills:
        expanded.setdefault(skill.normalized, None)
        for keyword in skill.expanded:
            expanded.setdefault(keyword, None)
    return list(expanded)
