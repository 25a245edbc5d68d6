import pytest

from oss_compass.cache import CacheManager
from oss_compass.normalizer import (
    SkillNormalizer,
    generate_variations,
    get_expanded_skills,
    normalize_skills,
)


def test_direct_match():
    [skill] = normalize_skills(["React"])
    assert skill.original == "React"
    assert skill.normalized == "react"
    assert skill.category == "framework"
    assert skill.weight == 1.0


def test_alias_match():
    [skill] = normalize_skills(["golang"])
    assert skill.normalized == "go"
    assert skill.weight == 0.9


@pytest.mark.parametrize("raw, expected", [("python3", "python"), ("vue2", "vue")])
def test_fuzzy_match(raw, expected):
    [skill] = normalize_skills([raw])
    assert skill.normalized == expected
    assert skill.weight == 0.8


def test_unknown_token_falls_back_to_concept():
    [skill] = normalize_skills(["  Zig "])
    assert skill.normalized == "zig"
    assert skill.category == "concept"
    assert skill.expanded == ["zig"]
    assert skill.weight == 0.5


def test_blank_and_non_string_tokens_are_dropped():
    assert normalize_skills(["", "   ", None, 42]) == []
    assert normalize_skills([]) == []


def test_duplicates_merge_by_adding_weights():
    [skill] = normalize_skills(["javascript", "javascript"])
    assert skill.weight == pytest.approx(2.0)

    [skill] = normalize_skills(["js", "javascript"])
    assert skill.normalized == "javascript"
    assert skill.weight == pytest.approx(1.9)


def test_order_of_first_appearance_is_kept():
    skills = normalize_skills(["rust", "zig", "python"])
    assert [skill.normalized for skill in skills] == ["rust", "zig", "python"]


def test_generate_variations_keeps_token_first():
    variations = generate_variations("reactjs")
    assert variations[0] == "reactjs"
    assert "react" in variations


def test_generate_variations_strips_digits():
    assert "python" in generate_variations("python3")
    assert generate_variations("go")[-3:] == ["go3", "go2", "go1"]


def test_expanded_skills_are_unique():
    expanded = get_expanded_skills(normalize_skills(["react", "typescript"]))
    assert expanded[0] == "react"
    assert len(expanded) == len(set(expanded))
    assert {"javascript", "jsx", "typescript", "typed"} <= set(expanded)


def test_cache_returns_identical_results(tmp_path):
    cache = CacheManager(base_dir=str(tmp_path))
    normalizer = SkillNormalizer(cache=cache)

    first = normalizer.normalize(["k8s", "zig"])
    second = normalizer.normalize(["k8s", "zig"])

    assert first == second
    stats = cache.stats()
    assert stats["sets"] == 1
    assert stats["hits"] == 1


def test_cache_key_is_order_sensitive(tmp_path):
    cache = CacheManager(base_dir=str(tmp_path))
    normalizer = SkillNormalizer(cache=cache)

    normalizer.normalize(["rust", "go"])
    reordered = normalizer.normalize(["go", "rust"])

    assert [skill.normalized for skill in reordered] == ["go", "rust"]
    assert cache.stats()["sets"] == 2


def test_reactjs_alias_resolves_to_react():
    [skill] = normalize_skills(["reactjs"])
    assert skill.original == "reactjs"
    assert skill.normalized == "react"
    assert skill.weight == 0.9


def test_react_expands_to_related_keywords():
    expanded = get_expanded_skills(normalize_skills(["react"]))
    assert {"javascript", "jsx", "frontend"} <= set(expanded)
