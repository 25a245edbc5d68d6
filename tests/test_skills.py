import pytest
from pydantic import ValidationError

from oss_compass.skills import (
    CATALOG_VERSION,
    DEFAULT_GRAPH,
    SKILL_CATALOG,
    SkillGraph,
    SkillNode,
    is_language,
)


def test_catalog_loads_every_record():
    assert len(DEFAULT_GRAPH) == len(SKILL_CATALOG) == 35


def test_get_by_canonical_name():
    node = DEFAULT_GRAPH.get("react")
    assert node is not None
    assert node.category == "framework"
    assert "jsx" in node.expanded
    assert "javascript" in node.expanded


def test_find_alias():
    assert DEFAULT_GRAPH.find_alias("golang").name == "go"
    assert DEFAULT_GRAPH.find_alias("k8s").name == "kubernetes"
    assert DEFAULT_GRAPH.find_alias("reactjs").name == "react"
    assert DEFAULT_GRAPH.find_alias("js").name == "javascript"
    assert DEFAULT_GRAPH.find_alias("react") is None


def test_aliases_are_not_canonical_names():
    assert DEFAULT_GRAPH.get("js") is None
    assert "js" not in DEFAULT_GRAPH
    assert "javascript" in DEFAULT_GRAPH


def test_stats():
    stats = DEFAULT_GRAPH.stats()
    assert stats["version"] == CATALOG_VERSION
    assert stats["total_skills"] == 35
    assert sum(stats["categories"].values()) == 35
    assert stats["categories"]["language"] == 12


def test_nodes_are_frozen():
    node = DEFAULT_GRAPH.get("python")
    with pytest.raises(ValidationError):
        node.name = "snake"


def test_unknown_category_rejected():
    with pytest.raises(ValidationError):
        SkillNode(name="cobol", category="ancient")


def test_first_node_keeps_a_shared_alias():
    graph = SkillGraph([
        SkillNode(name="first", aliases=("x",), category="tool"),
        SkillNode(name="second", aliases=("x",), category="tool"),
    ])
    assert graph.find_alias("x").name == "first"


def test_names_are_lowercased():
    graph = SkillGraph.from_catalog([{"name": " Elixir ", "category": "language"}])
    assert graph.get("elixir") is not None


def test_is_language():
    assert is_language("Python")
    assert is_language("react")
    assert not is_language("docker")
