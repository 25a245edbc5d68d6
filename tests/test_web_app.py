import pytest

from oss_compass.config import load_config
from oss_compass.web_app import create_app


@pytest.fixture
def client_stub(fake_client, repo_record):
    return fake_client(
        repositories=[repo_record(full_name="octo/a"), repo_record(full_name="octo/b", stargazers_count=900)],
        trending=[repo_record(full_name=f"octo/t{i}") for i in range(3)],
    )


@pytest.fixture
def app(tmp_path, client_stub, identity_rng, now):
    config = load_config(None)
    config["cache"]["dir"] = str(tmp_path / "cache")
    app = create_app(config, client=client_stub, rng=identity_rng, now=now)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def http(app):
    return app.test_client()


def test_post_search(http):
    resp = http.post("/api/search", json={"skills": ["python"], "includeExplanation": True})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert len(body["data"]["repositories"]) == 2
    assert "explanation" in body["data"]["repositories"][0]
    assert body["data"]["metadata"]["mode"] == "profile-building"


def test_post_search_validation_errors(http):
    resp = http.post("/api/search", json={"skills": []})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False

    resp = http.post("/api/search", json={"skills": ["python"], "mode": "speedrun"})
    assert resp.status_code == 400
    assert "mode must be one of" in resp.get_json()["error"]

    resp = http.post("/api/search", json={"skills": ["python"], "limit": 1000})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "limit must not exceed 100"


def test_post_search_rejects_non_object_body(http):
    resp = http.post("/api/search", json=["react"])
    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "error": "request body must be a JSON object"}

    assert http.post("/api/search", json="react").status_code == 400
    assert http.post("/api/trending", json=["python"]).status_code == 400
    assert http.post("/api/skills/normalize", json=["react"]).status_code == 400


def test_post_search_without_json_body(http):
    resp = http.post("/api/search", data="not json", content_type="text/plain")
    assert resp.status_code == 400


def test_get_search(http, client_stub):
    resp = http.get("/api/search?skills=python,%20react&mode=learning&limit=5")
    assert resp.status_code == 200
    assert client_stub.calls[-1] == ("search_repositories", ["python", "react"], 20, "updated")
    metadata = resp.get_json()["data"]["metadata"]
    assert metadata["limit"] == 5
    assert metadata["skills"]["input"] == ["python", "react"]


def test_get_search_requires_skills(http):
    resp = http.get("/api/search")
    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "error": "Skills parameter is required"}


def test_get_search_bad_limit(http):
    resp = http.get("/api/search?skills=python&limit=many")
    assert resp.status_code == 400


def test_get_search_feeling_lucky(http):
    resp = http.get("/api/search?skills=python&feelingLucky=true")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["metadata"]["mode"] == "feeling-lucky"


def test_trending(http, client_stub):
    resp = http.get("/api/trending?language=python&since=daily&limit=2")
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert [repo["full_name"] for repo in data["repositories"]] == ["octo/t0", "octo/t1"]
    assert data["repositories"][0]["owner"]["login"] == "octo"
    assert data["metadata"]["total"] == 3
    assert data["metadata"]["language"] == "python"
    assert client_stub.calls[-1] == ("get_trending_repositories", "python", "daily")


def test_trending_post_defaults(http):
    resp = http.post("/api/trending", json={})
    assert resp.status_code == 200
    metadata = resp.get_json()["data"]["metadata"]
    assert metadata["language"] == "all"
    assert metadata["since"] == "weekly"


def test_trending_rejects_bad_input(http):
    assert http.get("/api/trending?since=yearly").status_code == 400
    assert http.get("/api/trending?limit=lots").status_code == 400
    assert http.get("/api/trending?limit=-2").status_code == 400
    assert http.get("/api/trending?limit=0").status_code == 400


def test_normalize_endpoint(http):
    resp = http.post("/api/skills/normalize", json={"skills": ["k8s", "zig"]})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert [s["normalized"] for s in data["skills"]] == ["kubernetes", "zig"]
    assert "orchestration" in data["expanded"]
    assert data["catalog"]["total_skills"] == 35


def test_normalize_requires_skills(http):
    assert http.post("/api/skills/normalize", json={"skills": "react"}).status_code == 400


def test_health(http):
    resp = http.get("/api/health")
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["status"] == "ok"
    assert data["cache"]["enabled"] is True
    assert data["ttl"]["skills"] == 86400


def test_unknown_route_is_json_404(http):
    resp = http.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_unexpected_error_is_json_500(tmp_path, fake_client, identity_rng):
    class Exploding(fake_client):
        def get_trending_repositories(self, language="", since="weekly"):
            raise RuntimeError("upstream exploded")

    config = load_config(None)
    config["cache"]["dir"] = str(tmp_path / "cache")
    http = create_app(config, client=Exploding(), rng=identity_rng).test_client()

    resp = http.get("/api/trending")
    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "error": "upstream exploded"}
