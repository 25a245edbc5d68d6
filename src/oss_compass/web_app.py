import logging
from datetime import datetime, timezone

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .cli import build_services
from .config import load_config
from .github_client import TRENDING_DAYS
from .normalizer import get_expanded_skills
from .schemas import validate_search_request
from .search import run_search


logger = logging.getLogger(__name__)


def create_app(config=None, client=None, rng=None, now=None):
    """Build the JSON API.

    ``client`` replaces the GitHub client (tests pass a fake); ``rng`` and
    ``now`` are handed to the search pipeline.
    """
    config = config or load_config("config.yml")
    cache, client, normalizer = build_services(config, client=client)
    search_config = config.get("search", {})

    app = Flask(__name__)
    app.json.sort_keys = False

    def _search(body):
        if not isinstance(body, dict):
            return _error("request body must be a JSON object", 400)
        body = dict(body)
        body.setdefault("mode", config.get("scoring", {}).get("default_mode"))
        body.setdefault("limit", search_config.get("default_limit", 20))
        search_request, message = validate_search_request(
            body, max_limit=search_config.get("max_limit")
        )
        if search_request is None:
            return _error(message, 400)
        data = run_search(search_request, client, normalizer, config, rng=rng, now=now)
        return jsonify({"success": True, "data": data})

    @app.route("/api/search", methods=["POST"])
    def search_post():
        return _search(request.get_json(silent=True) or {})

    @app.route("/api/search", methods=["GET"])
    def search_get():
        skills_param = request.args.get("skills")
        if not skills_param:
            return _error("Skills parameter is required", 400)
        body = {
            "skills": [s.strip() for s in skills_param.split(",") if s.strip()],
            "feeling_lucky": request.args.get("feelingLucky") == "true",
        }
        if request.args.get("mode"):
            body["mode"] = request.args["mode"]
        if request.args.get("limit"):
            try:
                body["limit"] = int(request.args["limit"])
            except ValueError:
                return _error("limit must be an integer", 400)
        return _search(body)

    def _trending(language, since, limit):
        if since not in TRENDING_DAYS:
            return _error(f"since must be one of: {', '.join(TRENDING_DAYS)}", 400)
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            return _error("limit must be an integer", 400)
        if limit < 1:
            return _error("limit must be at least 1", 400)
        repos = client.get_trending_repositories(language, since)
        return jsonify({
            "success": True,
            "data": {
                "repositories": [_trending_entry(repo) for repo in repos[:limit]],
                "metadata": {
                    "language": language or "all",
                    "since": since,
                    "limit": limit,
                    "total": len(repos),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            },
        })

    @app.route("/api/trending", methods=["GET"])
    def trending_get():
        return _trending(
            request.args.get("language", ""),
            request.args.get("since", "weekly"),
            request.args.get("limit", 20),
        )

    @app.route("/api/trending", methods=["POST"])
    def trending_post():
        body = request.get_json(silent=True) or {}
        if not isinstance(body, dict):
            return _error("request body must be a JSON object", 400)
        return _trending(body.get("language", ""), body.get("since", "weekly"), body.get("limit", 20))

    @app.route("/api/skills/normalize", methods=["POST"])
    def normalize_skills():
        body = request.get_json(silent=True) or {}
        if not isinstance(body, dict):
            return _error("request body must be a JSON object", 400)
        skills = body.get("skills")
        if not isinstance(skills, list) or not skills:
            return _error("skills array is required and must not be empty", 400)
        normalized = normalizer.normalize(skills)
        return jsonify({
            "success": True,
            "data": {
                "skills": [skill.model_dump() for skill in normalized],
                "expanded": get_expanded_skills(normalized),
                "catalog": normalizer.graph.stats(),
            },
        })

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({
            "success": True,
            "data": {
                "status": "ok",
                "cache": cache.stats(),
                "ttl": cache.ttl,
                "catalog": normalizer.graph.stats(),
            },
        })

    @app.errorhandler(Exception)
    def handle_error(exc):
        if isinstance(exc, HTTPException):
            return _error(exc.description, exc.code)
        logger.exception("Unhandled error on %s", request.path)
        return _error(str(exc) or "Internal server error", 500)

    return app


def _error(message, status):
    return jsonify({"success": False, "error": message}), status


def _trending_entry(repo):
    owner = repo.get("owner") or {}
    return {
        "id": repo.get("id"),
        "name": repo.get("name"),
        "full_name": repo.get("full_name"),
        "description": repo.get("description"),
        "url": repo.get("html_url"),
        "stars": repo.get("stargazers_count", 0),
        "forks": repo.get("forks_count", 0),
        "language": repo.get("language"),
        "topics": repo.get("topics") or [],
        "last_updated": repo.get("updated_at"),
        "created_at": repo.get("created_at"),
        "owner": {
            "login": owner.get("login"),
            "avatar_url": owner.get("avatar_url"),
            "url": owner.get("html_url"),
        },
    }


def main():
    config = load_config("config.yml")
    server = config.get("server", {})
    create_app(config).run(host=server.get("host", "127.0.0.1"), port=int(server.get("port", 5000)), debug=False)


if __name__ == "__main__":
    main()
