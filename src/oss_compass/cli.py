import argparse
import json
import logging
import sys

from .cache import CacheManager
from .config import github_token, load_config
from .errors import ConfigError
from .github_client import GitHubClient
from .logger import setup_logging
from .normalizer import SkillNormalizer
from .outputs import create_run_dir, write_results_jsonl, write_scores_csv, write_top_report
from .schemas import MODES, SORTS, validate_search_request
from .search import run_search


logger = logging.getLogger(__name__)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2
    log_config = config.get("logging", {})
    setup_logging(args.log_level or log_config.get("level", "INFO"), log_config.get("dir"))
    return args.func(args, config)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="oss-compass",
        description="Find open-source repositories that match your skills and goals",
    )
    parser.add_argument("--config", default="config.yml")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="search and rank repositories")
    search.add_argument("--skills", nargs="+", required=True)
    search.add_argument("--mode", choices=MODES, default=None)
    search.add_argument("--limit", type=int, default=None)
    search.add_argument("--page", type=int, default=1)
    search.add_argument("--sort", choices=SORTS, default="relevance")
    search.add_argument("--min-stars", type=int, default=None)
    search.add_argument("--max-stars", type=int, default=None)
    search.add_argument("--explain", action="store_true")
    search.add_argument("--lucky", action="store_true")
    search.add_argument("--out", default=None, help="write results into a run directory under this path")
    search.set_defaults(func=cmd_search)

    normalize = sub.add_parser("normalize", help="show how skills are normalized")
    normalize.add_argument("--skills", nargs="+", required=True)
    normalize.set_defaults(func=cmd_normalize)

    trending = sub.add_parser("trending", help="list recently created popular repositories")
    trending.add_argument("--language", default="")
    trending.add_argument("--since", choices=["daily", "weekly", "monthly"], default="weekly")
    trending.add_argument("--limit", type=int, default=20)
    trending.set_defaults(func=cmd_trending)

    cache = sub.add_parser("cache", help="inspect or clear the response cache")
    cache.add_argument("action", choices=["stats", "clear"])
    cache.set_defaults(func=cmd_cache)
    return parser


def parse_skills(values):
    skills = []
    for value in values or []:
        skills.extend(part.strip() for part in value.split(","))
    return [skill for skill in skills if skill]


def build_services(config, client=None):
    cache = CacheManager.from_config(config)
    if client is None:
        client = GitHubClient.from_config(config, token=github_token(config), cache=cache)
    return cache, client, SkillNormalizer(cache=cache)


def run_pipeline(body, config, client=None, out_dir=None, rng=None, now=None):
    """Validate a request body, run the search and optionally write run files.

    Raises ``ValueError`` with the validation message for a bad body.
    """
    search_config = config.get("search", {})
    body = dict(body)
    body.setdefault("mode", config.get("scoring", {}).get("default_mode"))
    body.setdefault("limit", search_config.get("default_limit", 20))
    request, message = validate_search_request(body, max_limit=search_config.get("max_limit"))
    if request is None:
        raise ValueError(message)

    _, client, normalizer = build_services(config, client=client)
    response = run_search(request, client, normalizer, config, rng=rng, now=now)
    result = {"response": response}
    if out_dir:
        run_dir = create_run_dir(out_dir)
        results = response["repositories"]
        result.update({
            "run_dir": run_dir,
            "results_path": write_results_jsonl(run_dir, results),
            "scores_path": write_scores_csv(run_dir, results),
            "report_path": write_top_report(
                run_dir, response, int(config.get("output", {}).get("top_n", 10))
            ),
        })
    return result


def cmd_search(args, config):
    body = {
        "skills": parse_skills(args.skills),
        "page": args.page,
        "sort": args.sort,
        "include_explanation": args.explain,
        "feeling_lucky": args.lucky,
    }
    if args.mode:
        body["mode"] = args.mode
    if args.limit is not None:
        body["limit"] = args.limit
    if args.min_stars is not None or args.max_stars is not None:
        body["star_range"] = {"min": args.min_stars, "max": args.max_stars}

    try:
        result = run_pipeline(body, config, out_dir=args.out)
    except ValueError as exc:
        print(f"Invalid request: {exc}", file=sys.stderr)
        return 2

    if args.out:
        print("Run complete")
        print(f"Results: {result['results_path']}")
        print(f"Scores: {result['scores_path']}")
        print(f"Report: {result['report_path']}")
    else:
        print(json.dumps(result["response"], indent=2, ensure_ascii=False))
    return 0


def cmd_normalize(args, config):
    normalizer = SkillNormalizer(cache=CacheManager.from_config(config))
    skills = normalizer.normalize(parse_skills(args.skills))
    print(json.dumps([skill.model_dump() for skill in skills], indent=2))
    return 0


def cmd_trending(args, config):
    _, client, _ = build_services(config)
    repos = client.get_trending_repositories(args.language, args.since)[: args.limit]
    for repo in repos:
        print(
            f"{repo.get('full_name')}\t{repo.get('stargazers_count', 0)} stars\t"
            f"{repo.get('language') or '-'}\t{repo.get('html_url')}"
        )
    if not repos:
        logger.info("No trending repositories found")
    return 0


def cmd_cache(args, config):
    cache = CacheManager.from_config(config)
    if args.action == "clear":
        removed = cache.clear()
        print(f"Removed {removed} cache entries from {cache.base_dir}")
    else:
        print(json.dumps(cache.stats(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
