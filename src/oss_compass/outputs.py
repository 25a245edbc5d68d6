import csv
import json
import os
import time


SCORE_FIELDS = ["relevance", "quality", "opportunity", "final"]


def create_run_dir(base_dir="runs"):
    timestamp = time.strftime("%Y%m%d_%H%M%S", time.gmtime())
    run_dir = os.path.join(base_dir, timestamp)
    os.makedirs(run_dir, exist_ok=True)
    return run_dir


def write_results_jsonl(run_dir, results):
    path = os.path.join(run_dir, "results.jsonl")
    with open(path, "w", encoding="utf-8") as f:
        for result in results:
            f.write(json.dumps(result, ensure_ascii=True) + "\n")
    return path


def write_scores_csv(run_dir, results):
    path = os.path.join(run_dir, "scores.csv")
    fieldnames = ["rank", "full_name", "url", "stars", "forks", "language", "good_first_issues"]
    fieldnames += SCORE_FIELDS
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for rank, result in enumerate(results, start=1):
            scores = result.get("scores", {})
            row = {
                "rank": rank,
                "full_name": result.get("full_name"),
                "url": result.get("url"),
                "stars": result.get("stars"),
                "forks": result.get("forks"),
                "language": result.get("language"),
                "good_first_issues": result.get("good_first_issues"),
            }
            row.update({name: scores.get(name) for name in SCORE_FIELDS})
            writer.writerow(row)
    return path


def write_top_report(run_dir, response, top_n):
    """Markdown summary of the first ``top_n`` results in presentation order."""
    path = os.path.join(run_dir, "top_report.md")
    metadata = response.get("metadata", {})
    skills = metadata.get("skills", {})
    normalized = ", ".join(s.get("normalized", "") for s in skills.get("normalized", []))
    lines = [
        "# Top Repositories",
        "",
        f"Generated: {time.strftime('%Y-%m-%d %H:%M:%S UTC', time.gmtime())}",
        f"Skills: {', '.join(skills.get('input', [])) or 'none'}"
        + (f" (normalized: {normalized})" if normalized else ""),
        f"Mode: {metadata.get('mode')} | Sort: {metadata.get('sort')}",
        "",
    ]
    for idx, result in enumerate(response.get("repositories", [])[:top_n], start=1):
        scores = result.get("scores", {})
        lines.append(f"## {idx}. {result.get('full_name')} ({result.get('stars')} stars)")
        lines.append(f"- URL: {result.get('url')}")
        lines.append(f"- Final score: {scores.get('final')}")
        lines.append(
            "- Subscores: "
            f"Relevance {scores.get('relevance')}, "
            f"Quality {scores.get('quality')}, "
            f"Opportunity {scores.get('opportunity')}"
        )
        if result.get("explanation"):
            lines.append(f"- Why: {result['explanation']}")
        opportunities = result.get("opportunities") or []
        if opportunities:
            lines.append(
                "- Opportunities: "
                + ", ".join(f"{o['type']} ({o['count']})" for o in opportunities)
            )
        lines.append("")
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    return path
