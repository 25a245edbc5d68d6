"""Order scored repositories for presentation.

Ranking is not a pure score sort. After sorting, runs of near-equal scores
are shuffled, then results are re-interleaved by repository size in a
small, small, medium, large cycle. Small and medium repositories are
therefore over-represented relative to their scores. Repositories under 50
stars belong to no tier and are not emitted.
"""

import logging
import random

logger = logging.getLogger(__name__)

MAX_RESULTS = 50
TIE_BAND = 0.03

SMALL = (50, 500)
MEDIUM = (500, 2000)
LARGE_MIN = 2000

TIER_CYCLE = ("small", "small", "medium", "large")


def tie_bands(scored, band=TIE_BAND):
    """Split a score-sorted list into consecutive near-tie groups.

    A group collects every following entry whose final score is within
    ``band`` (relative) of the group's first entry.
    """
    groups = []
    i = 0
    while i < len(scored):
        head = scored[i].score.final
        group = [scored[i]]
        j = i + 1
        # A zero head has no relative band; every entry stands alone.
        while head > 0 and j < len(scored):
            if abs(scored[j].score.final - head) / head <= band:
                group.append(scored[j])
                j += 1
            else:
                break
        groups.append(group)
        i = j
    return groups


def shuffle_ties(scored, rng=None, band=TIE_BAND):
    rng = rng or random
    result = []
    for group in tie_bands(scored, band=band):
        group = list(group)
        rng.shuffle(group)
        result.extend(group)
    return result


def size_tier(stars):
    if SMALL[0] <= stars < SMALL[1]:
        return "small"
    if MEDIUM[0] <= stars < MEDIUM[1]:
        return "medium"
    if stars >= LARGE_MIN:
        return "large"
    return None


def diversify(scored, limit=MAX_RESULTS):
    tiers = {"small": [], "medium": [], "large": []}
    for item in scored:
        tier = size_tier(item.repository.stargazers_count)
        if tier is not None:
            tiers[tier].append(item)

    queues = {name: iter(items) for name, items in tiers.items()}
    remaining = {name: len(items) for name, items in tiers.items()}

    def take(name):
        remaining[name] -= 1
        return next(queues[name])

    result = []
    for i in range(min(len(scored), limit)):
        wanted = TIER_CYCLE[i % len(TIER_CYCLE)]
        if remaining[wanted]:
            result.append(take(wanted))
            continue
        fallback = next((name for name in ("small", "medium", "large") if remaining[name]), None)
        if fallback is None:
            break
        result.append(take(fallback))
    return result


def rank(scored, rng=None, limit=MAX_RESULTS, band=TIE_BAND):
    ordered = sorted(scored, key=lambda item: item.score.final, reverse=True)
    ordered = shuffle_ties(ordered, rng=rng, band=band)
    ranked = diversify(ordered, limit=limit)
    logger.debug(
        "Ranked %d candidates into %d results (%d outside size tiers)",
        len(scored), len(ranked),
        sum(1 for item in scored if size_tier(item.repository.stargazers_count) is None),
    )
    return ranked
