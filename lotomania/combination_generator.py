"""
Candidate Construction Module for Lotomania Ultra.

This module builds 50-number candidate games from the frequency tiers,
seeded with the fixed numbers taken from the reference draw, and derives
mirror games.
"""
import random
from typing import Iterable, List, Sequence

from loguru import logger

from lotomania.config import UNIVERSE, GAME_SIZE, MAX_FIXED_NUMBERS
from lotomania.models import (
    ClosingStrategy, DegenerateUniverseError, Draw, FrequencyProfile, format_number,
)


def select_fixed_numbers(reference: Draw, profile: FrequencyProfile, count: int) -> List[int]:
    """
    Picks the `count` most frequent numbers of the reference draw.

    Ties keep the order in which the numbers appear in the draw. The count
    is clamped to 0-15.
    """
    count = max(0, min(int(count), MAX_FIXED_NUMBERS))
    ranked = sorted(reference.numbers, key=lambda n: profile.count(n), reverse=True)
    return ranked[:count]


def _draw_from_pool(pool: Iterable[int], count: int, present: set, rng: random.Random) -> List[int]:
    eligible = [n for n in pool if n not in present]
    if len(eligible) < count:
        raise DegenerateUniverseError(f"Pool has {len(eligible)} eligible numbers, {count} requested")
    return rng.sample(eligible, count)


def _draw_with_fallback(pool: Sequence[int], count: int, present: set, rng: random.Random) -> List[int]:
    """Draws from the tier pool; any shortfall is drawn uniformly from the universe."""
    try:
        return _draw_from_pool(pool, count, present, rng)
    except DegenerateUniverseError as e:
        logger.debug(f"Tier pool too small ({e}); completing from the full universe.")
        picks = [n for n in pool if n not in present]
        rng.shuffle(picks)
        taken = present | set(picks)
        shortfall = min(count - len(picks), len(UNIVERSE) - len(taken))
        picks += _draw_from_pool(UNIVERSE, shortfall, taken, rng)
        return picks


def build_candidate(
    profile: FrequencyProfile,
    strategy: ClosingStrategy,
    fixed_numbers: Sequence[int],
    rng: random.Random,
) -> List[int]:
    """
    Builds one 50-number candidate.

    Starts from the fixed numbers, draws the strategy's quota from the hot
    tier, then from the cold tier, fills from the warm tier and, if still
    short, from the whole universe.

    Args:
        profile (FrequencyProfile): Tiers of the current history.
        strategy (ClosingStrategy): Selects the hot/cold quotas.
        fixed_numbers (Sequence[int]): Numbers every candidate must contain.
        rng (random.Random): Random source.

    Returns:
        List[int]: 50 distinct numbers, sorted ascending.
    """
    candidate = list(dict.fromkeys(int(n) for n in fixed_numbers))[:GAME_SIZE]
    present = set(candidate)
    quotas = strategy.profile

    for pool, quota in ((profile.hot, quotas.hot_count), (profile.cold, quotas.cold_count)):
        quota = min(quota, GAME_SIZE - len(candidate))
        if quota <= 0:
            continue
        picks = _draw_with_fallback(pool, quota, present, rng)
        candidate.extend(picks)
        present.update(picks)

    warm_pool = [n for n in profile.warm if n not in present]
    rng.shuffle(warm_pool)
    for number in warm_pool[:GAME_SIZE - len(candidate)]:
        candidate.append(number)
        present.add(number)

    if len(candidate) < GAME_SIZE:
        remaining = [n for n in UNIVERSE if n not in present]
        candidate.extend(rng.sample(remaining, GAME_SIZE - len(candidate)))

    return sorted(candidate)


def create_mirror_game(game: Sequence[int]) -> List[int]:
    """Maps every number n to 99 - n."""
    return sorted(UNIVERSE[-1] - n for n in game)


def format_game(game: Sequence[int]) -> List[str]:
    return [format_number(n) for n in sorted(game)]


def is_valid_game(game: Sequence[int]) -> bool:
    return (
        len(game) == GAME_SIZE
        and len(set(game)) == GAME_SIZE
        and all(UNIVERSE[0] <= n <= UNIVERSE[-1] for n in game)
    )
