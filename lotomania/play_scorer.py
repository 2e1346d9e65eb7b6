"""
Play Scoring Module for Lotomania Ultra.

Assigns a fitness value to a 50-number candidate from weighted heuristic
components. Higher is better. Scores are comparable within one run; they
are not normalized.
"""
from typing import Dict, Optional, Sequence

from lotomania.config import (
    GAME_SIZE, BUCKET_WIDTH, UNIVERSE, SCORING_WEIGHTS, OVERLAP_TARGET,
    CONSECUTIVE_MIN, CONSECUTIVE_MAX, HOT_CAP,
)
from lotomania.models import ClosingStrategy, Draw, FrequencyProfile

BUCKET_COUNT = len(UNIVERSE) // BUCKET_WIDTH
IDEAL_BUCKET_SIZE = GAME_SIZE // BUCKET_COUNT
MAX_BUCKET_SIZE = 8
EMPTY_OR_CROWDED_BUCKET_PENALTY = 5
HOT_CAP_PENALTY = 2.0


def count_evens(game: Sequence[int]) -> int:
    return sum(1 for n in game if n % 2 == 0)


def bucket_counts(game: Sequence[int]) -> list:
    counts = [0] * BUCKET_COUNT
    for n in game:
        counts[n // BUCKET_WIDTH] += 1
    return counts


def count_consecutive_pairs(game: Sequence[int]) -> int:
    numbers = sorted(game)
    return sum(1 for i in range(len(numbers) - 1) if numbers[i + 1] - numbers[i] == 1)


class PlayScorer:
    """
    Scores candidates against one frequency profile, reference draw and
    closing strategy.

    Components:
      - parity: 10 - |evens - 25|
      - bucket: per decade, 5 - |count - 5| when 1..8 members, else -5
      - overlap: -(overlap with reference draw - target)^2
      - consecutive: +2 inside [min, max] adjacent pairs, minus the distance
        to that band otherwise
      - tier: hot presence rewarded and cold presence penalized by the
        strategy's weights; capped strategies lose points above the hot cap
    """

    def __init__(
        self,
        profile: FrequencyProfile,
        reference: Draw,
        strategy: ClosingStrategy,
        weights: Optional[Dict[str, float]] = None,
        overlap_target: int = OVERLAP_TARGET,
        consecutive_min: int = CONSECUTIVE_MIN,
        consecutive_max: int = CONSECUTIVE_MAX,
        hot_cap: int = HOT_CAP,
    ):
        self.strategy = strategy
        self.weights = dict(SCORING_WEIGHTS)
        if weights:
            self.weights.update(weights)
        self.overlap_target = overlap_target
        self.consecutive_min = consecutive_min
        self.consecutive_max = consecutive_max
        self.hot_cap = hot_cap
        self._reference = frozenset(reference.numbers)
        self._hot = frozenset(profile.hot)
        self._cold = frozenset(profile.cold)

    def parity_score(self, game: Sequence[int]) -> float:
        return 10 - abs(count_evens(game) - GAME_SIZE // 2)

    def bucket_score(self, game: Sequence[int]) -> float:
        score = 0
        for count in bucket_counts(game):
            if 0 < count <= MAX_BUCKET_SIZE:
                score += IDEAL_BUCKET_SIZE - abs(count - IDEAL_BUCKET_SIZE)
            else:
                score -= EMPTY_OR_CROWDED_BUCKET_PENALTY
        return score

    def overlap_score(self, game: Sequence[int]) -> float:
        overlap = sum(1 for n in game if n in self._reference)
        return -float((overlap - self.overlap_target) ** 2)

    def consecutive_score(self, game: Sequence[int]) -> float:
        pairs = count_consecutive_pairs(game)
        if self.consecutive_min <= pairs <= self.consecutive_max:
            return 2.0
        if pairs < self.consecutive_min:
            return -float(self.consecutive_min - pairs)
        return -float(pairs - self.consecutive_max)

    def tier_score(self, game: Sequence[int]) -> float:
        profile = self.strategy.profile
        hot_present = sum(1 for n in game if n in self._hot)
        cold_present = sum(1 for n in game if n in self._cold)
        score = hot_present * profile.hot_weight - cold_present * profile.cold_penalty
        if profile.caps_hot and hot_present > self.hot_cap:
            score -= (hot_present - self.hot_cap) * HOT_CAP_PENALTY
        return score

    def calculate_total_score(self, game: Sequence[int]) -> Dict[str, float]:
        """
        Calculates every component and the weighted total.

        Returns:
            Dict[str, float]: Component scores plus 'total'.
        """
        scores = {
            "parity": self.parity_score(game),
            "bucket": self.bucket_score(game),
            "overlap": self.overlap_score(game),
            "consecutive": self.consecutive_score(game),
            "tier": self.tier_score(game),
        }
        scores["total"] = sum(scores[name] * self.weights.get(name, 0.0) for name in list(scores))
        return scores

    def score(self, game: Sequence[int]) -> float:
        return self.calculate_total_score(game)["total"]
