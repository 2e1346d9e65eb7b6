"""
Tests for candidate construction and mirror games.
"""

import random

import numpy as np
import pytest

from lotomania.combination_generator import (
    build_candidate,
    create_mirror_game,
    format_game,
    is_valid_game,
    select_fixed_numbers,
)
from lotomania.data_processor import analyze_frequencies
from lotomania.models import ClosingStrategy, FrequencyProfile


def _profile(hot, warm, cold):
    counts = np.zeros(100, dtype=np.int64)
    for n in hot:
        counts[n] = 10
    for n in warm:
        counts[n] = 5
    return FrequencyProfile(counts=counts, hot=list(hot), warm=list(warm), cold=list(cold))


class TestBuildCandidate:

    @pytest.mark.parametrize("strategy", list(ClosingStrategy))
    def test_candidate_is_valid(self, history, strategy):
        """Test that a candidate has 50 distinct numbers in range."""
        profile = analyze_frequencies(history)
        rng = random.Random(5)

        for _ in range(20):
            candidate = build_candidate(profile, strategy, [], rng)
            assert is_valid_game(candidate)
            assert candidate == sorted(candidate)

    def test_tier_quotas_respected(self):
        """Test hot and cold quotas from the strategy profile."""
        profile = _profile(range(20), range(20, 80), range(80, 100))
        candidate = build_candidate(profile, ClosingStrategy.MAX_TIER, [], random.Random(1))

        assert len([n for n in candidate if n < 20]) == 15
        assert len([n for n in candidate if n >= 80]) == 5
        assert len(candidate) == 50

    def test_fixed_numbers_always_included(self, history, reference_draw):
        """Test that fixed numbers are always kept."""
        profile = analyze_frequencies(history)
        fixed = reference_draw.numbers[:15]
        rng = random.Random(9)

        for strategy in ClosingStrategy:
            candidate = build_candidate(profile, strategy, fixed, rng)
            assert set(fixed) <= set(candidate)
            assert is_valid_game(candidate)

    def test_degenerate_pools_fall_back_to_universe(self):
        """Test uniform fill when tier pools are too small."""
        # Hot tier far smaller than the MAX_TIER quota, and no warm tier at all
        profile = _profile(range(5), [], range(95, 100))
        candidate = build_candidate(profile, ClosingStrategy.MAX_TIER, [], random.Random(3))

        assert is_valid_game(candidate)
        assert set(range(5)) <= set(candidate)

    def test_same_seed_same_candidate(self, history):
        """Test reproducibility with a seeded random source."""
        profile = analyze_frequencies(history)
        first = build_candidate(profile, ClosingStrategy.BALANCED, [], random.Random(42))
        second = build_candidate(profile, ClosingStrategy.BALANCED, [], random.Random(42))
        assert first == second


class TestSelectFixedNumbers:

    def test_most_frequent_reference_numbers(self, reference_draw):
        """Test selecting the most frequent reference numbers."""
        counts = np.zeros(100, dtype=np.int64)
        counts[99] = 9
        counts[3] = 7
        counts[50] = 5
        profile = FrequencyProfile(counts=counts, hot=[], warm=list(range(100)), cold=[])

        assert select_fixed_numbers(reference_draw, profile, 3) == [99, 3, 50]

    def test_ties_keep_draw_order(self, reference_draw, history):
        """Test that frequency ties keep the draw order."""
        profile = FrequencyProfile(counts=np.zeros(100, dtype=np.int64), hot=[], warm=list(range(100)), cold=[])
        assert select_fixed_numbers(reference_draw, profile, 4) == reference_draw.numbers[:4]

    @pytest.mark.parametrize("count, expected", [(0, 0), (5, 5), (15, 15), (40, 15), (-2, 0)])
    def test_count_clamped(self, reference_draw, history, count, expected):
        """Test clamping the fixed count."""
        profile = analyze_frequencies(history)
        fixed = select_fixed_numbers(reference_draw, profile, count)

        assert len(fixed) == expected
        assert set(fixed) <= reference_draw.number_set


class TestMirrorGame:

    def test_mirror_maps_to_complement(self):
        """Test mapping each number to 99 minus itself."""
        game = list(range(50))
        assert create_mirror_game(game) == list(range(50, 100))

    def test_mirror_is_involution(self, history):
        """Test that mirroring twice returns the original game."""
        profile = analyze_frequencies(history)
        game = build_candidate(profile, ClosingStrategy.HIGH_TIER, [], random.Random(0))

        mirror = create_mirror_game(game)
        assert is_valid_game(mirror)
        assert create_mirror_game(mirror) == game

    def test_format_game_pads_and_sorts(self):
        """Test zero padding and sorting."""
        assert format_game([10, 2, 0]) == ["00", "02", "10"]
