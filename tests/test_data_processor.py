"""
Tests for frequency analysis and history persistence.
"""

import random

import pandas as pd
import pytest

from lotomania.data_processor import (
    NUMBER_COLUMNS,
    analyze_frequencies,
    append_draw_to_history,
    count_frequencies,
    load_historical_draws,
    load_history_corpus,
    rank_by_frequency,
    read_history_frame,
)
from lotomania.models import Draw


class TestFrequencyCounts:

    def test_counts_every_occurrence(self):
        """Test counting every occurrence."""
        history = [list(range(20)), list(range(20)), list(range(20, 40))]
        counts = count_frequencies(history)

        assert counts[0] == 2
        assert counts[19] == 2
        assert counts[20] == 1
        assert counts[99] == 0
        assert counts.sum() == 60

    def test_accepts_draw_objects(self, reference_draw):
        """Test counting Draw objects."""
        counts = count_frequencies([reference_draw])
        assert counts[3] == 1
        assert counts[4] == 0

    def test_ties_rank_in_ascending_order(self):
        """Test that ties rank in ascending number order."""
        counts = count_frequencies([])
        assert rank_by_frequency(counts) == list(range(100))


class TestAnalyzeFrequencies:

    def test_tiers_partition_universe(self, history):
        """Test that the tiers partition 0-99."""
        profile = analyze_frequencies(history)

        assert len(profile.hot) == 20
        assert len(profile.cold) == 20
        assert len(profile.warm) == 60
        assert set(profile.hot) | set(profile.warm) | set(profile.cold) == set(range(100))
        assert not set(profile.hot) & set(profile.cold)

    def test_hot_are_most_frequent(self):
        """Test that hot numbers are the most frequent."""
        history = [list(range(20))] * 3 + [list(range(20, 40))]
        profile = analyze_frequencies(history)

        assert profile.hot == list(range(20))
        assert profile.cold == list(range(80, 100))
        assert all(profile.count(h) >= profile.count(c) for h in profile.hot for c in profile.cold)

    def test_key_numbers_use_recent_threshold(self):
        """Test key numbers from the recent window threshold."""
        history = [list(range(20, 40))] * 3 + [list(range(20))] * 2
        profile = analyze_frequencies(history)

        assert profile.key_numbers == list(range(20, 40))

    def test_key_numbers_backfilled_from_hot(self):
        """Test backfilling key numbers from the hot tier."""
        history = [list(range(start, start + 20)) for start in range(0, 100, 20)]
        profile = analyze_frequencies(history)

        assert profile.key_numbers == list(range(12))

    def test_empty_history_still_partitions(self):
        """Test analysis of an empty history."""
        profile = analyze_frequencies([])

        assert profile.hot == list(range(20))
        assert profile.cold == list(range(80, 100))
        assert len(profile.key_numbers) == 12

    def test_key_window_only_sees_recent_draws(self):
        """Test that the key window ignores older draws."""
        # Numbers 60-79 are frequent overall but absent from the last 5 draws
        history = [list(range(20))] * 5 + [list(range(60, 80))] * 10
        profile = analyze_frequencies(history)

        assert profile.hot == list(range(60, 80))
        assert profile.key_numbers == list(range(20))

    def test_analysis_is_deterministic(self, history):
        """Test that analysis is deterministic."""
        first = analyze_frequencies(history)
        second = analyze_frequencies([list(draw) for draw in history])

        assert (first.counts == second.counts).all()
        assert (first.hot, first.warm, first.cold, first.key_numbers) == \
            (second.hot, second.warm, second.cold, second.key_numbers)


class TestHistoryFile:

    def _write_csv(self, path, rows):
        pd.DataFrame(rows, columns=["concurso", "data"] + NUMBER_COLUMNS).to_csv(path, index=False)

    def test_read_drops_invalid_rows_and_sorts(self, tmp_path):
        """Test reading the history CSV."""
        path = tmp_path / "history.csv"
        duplicate_row = [2, "03/01/2000"] + [5] * 20
        self._write_csv(path, [
            [1, "01/01/2000"] + list(range(20)),
            duplicate_row,
            [3, "05/01/2000"] + list(range(20, 40)),
        ])

        df = read_history_frame(str(path))

        assert list(df["concurso"]) == [3, 1]
        assert df.loc[0, "n01"] == 20

    def test_missing_file_returns_none(self, tmp_path):
        """Test reading a missing history file."""
        assert read_history_frame(str(tmp_path / "missing.csv")) is None

    def test_corpus_falls_back_to_synthetic(self, tmp_path):
        """Test the synthetic corpus fallback."""
        corpus = load_history_corpus(str(tmp_path / "missing.csv"), synthetic_size=7, rng=random.Random(1))

        assert len(corpus) == 7
        assert all(len(set(draw)) == 20 for draw in corpus)

    def test_corpus_from_file_is_most_recent_first(self, tmp_path):
        """Test corpus ordering from the CSV."""
        path = tmp_path / "history.csv"
        self._write_csv(path, [
            [10, "01/01/2000"] + list(range(20)),
            [11, "03/01/2000"] + list(range(80, 100)),
        ])

        corpus = load_history_corpus(str(path))

        assert corpus == [list(range(80, 100)), list(range(20))]

    def test_append_replaces_same_contest(self, tmp_path, reference_draw):
        """Test persisting draws to the history CSV."""
        path = str(tmp_path / "data" / "history.csv")

        assert append_draw_to_history(reference_draw, path) == 1
        assert append_draw_to_history(reference_draw, path) == 1

        other = Draw.from_numbers(range(20), concurso=2810, data="15/08/2025")
        assert append_draw_to_history(other, path) == 2

        draws = load_historical_draws(path)
        assert set(draws) == {2809, 2810}
        assert draws[2809].numeros == reference_draw.numeros
        assert draws[2809].has_prize_data is False
        assert draws[2810].data == "15/08/2025"

    def test_append_requires_contest_number(self, tmp_path):
        """Test that persisting needs a contest number."""
        draw = Draw.from_numbers(range(20))
        with pytest.raises(ValueError):
            append_draw_to_history(draw, str(tmp_path / "history.csv"))
