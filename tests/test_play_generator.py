"""
Tests for batch generation: size, mirror and fixed-number invariants,
configuration validation and the narrative.
"""

import random

import pytest

from lotomania.combination_generator import create_mirror_game, select_fixed_numbers
from lotomania.data_processor import analyze_frequencies, append_draw_to_history, load_history_corpus
from lotomania.mock_data import generate_synthetic_history
from lotomania.models import ConfigurationError, GameConfig, ClosingStrategy
from lotomania.play_generator import DISCLAIMER, PlayGenerator, generate_local_games


def _as_ints(game):
    return [int(n) for n in game]


def _assert_valid_game(game):
    assert len(game) == 50
    assert len(set(game)) == 50
    assert all(len(n) == 2 and n.isdigit() for n in game)
    assert game == sorted(game)


@pytest.fixture
def generator(history, fast_settings):
    return PlayGenerator(history, settings=fast_settings, seed=7)


class TestBatchSize:

    @pytest.mark.parametrize("num_games", [1, 20, 50])
    @pytest.mark.parametrize("mirror", [False, True])
    def test_exact_number_of_valid_games(self, generator, reference_draw, num_games, mirror):
        """Test the exact batch size for each game count."""
        config = GameConfig(num_games=num_games, mirror_bet=mirror)
        batch = generator.generate(config, reference_draw)

        assert batch.error is None
        assert len(batch.games) == num_games
        for game in batch.games:
            _assert_valid_game(game)


class TestMirrorBet:

    def test_odd_positions_are_mirrors(self, generator, reference_draw):
        """Test that odd positions hold the mirrors."""
        batch = generator.generate(GameConfig(num_games=4, mirror_bet=True), reference_draw)

        for base_index in (0, 2):
            base = _as_ints(batch.games[base_index])
            mirror = _as_ints(batch.games[base_index + 1])
            assert mirror == create_mirror_game(base)

    def test_odd_batch_ends_with_base_game(self, generator, reference_draw):
        """Test that an odd mirrored batch ends with a base game."""
        batch = generator.generate(GameConfig(num_games=3, mirror_bet=True), reference_draw)

        assert len(batch.games) == 3
        assert _as_ints(batch.games[1]) == create_mirror_game(_as_ints(batch.games[0]))
        assert _as_ints(batch.games[2]) != create_mirror_game(_as_ints(batch.games[1]))


class TestFixedNumbers:

    @pytest.mark.parametrize("fixed_count", [0, 5, 15])
    def test_every_game_contains_fixed_numbers(self, generator, reference_draw, fixed_count):
        """Test that every game contains the fixed numbers."""
        config = GameConfig(num_games=5, fixed_numbers=fixed_count)
        profile = generator.analyze(reference_draw)
        fixed = select_fixed_numbers(reference_draw, profile, fixed_count)

        batch = generator.generate(config, reference_draw)

        assert len(fixed) == fixed_count
        assert set(fixed) <= reference_draw.number_set
        for game in batch.games:
            assert set(fixed) <= set(_as_ints(game))

    def test_narrative_lists_anchors(self, generator, reference_draw):
        """Test that the narrative names the reference contest."""
        batch = generator.generate(GameConfig(num_games=1, fixed_numbers=3), reference_draw)
        assert "contest 2809" in batch.analysis


class TestConfiguration:

    @pytest.mark.parametrize("raw", [
        {"numGames": 0},
        {"numGames": "many"},
        {"numGames": 501},
        {"closingStrategy": "unknown"},
    ])
    def test_invalid_config_raises_before_generation(self, reference_draw, history, fast_settings, raw):
        """Test that invalid configuration fails before generation."""
        with pytest.raises(ConfigurationError):
            generate_local_games(raw, reference_draw, history, settings=fast_settings)

    def test_max_games_from_settings(self, generator):
        """Test the game limit from settings."""
        generator.settings.max_num_games = 10
        with pytest.raises(ConfigurationError):
            generator.parse_config({"numGames": 11})

    def test_fixed_numbers_clamped(self, generator):
        """Test clamping fixed numbers."""
        assert generator.parse_config({"fixedNumbers": 99}).fixed_numbers == 15


class TestGeneration:

    def test_same_seed_same_batch(self, history, fast_settings, reference_draw):
        """Test reproducibility with a seed."""
        raw = {"numGames": 3, "fixedNumbers": 4, "closingStrategy": "target_20"}
        first = generate_local_games(raw, reference_draw, history, settings=fast_settings, seed=123)
        second = generate_local_games(raw, reference_draw, history, settings=fast_settings, seed=123)

        assert first.games == second.games
        assert first.analysis == second.analysis

    @pytest.mark.parametrize("strategy", list(ClosingStrategy))
    def test_every_strategy_generates(self, generator, reference_draw, strategy):
        """Test generation for each closing strategy."""
        batch = generator.generate(GameConfig(num_games=2, closing_strategy=strategy), reference_draw)
        assert len(batch.games) == 2

    def test_narrative(self, generator, reference_draw):
        """Test the narrative text."""
        batch = generator.generate(
            GameConfig(num_games=2, mirror_bet=True, closing_strategy=ClosingStrategy.MAX_TIER, target_concurso=2810),
            reference_draw,
        )

        assert batch.analysis.endswith(DISCLAIMER)
        assert "Maximum Win" in batch.analysis
        assert "Mirror bet:** enabled" in batch.analysis
        assert "2810" in batch.analysis

    def test_empty_history_still_generates(self, fast_settings, reference_draw):
        """Test generation without history."""
        generator = PlayGenerator([], settings=fast_settings, seed=1)
        batch = generator.generate(GameConfig(num_games=2), reference_draw)
        assert len(batch.games) == 2

    def test_saved_reference_draw_counted_once(self, tmp_path, fast_settings, reference_draw):
        """Test that a reference draw already saved to history is counted once."""
        path = str(tmp_path / "history.csv")
        append_draw_to_history(reference_draw, path)
        generator = PlayGenerator(load_history_corpus(path), settings=fast_settings, seed=1)

        profile = generator.analyze(reference_draw)

        assert {profile.count(n) for n in reference_draw.numbers} == {1}
        assert int(profile.counts.sum()) == 20

    def test_unsaved_reference_draw_is_prepended(self, history, fast_settings, reference_draw):
        """Test that the reference draw is added when history lacks it."""
        generator = PlayGenerator(history, settings=fast_settings, seed=1)

        profile = generator.analyze(reference_draw)

        assert int(profile.counts.sum()) == 20 * (len(history) + 1)

    def test_failure_yields_empty_batch_with_error(self, generator, reference_draw, monkeypatch):
        """Test that a failure yields an empty batch with an error."""
        def broken(*args, **kwargs):
            raise RuntimeError("pool exhausted")

        monkeypatch.setattr("lotomania.play_generator.build_candidate", broken)
        batch = generator.generate_safe(GameConfig(num_games=3), reference_draw)

        assert batch.games == []
        assert "pool exhausted" in batch.error


class TestEndToEnd:

    @pytest.fixture
    def synthetic_history(self):
        return generate_synthetic_history(50, rng=random.Random(50))

    def test_single_game_with_five_fixed(self, synthetic_history, reference_draw, fast_settings):
        """Test one game with five fixed numbers."""
        raw = {"numGames": "1", "fixedNumbers": "5", "mirrorBet": False, "closingStrategy": "balanced"}
        batch = generate_local_games(raw, reference_draw, synthetic_history, settings=fast_settings, seed=3)

        profile = analyze_frequencies([reference_draw.numbers] + synthetic_history)
        top_five = select_fixed_numbers(reference_draw, profile, 5)

        assert len(batch.games) == 1
        _assert_valid_game(batch.games[0])
        assert set(top_five) <= set(_as_ints(batch.games[0]))

    def test_four_games_with_mirror(self, synthetic_history, reference_draw, fast_settings):
        """Test four mirrored games."""
        raw = {"numGames": "4", "fixedNumbers": "5", "mirrorBet": True, "closingStrategy": "balanced"}
        batch = generate_local_games(raw, reference_draw, synthetic_history, settings=fast_settings, seed=3)

        assert len(batch.games) == 4
        assert _as_ints(batch.games[1]) == create_mirror_game(_as_ints(batch.games[0]))
        assert _as_ints(batch.games[3]) == create_mirror_game(_as_ints(batch.games[2]))
