import math
import random
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from lotomania.combination_generator import (
    build_candidate, create_mirror_game, format_game, is_valid_game, select_fixed_numbers,
)
from lotomania.config import Settings, get_settings
from lotomania.data_processor import DrawLike, draw_numbers, analyze_with_settings
from lotomania.evolutionary_engine import GeneticAlgorithmOptimizer
from lotomania.models import (
    ClosingStrategy, ConfigurationError, Draw, FrequencyProfile, GameConfig, GeneratedBatch,
    format_number,
)
from lotomania.play_scorer import PlayScorer

STRATEGY_DESCRIPTIONS: Dict[ClosingStrategy, str] = {
    ClosingStrategy.MAX_TIER: (
        'Closing strategy "Maximum Win" (19-20 points): the highest risk and reward mode. '
        'Selection favours high-frequency ("hot") numbers and short-term repetition, and '
        'penalizes cold numbers strongly.'
    ),
    ClosingStrategy.HIGH_TIER: (
        'Closing strategy "High Prize" (17-18 points): frequency is balanced against dispersion '
        'metrics (decade spread, even/odd split) to cover the number universe broadly for the '
        'upper-intermediate prize tiers.'
    ),
    ClosingStrategy.BALANCED: (
        'Strategy "Consistency" (15-16 points): games follow a balanced statistical distribution '
        'with risk-averse heuristics, aiming at repeated hits in the lower prize tiers over the '
        'long run.'
    ),
}

DISCLAIMER = (
    "These are heuristic selections. Every 50-number combination has the same chance of "
    "winning as any other."
)


class PlayGenerator:
    """
    Generates batches of Lotomania games.

    Runs the frequency analysis once per batch, then one evolutionary search
    per base game. With mirror bets enabled every base game is followed by
    its complement (n -> 99 - n).
    """

    def __init__(
        self,
        history: Sequence[DrawLike],
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ):
        self.history = [draw_numbers(d) for d in history]
        self.settings = settings or get_settings()
        self.rng = rng or random.Random(seed)
        logger.info(f"PlayGenerator initialized with {len(self.history)} historical draws.")

    def parse_config(self, raw: Dict[str, Any]) -> GameConfig:
        return GameConfig.from_dict(
            raw,
            default_num_games=self.settings.default_num_games,
            max_num_games=self.settings.max_num_games,
            max_fixed_numbers=self.settings.max_fixed_numbers,
        )

    def analyze(self, reference: Draw) -> FrequencyProfile:
        """Analyzes the reference draw plus history, counting the reference once."""
        if self.history and set(self.history[0]) == reference.number_set:
            logger.debug("Reference draw already heads the history corpus.")
            combined_history = self.history
        else:
            combined_history = [reference.numbers] + self.history
        return analyze_with_settings(combined_history, self.settings)

    def _build_scorer(self, profile: FrequencyProfile, reference: Draw, strategy: ClosingStrategy) -> PlayScorer:
        return PlayScorer(
            profile,
            reference,
            strategy,
            weights=self.settings.scoring_weights,
            overlap_target=self.settings.overlap_target,
            consecutive_min=self.settings.consecutive_min,
            consecutive_max=self.settings.consecutive_max,
            hot_cap=self.settings.hot_cap,
        )

    def generate(self, config: GameConfig, reference: Draw) -> GeneratedBatch:
        """
        Generates exactly config.num_games games.

        Args:
            config (GameConfig): Validated user configuration.
            reference (Draw): The latest draw. Only its numbers are used.

        Returns:
            GeneratedBatch: Narrative plus the games as zero-padded strings.
        """
        logger.info(
            f"Starting generation of {config.num_games} games "
            f"(strategy={config.closing_strategy.value}, fixed={config.fixed_numbers}, mirror={config.mirror_bet})."
        )
        profile = self.analyze(reference)
        fixed = select_fixed_numbers(reference, profile, config.fixed_numbers)
        scorer = self._build_scorer(profile, reference, config.closing_strategy)
        optimizer = GeneticAlgorithmOptimizer(
            num_generations=self.settings.num_generations,
            population_size=self.settings.population_size,
            elite_fraction=self.settings.elite_fraction,
            rng=self.rng,
        )

        def seed_factory() -> List[int]:
            return build_candidate(profile, config.closing_strategy, fixed, self.rng)

        base_games = math.ceil(config.num_games / 2) if config.mirror_bet else config.num_games
        games: List[List[str]] = []
        for i in range(base_games):
            best = optimizer.evolve(seed_factory, scorer.score, fixed)
            if not is_valid_game(best.numbers):
                raise RuntimeError(f"Optimizer produced an invalid game: {best.numbers}")
            games.append(format_game(best.numbers))

            if config.mirror_bet and len(games) < config.num_games:
                games.append(format_game(create_mirror_game(best.numbers)))
            logger.debug(f"Base game {i + 1}/{base_games} done, fitness {best.fitness:.2f}")

        games = games[:config.num_games]
        analysis = self.describe(config, reference, fixed, profile)
        logger.info(f"Generation complete: {len(games)} games.")
        return GeneratedBatch(analysis=analysis, games=games)

    def generate_safe(self, config: GameConfig, reference: Draw) -> GeneratedBatch:
        """
        Same as generate(), but an unexpected failure yields an empty batch
        carrying a labeled error instead of raising.
        """
        try:
            return self.generate(config, reference)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Game generation failed: {e}")
            return GeneratedBatch.empty(f"Game generation failed: {e}")

    def describe(
        self,
        config: GameConfig,
        reference: Draw,
        fixed: Sequence[int],
        profile: FrequencyProfile,
    ) -> str:
        """Builds the narrative summary of a batch."""
        lines = [
            f"Analysis complete. {config.num_games} optimized combinations were generated by an "
            f"evolutionary search ({self.settings.population_size} candidates over "
            f"{self.settings.num_generations} generations per base game).",
            STRATEGY_DESCRIPTIONS[config.closing_strategy],
            "- **Heuristic optimization:** historical frequency, decade dispersion, even/odd balance, "
            "consecutive runs and the distance from the last draw were all scored.",
        ]

        if fixed:
            contest = f"contest {reference.concurso}" if reference.concurso else "the last draw"
            anchors = ", ".join(format_number(n) for n in fixed)
            lines.append(
                f"- **Fixed numbers:** {len(fixed)} numbers from {contest} were used as anchors "
                f"in every base game ({anchors})."
            )
        else:
            lines.append("- **Fixed numbers:** none; the search explored the full combination space.")

        if config.mirror_bet:
            lines.append(
                "- **Mirror bet:** enabled. Each base game is followed by its complement (n -> 99-n), "
                "covering the opposite side of the number universe."
            )
        else:
            lines.append("- **Mirror bet:** disabled.")

        if profile.key_numbers:
            keys = ", ".join(format_number(n) for n in sorted(profile.key_numbers))
            lines.append(f"- **Key numbers (last {self.settings.key_window} draws):** {keys}")

        if config.target_concurso:
            lines.append(f"- **Target contest:** {config.target_concurso}")

        lines.append(DISCLAIMER)
        return "\n".join(lines)


def generate_local_games(
    raw_config: Dict[str, Any],
    reference: Draw,
    history: Sequence[DrawLike],
    settings: Optional[Settings] = None,
    seed: Optional[int] = None,
) -> GeneratedBatch:
    """
    Validates a raw configuration (form values) and generates a batch.

    Raises:
        ConfigurationError: Before any generation when the config is invalid.
    """
    generator = PlayGenerator(history, settings=settings, seed=seed)
    config = generator.parse_config(raw_config)
    return generator.generate_safe(config, reference)
