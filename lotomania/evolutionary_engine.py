"""
Evolutionary search over 50-number candidates.

A small generational loop: elitism plus single-swap mutation, with fixed
numbers protected from removal.
"""
import random
from typing import Callable, Iterable, List, Optional, Sequence

from loguru import logger

from lotomania.config import UNIVERSE, POPULATION_SIZE, NUM_GENERATIONS, ELITE_FRACTION
from lotomania.models import ScoredCandidate


class GeneticAlgorithmOptimizer:
    def __init__(
        self,
        num_generations: int = NUM_GENERATIONS,
        population_size: int = POPULATION_SIZE,
        elite_fraction: float = ELITE_FRACTION,
        rng: Optional[random.Random] = None,
    ):
        self.num_generations = max(0, int(num_generations))
        self.population_size = max(1, int(population_size))
        self.elite_fraction = min(max(float(elite_fraction), 0.0), 1.0)
        self.elite_size = max(1, int(round(self.population_size * self.elite_fraction)))
        self.rng = rng or random.Random()
        logger.debug(
            f"GeneticAlgorithmOptimizer initialized: population={self.population_size}, "
            f"generations={self.num_generations}, elite={self.elite_size}."
        )

    def _mutate(self, game: Sequence[int], fixed_numbers: Iterable[int]) -> List[int]:
        """Swaps one non-fixed number for a random number not in the game."""
        fixed = set(fixed_numbers)
        removable = [n for n in game if n not in fixed]
        if not removable:
            return list(game)

        present = set(game)
        outsiders = [n for n in UNIVERSE if n not in present]
        if not outsiders:
            return list(game)

        removed = self.rng.choice(removable)
        added = self.rng.choice(outsiders)
        return sorted([n for n in game if n != removed] + [added])

    def _rank(self, population: List[ScoredCandidate]) -> List[ScoredCandidate]:
        # Stable sort: ties keep insertion order
        return sorted(population, key=lambda c: c.fitness, reverse=True)

    def evolve(
        self,
        seed_factory: Callable[[], List[int]],
        fitness: Callable[[Sequence[int]], float],
        fixed_numbers: Iterable[int] = (),
    ) -> ScoredCandidate:
        """
        Evolves a population of candidates and returns the best one.

        Each generation keeps the elite unchanged and refills the rest of the
        population with single-swap mutations of elite parents chosen
        uniformly at random. Fixed numbers are never removed.

        :param seed_factory: Builds one initial candidate per call.
        :param fitness: Pure scoring function, higher is better.
        :param fixed_numbers: Numbers that mutation must keep.
        :return: The highest-scoring candidate of the final population.
        """
        fixed = list(fixed_numbers)
        population = []
        for _ in range(self.population_size):
            numbers = seed_factory()
            population.append(ScoredCandidate(numbers=numbers, fitness=fitness(numbers)))

        for gen in range(self.num_generations):
            ranked = self._rank(population)
            elite = ranked[:self.elite_size]

            children = []
            for _ in range(self.population_size - len(elite)):
                parent = self.rng.choice(elite)
                child = self._mutate(parent.numbers, fixed)
                children.append(ScoredCandidate(numbers=child, fitness=fitness(child)))
            population = elite + children

            if (gen + 1) % 25 == 0:
                logger.debug(
                    f"Completed generation {gen + 1}/{self.num_generations}, best fitness {elite[0].fitness:.2f}"
                )

        best = self._rank(population)[0]
        logger.debug(f"Evolution complete. Best fitness {best.fitness:.2f}")
        return best
