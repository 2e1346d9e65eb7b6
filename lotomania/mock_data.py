"""
Synthetic Lotomania history, used by the generator when no persisted
history file is available.
"""
import random
from typing import List, Optional

from loguru import logger

from lotomania.config import DRAW_SIZE, UNIVERSE, SYNTHETIC_HISTORY_SIZE


def generate_synthetic_history(
    size: int = SYNTHETIC_HISTORY_SIZE,
    rng: Optional[random.Random] = None,
) -> List[List[int]]:
    """
    Generates `size` random draws of 20 distinct numbers each, sorted.

    Args:
        size (int): Number of draws to generate.
        rng (Optional[random.Random]): Random source. A fixed seed yields the
                                       same history on every call.

    Returns:
        List[List[int]]: The synthetic draws, most recent first.
    """
    rng = rng or random.Random()
    history = [sorted(rng.sample(UNIVERSE, DRAW_SIZE)) for _ in range(size)]
    logger.info(f"Generated {len(history)} synthetic draws for analysis.")
    return history
