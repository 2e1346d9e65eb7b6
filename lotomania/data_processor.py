"""
Data Processing and Analysis Module for Lotomania Ultra.

This module is responsible for loading the historical draw data, cleaning
it, and performing the frequency analysis that splits the 0-99 universe
into hot, warm and cold tiers plus a set of recent "key numbers".
"""
import os
import random
from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from loguru import logger

from lotomania.config import (
    UNIVERSE, DRAW_SIZE, HOT_COUNT, COLD_COUNT, KEY_WINDOW, KEY_THRESHOLD,
    KEY_MIN_COUNT, KEY_MAX_COUNT, Settings,
)
from lotomania.mock_data import generate_synthetic_history
from lotomania.models import Draw, FrequencyProfile

NUMBER_COLUMNS: List[str] = [f"n{i:02d}" for i in range(1, DRAW_SIZE + 1)]

DrawLike = Union[Draw, Sequence[int]]


def draw_numbers(draw: DrawLike) -> List[int]:
    if isinstance(draw, Draw):
        return draw.numbers
    return [int(n) for n in draw]


def count_frequencies(history: Iterable[DrawLike]) -> np.ndarray:
    """Counts how many times each number 0-99 was drawn."""
    counts = np.zeros(len(UNIVERSE), dtype=np.int64)
    skipped = 0
    for draw in history:
        for number in draw_numbers(draw):
            if UNIVERSE[0] <= number <= UNIVERSE[-1]:
                counts[number] += 1
            else:
                skipped += 1
    if skipped:
        logger.warning(f"Ignored {skipped} out-of-range numbers during frequency count.")
    return counts


def rank_by_frequency(counts: np.ndarray) -> List[int]:
    """Universe sorted by count descending; ties keep ascending number order."""
    return [int(n) for n in np.argsort(-counts, kind="stable")]


def compute_key_numbers(
    recent_draws: Sequence[DrawLike],
    hot: List[int],
    threshold: int = KEY_THRESHOLD,
    min_count: int = KEY_MIN_COUNT,
    max_count: int = KEY_MAX_COUNT,
) -> List[int]:
    """
    Selects numbers drawn at least `threshold` times in the recent window,
    backfilling from the hot tier until `min_count` is reached.
    """
    window_counts = count_frequencies(recent_draws)
    key_numbers = [n for n in rank_by_frequency(window_counts) if window_counts[n] >= threshold]

    for number in hot:
        if len(key_numbers) >= min_count:
            break
        if number not in key_numbers:
            key_numbers.append(number)

    return key_numbers[:max_count]


def analyze_frequencies(
    history: Sequence[DrawLike],
    hot_count: int = HOT_COUNT,
    cold_count: int = COLD_COUNT,
    key_window: int = KEY_WINDOW,
    key_threshold: int = KEY_THRESHOLD,
    key_min_count: int = KEY_MIN_COUNT,
    key_max_count: int = KEY_MAX_COUNT,
) -> FrequencyProfile:
    """
    Builds the frequency profile of a history corpus.

    Args:
        history (Sequence[DrawLike]): Draws, most recent first. Each item is
                                      a Draw or a sequence of ints.
        hot_count (int): Size of the hot tier (top of the ranking).
        cold_count (int): Size of the cold tier (bottom of the ranking).
        key_window (int): Number of most recent draws used for key numbers.
        key_threshold (int): Minimum occurrences in the window.
        key_min_count (int): Key numbers are backfilled from hot up to this.
        key_max_count (int): Key numbers are capped at this size.

    Returns:
        FrequencyProfile: Counts, the hot/warm/cold partition and key numbers.
    """
    counts = count_frequencies(history)
    ranking = rank_by_frequency(counts)

    hot_count = max(0, min(hot_count, len(ranking)))
    cold_count = max(0, min(cold_count, len(ranking) - hot_count))
    split = len(ranking) - cold_count

    hot = ranking[:hot_count]
    warm = ranking[hot_count:split]
    cold = ranking[split:]

    key_numbers = compute_key_numbers(
        list(history)[:key_window], hot,
        threshold=key_threshold, min_count=key_min_count, max_count=key_max_count,
    )

    logger.info(
        f"Frequency analysis complete over {len(history)} draws: "
        f"{len(hot)} hot / {len(warm)} warm / {len(cold)} cold, {len(key_numbers)} key numbers."
    )
    return FrequencyProfile(counts=counts, hot=hot, warm=warm, cold=cold, key_numbers=key_numbers)


def analyze_with_settings(history: Sequence[DrawLike], settings: Settings) -> FrequencyProfile:
    return analyze_frequencies(
        history,
        hot_count=settings.hot_count,
        cold_count=settings.cold_count,
        key_window=settings.key_window,
        key_threshold=settings.key_threshold,
        key_min_count=settings.key_min_count,
        key_max_count=settings.key_max_count,
    )


def read_history_frame(file_path: str) -> Optional[pd.DataFrame]:
    """
    Loads the persisted history CSV (concurso, data, n01..n20).

    Rows with missing or non-numeric numbers are dropped. The frame is
    sorted most recent contest first.
    """
    if not os.path.exists(file_path):
        logger.warning(f"History file not found at path: {file_path}")
        return None
    try:
        df = pd.read_csv(file_path, dtype={"data": str})
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"Error parsing history file {file_path}: {e}")
        return None

    missing = [col for col in NUMBER_COLUMNS if col not in df.columns]
    if missing:
        logger.error(f"History file is missing columns: {missing}")
        return None

    initial_rows = len(df)
    for col in NUMBER_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df = df.dropna(subset=NUMBER_COLUMNS)
    if not df.empty:
        valid = df[NUMBER_COLUMNS].apply(
            lambda row: bool(row.between(0, 99).all() and row.nunique() == DRAW_SIZE), axis=1
        )
        df = df[valid].copy()
        df[NUMBER_COLUMNS] = df[NUMBER_COLUMNS].astype(int)
    if len(df) != initial_rows:
        logger.warning(f"Dropped {initial_rows - len(df)} invalid rows from {file_path}")

    if "concurso" in df.columns:
        df = df.sort_values(by="concurso", ascending=False)
    df = df.reset_index(drop=True)
    logger.info(f"Loaded {len(df)} historical draws from {file_path}")
    return df


def load_history_corpus(
    file_path: Optional[str] = None,
    synthetic_size: int = 50,
    rng: Optional[random.Random] = None,
) -> List[List[int]]:
    """
    Returns the history corpus as lists of ints, most recent first.

    Falls back to a synthetic history when no usable file exists.
    """
    df = read_history_frame(file_path) if file_path else None
    if df is None or df.empty:
        logger.warning("No persisted history available. Using synthetic history.")
        return generate_synthetic_history(synthetic_size, rng=rng)
    return df[NUMBER_COLUMNS].astype(int).values.tolist()


def load_historical_draws(file_path: str) -> Dict[int, Draw]:
    """
    Indexes the persisted history by contest number.

    These draws carry only contest, date and numbers; no prize data.
    """
    df = read_history_frame(file_path)
    if df is None or "concurso" not in df.columns:
        return {}
    draws = {}
    for _, row in df.iterrows():
        concurso = int(row["concurso"])
        draws[concurso] = Draw.from_numbers(
            [int(row[col]) for col in NUMBER_COLUMNS],
            concurso=concurso,
            data=row.get("data") if pd.notna(row.get("data")) else None,
            has_prize_data=False,
        )
    return draws


def append_draw_to_history(draw: Draw, file_path: str) -> int:
    """
    Appends a draw to the history CSV, replacing any row with the same
    contest number. Returns the number of rows in the file afterwards.
    """
    if draw.concurso is None:
        raise ValueError("Only draws with a contest number can be persisted.")
    row = {"concurso": draw.concurso, "data": draw.data}
    row.update({col: n for col, n in zip(NUMBER_COLUMNS, sorted(draw.numbers))})
    new_df = pd.DataFrame([row], columns=["concurso", "data"] + NUMBER_COLUMNS)

    existing = read_history_frame(file_path)
    if existing is not None and not existing.empty and "concurso" in existing.columns:
        existing = existing[existing["concurso"] != draw.concurso]
        new_df = pd.concat([new_df, existing.reindex(columns=new_df.columns)], ignore_index=True)

    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    new_df.sort_values(by="concurso", ascending=False).to_csv(file_path, index=False)
    logger.info(f"Persisted contest {draw.concurso} to {file_path} ({len(new_df)} draws).")
    return len(new_df)
