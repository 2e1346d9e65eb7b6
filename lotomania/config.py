"""
Configuration for Lotomania Ultra.

This file contains all the key parameters for the frequency analysis and
game generation process. The constants below are the defaults; values in
config/config.ini override them through get_settings(). Centralizing these
parameters makes it easy to fine-tune the strategy without modifying the
core logic.
"""
import configparser
import os
import sys
from dataclasses import dataclass, field
from typing import List, Dict, Optional

from loguru import logger

# --- Paths ---
PROJECT_ROOT: str = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_FILE_PATH: str = os.path.join(PROJECT_ROOT, "config", "config.ini")
DB_FILE_PATH: str = "data/lotomania.db"
HISTORY_FILE_PATH: str = "data/lotomania_history.csv"
OUTPUT_DIR: str = "outputs"
LOG_FILE_PATH: str = "logs/lotomania.log"

# --- Game rules ---
UNIVERSE: List[int] = list(range(100))
DRAW_SIZE: int = 20
GAME_SIZE: int = 50
BUCKET_WIDTH: int = 10

# --- Generation ---
DEFAULT_NUM_GAMES: int = 20
MAX_NUM_GAMES: int = 500
MAX_FIXED_NUMBERS: int = 15
SYNTHETIC_HISTORY_SIZE: int = 50

# Tier split: hot = top HOT_COUNT, cold = bottom COLD_COUNT, warm = remainder
HOT_COUNT: int = 20
COLD_COUNT: int = 20

# Key numbers from the recent window
KEY_WINDOW: int = 5
KEY_THRESHOLD: int = 3
KEY_MIN_COUNT: int = 12
KEY_MAX_COUNT: int = 20

# --- Evolutionary search ---
POPULATION_SIZE: int = 100
NUM_GENERATIONS: int = 100
ELITE_FRACTION: float = 0.10

# --- Scoring ---
SCORING_WEIGHTS: Dict[str, float] = {
    "parity": 1.0,
    "bucket": 1.0,
    "overlap": 1.0,
    "consecutive": 0.5,
    "tier": 1.0,
}
OVERLAP_TARGET: int = 3
CONSECUTIVE_MIN: int = 2
CONSECUTIVE_MAX: int = 5
HOT_CAP: int = 12

# --- Game checker ---
GAME_COST: str = "3.00"
CURRENCY_SYMBOL: str = "R$"

# --- Draw source ---
API_URL: str = "https://servicebus2.caixa.gov.br/portaldeloterias/api/lotomania"
REQUEST_TIMEOUT_SECONDS: int = 15
LATEST_TTL_SECONDS: int = 60 * 60

# Result used when the latest draw cannot be fetched nor read from cache
DEFAULT_LAST_RESULT: Dict = {
    "concurso": 2809,
    "data": "13/08/2025",
    "numeros": [
        "03", "08", "11", "19", "25", "30", "41", "48", "50", "53",
        "65", "71", "72", "75", "81", "84", "88", "95", "96", "99",
    ],
    "acumuladoProximoConcurso": "R$ 2.700.000,00",
    "premiacao": [
        {"acertos": 20, "vencedores": 0, "premio": "R$ 0,00"},
        {"acertos": 19, "vencedores": 3, "premio": "R$ 66.992,99"},
        {"acertos": 18, "vencedores": 55, "premio": "R$ 2.283,85"},
        {"acertos": 17, "vencedores": 442, "premio": "R$ 284,18"},
        {"acertos": 16, "vencedores": 2562, "premio": "R$ 49,02"},
        {"acertos": 15, "vencedores": 11195, "premio": "R$ 11,22"},
        {"acertos": 0, "vencedores": 0, "premio": "R$ 0,00"},
    ],
}


@dataclass
class Settings:
    """Resolved runtime settings (config.ini values over module defaults)."""
    db_file: str = DB_FILE_PATH
    history_file: str = HISTORY_FILE_PATH
    output_dir: str = OUTPUT_DIR
    log_file: str = LOG_FILE_PATH

    default_num_games: int = DEFAULT_NUM_GAMES
    max_num_games: int = MAX_NUM_GAMES
    max_fixed_numbers: int = MAX_FIXED_NUMBERS
    synthetic_history_size: int = SYNTHETIC_HISTORY_SIZE
    hot_count: int = HOT_COUNT
    cold_count: int = COLD_COUNT
    key_window: int = KEY_WINDOW
    key_threshold: int = KEY_THRESHOLD
    key_min_count: int = KEY_MIN_COUNT
    key_max_count: int = KEY_MAX_COUNT

    population_size: int = POPULATION_SIZE
    num_generations: int = NUM_GENERATIONS
    elite_fraction: float = ELITE_FRACTION

    scoring_weights: Dict[str, float] = field(default_factory=lambda: dict(SCORING_WEIGHTS))
    overlap_target: int = OVERLAP_TARGET
    consecutive_min: int = CONSECUTIVE_MIN
    consecutive_max: int = CONSECUTIVE_MAX
    hot_cap: int = HOT_CAP

    game_cost: str = GAME_COST
    currency_symbol: str = CURRENCY_SYMBOL

    api_url: str = API_URL
    timeout_seconds: int = REQUEST_TIMEOUT_SECONDS
    latest_ttl_seconds: int = LATEST_TTL_SECONDS


def _read(config, section, key, fallback, kind):
    getter = {
        int: config.getint,
        float: config.getfloat,
        str: config.get,
    }[kind]
    try:
        return getter(section, key, fallback=fallback)
    except ValueError as e:
        logger.error(f"Invalid value for [{section}] {key}: {e}. Using default {fallback!r}")
        return fallback


def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Loads settings from config.ini, falling back to the module defaults
    for every missing or malformed key.

    Args:
        config_path (Optional[str]): Path to the INI file. Defaults to
                                     config/config.ini at the project root.

    Returns:
        Settings: The resolved settings.
    """
    config = configparser.ConfigParser()
    path = config_path or CONFIG_FILE_PATH
    read_files = config.read(path)
    if not read_files:
        logger.warning(f"Config file not found at {path}. Using default settings.")

    weights = dict(SCORING_WEIGHTS)
    for name, default in SCORING_WEIGHTS.items():
        weights[name] = _read(config, "scoring", f"{name}_weight", default, float)

    settings = Settings(
        db_file=_read(config, "paths", "db_file", DB_FILE_PATH, str),
        history_file=_read(config, "paths", "history_file", HISTORY_FILE_PATH, str),
        output_dir=_read(config, "paths", "output_dir", OUTPUT_DIR, str),
        log_file=_read(config, "paths", "log_file", LOG_FILE_PATH, str),
        default_num_games=_read(config, "generation", "default_num_games", DEFAULT_NUM_GAMES, int),
        max_num_games=_read(config, "generation", "max_num_games", MAX_NUM_GAMES, int),
        max_fixed_numbers=_read(config, "generation", "max_fixed_numbers", MAX_FIXED_NUMBERS, int),
        synthetic_history_size=_read(config, "generation", "synthetic_history_size", SYNTHETIC_HISTORY_SIZE, int),
        hot_count=_read(config, "generation", "hot_count", HOT_COUNT, int),
        cold_count=_read(config, "generation", "cold_count", COLD_COUNT, int),
        key_window=_read(config, "generation", "key_window", KEY_WINDOW, int),
        key_threshold=_read(config, "generation", "key_threshold", KEY_THRESHOLD, int),
        key_min_count=_read(config, "generation", "key_min_count", KEY_MIN_COUNT, int),
        key_max_count=_read(config, "generation", "key_max_count", KEY_MAX_COUNT, int),
        population_size=_read(config, "evolutionary", "population_size", POPULATION_SIZE, int),
        num_generations=_read(config, "evolutionary", "num_generations", NUM_GENERATIONS, int),
        elite_fraction=_read(config, "evolutionary", "elite_fraction", ELITE_FRACTION, float),
        scoring_weights=weights,
        overlap_target=_read(config, "scoring", "overlap_target", OVERLAP_TARGET, int),
        consecutive_min=_read(config, "scoring", "consecutive_min", CONSECUTIVE_MIN, int),
        consecutive_max=_read(config, "scoring", "consecutive_max", CONSECUTIVE_MAX, int),
        hot_cap=_read(config, "scoring", "hot_cap", HOT_CAP, int),
        game_cost=_read(config, "checker", "game_cost", GAME_COST, str),
        currency_symbol=_read(config, "checker", "currency_symbol", CURRENCY_SYMBOL, str),
        api_url=_read(config, "source", "api_url", API_URL, str),
        timeout_seconds=_read(config, "source", "timeout_seconds", REQUEST_TIMEOUT_SECONDS, int),
        latest_ttl_seconds=_read(config, "source", "latest_ttl_seconds", LATEST_TTL_SECONDS, int),
    )
    logger.debug(f"Settings loaded from {path}")
    return settings


def setup_logging(log_file: Optional[str] = None, console_level: str = "INFO") -> None:
    """Console sink plus a rotating file sink."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=console_level,
    )
    if log_file:
        log_path = resolve_path(log_file)
        os.makedirs(os.path.dirname(log_path), exist_ok=True)
        logger.add(
            log_path,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
        )
    logger.info("Logging system initialized")


def resolve_path(path: str) -> str:
    """Relative paths in config.ini are relative to the project root."""
    return path if os.path.isabs(path) else os.path.join(PROJECT_ROOT, path)
