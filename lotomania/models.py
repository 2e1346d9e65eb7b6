"""
Data Model for Lotomania Ultra.

Plain data types shared by the analysis, generation and checking modules:
draws with their prize tables, the user's game configuration, the frequency
profile derived from history, scored candidates and the final batch.
"""
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union

import numpy as np

from lotomania.config import (
    DRAW_SIZE, UNIVERSE, DEFAULT_NUM_GAMES, MAX_NUM_GAMES, MAX_FIXED_NUMBERS,
    CURRENCY_SYMBOL,
)


class ConfigurationError(ValueError):
    """Malformed or out-of-range game configuration."""


class DegenerateUniverseError(ValueError):
    """A tier pool does not hold enough eligible numbers for its quota."""


def format_number(number: int) -> str:
    return f"{int(number):02d}"


def parse_currency(text: Optional[str]) -> Optional[Decimal]:
    """
    Parses a Brazilian currency string ("R$ 66.992,99") into a Decimal.

    Returns None when the text is empty or not a number.
    """
    if text is None:
        return None
    cleaned = re.sub(r"[^\d,.\-]", "", str(text))
    if not cleaned:
        return None
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


def format_currency(amount: Decimal, symbol: str = CURRENCY_SYMBOL) -> str:
    """Formats a Decimal as "R$ 1.234,56"."""
    text = f"{Decimal(amount):,.2f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{symbol} {text}"


@dataclass
class PrizeTier:
    acertos: int
    vencedores: int
    premio: str

    @property
    def amount(self) -> Optional[Decimal]:
        return parse_currency(self.premio)

    def to_dict(self) -> Dict[str, Any]:
        return {"acertos": self.acertos, "vencedores": self.vencedores, "premio": self.premio}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrizeTier":
        return cls(
            acertos=int(data["acertos"]),
            vencedores=int(data.get("vencedores", 0)),
            premio=str(data.get("premio", "")),
        )


@dataclass
class Draw:
    """
    One official Lotomania result: 20 distinct numbers in [0, 99].

    Numbers are stored as zero-padded strings, matching the way results are
    published. A draw built from the static historical dataset carries no
    prize table and has has_prize_data set to False.
    """
    numeros: List[str]
    concurso: Optional[int] = None
    data: Optional[str] = None
    acumulado_proximo_concurso: Optional[str] = None
    premiacao: List[PrizeTier] = field(default_factory=list)
    has_prize_data: Optional[bool] = None

    def __post_init__(self):
        try:
            values = [int(str(n).strip()) for n in self.numeros]
        except ValueError:
            raise ValueError(f"Draw numbers must be integers, got {self.numeros}")
        if len(values) != DRAW_SIZE or len(set(values)) != DRAW_SIZE:
            raise ValueError(f"A draw must have exactly {DRAW_SIZE} distinct numbers, got {len(set(values))}")
        if any(v < UNIVERSE[0] or v > UNIVERSE[-1] for v in values):
            raise ValueError(f"Draw numbers must be within {UNIVERSE[0]}-{UNIVERSE[-1]}")
        self.numeros = [format_number(v) for v in values]
        if self.has_prize_data is None:
            self.has_prize_data = bool(self.premiacao)

    @property
    def numbers(self) -> List[int]:
        return [int(n) for n in self.numeros]

    @property
    def number_set(self) -> Set[int]:
        return set(self.numbers)

    def prize_for(self, hits: int) -> Optional[PrizeTier]:
        for tier in self.premiacao:
            if tier.acertos == hits:
                return tier
        return None

    @classmethod
    def from_numbers(cls, numbers: List[Union[int, str]], **kwargs) -> "Draw":
        return cls(numeros=[format_number(int(n)) for n in numbers], **kwargs)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Draw":
        premiacao = [PrizeTier.from_dict(p) for p in data.get("premiacao") or []]
        concurso = data.get("concurso")
        return cls(
            numeros=list(data["numeros"]),
            concurso=int(concurso) if concurso is not None else None,
            data=data.get("data"),
            acumulado_proximo_concurso=data.get("acumuladoProximoConcurso"),
            premiacao=premiacao,
            has_prize_data=data.get("hasPrizeData"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "concurso": self.concurso,
            "data": self.data,
            "numeros": list(self.numeros),
            "acumuladoProximoConcurso": self.acumulado_proximo_concurso,
            "premiacao": [p.to_dict() for p in self.premiacao],
            "hasPrizeData": self.has_prize_data,
        }


@dataclass(frozen=True)
class StrategyProfile:
    """How many numbers a strategy draws from each tier, and how it weighs them."""
    hot_count: int
    cold_count: int
    hot_weight: float
    cold_penalty: float
    caps_hot: bool


class ClosingStrategy(Enum):
    BALANCED = "balanced"
    HIGH_TIER = "target_18"
    MAX_TIER = "target_20"

    @property
    def profile(self) -> StrategyProfile:
        return STRATEGY_PROFILES[self]

    @classmethod
    def parse(cls, value: Union[str, "ClosingStrategy", None]) -> "ClosingStrategy":
        if value is None or value == "":
            return cls.BALANCED
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in _STRATEGY_ALIASES:
            return _STRATEGY_ALIASES[key]
        raise ConfigurationError(
            f"Unknown closing strategy '{value}'. Choose from {sorted(_STRATEGY_ALIASES)}"
        )


STRATEGY_PROFILES: Dict[ClosingStrategy, StrategyProfile] = {
    ClosingStrategy.BALANCED: StrategyProfile(hot_count=8, cold_count=8, hot_weight=0.3, cold_penalty=0.3, caps_hot=True),
    ClosingStrategy.HIGH_TIER: StrategyProfile(hot_count=10, cold_count=10, hot_weight=0.5, cold_penalty=0.5, caps_hot=True),
    ClosingStrategy.MAX_TIER: StrategyProfile(hot_count=15, cold_count=5, hot_weight=1.0, cold_penalty=1.0, caps_hot=False),
}

_STRATEGY_ALIASES: Dict[str, ClosingStrategy] = {
    "balanced": ClosingStrategy.BALANCED,
    "target_18": ClosingStrategy.HIGH_TIER,
    "high-tier": ClosingStrategy.HIGH_TIER,
    "high_tier": ClosingStrategy.HIGH_TIER,
    "target_20": ClosingStrategy.MAX_TIER,
    "max-tier": ClosingStrategy.MAX_TIER,
    "max_tier": ClosingStrategy.MAX_TIER,
}


def _parse_count(value: Any, name: str, default: int) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a whole number, got {value!r}")
    if number < 0:
        raise ConfigurationError(f"{name} cannot be negative, got {number}")
    return number


def _parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class GameConfig:
    num_games: int = DEFAULT_NUM_GAMES
    fixed_numbers: int = 0
    mirror_bet: bool = False
    closing_strategy: ClosingStrategy = ClosingStrategy.BALANCED
    target_concurso: Optional[int] = None

    @classmethod
    def from_raw(
        cls,
        num_games: Any = None,
        fixed_numbers: Any = None,
        mirror_bet: Any = False,
        closing_strategy: Any = None,
        target_concurso: Any = None,
        default_num_games: int = DEFAULT_NUM_GAMES,
        max_num_games: int = MAX_NUM_GAMES,
        max_fixed_numbers: int = MAX_FIXED_NUMBERS,
    ) -> "GameConfig":
        """
        Validates user input (strings from a form or numbers) into a GameConfig.

        Raises:
            ConfigurationError: If a count is non-numeric, negative or out of
                                range, or the strategy is unknown.
        """
        games = _parse_count(num_games, "numGames", default_num_games)
        if games < 1:
            raise ConfigurationError("numGames must be at least 1")
        if games > max_num_games:
            raise ConfigurationError(f"numGames cannot exceed {max_num_games}, got {games}")
        fixed = min(_parse_count(fixed_numbers, "fixedNumbers", 0), max_fixed_numbers)
        target = None
        if target_concurso not in (None, ""):
            target = _parse_count(target_concurso, "targetConcurso", 0) or None
        return cls(
            num_games=games,
            fixed_numbers=fixed,
            mirror_bet=_parse_flag(mirror_bet),
            closing_strategy=ClosingStrategy.parse(closing_strategy),
            target_concurso=target,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **limits) -> "GameConfig":
        """Accepts the camelCase keys used by the form and the API."""
        return cls.from_raw(
            num_games=data.get("numGames"),
            fixed_numbers=data.get("fixedNumbers"),
            mirror_bet=data.get("mirrorBet", False),
            closing_strategy=data.get("closingStrategy"),
            target_concurso=data.get("targetConcurso"),
            **limits,
        )


@dataclass
class FrequencyProfile:
    """
    Per-number draw counts over a history corpus and the tiers derived from
    them. hot, warm and cold partition the universe; key_numbers come from a
    short recent window.
    """
    counts: np.ndarray
    hot: List[int]
    warm: List[int]
    cold: List[int]
    key_numbers: List[int] = field(default_factory=list)

    def count(self, number: int) -> int:
        return int(self.counts[number])

    @property
    def hot_set(self) -> Set[int]:
        return set(self.hot)

    @property
    def cold_set(self) -> Set[int]:
        return set(self.cold)


@dataclass
class ScoredCandidate:
    numbers: List[int]
    fitness: float


@dataclass
class GeneratedBatch:
    analysis: str
    games: List[List[str]]
    error: Optional[str] = None

    @classmethod
    def empty(cls, message: str) -> "GeneratedBatch":
        return cls(analysis="", games=[], error=message)

    def to_dict(self) -> Dict[str, Any]:
        result = {"analysis": self.analysis, "games": self.games}
        if self.error:
            result["error"] = self.error
        return result
