import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd
from loguru import logger

from lotomania.config import GAME_COST, CURRENCY_SYMBOL, UNIVERSE, GAME_SIZE
from lotomania.models import Draw, format_currency

DATA_UNAVAILABLE = "data unavailable"
TOKEN_SEPARATOR = re.compile(r"[,;\s]+")


def parse_games_text(text: str) -> List[List[str]]:
    """
    Parses submitted games: one game per line, numbers separated by commas,
    semicolons or whitespace.

    Tokens are zero-padded to two digits; non-numeric or out-of-range tokens
    are dropped and duplicates removed, keeping the first occurrence.
    """
    games = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        numbers = []
        dropped = []
        for token in TOKEN_SEPARATOR.split(line.strip()):
            if not token:
                continue
            if not (token.isascii() and token.isdigit()) or not (UNIVERSE[0] <= int(token) <= UNIVERSE[-1]):
                dropped.append(token)
                continue
            numbers.append(f"{int(token):02d}")
        if dropped:
            logger.warning(f"Line {line_number}: ignored invalid tokens {dropped}")
        unique_numbers = list(dict.fromkeys(numbers))
        if unique_numbers:
            games.append(unique_numbers)
    return games


@dataclass
class GameCheckResult:
    game: List[str]
    hits: int
    hit_numbers: List[str]
    prize: Optional[Decimal]
    concurso: Optional[int] = None

    def prize_label(self, symbol: str = CURRENCY_SYMBOL) -> str:
        if self.prize is None:
            return DATA_UNAVAILABLE
        return format_currency(self.prize, symbol)


@dataclass
class CheckReport:
    """Results of a set of games against one or more draws."""
    results: List[GameCheckResult] = field(default_factory=list)
    concursos: List[Optional[int]] = field(default_factory=list)
    games_count: int = 0
    total_won: Decimal = Decimal("0")
    total_spent: Decimal = Decimal("0")
    prize_data_complete: bool = True

    @property
    def net(self) -> Optional[Decimal]:
        if not self.prize_data_complete:
            return None
        return self.total_won - self.total_spent

    @property
    def best_hits(self) -> int:
        return max((r.hits for r in self.results), default=0)

    def to_dict(self, symbol: str = CURRENCY_SYMBOL) -> Dict[str, Any]:
        net = self.net
        return {
            "concursos": self.concursos,
            "games_count": self.games_count,
            "results": [
                {
                    "concurso": r.concurso,
                    "game": r.game,
                    "hits": r.hits,
                    "hit_numbers": r.hit_numbers,
                    "prize": r.prize_label(symbol),
                }
                for r in self.results
            ],
            "best_hits": self.best_hits,
            "total_won": format_currency(self.total_won, symbol) if self.prize_data_complete
            else f"{format_currency(self.total_won, symbol)} ({DATA_UNAVAILABLE} for some contests)",
            "total_spent": format_currency(self.total_spent, symbol),
            "net": format_currency(net, symbol) if net is not None else DATA_UNAVAILABLE,
            "prize_data_complete": self.prize_data_complete,
        }


class Evaluator:
    """
    Checks submitted games against official draws.

    Hits are the size of the intersection between a game and the draw's
    20 numbers; the prize comes from the draw's tier table row whose
    'acertos' equals the hit count.
    """

    def __init__(self, game_cost: Any = GAME_COST, currency_symbol: str = CURRENCY_SYMBOL):
        self.game_cost = Decimal(str(game_cost))
        self.currency_symbol = currency_symbol
        logger.debug(f"Evaluator initialized with game cost {self.game_cost}.")

    def evaluate_game(self, game: Sequence[str], draw: Draw) -> GameCheckResult:
        drawn = set(draw.numeros)
        padded = [f"{int(n):02d}" for n in game]
        hit_numbers = [n for n in padded if n in drawn]
        hits = len(hit_numbers)

        if not draw.has_prize_data:
            prize = None
        else:
            tier = draw.prize_for(hits)
            prize = tier.amount if tier is not None and tier.amount is not None else Decimal("0")

        return GameCheckResult(
            game=padded, hits=hits, hit_numbers=hit_numbers, prize=prize, concurso=draw.concurso,
        )

    def check_games(self, games: Sequence[Sequence[str]], draws: Iterable[Draw]) -> CheckReport:
        """
        Evaluates every game against every draw and aggregates the totals.

        Args:
            games: Parsed games (lists of zero-padded strings).
            draws: One draw, or every draw of a contest range.

        Returns:
            CheckReport: Per-game results plus won, spent and net amounts.
        """
        if isinstance(draws, Draw):
            draws = [draws]
        draws = list(draws)
        logger.info(f"Checking {len(games)} games against {len(draws)} draws...")

        for game in games:
            if len(game) != GAME_SIZE:
                logger.warning(f"Game with {len(game)} numbers checked (expected {GAME_SIZE}).")

        report = CheckReport(games_count=len(games), concursos=[d.concurso for d in draws])
        for draw in draws:
            if not draw.has_prize_data:
                logger.warning(f"Contest {draw.concurso} has no prize data; prizes reported as unavailable.")
                report.prize_data_complete = False
            for game in games:
                result = self.evaluate_game(game, draw)
                report.results.append(result)
                if result.prize is not None:
                    report.total_won += result.prize

        report.total_spent = self.game_cost * len(games) * len(draws)
        logger.info(
            f"Check complete. Best hit count {report.best_hits}, won {report.total_won}, spent {report.total_spent}."
        )
        return report

    def check_text(self, text: str, draws: Iterable[Draw]) -> CheckReport:
        return self.check_games(parse_games_text(text), draws)

    def report_to_dataframe(self, report: CheckReport) -> pd.DataFrame:
        """Flattens a report into one row per (contest, game)."""
        rows = []
        for index, result in enumerate(report.results):
            rows.append({
                "concurso": result.concurso,
                "game_index": index % report.games_count + 1 if report.games_count else index + 1,
                "hits": result.hits,
                "hit_numbers": ", ".join(result.hit_numbers),
                "prize": result.prize_label(self.currency_symbol),
            })
        return pd.DataFrame(rows, columns=["concurso", "game_index", "hits", "hit_numbers", "prize"])
