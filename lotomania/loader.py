import os
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from lotomania.config import DEFAULT_LAST_RESULT, Settings, get_settings, resolve_path
from lotomania.data_processor import load_historical_draws
from lotomania.database import (
    get_cached_latest_result,
    get_cached_result,
    initialize_database,
    set_cached_latest_result,
    set_cached_result,
)
from lotomania.models import Draw, PrizeTier, format_currency

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Accept": "application/json",
}


class NotFoundError(Exception):
    """The requested contest does not exist (yet)."""


class NetworkError(Exception):
    """The result source could not be reached."""


def _money(value: Any) -> Optional[str]:
    if value is None:
        return None
    return format_currency(Decimal(str(value)))


def _parse_prize_table(rows: List[Dict[str, Any]]) -> List[PrizeTier]:
    tiers = []
    for row in rows or []:
        match = re.search(r"\d+", str(row.get("descricaoFaixa", "")))
        if not match:
            logger.warning(f"Skipping prize row without hit count: {row}")
            continue
        tiers.append(PrizeTier(
            acertos=int(match.group()),
            vencedores=int(row.get("numeroDeGanhadores") or 0),
            premio=_money(row.get("valorPremio")) or format_currency(Decimal("0")),
        ))
    return tiers


def parse_api_payload(payload: Dict[str, Any]) -> Draw:
    """Maps the results API JSON to a Draw."""
    if not payload or not payload.get("listaDezenas"):
        raise NotFoundError("Empty result payload")
    return Draw(
        numeros=list(payload["listaDezenas"]),
        concurso=int(payload["numero"]) if payload.get("numero") is not None else None,
        data=payload.get("dataApuracao"),
        acumulado_proximo_concurso=_money(payload.get("valorAcumuladoProximoConcurso")),
        premiacao=_parse_prize_table(payload.get("listaRateioPremio")),
    )


def fetch_result(concurso: Optional[int] = None, settings: Optional[Settings] = None) -> Draw:
    """
    Downloads one result from the official source.

    Args:
        concurso (Optional[int]): Contest number; the latest when None.

    Raises:
        NotFoundError: HTTP 404 or an empty payload.
        NetworkError: Any other request failure.
    """
    settings = settings or get_settings()
    url = settings.api_url if concurso is None else f"{settings.api_url}/{int(concurso)}"
    logger.info(f"Fetching Lotomania result from {url}")
    try:
        response = requests.get(url, headers=HEADERS, timeout=settings.timeout_seconds)
        if response.status_code == 404:
            raise NotFoundError(f"Contest {concurso} not found")
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f"Network error occurred while fetching result: {e}")
        raise NetworkError(str(e)) from e
    except ValueError as e:
        logger.error(f"Invalid JSON from result source: {e}")
        raise NetworkError(f"Invalid response: {e}") from e

    try:
        draw = parse_api_payload(payload)
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Malformed result payload: {e}")
        raise NetworkError(f"Malformed result payload: {e}") from e
    logger.info(f"Fetched contest {draw.concurso} ({draw.data}).")
    return draw


class DrawService:
    """
    Result access with a read-through cache.

    Latest result: fresh cache, then the source, then the bundled default.
    A given contest: cache, then the source, then the static historical
    dataset (numbers only, no prize table).
    """

    def __init__(self, settings: Optional[Settings] = None, db_path: Optional[str] = None):
        self.settings = settings or get_settings()
        self.db_path = db_path or resolve_path(self.settings.db_file)
        os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)
        initialize_database(self.db_path)
        self._historical: Optional[Dict[int, Draw]] = None
        logger.info("DrawService initialized.")

    def _historical_draws(self) -> Dict[int, Draw]:
        if self._historical is None:
            self._historical = load_historical_draws(resolve_path(self.settings.history_file))
        return self._historical

    def get_latest_result(self) -> Draw:
        cached = get_cached_latest_result(self.settings.latest_ttl_seconds, self.db_path)
        if cached is not None:
            logger.debug(f"Using cached latest result (contest {cached.concurso}).")
            return cached
        try:
            draw = fetch_result(settings=self.settings)
        except (NotFoundError, NetworkError) as e:
            logger.warning(f"Could not fetch latest result ({e}). Using default result.")
            return Draw.from_dict(DEFAULT_LAST_RESULT)
        set_cached_latest_result(draw, self.db_path)
        return draw

    def get_result(self, concurso: int) -> Draw:
        cached = get_cached_result(concurso, self.db_path)
        if cached is not None:
            return cached
        try:
            draw = fetch_result(concurso, settings=self.settings)
        except NetworkError:
            historical = self._historical_draws().get(int(concurso))
            if historical is None:
                raise
            logger.warning(f"Source unavailable. Using historical data for contest {concurso} (no prize data).")
            return historical
        set_cached_result(draw, self.db_path)
        return draw

    def get_results_range(self, start: int, end: int) -> List[Draw]:
        """Draws for contests start..end inclusive. Missing contests are skipped."""
        if start > end:
            start, end = end, start
        draws = []
        for concurso in range(start, end + 1):
            try:
                draws.append(self.get_result(concurso))
            except NotFoundError:
                logger.warning(f"Contest {concurso} not found, skipped.")
        return draws


def get_draw_service(settings: Optional[Settings] = None) -> DrawService:
    """
    Factory function to get an instance of DrawService.
    """
    return DrawService(settings=settings)
