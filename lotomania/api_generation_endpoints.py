"""
Lotomania Ultra Game Endpoints
==============================

Game generation, game checking and export endpoints.
"""

import threading
from datetime import datetime
from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse
from loguru import logger
from pydantic import BaseModel

from lotomania.evaluator import Evaluator, parse_games_text
from lotomania.loader import NetworkError, NotFoundError
from lotomania.models import ConfigurationError
from lotomania.output_exporter import GAMES_FILENAME_PREFIX, format_games_text
from lotomania.play_generator import PlayGenerator

# Create router for game endpoints
games_router = APIRouter(prefix="/api/v1/games", tags=["games"])

# Global components (will be injected from main API)
draw_service = None
history = None
settings = None

# One generation at a time; a response never carries a partial batch
_generation_lock = threading.Lock()


def set_generation_components(service, history_corpus, app_settings):
    """Set global game components."""
    global draw_service, history, settings
    draw_service = service
    history = history_corpus
    settings = app_settings


class GenerateRequest(BaseModel):
    numGames: Optional[Union[int, str]] = None
    fixedNumbers: Optional[Union[int, str]] = None
    mirrorBet: Union[bool, str] = False
    closingStrategy: Optional[str] = None
    targetConcurso: Optional[Union[int, str]] = None


class CheckRequest(BaseModel):
    games: str
    concurso: Optional[int] = None
    concursoEnd: Optional[int] = None


class ExportRequest(BaseModel):
    games: List[List[str]]


def _require_components():
    if draw_service is None or history is None or settings is None:
        raise HTTPException(status_code=503, detail="Service not available")


@games_router.post("/generate")
def generate_games(request: GenerateRequest):
    """
    Generates a batch of games against the latest draw.
    """
    _require_components()
    generator = PlayGenerator(history, settings=settings)
    try:
        config = generator.parse_config(request.model_dump())
    except ConfigurationError as e:
        logger.warning(f"Rejected generation request: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    reference = draw_service.get_latest_result()
    with _generation_lock:
        batch = generator.generate_safe(config, reference)

    if batch.error:
        raise HTTPException(status_code=500, detail=batch.error)
    return {
        "reference_concurso": reference.concurso,
        **batch.to_dict(),
    }


@games_router.post("/check")
def check_games(request: CheckRequest):
    """
    Checks games against one contest, a contest range, or the latest draw.
    """
    _require_components()
    games = parse_games_text(request.games)
    if not games:
        raise HTTPException(status_code=422, detail="No valid games submitted.")

    try:
        if request.concurso is None:
            draws = [draw_service.get_latest_result()]
        elif request.concursoEnd is None:
            draws = [draw_service.get_result(request.concurso)]
        else:
            draws = draw_service.get_results_range(request.concurso, request.concursoEnd)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NetworkError as e:
        raise HTTPException(status_code=503, detail=f"Result source unavailable: {e}")

    if not draws:
        raise HTTPException(status_code=404, detail="No contests found in the requested range.")

    evaluator = Evaluator(game_cost=settings.game_cost, currency_symbol=settings.currency_symbol)
    report = evaluator.check_games(games, draws)
    return report.to_dict(settings.currency_symbol)


@games_router.post("/export", response_class=PlainTextResponse)
def export_games(request: ExportRequest):
    """Returns the games as a downloadable .txt file."""
    if not request.games:
        raise HTTPException(status_code=422, detail="No games to export.")
    filename = f"{GAMES_FILENAME_PREFIX}_{datetime.now().strftime('%Y-%m-%d_%H%M%S')}.txt"
    return PlainTextResponse(
        format_games_text(request.games) + "\n",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
