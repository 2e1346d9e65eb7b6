"""
Lotomania Ultra Result Endpoints
================================

Official draw results and the drawing calendar.
"""

from fastapi import APIRouter, HTTPException
from loguru import logger

from lotomania.date_utils import DateManager
from lotomania.loader import NetworkError, NotFoundError

# Create router for result endpoints
results_router = APIRouter(prefix="/api/v1/results", tags=["results"])

# Global components (will be injected from main API)
draw_service = None


def set_results_components(service):
    """Set global result components."""
    global draw_service
    draw_service = service


@results_router.get("/latest")
def get_latest_result():
    """Latest draw: cached, fetched, or the bundled default."""
    if draw_service is None:
        raise HTTPException(status_code=503, detail="Service not available")
    return draw_service.get_latest_result().to_dict()


@results_router.get("/next-drawing")
def get_next_drawing():
    return DateManager.get_next_drawing_info()


@results_router.get("/{concurso}")
def get_result(concurso: int):
    if draw_service is None:
        raise HTTPException(status_code=503, detail="Service not available")
    try:
        return draw_service.get_result(concurso).to_dict()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NetworkError as e:
        logger.error(f"Could not load contest {concurso}: {e}")
        raise HTTPException(status_code=503, detail=f"Result source unavailable: {e}")
