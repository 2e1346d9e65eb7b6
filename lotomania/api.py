from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from lotomania.api_generation_endpoints import games_router, set_generation_components
from lotomania.api_results_endpoints import results_router, set_results_components
from lotomania.config import get_settings, resolve_path, setup_logging
from lotomania.data_processor import load_history_corpus
from lotomania.loader import get_draw_service


def initialize_components(settings=None):
    """Builds the shared draw service and history corpus and injects them into the routers."""
    settings = settings or get_settings()
    draw_service = get_draw_service(settings)
    history = load_history_corpus(
        resolve_path(settings.history_file), synthetic_size=settings.synthetic_history_size,
    )

    set_generation_components(draw_service, history, settings)
    set_results_components(draw_service)
    logger.info(f"API components ready ({len(history)} historical draws).")
    return draw_service, history


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup...")
    settings = get_settings()
    setup_logging(settings.log_file)
    try:
        initialize_components(settings)
    except Exception as e:
        logger.critical(f"Fatal error during startup: {e}")
        raise
    yield
    logger.info("Application shutdown...")


# --- Application Initialization ---
app = FastAPI(
    title="Lotomania Ultra API",
    description="Generates and checks Lotomania games with frequency heuristics.",
    version="1.0.0",
    lifespan=lifespan,
)

# --- CORS Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(games_router)
app.include_router(results_router)


@app.get("/api/v1/health")
def health():
    return {"status": "ok"}
