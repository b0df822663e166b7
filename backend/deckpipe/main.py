import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from deckpipe.api.v1.api import router
from deckpipe.controllers.content_controller import ContentFetcher
from deckpipe.controllers.generation_controller import DeckPipeline
from deckpipe.controllers.visual_controller import VisualProducer
from deckpipe.core.config import settings
from deckpipe.core.image_client import ImageClient
from deckpipe.core.job_store import JobStore
from deckpipe.core.visual_poller import VisualPoller, attempts_to_cover
from deckpipe.schemas.deck import Visual

logger = logging.getLogger(__name__)


class _VisualPollFilter(logging.Filter):
    """Drop uvicorn access lines for visual status polls (one every few seconds per slide)."""

    def filter(self, record: logging.LogRecord) -> bool:
        return f"GET {settings.API_V1_STR}/visuals/" not in record.getMessage()


def _configure_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("deckpipe").setLevel(level)
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    access_logger = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, _VisualPollFilter) for f in access_logger.filters):
        access_logger.addFilter(_VisualPollFilter())


def fallback_visual() -> Visual:
    return Visual(kind="image", data=settings.FALLBACK_IMAGE_URL, fallback=True)


def pipeline_poller() -> VisualPoller:
    """Poller the pipeline runs over the job store.

    Reads per cycle are raised as needed so one cycle outlasts the image
    worker's worst case (``settings.IMAGE_WORKER_BUDGET_SECONDS``).
    """
    interval = settings.VISUAL_POLL_INTERVAL_SECONDS
    attempts = attempts_to_cover(settings.IMAGE_WORKER_BUDGET_SECONDS, interval, settings.VISUAL_POLL_MAX_ATTEMPTS)
    if attempts > settings.VISUAL_POLL_MAX_ATTEMPTS:
        logger.warning(
            "VISUAL_POLL_MAX_ATTEMPTS=%d covers %.1fs but an image job may take %.1fs; polling %d times per cycle",
            settings.VISUAL_POLL_MAX_ATTEMPTS,
            settings.VISUAL_POLL_MAX_ATTEMPTS * interval,
            settings.IMAGE_WORKER_BUDGET_SECONDS,
            attempts,
        )
    return VisualPoller(
        max_attempts=attempts,
        interval=interval,
        max_retries=settings.VISUAL_MAX_RETRIES,
        fallback=fallback_visual(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build the job store and pipeline. Shutdown: stop jobs, close clients."""
    _configure_logging()
    if settings.OPENAI_API_KEY:
        # pydantic-ai's OpenAI provider reads the key from the environment.
        os.environ.setdefault("OPENAI_API_KEY", settings.OPENAI_API_KEY)

    image_client = ImageClient(settings.OPENAI_API_KEY) if settings.OPENAI_API_KEY else None
    producer = VisualProducer(
        image_client=image_client,
        image_poller=VisualPoller(
            max_attempts=settings.IMAGE_POLL_MAX_ATTEMPTS,
            interval=settings.IMAGE_POLL_INTERVAL_SECONDS,
            max_retries=1,
            fallback=None,
        ),
    )
    job_store = JobStore(producer, ttl_seconds=settings.JOB_TTL_SECONDS)
    job_store.start_sweeper(settings.JOB_SWEEP_INTERVAL_SECONDS)

    content_fetcher = ContentFetcher()
    app.state.job_store = job_store
    app.state.content_fetcher = content_fetcher
    app.state.pipeline = DeckPipeline(
        content_fetcher,
        job_store,
        pipeline_poller(),
        visual_kind=settings.DEFAULT_VISUAL_KIND,
        byline=settings.DECK_BYLINE,
        agenda_max_items=settings.AGENDA_MAX_ITEMS,
        slide_delay=settings.SLIDE_DELAY_SECONDS,
    )
    logger.info("%s started in %s mode", settings.PROJECT_NAME, settings.MODE.value)
    yield
    await job_store.close()
    if image_client is not None:
        await image_client.aclose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)


# ── Global Exception Handler (ensures 500s return JSON through CORS) ──

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# ── Middleware ────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────

app.include_router(router, prefix=settings.API_V1_STR)


# ── Health / Root ─────────────────────────────────────────────

@app.get("/")
def read_root():
    return {"message": "Welcome to the Deckpipe API"}


@app.get("/health")
def health(request: Request):
    return {"status": "healthy", "jobs": len(request.app.state.job_store)}
