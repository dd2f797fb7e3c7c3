from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from fledgely_forensics.config import settings
from fledgely_forensics.api.watermark import router as watermark_router
from fledgely_forensics.middleware.security import SecurityHeadersMiddleware

# Configure structlog
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        (
            structlog.dev.ConsoleRenderer()
            if settings.APP_ENV == "development"
            else structlog.processors.JSONRenderer()
        ),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(0),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(
        "starting_up",
        env=settings.APP_ENV,
        output_format=settings.WATERMARK_OUTPUT_FORMAT,
        repetitions=settings.WATERMARK_REPETITIONS,
    )
    if not settings.FORENSICS_API_KEY:
        log.warning("forensics_api_key_missing")

    yield

    log.info("shutting_down")


app = FastAPI(
    title="Fledgely Forensic Watermarking",
    lifespan=lifespan,
)

app.add_middleware(SecurityHeadersMiddleware)

app.include_router(watermark_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
