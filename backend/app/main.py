import logging.config
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bytelearn.realtime import shutdown_realtime

from app.api.routes import router as api_router
from app.api.ws import router as ws_router
from app.config import get_settings

settings = get_settings()

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        }
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        }
    },
    "root": {
        "handlers": ["default"],
        "level": settings.log_level,
    },
    "loggers": {
        "bytelearn.realtime": {
            "handlers": ["default"],
            "level": settings.log_level,
            "propagate": False,
        }
    },
}


logging.config.dictConfig(LOGGING_CONFIG)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cancel delayed broadcasts and forget every room when the app stops."""

    logger.info("%s started (%s)", settings.app_name, settings.environment)
    yield
    await shutdown_realtime()
    logger.info("%s stopped", settings.app_name)


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin).rstrip("/") for origin in settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["system"])
def health_check() -> dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "ok", "environment": settings.environment}


app.include_router(api_router, prefix="/api")
app.include_router(ws_router)
