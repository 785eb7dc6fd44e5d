import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from staybook.config import Settings, settings as default_settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "staybook.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from staybook.errors import AppError
from staybook.routers import auth, hotels, places, promo, rates
from staybook.services.booking import BookingService
from staybook.services.cache_service import CacheService
from staybook.services.channel_keys import ApiKeySelector
from staybook.services.liteapi_client import LiteApiClient
from staybook.services.margin_resolver import MarginResolver
from staybook.services.places_client import PlacesClient
from staybook.services.rates_search import RateSearchOrchestrator
from staybook.services.segment_store import StaticSegmentStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Staybook starting ({app.state.settings.environment})")
    yield

    # Shutdown
    await app.state.liteapi.close()
    await app.state.places.close()
    await app.state.cache.close()
    logger.info("HTTP clients and cache closed")


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": {"message": message, "code": "INVALID_PARAMS"}})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": {"message": "Internal server error", "code": "SEARCH_FAILED"}},
    )


def create_app(settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """Build the app. Services are created once here and shared through ``app.state``."""
    settings = settings or default_settings

    app = FastAPI(
        title="Staybook",
        description="Hotel booking backend-for-frontend over LiteAPI and Google Places",
        version="0.1.0",
        lifespan=lifespan,
    )

    cache = CacheService(
        settings.redis_url,
        rates_ttl=settings.rates_search_cache_ttl,
        details_ttl=settings.hotel_details_cache_ttl,
    )
    liteapi = LiteApiClient(settings, cache=cache, transport=transport)

    app.state.settings = settings
    app.state.cache = cache
    app.state.liteapi = liteapi
    app.state.places = PlacesClient(settings, transport=transport)
    app.state.key_selector = ApiKeySelector(settings)
    app.state.margin_resolver = MarginResolver(StaticSegmentStore(), settings.staff_email_domain)
    app.state.orchestrator = RateSearchOrchestrator(liteapi, cache, settings)
    app.state.booking = BookingService(liteapi, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(places.router, prefix="/api", tags=["places"])
    app.include_router(hotels.router, prefix="/api/hotel", tags=["hotels"])
    app.include_router(rates.router, prefix="/api/rates", tags=["rates"])
    app.include_router(promo.router, prefix="/api/promo", tags=["promo"])

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok", "service": "staybook"}

    return app


app = create_app()
