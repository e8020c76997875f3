import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request as FastAPIRequest
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from format_poker.api import api_router
from format_poker.core.config import get_settings
from format_poker.core.rate_limit import limiter, rate_limit_exceeded_handler
from format_poker.core.security_headers import SecurityHeadersMiddleware
from format_poker.services.broadcaster import get_broadcaster

settings = get_settings()

# Module loggers (vote conflicts, live channel churn) log at INFO and up
logging.getLogger("format_poker").setLevel(logging.INFO)

logger = logging.getLogger(__name__)

CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.seed_on_startup:
        from format_poker.scripts.seed import seed_default_catalog

        inserted = seed_default_catalog()
        logger.info("Seeded %d format(s)", inserted)
    yield
    # Wake every open live stream so their generators finish
    get_broadcaster().close_all()


app = FastAPI(
    title="Format Poker API",
    description="Crowd-sourced catalog of media format support requests",
    version="0.1.0",
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: FastAPIRequest, exc: Exception) -> JSONResponse:
    """Catch unhandled exceptions and return a generic 500 response."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    content = {"detail": "Internal server error"}
    if not settings.is_production:
        content["debug"] = str(exc)
    return JSONResponse(status_code=500, content=content)


app.add_middleware(SecurityHeadersMiddleware)

if settings.cors_origins.strip() == "*":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    origins = [origin.strip() for origin in settings.cors_origins.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=["Content-Type", "X-Admin-Key"],
    )

app.include_router(api_router, prefix="/api")


@app.get("/health")
def health_check():
    return {"status": "ok"}
