"""FastAPI server exposing stories, signals and reports to third parties."""

import hmac
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Header, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from worldmon import __version__
from worldmon.exceptions import RateLimitExceededError, UnauthorizedError, ValidationError
from worldmon.services.errors import ReportPeriodError
from worldmon.services.rate_limiter import RateLimiter
from worldmon.settings import Settings

DEFAULT_LIMIT = 50
MAX_LIMIT = 100

MONITORED_COUNTRIES = [
    "United States",
    "Russia",
    "Ukraine",
    "Iran",
    "Israel",
    "China",
    "Taiwan",
    "North Korea",
    "Turkey",
    "Saudi Arabia",
]

STORY_CATEGORIES = [
    "military",
    "politics",
    "economy",
    "technology",
    "environment",
    "intelligence",
    "disinformation",
]

ENDPOINTS = {
    "GET /api/health": "Health check (no auth)",
    "GET /api/stories": "Get intelligence stories",
    "GET /api/signals": "Get threat signals",
    "GET /api/correlations": "Get the latest correlation run",
    "GET /api/reports/:period": "Get reports (daily/weekly)",
    "GET /api/countries": "Get monitored countries",
    "GET /api/categories": "Get story categories",
}


@dataclass
class APIHandlers:
    """Data providers behind the read endpoints."""

    get_stories: Callable[[], Awaitable[list[Any]]]
    get_signals: Callable[[], Awaitable[list[Any]]]
    get_report: Callable[[str], Awaitable[Any]]
    get_health: Callable[[], Awaitable[Any]]
    get_correlations: Callable[[], Awaitable[Any]] | None = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def envelope(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data, "timestamp": _now_iso()}


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "timestamp": _now_iso()},
        headers=headers,
    )


def parse_limit(raw: str | None) -> int:
    """Result cap: default 50, at most 100; junk or non-positive falls back."""
    try:
        value = int(raw) if raw is not None else DEFAULT_LIMIT
    except ValueError:
        return DEFAULT_LIMIT
    if value <= 0:
        return DEFAULT_LIMIT
    return min(value, MAX_LIMIT)


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _matches(item: Any, name: str, wanted: str | None) -> bool:
    if not wanted:
        return True
    value = _field(item, name)
    return isinstance(value, str) and value.lower() == wanted.lower()


def client_id(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def _call(handler: Callable[..., Awaitable[Any]], failure: str, *args) -> Any:
    """Run a data provider, hiding its internals on failure."""
    try:
        return await handler(*args)
    except ReportPeriodError as e:
        raise ValidationError(str(e)) from e
    except Exception as e:
        logger.error(f"{failure}: {type(e).__name__}: {e}")
        raise StarletteHTTPException(status_code=500, detail=failure) from e


def create_app(
    settings: Settings,
    handlers: APIHandlers,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """Create the API app.

    Args:
        settings: Startup configuration (API key, CORS origins, rate limit)
        handlers: Data providers for the endpoints
        rate_limiter: Limiter state; one is created from settings if omitted

    Returns:
        FastAPI app
    """
    app = FastAPI(title="World Monitor API", version=__version__)
    limiter = rate_limiter or RateLimiter(limit=settings.rate_limit_per_minute)
    app.state.settings = settings
    app.state.rate_limiter = limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["X-API-Key", "Content-Type"],
    )

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        decision = limiter.hit(client_id(request))
        if not decision.allowed:
            logger.warning(f"Rate limit exceeded for {client_id(request)}")
            exc = RateLimitExceededError(retry_after=int(decision.retry_after) + 1)
            return error_response(exc.status_code, exc.detail, exc.headers)
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return error_response(422, "Invalid request parameters")

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}")
        return error_response(500, "Internal server error")

    def require_api_key(
        x_api_key: str | None = Header(None),
        api_key: str | None = Query(None),
    ) -> None:
        supplied = x_api_key or api_key
        if not supplied or not hmac.compare_digest(
            supplied.encode(), settings.api_key.encode()
        ):
            raise UnauthorizedError()

    @app.get("/api/health")
    async def health():
        data = await _call(handlers.get_health, "Health check failed")
        return envelope(jsonable_encoder(data))

    @app.get("/api")
    async def docs():
        return envelope(
            {
                "name": "World Monitor API",
                "version": __version__,
                "endpoints": ENDPOINTS,
                "authentication": {"header": "X-API-Key", "query": "api_key"},
                "rateLimit": f"{settings.rate_limit_per_minute} requests/minute",
            }
        )

    protected = APIRouter(prefix="/api", dependencies=[Depends(require_api_key)])

    @protected.get("/stories")
    async def get_stories(
        region: str | None = None,
        category: str | None = None,
        limit: str | None = None,
    ):
        stories = await _call(handlers.get_stories, "Failed to fetch stories")
        stories = [
            s
            for s in stories
            if _matches(s, "region", region) and _matches(s, "category", category)
        ]
        max_limit = parse_limit(limit)
        stories = stories[:max_limit]
        return envelope(
            {
                "stories": jsonable_encoder(stories),
                "count": len(stories),
                "filters": {"region": region, "category": category, "limit": max_limit},
            }
        )

    @protected.get("/signals")
    async def get_signals(
        severity: str | None = None,
        region: str | None = None,
        limit: str | None = None,
    ):
        signals = await _call(handlers.get_signals, "Failed to fetch signals")
        if severity:
            signals = [s for s in signals if _field(s, "severity") == severity]
        signals = [s for s in signals if _matches(s, "region", region)]
        max_limit = parse_limit(limit)
        signals = signals[:max_limit]
        return envelope(
            {
                "signals": jsonable_encoder(signals),
                "count": len(signals),
                "filters": {"severity": severity, "region": region, "limit": max_limit},
            }
        )

    @protected.get("/correlations")
    async def get_correlations():
        if handlers.get_correlations is None:
            return envelope(None)
        data = await _call(handlers.get_correlations, "Failed to fetch correlations")
        return envelope(jsonable_encoder(data))

    @protected.get("/reports/{period}")
    async def get_report(period: str):
        report = await _call(
            handlers.get_report, f"Failed to generate {period} report", period
        )
        return envelope(jsonable_encoder(report))

    @protected.get("/countries")
    async def get_countries():
        return envelope({"countries": MONITORED_COUNTRIES})

    @protected.get("/categories")
    async def get_categories():
        return envelope({"categories": STORY_CATEGORIES})

    app.include_router(protected)
    return app
