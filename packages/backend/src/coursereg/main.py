"""FastAPI application factory.

Learn: App factory pattern: create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, database engine).
Middleware, CORS, routers and the domain error handler are all
registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coursereg import __version__
from coursereg.api import api_router
from coursereg.config import settings
from coursereg.errors import CourseRegError, Unauthenticated

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "coursereg.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        token_ttl_seconds=settings.token_ttl_seconds,
    )

    from coursereg.cache import close_redis, init_redis
    try:
        await init_redis()
        logger.info("coursereg.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("coursereg.redis_unavailable", error=str(e))
        # Redis is optional: app works without rate limiting

    yield

    logger.info("coursereg.shutdown")
    await close_redis()

    from coursereg.db.engine import engine
    await engine.dispose()


async def domain_error_handler(request: Request, exc: CourseRegError) -> JSONResponse:
    """Render every domain error as a distinct (status, code) pair."""
    identity = getattr(request.state, "identity", None)
    logger.info(
        "request.failed",
        method=request.method,
        path=request.url.path,
        username=identity.username if identity else None,
        status=exc.status_code,
        code=exc.code,
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Course Registration",
        description="Course registration backend with stateless token auth",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from coursereg.middleware.rate_limit import RateLimitMiddleware
    from coursereg.middleware.request_id import RequestIdMiddleware
    from coursereg.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CourseRegError, domain_error_handler)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: coursereg.main:app)
app = create_app()
