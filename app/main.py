import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.errors import AppError
from app.modules.auth import routes as auth_routes
from app.modules.users import routes as users_routes
from app.modules.groups import routes as groups_routes
from app.modules.messages import routes as messages_routes
from app.modules.posts import routes as posts_routes
from app.modules.notifications import routes as notifications_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
ROUTERS = [
    auth_routes.router,
    users_routes.router,
    groups_routes.router,
    messages_routes.router,
    posts_routes.router,
    notifications_routes.router,
]

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])


async def app_error_handler(request: Request, exc: AppError):
    """Domain errors carry a stable machine-readable code next to the message"""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "code": exc.code})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    detail = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": detail})


class SecurityHeadersMiddleware:
    HEADERS = [
        (b"X-Content-Type-Options", b"nosniff"),
        (b"X-Frame-Options", b"DENY"),
        (b"Referrer-Policy", b"no-referrer"),
    ]

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend(self.HEADERS)
            await send(message)

        await self.app(scope, receive, send_with_headers)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.app_name} starting ({settings.environment})")
    yield
    logger.info(f"{settings.app_name} shutting down")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.limiter = limiter

    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Last added is outermost: CORS wraps the security headers
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"status": "healthy"}

    @app.get("/ready")
    @limiter.exempt
    async def ready():
        """Readiness probe; the database client is created lazily on first request."""
        return {"status": "ready", "environment": settings.environment}

    return app


app = create_app()
