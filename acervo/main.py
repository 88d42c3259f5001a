import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from acervo.config import settings
from acervo.modules.access import routes as access_routes
from acervo.modules.access.errors import AccessLookupError, UnauthorizedMutation, UnknownRole
from acervo.modules.auth import routes as auth_routes
from acervo.modules.pages import routes as pages_routes
from acervo.modules.pages.navigation import PageRedirect, redirect_response
from acervo.modules.roles import routes as roles_routes
from acervo.modules.users import routes as users_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(PageRedirect)
async def page_redirect_handler(request: Request, exc: PageRedirect):
    return redirect_response(exc.location, exc.notice)


@app.exception_handler(UnknownRole)
async def unknown_role_handler(request: Request, exc: UnknownRole):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(UnauthorizedMutation)
async def unauthorized_mutation_handler(request: Request, exc: UnauthorizedMutation):
    return JSONResponse(status_code=403, content={"detail": "Only administrators can manage users"})


@app.exception_handler(AccessLookupError)
async def access_lookup_handler(request: Request, exc: AccessLookupError):
    return JSONResponse(status_code=503, content={"detail": "Unable to verify access, retry"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"Referrer-Policy", b"same-origin"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(access_routes.router, prefix="/api/v1")
app.include_router(users_routes.router, prefix="/api/v1")
app.include_router(roles_routes.router, prefix="/api/v1")

# HTML pages
app.include_router(pages_routes.router)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Application startup ({settings.environment})")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: Supabase settings must be present."""
    if not settings.supabase_url or not settings.supabase_key:
        return JSONResponse(status_code=503, content={"status": "not ready"})
    return {"status": "ready"}
