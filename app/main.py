import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.middleware import SecurityHeadersMiddleware
from app.database.supabase_client import SupabaseClient
from app.modules.auth import routes as auth_routes
from app.modules.users import routes as users_routes
from app.modules.properties import routes as properties_routes
from app.modules.leads import routes as leads_routes
from app.modules.crm import routes as crm_routes
from app.modules.visits import routes as visits_routes
from app.modules.calendar import routes as calendar_routes
from app.modules.favorites import routes as favorites_routes
from app.modules.notifications import routes as notifications_routes
from app.modules.audit import routes as audit_routes
from app.modules.mortgage import routes as mortgage_routes
from app.modules.autosave import routes as autosave_routes
from app.modules.autosave import registry as autosave_registry
from app.modules.autosave.sweeper import session_sweeper_loop

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api"

ROUTERS = (
    auth_routes.router,
    users_routes.router,
    properties_routes.router,
    properties_routes.analytics_router,
    leads_routes.router,
    crm_routes.router,
    visits_routes.router,
    calendar_routes.router,
    favorites_routes.router,
    notifications_routes.router,
    audit_routes.router,
    mortgage_routes.router,
    autosave_routes.router,
)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    detail = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": detail})


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


@app.on_event("startup")
async def startup_event():
    logger.info(f"{settings.app_name} starting ({settings.environment})")
    if not settings.supabase_service_role_key:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY not set - admin operations use the anon client")
    if not settings.resend_api_key:
        logger.warning("RESEND_API_KEY not set - e-mail notifications are disabled")
    if not (settings.google_client_id and settings.google_client_secret):
        logger.info("Google OAuth not configured - calendar sync is off")
    app.state.session_sweeper = asyncio.create_task(session_sweeper_loop())


@app.on_event("shutdown")
async def shutdown_event():
    sweeper = getattr(app.state, "session_sweeper", None)
    if sweeper is not None:
        sweeper.cancel()
    # Unsaved editor edits are dropped with their sessions
    autosave_registry.clear()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"name": settings.app_name, "environment": settings.environment}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness check: Supabase credentials must be present."""
    if not SupabaseClient.is_configured():
        return JSONResponse(status_code=503, content={"status": "not ready", "reason": "supabase not configured"})
    return {"status": "ready"}
