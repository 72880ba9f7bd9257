import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from latms.core.config import settings
from latms.api.v1.auth import router as auth_router
from latms.api.v1.employees import router as employees_router
from latms.api.v1.users import router as users_router
from latms.api.v1.leaves import router as leaves_router
from latms.api.v1.tickets import router as tickets_router
from latms.api.v1.lookups import router as lookups_router
from latms.api.v1.notifications import router as notifications_router
from latms.api.v1.me import router as me_router
from latms.api.v1.dashboard import router as dashboard_router
from latms.db.mongo import get_mongo_client, close_mongo_client
from latms.db.mongo_indexes import ensure_indexes
from latms.db.session import dispose_engine
from latms.services.dual_write import get_legacy_mirror

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title="LATMS Backend")

# Build CORS allowlist from local dev + configured origins
_base_origins = {
    "http://localhost:3000",
    "http://127.0.0.1:3000",
}
if settings.FRONTEND_BASE_URL:
    _base_origins.add(settings.FRONTEND_BASE_URL)
for o in settings.ALLOWED_ORIGINS:
    _base_origins.add(o)
# Normalize by stripping trailing slashes to match Origin header format
_allowed_origins = sorted({o.rstrip('/') for o in _base_origins if o})

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_origin_regex=r"^http(s)?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/")
def read_root():
    return {"message": "Welcome to LATMS Backend"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


# Mount API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(employees_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(leaves_router, prefix="/api/v1")
app.include_router(tickets_router, prefix="/api/v1")
app.include_router(lookups_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(me_router, prefix="/api/v1")
app.include_router(dashboard_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup():
    # Initialize Mongo client
    get_mongo_client()
    # Create required indexes (non-fatal on failure)
    try:
        await ensure_indexes()
    except Exception as exc:
        logger.warning("Mongo index initialization failed: %s", exc)
    # Prepare the legacy mirror when dual writes are on (non-fatal)
    try:
        get_legacy_mirror()
    except Exception as exc:
        logger.warning("Legacy store initialization failed: %s", exc)


@app.on_event("shutdown")
async def on_shutdown():
    close_mongo_client()
    dispose_engine()
