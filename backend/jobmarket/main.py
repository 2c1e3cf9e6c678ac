import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobmarket.config import settings
from jobmarket.middleware.exceptions import register_exception_handlers
from jobmarket.middleware.security import RequestLogMiddleware, SecurityHeadersMiddleware
from jobmarket.routers import auth, businesses, health, permissions, team

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="JobMarket",
    description="Job marketplace backend: businesses, teams and access control",
    version="0.1.0",
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware (outermost first) ─────────────────────────────
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLogMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(permissions.router, prefix="/api/permissions", tags=["permissions"])

# Business-scoped (guarded by require_business_permission)
app.include_router(businesses.router, prefix="/api/businesses", tags=["businesses"])
app.include_router(team.router, prefix="/api/businesses", tags=["team"])
