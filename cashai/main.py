# cashai/main.py
# FastAPI application: middleware, error handlers and router registration

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models
from .config import settings
from .errors import CashAIError
from .routers import accounts, dashboard, plaid, users

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    models.create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🚀 {settings.PROJECT_NAME} starting ({settings.ENVIRONMENT}, Plaid {settings.PLAID_ENV})")
    yield
    models.engine.dispose()


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Backend for the CashAI mobile app: bank linking through Plaid",
    version=settings.VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===== ERROR HANDLERS =====
@app.exception_handler(CashAIError)
async def cashai_error_handler(request: Request, exc: CashAIError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})

# ===== ROUTERS =====
app.include_router(plaid.router, prefix="/api", tags=["plaid"])
app.include_router(accounts.router, prefix="/api", tags=["accounts"])
app.include_router(users.router, prefix="/api", tags=["users"])
app.include_router(dashboard.router, tags=["dashboard"])


@app.get("/")
async def root():
    return {"message": "CashAI Backend is running!"}

# ===== HEALTH CHECK =====
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "plaid_environment": settings.PLAID_ENV,
    }
