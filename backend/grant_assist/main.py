from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import logging
from logging.handlers import RotatingFileHandler
import os

from grant_assist.core.errors import GatewayError, InternalError
from grant_assist.core.responses import error_response

VERSION = "1.0.0"

# ============================================================================
# Logging Configuration
# ============================================================================
LOG_DIR = os.environ.get(
    "GA_LOG_DIR",
    os.path.dirname(os.path.dirname(os.path.abspath(__file__)))  # backend/
)
LOG_FILE = os.path.join(LOG_DIR, "grant_assist.log")

# Create rotating file handler (10MB per file, keep 5 backups)
file_handler = RotatingFileHandler(
    LOG_FILE,
    maxBytes=10 * 1024 * 1024,  # 10MB
    backupCount=5,
    encoding="utf-8"
)
file_handler.setLevel(logging.INFO)
file_handler.setFormatter(logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
))

# Also keep console output
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter(
    "%(asctime)s - %(levelname)s - %(message)s"
))

# Configure root logger
logging.basicConfig(
    level=logging.INFO,
    handlers=[file_handler, console_handler]
)

# Reduce noise from httpx
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)
logger.info(f"Logging to file: {LOG_FILE}")

app = FastAPI(
    title="Grant Assist API",
    description="Rate-limited AI assistance for grant applications",
    version=VERSION
)

# Configure CORS
origins = [o.strip() for o in os.environ.get("GA_CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type", "x-service-key"],
)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    """Render gateway errors as {"error", "code", ...} bodies."""
    return error_response(exc)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    error = InternalError("Internal server error")
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": VERSION}

from grant_assist.core.database import create_db_and_tables
from grant_assist.api import routes_assist, routes_usage, routes_admin


@app.on_event("startup")
async def on_startup():
    create_db_and_tables()

# AI Assistant (rate limited)
app.include_router(routes_assist.router, prefix="/v1", tags=["AI Assistant"])

# Quota status for signed-in users
app.include_router(routes_usage.router, prefix="/api")

# Operator endpoints
app.include_router(routes_admin.router, prefix="/api/admin", tags=["Admin"])

if __name__ == "__main__":
    uvicorn.run("grant_assist.main:app", host="0.0.0.0", port=8000, reload=True)
