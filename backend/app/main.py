"""
Pharma CRM Backend API
FastAPI application for AI-assisted pharmaceutical inquiry extraction.
"""

import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.cors import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS, get_cors_headers, get_cors_origins
from app.routers import parse_email
from app.db import supabase_admin
from app.models.inquiry import ParseFailureResponse
from app.services.domain_mapping import DOMAIN_MAPPING_TABLE

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Pharma CRM API",
    description="AI-assisted pharmaceutical inquiry extraction from inbound email",
    version="0.1.0",
)

# CORS configuration — origins are resolved at startup from environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_methods=CORS_ALLOW_METHODS,
    allow_headers=CORS_ALLOW_HEADERS,
)

# Include routers
app.include_router(parse_email.router, prefix="/api/parse-pharma-email", tags=["parse-email"])


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Report an unreadable or incomplete request body in the same failure
    envelope as any other parse error (500 {success: false, error}).
    """
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        msg = err.get("msg", "invalid value")
        problems.append(f"{loc}: {msg}" if loc else msg)

    message = "Invalid request body: " + ("; ".join(problems) or "validation failed")
    logger.warning(f"Rejected request to {request.url.path}: {message}")

    failure = ParseFailureResponse(error=message)
    return JSONResponse(
        status_code=500,
        content=failure.model_dump(by_alias=True, exclude={"fallback_data"}),
        headers=get_cors_headers(),
    )


@app.on_event("startup")
async def log_startup_url() -> None:
    """Log the local URL the API is accessible at (port from HOST_PORT, default 8000)."""
    host_port = os.getenv("HOST_PORT", "8000")
    logger.info("Pharma CRM API running at: http://localhost:%s", host_port)
    if not os.getenv("ANTHROPIC_API_KEY"):
        logger.warning(
            "ANTHROPIC_API_KEY is not set — /api/parse-pharma-email will answer 503 "
            "with fallback data only"
        )


@app.get("/")
async def root():
    return {"message": "Pharma CRM API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/db")
def health_db():
    """
    Test the Supabase database connection.

    Executes a lightweight query (one row from the domain mapping table) to
    verify the admin client can reach the database. Returns 503 on failure.
    """
    try:
        supabase_admin.table(DOMAIN_MAPPING_TABLE).select("email_domain").limit(1).execute()
        return {"status": "ok", "database": "reachable"}
    except Exception as exc:
        logger.error(f"Database health check failed: {exc}")
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(exc)}",
        )
