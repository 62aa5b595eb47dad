"""
Retail Sales Browser API - Main Application.

FastAPI application with CORS enabled for the dashboard frontend, and
exception handlers that map domain errors onto the response envelope:

- InvalidFilterSyntax / InvalidQueryParameter -> 400
- ValidationError / request body errors       -> 400 (with `field`)
- NotFound                                    -> 404
- StoreUnavailable / anything unhandled       -> 500

Run locally with `uvicorn api.main:app --reload`, or `retail-sales-api`
(HOST and PORT default to 0.0.0.0:8000).
"""

import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from domain.errors import InvalidQueryParameter, NotFound, StoreUnavailable, ValidationError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("api")

# Create FastAPI application
app = FastAPI(
    title="Retail Sales Browser API",
    description="REST API for searching, filtering and summarizing retail sale transactions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Vite and CRA dev servers, plus the deployed dashboard if configured.
allowed_origins = [
    origin
    for origin in ("http://localhost:5173", "http://localhost:3000", os.getenv("FRONTEND_URL"))
    if origin
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str, field: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "field": field},
    )


@app.exception_handler(InvalidQueryParameter)
async def invalid_query_handler(request: Request, exc: InvalidQueryParameter):
    logger.warning("Rejected query %s: %s", request.url.path, exc)
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, exc)
    return _error(status.HTTP_400_BAD_REQUEST, f"Validation Error: {exc.message}", exc.field)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    # Drop the leading "body"/"query" segment so `field` reads like a record path.
    location = [str(part) for part in first.get("loc", ())[1:]]
    field = ".".join(location) or None
    logger.warning("Request validation failed on %s %s: %s", request.method, request.url.path, errors)
    return _error(status.HTTP_400_BAD_REQUEST, f"Validation Error: {first.get('msg', 'invalid request')}", field)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return _error(status.HTTP_404_NOT_FOUND, "Sale record not found")


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Server Error: {exc}")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error: an unexpected error occurred.")


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "retail-sales-browser-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Retail Sales Browser API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import sales

app.include_router(sales.router, prefix="/api", tags=["Sales"])


def run() -> None:
    """Serve the app with uvicorn (the `retail-sales-api` console script)."""
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    run()
