"""fhir-records - FHIR resource backend for the clinical records UI."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from httpx import HTTPError, HTTPStatusError
from pydantic import ValidationError

from fhir_records.clients.fhir_resource import close_fhir_resource_service
from fhir_records.exceptions import RecordValidationError, UnsupportedResourceError
from fhir_records.routers import health, resources, vital_signs
from fhir_records.settings import settings

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan management."""
    yield
    await close_fhir_resource_service()


app = FastAPI(
    title="fhir-records",
    description="Maps FHIR resources to flat UI records and proxies a FHIR server",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RecordValidationError)
async def handle_record_validation_error(
    request: Request, exc: RecordValidationError
) -> JSONResponse:
    """Return the record's failed checks as a 422."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation failed", "errors": exc.errors},
    )


@app.exception_handler(ValidationError)
async def handle_validation_error(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle Pydantic ValidationError raised while coercing records and return 422."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors(include_url=False, include_context=False)},
    )


@app.exception_handler(UnsupportedResourceError)
async def handle_unsupported_resource(
    request: Request, exc: UnsupportedResourceError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(HTTPStatusError)
async def handle_httpx_status_error(
    request: Request, exc: HTTPStatusError
) -> JSONResponse:
    """Pass FHIR server error responses (usually an OperationOutcome) through."""
    content = None
    if exc.response.content:
        try:
            content = exc.response.json()
        except (ValueError, UnicodeDecodeError):
            content = exc.response.text
    logger.info("FHIR server answered %d for %s", exc.response.status_code, request.url.path)
    return JSONResponse(status_code=exc.response.status_code, content={"detail": content})


@app.exception_handler(HTTPError)
async def handle_httpx_error(request: Request, exc: HTTPError) -> JSONResponse:
    """Handle network/connection errors talking to the FHIR server."""
    logger.warning("FHIR server unreachable: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Service temporarily unavailable"},
    )


@app.exception_handler(Exception)
async def handle_unhandled_exceptions(request: Request, exc: Exception) -> JSONResponse:
    """Catch and log all unhandled exceptions."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Register routers
app.include_router(health.router)
app.include_router(vital_signs.router)
for router in resources.routers:
    app.include_router(router)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint."""
    return {"service": "fhir-records", "version": "0.1.0"}


def run() -> None:
    """Serve the app with uvicorn (the ``fhir-records`` console script)."""
    uvicorn.run(
        "fhir_records.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
