"""
Main API entry point for the AgroNet crop listing backend
"""
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
import logging

import config
from crop_listing_api import router as crop_listing_router
from crop_listing_errors import CropServiceError
from crop_listing_models import HealthStatus
from crop_listing_storage import get_storage

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(title="AgroNet API", version="1.0.0")

app.include_router(crop_listing_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials="*" not in config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CropServiceError)
async def crop_service_error_handler(request: Request, exc: CropServiceError):
    if exc.http_status >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    """Catch-all: never leaks internal details"""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


@app.get("/", response_class=PlainTextResponse)
async def root():
    return config.BANNER_TEXT


@app.get("/health", response_model=HealthStatus)
def health_check(storage=Depends(get_storage)):
    """Health check endpoint"""
    try:
        return HealthStatus(status="healthy", crops_count=storage.count_crops())
    except Exception as e:
        logger.warning(f"Health check failed: {e}")
        return HealthStatus(status="degraded", error="Storage unavailable")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
