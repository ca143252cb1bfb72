import time
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from reels.api import api_router
from reels.core.config import AppSettings, UploadSettings
from reels.core.exceptions import NotConfiguredError, NotFoundError, ReelsError, ValidationFailed
from reels.db.database import init_db


def get_app_settings() -> AppSettings:
    return AppSettings()


def setup_logging():
    settings = get_app_settings()
    logger.add(
        settings.log_file,
        rotation=settings.log_rotation,
        compression=settings.log_compression.value,
        format=settings.log_format,
        level=settings.app_log_level.value.upper(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Edureels API")
    await init_db()
    Path(UploadSettings().upload_tmp_dir).mkdir(parents=True, exist_ok=True)
    yield
    logger.info("Shutting down Edureels API")


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(ValidationFailed)
    async def validation_failed_handler(request: Request, exc: ValidationFailed):
        logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(NotConfiguredError)
    async def not_configured_handler(request: Request, exc: NotConfiguredError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(ReelsError)
    async def reels_error_handler(request: Request, exc: ReelsError):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def create_app():
    settings = get_app_settings()
    app = FastAPI(
        title=settings.app_name,
        description="API for short-form educational videos",
        version="1.0.0",
        lifespan=lifespan,
    )
    setup_logging()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_api_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(f"{request.method} {request.url.path} {response.status_code} in {duration_ms:.0f}ms")
        return response

    register_exception_handlers(app)

    @app.get("/")
    def read_root():
        return {"message": "Welcome to Edureels"}

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    app.include_router(api_router)

    return app


app = create_app()

if __name__ == "__main__":
    settings = get_app_settings()
    uvicorn.run(
        "reels.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_reload,
    )
