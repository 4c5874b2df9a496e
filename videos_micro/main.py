from datetime import datetime, timezone
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from Endpoints import auth, videos, comments
from db.database import engine, Base, test_connection
from utils.blob_storage import BlobStorage
from utils.errors import StorageError
from utils.logger import setup_logging
from utils.settings import get_settings
import models.users_models  # noqa: F401  (registers tables)
import models.video_models  # noqa: F401

settings = get_settings()
setup_logging(settings.log_level, settings.log_dir)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Beatly Video API",
    description="Backend API for Beatly - video sharing with role-gated uploads, likes, comments and analytics",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    logger.info("Testing database connection...")
    if test_connection():
        Base.metadata.create_all(bind=engine)
        logger.info("✅ Database tables verified/created")
    else:
        logger.warning("⚠️ App will start but database functionality will be limited")

    try:
        app.state.storage = BlobStorage.from_settings(settings)
    except StorageError as e:
        app.state.storage = None
        logger.warning(f"⚠️ Blob storage unavailable, uploads will fail: {e}")


# Include routers
app.include_router(auth.router)
app.include_router(videos.router)
app.include_router(comments.router)


@app.get("/")
def root():
    return {"message": "Welcome to Beatly API"}


@app.get("/health")
def health_check():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Our API errors already carry {"error", "details"}
    if isinstance(exc.detail, dict):
        content = exc.detail
    elif exc.status_code == status.HTTP_404_NOT_FOUND:
        content = {"error": "Route not found", "path": request.url.path}
    else:
        content = {"error": exc.detail}

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(content),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"error": "Invalid request", "details": exc.errors()}),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "Something went wrong" if settings.is_production else str(exc),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        timeout_keep_alive=settings.upload_timeout_seconds,
    )
