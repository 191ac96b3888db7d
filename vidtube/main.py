import logging
import os
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidtube.config import settings
from vidtube.db.session import init_db
from vidtube.errors import RangeNotSatisfiable, ServiceError
from vidtube.middleware import LoggingMiddleware
from vidtube.routers import comments, history, search, subscriptions, users, videos
from vidtube.services.upload_service import AVATARS, THUMBNAILS, VIDEOS

log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
logging.basicConfig(
    level=log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logging.getLogger("uvicorn.access").setLevel(logging.INFO)
logging.getLogger("uvicorn").setLevel(logging.INFO)

if settings.log_sql:
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
else:
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

SERVER_ERROR = "Server error"

app = FastAPI(title="VidTube API", version="0.1.0", root_path=settings.root_path)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Added last so it wraps everything else, CORS preflights included
app.add_middleware(LoggingMiddleware)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    headers = None
    if isinstance(exc, RangeNotSatisfiable):
        headers = {"Content-Range": f"bytes */{exc.size}"}
    message = exc.message
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}", exc_info=exc)
        message = SERVER_ERROR
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception: {exc.__class__.__name__}: {str(exc)}",
        exc_info=True,
        extra={"path": str(request.url), "method": request.method}
    )
    return JSONResponse(status_code=500, content={"message": SERVER_ERROR})


app.include_router(videos.router, prefix="/api/videos", tags=["videos"])
app.include_router(comments.router, prefix="/api/comments", tags=["comments"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(subscriptions.router, prefix="/api/subscriptions", tags=["subscriptions"])
app.include_router(history.router, prefix="/api/history", tags=["history"])
app.include_router(search.router, prefix="/api/search", tags=["search"])


@app.on_event("startup")
async def startup_event():
    logger.info("🚀 Starting VidTube API server...")
    logger.info(f"🔗 Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else 'configured'}")
    for kind in (VIDEOS, THUMBNAILS, AVATARS):
        os.makedirs(os.path.join(settings.upload_dir, kind), exist_ok=True)
    logger.info(f"📁 Media store: {os.path.abspath(settings.upload_dir)}")
    if settings.auto_create_schema:
        await init_db()
        logger.info("🗄️ Database schema verified")
    logger.info("✅ Server started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("🛑 Shutting down server...")


@app.get("/health")
def health():
    return {"status": "ok"}


def run():
    import uvicorn

    uvicorn.run("vidtube.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
