from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from roadside.config import settings
from roadside.database import init_db, close_db, async_session_maker
from roadside.errors import RoadsideError
from roadside.services.background import BackgroundTasks
from roadside.services.geocoding_service import Geocoder
from roadside.services.image_store import ImageStore
from roadside.services.notification_service import Notifier
from roadside.api.v1 import services, providers, payments, notifications
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events"""
    # Startup
    logger.info("Starting up...")
    await init_db()
    tasks = BackgroundTasks()
    app.state.tasks = tasks
    app.state.notifier = Notifier(settings, async_session_maker, tasks)
    app.state.geocoder = Geocoder(settings)
    app.state.image_store = ImageStore(settings)
    yield
    # Shutdown
    logger.info("Shutting down...")
    await tasks.drain()
    await close_db()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

def error_response(status_code: int, message: str, kind: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "kind": kind}
    )

@app.exception_handler(RoadsideError)
async def roadside_exception_handler(request: Request, exc: RoadsideError):
    if exc.status_code >= 500:
        logger.warning("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message, exc.kind)

_HTTP_KINDS = {401: "Unauthorized", 403: "Forbidden", 404: "NotFound", 405: "MethodNotAllowed"}

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = error_response(exc.status_code, str(exc.detail), _HTTP_KINDS.get(exc.status_code, "HTTPError"))
    if exc.headers:
        response.headers.update(exc.headers)
    return response

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in errors
    ) or "Invalid input"
    return error_response(422, message, "ValidationError")

# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return error_response(500, "Internal server error", "InternalError")

# Health check
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION
    }

# Include routers
app.include_router(services.router, prefix=settings.API_V1_PREFIX)
app.include_router(providers.router, prefix=settings.API_V1_PREFIX)
app.include_router(payments.router, prefix=settings.API_V1_PREFIX)
app.include_router(notifications.router, prefix=settings.API_V1_PREFIX)

# Photos and QR codes written by the image store
app.mount(
    settings.UPLOAD_BASE_URL,
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads"
)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "roadside.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
