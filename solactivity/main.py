# main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.deps import close_activity_provider
from api.routes.activity import router as activity_router
from core.config import get_settings
from core.errors import ActivityError
from core.logger import get_logger, setup_logging

settings = get_settings()
setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)
logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_activity_provider()


app = FastAPI(
    title="Solana Activity API",
    description="Time-bucketed trading activity for Solana wallets and tokens",
    version="1.0.0",
    lifespan=lifespan,
)

# Routes
app.include_router(activity_router)


@app.exception_handler(ActivityError)
async def activity_error_handler(request: Request, exc: ActivityError):
    if exc.status_code >= 500:
        logger.error("Upstream failure", path=request.url.path, error=exc.code, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "InternalError", "message": "Unexpected server error"},
    )


# Health checks
@app.get("/healthz")
async def health():
    return {"status": "ok"}


@app.get("/readyz")
async def ready():
    return {"status": "ready", "provider": settings.ACTIVITY_PROVIDER}
