import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from time import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.api import videos as videos_api
from app.api import webhooks as webhooks_api
from app.core.config import get_settings
from app.db.database import init_db
from app.services.mux_client import MuxClient

settings = get_settings()
logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    if not (settings.mux_token_id and settings.mux_token_secret):
        logger.warning("MUX_TOKEN_ID / MUX_TOKEN_SECRET missing; provider calls will be rejected")
    provider = MuxClient.from_settings(settings)
    if settings.mux_verify_on_startup:
        # Refuse to start with credentials the provider does not accept
        try:
            await provider.verify_credentials()
        except Exception:
            await provider.aclose()
            raise
    app.state.provider = provider
    logger.info("Video backend started (env=%s)", settings.app_env)
    yield
    await provider.aclose()


app = FastAPI(title="Video Hosting Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(videos_api.router)
app.include_router(webhooks_api.router)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "An internal server error occurred."})


@app.get("/")
def root():
    return {"message": "Video Hosting Backend API Running"}

@app.get("/health")
def health():
    return {
        "status": "OK",
        "message": "Video Upload Backend is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.middleware("http")
async def _log_requests(request, call_next):
    start = time()
    status = 'NA'
    try:
        response = await call_next(request)
        status = response.status_code
        return response
    finally:
        dur_ms = int((time() - start) * 1000)
        logger.info("%s %s -> %s %dms", request.method, request.url.path, status, dur_ms)
