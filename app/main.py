# Run from project root: uvicorn app.main:app --reload

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import router
from app.api.ws import drain_inflight, router as ws_router
from app.core.config import warn_missing_env
from app.core.session_store import SessionStore, create_redis
from app.services.agent_service import build_query_processor
from app.services.query_service import UnavailableProcessor

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    warn_missing_env()
    redis_client = None
    if not hasattr(app.state, "session_store"):
        redis_client = create_redis()
        app.state.session_store = SessionStore(redis_client)
    if not hasattr(app.state, "processor"):
        try:
            app.state.processor = build_query_processor()
        except Exception:
            logger.exception("Failed to initialize RAG pipeline")
            logger.info("Server will continue running with limited functionality")
            app.state.processor = UnavailableProcessor()
    yield
    await drain_inflight()
    if redis_client is not None:
        logger.info("Shutting down server...")
        await redis_client.aclose()


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


def register_error_handlers(target_app: FastAPI) -> None:
    """Every REST failure is returned as {"error": message} (plus "details" where useful)."""
    target_app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    target_app.add_exception_handler(RequestValidationError, _validation_exception_handler)


app = FastAPI(title="NewsChat AI API", lifespan=lifespan)
register_error_handlers(app)
app.include_router(router)
app.include_router(ws_router)
