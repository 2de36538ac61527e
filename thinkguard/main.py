"""FastAPI application entry point for the thinking block guard."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from thinkguard.api.routes.messages import router as messages_router
from thinkguard.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup."""
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    logger.info(
        f"Thinking block guard started (debug_validator={settings.DEBUG_THINKING_VALIDATOR})"
    )
    yield


app = FastAPI(
    title="Thinking Block Guard",
    description="Pre-send transforms that keep assistant turns thinking-first",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


# Register message transform routes
app.include_router(messages_router)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """
    Handle unhandled exceptions with generic error response.

    Internal error details are logged, never returned to the client.
    """
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )
