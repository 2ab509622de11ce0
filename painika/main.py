"""Main FastAPI application."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from painika import __version__
from painika.api.endpoints import router
from painika.services.session_manager import SessionRegistry
from painika.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    logger.info("Shutting down, closing sessions")
    await app.state.sessions.close_all()


app = FastAPI(
    title="Painika",
    description="A conversational coding assistant that runs shell and filesystem tools on the local machine.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Session", "description": "Create and delete assistant sessions."},
        {"name": "Conversation", "description": "Send messages, stream replies and inspect the transcript."},
        {"name": "Tools", "description": "List and run the assistant's local tools."},
        {"name": "Health", "description": "Service health monitoring and status checks."},
    ],
)

app.state.sessions = SessionRegistry()

app.include_router(router)


def run() -> None:
    """Console entry point for the API server."""
    import uvicorn

    setup_logging()
    port = int(os.getenv("PORT", "3000"))
    logger.info(f"Painika server starting on port {port}")
    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=port, log_level="info")


if __name__ == "__main__":
    run()
