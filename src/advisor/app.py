"""FastAPI application for the venture advisor agents.

This is the main entry point for the advisor API server.
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .agent.api import router as agent_router
from .agent.app import AdvisorApp
from .core.config import AdvisorSettings
from .core.error_sanitizer import sanitize_error_message

load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Handles startup and shutdown events:
    - Startup: Build the advisor services and probe providers
    - Shutdown: Close provider clients
    """
    logger.info("Starting advisor API...")
    advisor = AdvisorApp.create(AdvisorSettings())
    await advisor.start()
    app.state.advisor = advisor

    yield

    logger.info("Shutting down advisor API...")
    app.state.advisor = None
    await advisor.aclose()


app = FastAPI(
    title="Venture Advisor Agents API",
    description="""
Multi-agent assistant for founders.

Messages are routed to a research, financial, venture launch or general
agent. Each agent answers through the first healthy LLM provider and
falls back to canned guidance when every provider is down.
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)

app.include_router(agent_router)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    # Full error stays in the server log; the client gets the redacted text
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": sanitize_error_message(str(exc), "Internal server error")},
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Venture Advisor Agents API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Global health check."""
    return {"status": "healthy"}


# Entry point for running with uvicorn
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.advisor.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=False,
    )
