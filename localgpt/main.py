"""FastAPI application entry point.

Serves the assistant core over localhost so an editor plugin can resolve
prompts, retrieve context and run actions.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import (
    actions_router,
    context_router,
    health_router,
    prompts_router,
    tags_router,
    tokens_router,
)
from .config import get_settings
from .core import DocumentNotFoundError, LLMError, LocalGPTError, get_logger
from .session import get_session

logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown logic."""
    logger.info(
        "Starting local GPT assistant",
        vault_dir=str(settings.vault_dir),
        ollama_url=settings.ollama_base_url,
        embedding_model=settings.embedding_model,
        generation_model=settings.generation_model,
    )
    yield
    aborted = get_session().abort_all()
    logger.info("Shutting down local GPT assistant", aborted_actions=aborted)


app = FastAPI(
    title="Local GPT Assistant",
    description="Prompt templating and linked-document retrieval for a local writing assistant",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Editor plugins call from the app:// origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["app://obsidian.md", "http://localhost", "http://127.0.0.1"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status_code(exc: LocalGPTError) -> int:
    if isinstance(exc, DocumentNotFoundError):
        return 404
    if isinstance(exc, LLMError):
        return 503
    return 500


# Global exception handler
@app.exception_handler(LocalGPTError)
async def local_gpt_exception_handler(request: Request, exc: LocalGPTError) -> JSONResponse:
    """Handle assistant specific errors."""
    status_code = _status_code(exc)
    logger.error(
        "Request error",
        path=request.url.path,
        status_code=status_code,
        error=exc.message,
        details=exc.details,
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.message,
            "details": exc.details,
        },
    )


# Include routers
app.include_router(health_router, prefix="/api")
app.include_router(prompts_router, prefix="/api")
app.include_router(context_router, prefix="/api")
app.include_router(actions_router, prefix="/api")
app.include_router(tags_router, prefix="/api")
app.include_router(tokens_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "localgpt.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
