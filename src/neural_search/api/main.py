"""FastAPI application for the Neural Search API."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from neural_search.api.routes.search import router as search_router
from neural_search.config import get_settings
from neural_search.core.errors import SEARCH_ERROR_MESSAGE, SearchError
from neural_search.core.search import SearchService, build_search_service

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def configure_logging(level: str = "INFO"):
    """Configure root logging for the API process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def server_error_message(request: Request, detail: str | None) -> str:
    """Prefer the error's own message, then the route's default."""
    return detail or getattr(request.state, "error_message", SEARCH_ERROR_MESSAGE)


async def handle_search_error(request: Request, exc: SearchError) -> JSONResponse:
    message = exc.message
    if exc.status_code >= 500:
        message = server_error_message(request, exc.detail)
        logger.error("%s %s failed: %s", request.method, request.url.path, message, exc_info=exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=exc.status_code, content={"message": message})


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s invalid request: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"message": "Invalid request"})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"message": server_error_message(request, str(exc))},
    )


def create_app(service: SearchService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Search service to serve; built from settings when omitted.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Neural Search API",
        description="Conversational web search with grounded, cited answers",
        version="0.1.0",
    )

    # Built once so every request shares one session store
    app.state.search_service = service or build_search_service(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SearchError, handle_search_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(search_router)

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Create app instance for uvicorn
app = create_app()
