"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api import health, proxy
from .core import KieImageEditor, OpenAIImageEditor, VisionAnalyzer
from .providers import AnthropicClient, KieClient, OpenAIImagesClient
from .utils.config import Config, load_config
from .utils.errors import ProxyError
from .utils.logger import get_logger

logger = get_logger(__name__)


def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Preloaded configuration; loaded from env + settings.yaml
            at startup when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for startup and shutdown.

        Loads configuration once, opens one HTTP client per provider whose
        key is present, closes them on shutdown.
        """
        logger.info("Application starting up...")

        app_config = config or load_config()
        app.state.config = app_config

        clients = []

        kie = None
        if app_config.kie_api_key:
            kie = KieClient(api_key=app_config.kie_api_key, settings=app_config.kie)
            await kie.initialize()
            clients.append(kie)
        app.state.kie_editor = KieImageEditor(kie, settings=app_config.kie) if kie else None

        anthropic = None
        if app_config.anthropic_api_key:
            anthropic = AnthropicClient(
                api_key=app_config.anthropic_api_key,
                settings=app_config.anthropic,
            )
            await anthropic.initialize()
            clients.append(anthropic)
        app.state.vision_analyzer = VisionAnalyzer(anthropic) if anthropic else None

        openai = None
        if app_config.openai_api_key:
            openai = OpenAIImagesClient(
                api_key=app_config.openai_api_key,
                settings=app_config.openai,
            )
            await openai.initialize()
            clients.append(openai)
        app.state.openai_editor = (
            OpenAIImageEditor(openai, settings=app_config.openai) if openai else None
        )

        logger.info(
            "Application startup complete",
            extra={
                "kie": kie is not None,
                "anthropic": anthropic is not None,
                "openai": openai is not None,
            }
        )

        try:
            yield
        finally:
            logger.info("Application shutting down...")
            for client in clients:
                await client.close()
            logger.info("Application shutdown complete")

    app = FastAPI(
        title="Inspection Proxy",
        description="Backend proxy for AI vision and image editing providers",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError):
        logger.error(
            f"{request.url.path} failed: {exc}",
            extra={"error_type": type(exc).__name__, "status": exc.http_status}
        )
        return JSONResponse(status_code=exc.http_status, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
        return JSONResponse(status_code=400, content={"error": f"Invalid request body: {detail}"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(proxy.router, prefix="/api", tags=["proxy"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"status": "ok", "message": "API is running"}

    return app


app = create_app()


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(
        "inspection_proxy.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 3000)),
        log_level="info",
    )
