"""FastAPI application for the GitHub auto-fix webhook receiver.

The app exposes a single endpoint, `POST {prefix}/github-webhook`. Every
other path answers 404 with a JSON error body.

Webhook responses:
- 200 {"status": "ok"} once the event has been dispatched
- 401 {"error": "Invalid signature"} when signature verification fails
- 500 {"error": "Internal server error"} when dispatch raises

Issue processing runs in the background through the admission queue, so
the receiver answers as soon as an issue has been admitted or queued.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import AutoFixSettings
from .service import AutoFixService

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-hub-signature-256"
EVENT_HEADER = "x-github-event"


def _redact_secret(value: Optional[str], visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters.

    Args:
        value: The secret value to redact, or None if unset.
        visible_chars: Number of characters to show at the start.

    Returns:
        Redacted string with asterisks replacing hidden characters.
    """
    if not value:
        return "<unset>"
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(
    settings: AutoFixSettings, service: AutoFixService, port: int
) -> None:
    """Log settings and configuration values with secrets redacted."""
    config = service.config
    logger.info("Auto-fix configuration:")
    logger.info("  GitHub Base URL: %s", settings.github_base_url)
    logger.info("  GitHub Token: %s", _redact_secret(settings.github_token))
    logger.info(
        "  GitHub Webhook Secret: %s",
        _redact_secret(settings.github_webhook_secret),
    )
    logger.info("  Webhook Endpoint: http://%s:%d%s", settings.host, port, settings.webhook_path)
    logger.info("  Config File: %s", service.store.path)
    logger.info(
        "  Repositories: %s",
        ", ".join(config.repositories) if config.repositories else "all",
    )
    logger.info("  Max Concurrent Issues: %d", config.max_concurrent_issues)
    logger.info("  SPARC Enabled: %s", config.sparc.enabled)
    logger.info("  Swarm Enabled: %s", config.swarm.enabled)


def create_app(service: AutoFixService, settings: AutoFixSettings) -> FastAPI:
    """Build the webhook receiver for a service instance.

    The lifespan starts the admission queue on startup and drains it on
    shutdown.

    Args:
        service: The per-process auto-fix service.
        settings: Process settings (webhook path prefix).

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("GitHub auto-fix webhook server starting up...")
        await service.start()
        service.webhook_running = True
        logger.info("Webhook server listening on %s", settings.webhook_path)

        yield

        logger.info("GitHub auto-fix webhook server shutting down...")
        service.webhook_running = False
        await service.shutdown()

    app = FastAPI(
        title="GitHub Auto-Fix",
        description="Automated analysis and fixing of GitHub issues",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.service = service

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        # Unknown paths and wrong methods both look like a missing route
        return JSONResponse(status_code=404, content={"error": "Not found"})

    @app.post(settings.webhook_path)
    async def github_webhook(request: Request):
        """GitHub webhook receiver endpoint.

        Verifies the signature over the raw body when a secret is
        configured, then dispatches the event by its X-GitHub-Event name.
        """
        body = await request.body()

        if not service.webhook_handler.verify_signature(
            body, request.headers.get(SIGNATURE_HEADER)
        ):
            logger.warning("Rejected webhook with invalid signature")
            return JSONResponse(status_code=401, content={"error": "Invalid signature"})

        event_name = request.headers.get(EVENT_HEADER, "")

        try:
            payload = json.loads(body)
            await service.handle_webhook_event(event_name, payload)
        except Exception:
            logger.exception("Webhook error for event %s", event_name or "<missing>")
            return JSONResponse(
                status_code=500, content={"error": "Internal server error"}
            )

        return {"status": "ok"}

    return app


async def serve(service: AutoFixService, settings: AutoFixSettings, port: int) -> None:
    """Run the webhook server until it is interrupted.

    uvicorn handles SIGINT/SIGTERM and runs the app's lifespan shutdown,
    which drains the admission queue.
    """
    _log_configuration(settings, service, port)
    app = create_app(service, settings)
    server = uvicorn.Server(
        uvicorn.Config(app, host=settings.host, port=port, log_config=None)
    )
    await server.serve()
