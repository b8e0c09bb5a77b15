from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from omegaconf import DictConfig

from .configuration import load_settings, settings_summary
from .correlation_service import CorrelationService
from .dispatch_client import DispatchClient
from .errors import CorrelationError, MissingIdentifier, UnknownIdentifier
from .models import (
    CallbackAck,
    ErrorResponse,
    HealthResponse,
    ProcessTextResponse,
    RequestState,
    RequestStatusResponse,
)
from .utils import configure_logging, utc_timestamp

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def get_service(request: Request) -> CorrelationService:
    return request.app.state.service


def create_app(
    settings: Optional[DictConfig] = None,
    dispatch_client: Optional[Any] = None,
    service: Optional[CorrelationService] = None,
) -> FastAPI:
    settings = settings if settings is not None else load_settings()

    if service is None:
        dispatcher = dispatch_client or DispatchClient(
            settings.processor.webhook_url,
            timeout=settings.processor.request_timeout_s,
        )
        service = CorrelationService(dispatcher, timeout_ms=settings.correlation.timeout_ms)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.logging.level)
        logger.info(f"Text relay starting with settings: {settings_summary(settings)}")
        yield
        await app.state.service.aclose()

    app = FastAPI(title="Text Relay API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors.allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/api/process-text", response_model=ProcessTextResponse)
    async def process_text(request: Request, manager: CorrelationService = Depends(get_service)):
        try:
            body = await request.json()
        except ValueError:
            body = None

        text = body.get("text_to_analyze") if isinstance(body, dict) else None
        if not text:
            return _error(400, "Text input is required")

        try:
            result = await manager.submit(text)
        except CorrelationError as exc:
            logger.error(f"Error processing text: {exc.message}")
            return _error(500, exc.message or "Failed to process text")
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error processing text")
            return _error(500, str(exc) or "Failed to process text")
        return ProcessTextResponse(data=result)

    @app.post("/api/n8n-callback", response_model=CallbackAck)
    async def n8n_callback(request: Request, manager: CorrelationService = Depends(get_service)):
        try:
            body = await request.json()
        except ValueError:
            return _error(400, "Invalid JSON payload")

        try:
            manager.handle_callback(body)
        except MissingIdentifier as exc:
            return _error(400, exc.message)
        except UnknownIdentifier as exc:
            return _error(404, exc.message)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error processing callback")
            return _error(500, str(exc))
        return CallbackAck()

    @app.get("/api/health", response_model=HealthResponse)
    def health(manager: CorrelationService = Depends(get_service)) -> HealthResponse:
        return HealthResponse(
            timestamp=utc_timestamp(),
            pendingRequests=manager.health()["pendingCount"],
        )

    @app.get("/api/status/{request_id}", response_model=RequestStatusResponse)
    def request_status(request_id: str, manager: CorrelationService = Depends(get_service)) -> RequestStatusResponse:
        state = RequestState.PENDING if manager.status(request_id) else RequestState.COMPLETED_OR_NOT_FOUND
        return RequestStatusResponse(requestId=request_id, status=state)

    return app


app = create_app()


def serve() -> None:
    """Run the module-level app with uvicorn on the configured host and port."""
    settings = app.state.settings
    configure_logging(settings.logging.level)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)
