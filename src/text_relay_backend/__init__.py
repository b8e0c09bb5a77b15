"""
Text Relay Backend - request/callback bridge for an asynchronous text processor

This package provides a FastAPI-based web service that hands text to an
external asynchronous processor (an n8n workflow) and holds the caller's
HTTP request open until the processor posts its result back. It enables:

- Submitting text and blocking until the matching callback arrives
- Correlating callbacks to waiting callers by request identifier
- Expiring requests the processor never answers
- Health and per-request status reporting

Key Components:
    - main: FastAPI application factory and HTTP endpoint definitions
    - correlation_service: Submission, callback settlement and timeout policy
    - registry: Thread-safe map of pending requests with atomic take
    - continuation: Single-shot suspend/resume handle for a waiting caller
    - dispatch_client: Outbound httpx client for the processor webhook
    - configuration: Layered OmegaConf settings with .env support
    - models: Pydantic models for request/response bodies
    - errors: Correlation error taxonomy

Usage:
    Run the API server with:
        uvicorn text_relay_backend.main:app --host 0.0.0.0 --port 3000

    Or use the console script:
        text-relay-backend

Architecture Principles:
    - Pending state lives in process memory only
    - First settlement wins; callback and timeout race through one atomic take
    - One dispatch attempt per request, no retries
"""
