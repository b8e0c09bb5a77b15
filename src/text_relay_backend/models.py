from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel


class RequestState(str, Enum):
    PENDING = "pending"
    COMPLETED_OR_NOT_FOUND = "completed_or_not_found"


class ProcessTextResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]


class CallbackAck(BaseModel):
    success: bool = True
    message: str = "Callback processed successfully"


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: str
    pendingRequests: int


class RequestStatusResponse(BaseModel):
    requestId: str
    status: RequestState
