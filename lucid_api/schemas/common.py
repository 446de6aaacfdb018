from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str
    message: str


class DiagnoseResponse(BaseModel):
    server: dict[str, Any]
    search: dict[str, Any]
    chat: dict[str, Any]
    connectivity: dict[str, Any]
    rate_limit: dict[str, Any]
