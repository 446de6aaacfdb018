from typing import Any

from pydantic import BaseModel


class ChatContext(BaseModel):
    searchQuery: str | None = None
    products: list[dict[str, Any]] | None = None


class ChatRequest(BaseModel):
    # Validated by the gateway so every malformed conversation gets the same 400
    messages: Any = None
    context: ChatContext | None = None


class ChatResponse(BaseModel):
    reply: str
