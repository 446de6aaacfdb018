"""Shopping assistant chat: forwards the conversation to the chat provider."""

from fastapi import APIRouter, Depends

from lucid_api.core.dependencies import get_gateway, json_body
from lucid_api.gateway.gateway import ShoppingGateway
from lucid_api.schemas.chat import ChatRequest, ChatResponse
from lucid_api.schemas.common import ErrorResponse

router = APIRouter(tags=["chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def chat(
    body: ChatRequest = Depends(json_body(ChatRequest)),
    gateway: ShoppingGateway = Depends(get_gateway),
):
    context = body.context.model_dump(exclude_none=True) if body.context else None
    reply = await gateway.chat(body.messages, context=context)
    return {"reply": reply}
