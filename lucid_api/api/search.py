"""Product search: LLM-backed recommendations in the canonical Product schema."""

from fastapi import APIRouter, Depends

from lucid_api.core.dependencies import get_gateway, json_body
from lucid_api.gateway.gateway import ShoppingGateway
from lucid_api.schemas.common import ErrorResponse
from lucid_api.schemas.search import SearchRequest, SearchResponse

router = APIRouter(tags=["search"])


@router.post(
    "/search",
    response_model=SearchResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def search_products(
    body: SearchRequest = Depends(json_body(SearchRequest)),
    gateway: ShoppingGateway = Depends(get_gateway),
):
    products = await gateway.search(body.query, price_filter=body.priceFilter)
    return {"products": [p.to_dict() for p in products]}
