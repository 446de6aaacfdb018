from fastapi import APIRouter

from lucid_api.api.chat import router as chat_router
from lucid_api.api.diagnose import router as diagnose_router
from lucid_api.api.search import router as search_router

api_router = APIRouter(prefix="/api")
api_router.include_router(search_router)
api_router.include_router(chat_router)
api_router.include_router(diagnose_router)
