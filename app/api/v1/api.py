from fastapi import APIRouter
from app.api.v1.endpoints import cron, folios, notes, pages, public, shares, users

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(folios.router, prefix="/folios", tags=["folios"])
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])
api_router.include_router(pages.router, prefix="/pages", tags=["sharing"])
api_router.include_router(shares.router, prefix="/shares", tags=["sharing"])
api_router.include_router(public.router, prefix="/public", tags=["public"])
api_router.include_router(cron.router, prefix="/cron", tags=["cron"])
