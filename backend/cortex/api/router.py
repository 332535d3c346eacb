"""API router that aggregates all routes."""

from fastapi import APIRouter

from cortex.api.routes import auth, chat, drive, files, health, users

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(drive.router)
api_router.include_router(files.router)
api_router.include_router(chat.router)
