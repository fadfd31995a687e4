"""
Router principal de l'API HTTP (la route WebSocket LSP est montée par main.create_app).
"""
from fastapi import APIRouter

from .routes import health

# Router principal
api_router = APIRouter()

api_router.include_router(health.router, prefix="", tags=["health"])
