"""
Loyalty routers - /api/loyalty/*
"""

from .routes import router

__all__ = ["router"]
