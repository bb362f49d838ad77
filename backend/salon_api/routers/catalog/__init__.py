"""
Catalog routers - /api/products/*
"""

from .routes import router

__all__ = ["router"]
