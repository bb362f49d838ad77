"""
Table routers - /api/tables/*
Seating, transfers and adding lines to a table's tab.
"""

from .routes import router

__all__ = ["router"]
