"""
Order routers - /api/orders/*
Grouping, totals, settlement and kitchen preparation of order lines.
"""

from .routes import router

__all__ = ["router"]
