"""
Approval routers - /api/approvals/*
Gated actions and their manager approval queue.
"""

from .routes import router

__all__ = ["router"]
