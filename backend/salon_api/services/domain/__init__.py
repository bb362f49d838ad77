"""
Domain Services - Application Layer.

Services hold the business rules and own the unit of work. Public mutating
methods commit through ``shared.infrastructure.db.atomic``; methods
documented as steps run inside the caller's unit of work.

Structure:
    Router / CLI
        ↓
    SalonEngine (OperationResult facade)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Model (entity)

Usage:
    from salon_api.services.domain import SettlementService

    service = SettlementService(db)
    result = service.settle_full(order_id, tip_recipient_id=staff_id)
"""

from .catalog_service import CatalogService
from .order_service import OrderService
from .table_service import TableService
from .settlement_service import SettlementService
from .approval_service import ApprovalService
from .loyalty_service import LoyaltyService
from .report_service import ReportService

__all__ = [
    "CatalogService",
    "OrderService",
    "TableService",
    "SettlementService",
    "ApprovalService",
    "LoyaltyService",
    "ReportService",
]
