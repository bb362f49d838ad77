"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class and AuditMixin
- table: Table, TableOccupant
- customer: Customer, StaffMember
- catalog: Product
- order: Order, OrderLine
- consumer: OccupantConsumer, SharedConsumer (who a line is attributed to)
- billing: Settlement, SettlementItem
- approval: ApprovalRequest
- outbox: OutboxEvent
"""

# Base classes
from .base import Base, AuditMixin

# Seating
from .table import Table, TableOccupant

# People
from .customer import Customer, StaffMember

# Catalog
from .catalog import Product

# Orders
from .order import Order, OrderLine
from .consumer import Consumer, OccupantConsumer, SharedConsumer, SHARED

# Billing
from .billing import Settlement, SettlementItem

# Approvals
from .approval import ApprovalRequest

# Transactional outbox
from .outbox import OutboxEvent, OutboxStatus

__all__ = [
    "Base",
    "AuditMixin",
    "Table",
    "TableOccupant",
    "Customer",
    "StaffMember",
    "Product",
    "Order",
    "OrderLine",
    "Consumer",
    "OccupantConsumer",
    "SharedConsumer",
    "SHARED",
    "Settlement",
    "SettlementItem",
    "ApprovalRequest",
    "OutboxEvent",
    "OutboxStatus",
]
