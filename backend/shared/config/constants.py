"""
Centralized constants for the backend application.

Usage:
    from shared.config.constants import Roles, PRIVILEGED_ROLES, OrderStatus

    if actor.role in PRIVILEGED_ROLES:
        ...

    if order.status == OrderStatus.OPEN:
        ...
"""

from typing import Final


# =============================================================================
# Staff Roles
# =============================================================================


class Roles:
    """Staff role constants."""

    SUPERADMIN: Final[str] = "SUPERADMIN"
    ADMIN: Final[str] = "ADMIN"
    MANAGER: Final[str] = "MANAGER"  # gerente
    CASHIER: Final[str] = "CASHIER"  # balcão
    WAITER: Final[str] = "WAITER"  # garçom
    KITCHEN: Final[str] = "KITCHEN"  # cozinha


# Roles allowed to perform gated mutations directly and to resolve approval requests
PRIVILEGED_ROLES: Final[frozenset[str]] = frozenset({Roles.SUPERADMIN, Roles.ADMIN, Roles.MANAGER})


# =============================================================================
# Entity Status Constants
# =============================================================================


class TableStatus:
    """Derived table status: a table is occupied while it has an open order."""

    FREE: Final[str] = "FREE"
    OCCUPIED: Final[str] = "OCCUPIED"


class OrderStatus:
    """Order (tab) status constants."""

    OPEN: Final[str] = "OPEN"
    SETTLED: Final[str] = "SETTLED"
    CANCELLED: Final[str] = "CANCELLED"


class LinePrepStatus:
    """Kitchen preparation status of an order line."""

    PENDING: Final[str] = "PENDING"
    PREPARING: Final[str] = "PREPARING"
    DELIVERED: Final[str] = "DELIVERED"

    # Lines in these states block a full closeout and a forced table release
    BLOCKS_CLOSEOUT: Final[frozenset[str]] = frozenset({PREPARING})


# Valid preparation transitions (from -> [allowed to states])
PREP_TRANSITIONS: Final[dict[str, list[str]]] = {
    LinePrepStatus.PENDING: [LinePrepStatus.PREPARING],
    LinePrepStatus.PREPARING: [LinePrepStatus.DELIVERED],
    LinePrepStatus.DELIVERED: [],  # Terminal state
}


class ApprovalStatus:
    """Approval request status constants."""

    PENDING: Final[str] = "pending"
    APPROVED: Final[str] = "approved"
    REJECTED: Final[str] = "rejected"

    DECISIONS: Final[list[str]] = [APPROVED, REJECTED]


class ApprovalAction:
    """Gated action types."""

    APPLY_DISCOUNT: Final[str] = "apply_discount"
    FREE_TABLE: Final[str] = "free_table"


class SettlementKind:
    """The three mutually-exclusive settlement flows."""

    FULL: Final[str] = "FULL"
    OCCUPANT: Final[str] = "OCCUPANT"
    PARTIAL: Final[str] = "PARTIAL"


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    # Quantity limits
    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 99

    # Discount limits (percent)
    MIN_DISCOUNT_PERCENT: Final[int] = 0
    MAX_DISCOUNT_PERCENT: Final[int] = 100

    # String lengths
    MAX_REASON_LENGTH: Final[int] = 500

    # Pagination defaults
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200


# Prefix and reason used for loyalty redemption lines
REDEMPTION_NAME_PREFIX: Final[str] = "[RESGATE]"
REDEMPTION_REASON_TEMPLATE: Final[str] = "Resgate de {points} pontos"
