"""
Centralized exceptions for consistent error handling.

Every exception carries a machine-readable ``kind``, a user-facing ``detail``
and a ``context`` dict (offending field, entity ids) so callers never parse
message strings. Each one logs itself on construction.

Usage:
    from shared.utils.exceptions import NotFoundError, ValidationError

    raise NotFoundError("Produto", product_id)
    raise ValidationError("Quantidade inválida", field="quantity", value=0)
"""

from typing import Any, Final

from fastapi import HTTPException, status

from shared.config.logging import get_logger
from shared.utils.schemas import ErrorOutput

logger = get_logger(__name__)


class ErrorKind:
    """Machine-readable error kinds."""

    VALIDATION: Final[str] = "ValidationError"
    NOT_FOUND: Final[str] = "NotFound"
    INSUFFICIENT_POINTS: Final[str] = "InsufficientPoints"
    AMBIGUOUS_PARTIAL_SETTLEMENT: Final[str] = "AmbiguousPartialSettlement"
    INCOMPLETE_ORDER_STATE: Final[str] = "IncompleteOrderState"
    NOT_PRIVILEGED: Final[str] = "NotPrivileged"
    ALREADY_RESOLVED: Final[str] = "AlreadyResolved"
    CONFLICT: Final[str] = "ConflictError"
    STORE_UNAVAILABLE: Final[str] = "StoreUnavailable"
    INTERNAL: Final[str] = "InternalError"


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions inherit from this class to ensure consistent
    logging and response format. ``context`` is returned to callers;
    ``log_context`` only goes to the log.
    """

    kind: str = ErrorKind.INTERNAL

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        context: dict[str, Any] | None = None,
        **log_context: Any,
    ):
        self.context: dict[str, Any] = dict(context or {})

        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, kind=self.kind, **{**self.context, **log_context})

        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def to_output(self) -> ErrorOutput:
        """Render as the typed error payload returned to callers."""
        return ErrorOutput(kind=self.kind, detail=self.detail, context=self.context)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Produto", 123)
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} com ID {entity_id} não encontrado"
        else:
            detail = f"{entity} não encontrado"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            context={"entity": entity, "entity_id": entity_id},
            **log_context,
        )


class TableNotFoundError(NotFoundError):
    def __init__(self, table_id: int | None = None, **log_context: Any):
        super().__init__("Mesa", table_id, **log_context)


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: int | None = None, **log_context: Any):
        super().__init__("Pedido", order_id, **log_context)


class OrderLineNotFoundError(NotFoundError):
    def __init__(self, line_id: int | None = None, **log_context: Any):
        super().__init__("Item do pedido", line_id, **log_context)


class CustomerNotFoundError(NotFoundError):
    def __init__(self, customer_id: int | None = None, **log_context: Any):
        super().__init__("Cliente", customer_id, **log_context)


class StaffNotFoundError(NotFoundError):
    def __init__(self, staff_id: int | None = None, **log_context: Any):
        super().__init__("Funcionário", staff_id, **log_context)


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int | None = None, **log_context: Any):
        super().__init__("Produto", product_id, **log_context)


class ApprovalRequestNotFoundError(NotFoundError):
    def __init__(self, request_id: int | None = None, **log_context: Any):
        super().__init__("Solicitação de aprovação", request_id, **log_context)


# =============================================================================
# 403 Forbidden Errors
# =============================================================================


class NotPrivilegedError(AppException):
    """
    The actor lacks a privileged role (403).

    Usage:
        raise NotPrivilegedError("resolver solicitações", actor_id=4, role="WAITER")
    """

    kind = ErrorKind.NOT_PRIVILEGED

    def __init__(self, action: str, actor_id: int | None = None, role: str | None = None, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Sem permissão para {action}",
            context={"actor_id": actor_id, "role": role},
            action=action,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("O desconto deve estar entre 0 e 100", field="discount_percent", value=150)
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, detail: str, field: str | None = None, **context: Any):
        ctx: dict[str, Any] = {"field": field} if field else {}
        ctx.update(context)
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            context=ctx,
        )


class InvalidTransitionError(ValidationError):
    """Invalid status transition."""

    def __init__(self, entity: str, from_status: str, to_status: str, **context: Any):
        detail = f"Transição inválida de '{from_status}' para '{to_status}' em {entity}"
        super().__init__(detail, field="status", from_status=from_status, to_status=to_status, **context)


# =============================================================================
# 422 Business Rule Errors
# =============================================================================


class InsufficientPointsError(AppException):
    """Loyalty balance does not cover the redemption."""

    kind = ErrorKind.INSUFFICIENT_POINTS

    def __init__(self, customer_id: int, required: int, available: int):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Pontos insuficientes: necessário {required}, disponível {available}",
            context={"customer_id": customer_id, "required": required, "available": available},
        )


class AmbiguousPartialSettlementError(AppException):
    """The shared line was merged with other lines of the same product."""

    kind = ErrorKind.AMBIGUOUS_PARTIAL_SETTLEMENT

    def __init__(self, line_id: int, merged_line_ids: list[int]):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Item agrupado com outros lançamentos; pagamento parcial ambíguo",
            context={"line_id": line_id, "merged_line_ids": sorted(merged_line_ids)},
        )


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class IncompleteOrderStateError(AppException):
    """Items are still being prepared by the kitchen."""

    kind = ErrorKind.INCOMPLETE_ORDER_STATE

    def __init__(self, order_id: int, preparing_line_ids: list[int]):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Existem itens em preparo; aguarde a entrega antes de continuar",
            context={"order_id": order_id, "preparing_line_ids": sorted(preparing_line_ids)},
        )


class AlreadyResolvedError(AppException):
    """Approval request is no longer pending."""

    kind = ErrorKind.ALREADY_RESOLVED

    def __init__(self, request_id: int, current_status: str | None = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Solicitação {request_id} já foi resolvida",
            context={"request_id": request_id, "status": current_status},
        )


class ConflictError(AppException):
    """
    Concurrent modification persisted after the retry (409).

    Usage:
        raise ConflictError("settle_full")
    """

    kind = ErrorKind.CONFLICT

    def __init__(self, operation: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Os dados foram alterados por outra operação. Tente novamente.",
            context={"operation": operation},
            **log_context,
        )


# =============================================================================
# 503 Service Unavailable Errors
# =============================================================================


class StoreUnavailableError(AppException):
    """The ledger store could not be reached."""

    kind = ErrorKind.STORE_UNAVAILABLE

    def __init__(self, operation: str, retry_after: int | None = None, **log_context: Any):
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Banco de dados temporariamente indisponível",
            log_level="error",
            headers=headers,
            context={"operation": operation},
            **log_context,
        )
