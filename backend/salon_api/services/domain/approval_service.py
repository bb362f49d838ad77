"""
Approval Gateway Domain Service.

Sensitive mutations (line discounts, force-releasing a table) go through
``request_action``:

- privileged actors (SUPERADMIN, ADMIN, MANAGER): executed immediately;
- everyone else: queued as a pending ApprovalRequest for a privileged
  approver to resolve.

Both branches validate the payload first, and an approved request runs
the same code path as an immediate execution. A request leaves ``pending``
exactly once: the status flip is a conditional UPDATE, and the action is
applied in the same unit of work, so a failed action leaves the request
pending.
"""

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from salon_api.models import ApprovalRequest, StaffMember
from salon_api.services.domain.order_service import OrderService
from salon_api.services.domain.table_service import TableService
from salon_api.services.events import EventType, write_approval_outbox_event
from shared.config.constants import PRIVILEGED_ROLES, ApprovalAction, ApprovalStatus, Limits
from shared.config.logging import approval_logger as logger, audit_gated_action
from shared.infrastructure.db import atomic
from shared.utils.exceptions import (
    AlreadyResolvedError,
    ApprovalRequestNotFoundError,
    NotPrivilegedError,
    StaffNotFoundError,
    ValidationError,
)
from shared.utils.schemas import (
    ActionOutcome,
    ApplyDiscountAction,
    ApprovalRequestOutput,
    FreeTableAction,
    GatedAction,
)


class ApprovalService:
    """Domain service for the manager-approval workflow."""

    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderService(db)
        self._tables = TableService(db)

    def get_staff(self, staff_id: int) -> StaffMember:
        staff = self._db.get(StaffMember, staff_id)
        if staff is None or not staff.is_active:
            raise StaffNotFoundError(staff_id)
        return staff

    # =========================================================================
    # Units of work
    # =========================================================================

    def request_action(self, actor_id: int, action: GatedAction) -> ActionOutcome:
        """
        Execute a gated action, or queue it when the actor is not privileged.
        """

        def _request() -> ActionOutcome:
            actor = self.get_staff(actor_id)
            target_id, payload = self._validate(action)

            if actor.is_privileged:
                self._apply(action.action_type, target_id, payload, actor.id)
                audit_gated_action(
                    "EXECUTED",
                    action.action_type,
                    actor_id=actor.id,
                    actor_role=actor.role,
                    target_id=target_id,
                    executed=True,
                )
                return ActionOutcome(action_type=action.action_type, executed=True, queued=False)

            request = ApprovalRequest(
                action_type=action.action_type,
                target_id=target_id,
                requested_by_id=actor.id,
                requester_role=actor.role,
                payload=payload,
                status=ApprovalStatus.PENDING,
            )
            self._db.add(request)
            self._db.flush()

            write_approval_outbox_event(
                self._db,
                EventType.APPROVAL_REQUESTED,
                request_id=request.id,
                action_type=request.action_type,
                target_id=target_id,
                requested_by_id=actor.id,
                notify_roles=sorted(PRIVILEGED_ROLES),
                extra_data={"payload": payload, "requester_role": actor.role},
            )
            audit_gated_action(
                "REQUESTED",
                action.action_type,
                actor_id=actor.id,
                actor_role=actor.role,
                target_id=target_id,
                executed=False,
                request_id=request.id,
            )
            return ActionOutcome(
                action_type=action.action_type,
                executed=False,
                queued=True,
                request_id=request.id,
            )

        return atomic(self._db, _request, name="request_action")

    def resolve_request(self, approver_id: int, request_id: int, decision: str) -> ApprovalRequestOutput:
        """
        Approve or reject a pending request.

        Approval applies the stored action through the privileged path.
        """

        def _resolve() -> ApprovalRequestOutput:
            approver = self.get_staff(approver_id)
            if not approver.is_privileged:
                raise NotPrivilegedError("resolver solicitações de aprovação", actor_id=approver.id, role=approver.role)
            if decision not in ApprovalStatus.DECISIONS:
                raise ValidationError(
                    "Decisão deve ser 'approved' ou 'rejected'",
                    field="decision",
                    value=decision,
                )

            request = self._db.get(ApprovalRequest, request_id)
            if request is None:
                raise ApprovalRequestNotFoundError(request_id)

            result = self._db.execute(
                update(ApprovalRequest)
                .where(
                    ApprovalRequest.id == request_id,
                    ApprovalRequest.status == ApprovalStatus.PENDING,
                )
                .values(
                    status=decision,
                    resolved_at=datetime.now(timezone.utc),
                    resolved_by_id=approver.id,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self._db.refresh(request)
                raise AlreadyResolvedError(request_id, request.status)
            self._db.refresh(request)

            if decision == ApprovalStatus.APPROVED:
                self._apply(request.action_type, request.target_id, request.payload, approver.id)

            write_approval_outbox_event(
                self._db,
                EventType.APPROVAL_RESOLVED,
                request_id=request.id,
                action_type=request.action_type,
                target_id=request.target_id,
                requested_by_id=request.requested_by_id,
                extra_data={"decision": decision, "resolved_by_id": approver.id},
            )
            audit_gated_action(
                decision.upper(),
                request.action_type,
                actor_id=approver.id,
                actor_role=approver.role,
                target_id=request.target_id,
                executed=decision == ApprovalStatus.APPROVED,
                request_id=request.id,
            )
            return self.to_output(request)

        return atomic(self._db, _resolve, name="resolve_request")

    # =========================================================================
    # Reads
    # =========================================================================

    def list_pending(self, limit: int = Limits.DEFAULT_PAGE_SIZE) -> list[ApprovalRequestOutput]:
        """Pending requests, oldest first."""
        limit = max(1, min(limit, Limits.MAX_PAGE_SIZE))
        requests = self._db.scalars(
            select(ApprovalRequest)
            .where(ApprovalRequest.status == ApprovalStatus.PENDING)
            .order_by(ApprovalRequest.created_at.asc(), ApprovalRequest.id.asc())
            .limit(limit)
        ).all()
        return [self.to_output(r) for r in requests]

    def get_request(self, request_id: int) -> ApprovalRequestOutput:
        request = self._db.get(ApprovalRequest, request_id)
        if request is None:
            raise ApprovalRequestNotFoundError(request_id)
        return self.to_output(request)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate(self, action: GatedAction) -> tuple[int, dict]:
        """Validate the payload and target. Returns (target_id, stored payload)."""
        if isinstance(action, ApplyDiscountAction):
            self._orders.validate_discount(action.line_id, action.discount_percent, action.reason)
            return action.line_id, {
                "discount_percent": action.discount_percent,
                "reason": action.reason,
            }
        if isinstance(action, FreeTableAction):
            self._tables.ensure_releasable(action.table_id)
            return action.table_id, {}
        raise ValidationError("Ação desconhecida", field="action_type")

    def _apply(self, action_type: str, target_id: int, payload: dict, actor_id: int) -> None:
        """Privileged path shared by immediate execution and approval."""
        if action_type == ApprovalAction.APPLY_DISCOUNT:
            self._orders.apply_discount(
                target_id,
                payload["discount_percent"],
                payload.get("reason"),
                actor_id=actor_id,
            )
        elif action_type == ApprovalAction.FREE_TABLE:
            self._tables.release_table(target_id, actor_id=actor_id)
        else:
            raise ValidationError("Ação desconhecida", field="action_type", value=action_type)
        logger.info("Gated action applied", action_type=action_type, target_id=target_id, actor_id=actor_id)

    @staticmethod
    def to_output(request: ApprovalRequest) -> ApprovalRequestOutput:
        return ApprovalRequestOutput(
            id=request.id,
            action_type=request.action_type,
            target_id=request.target_id,
            requested_by_id=request.requested_by_id,
            requester_role=request.requester_role,
            payload=request.payload or {},
            status=request.status,
            created_at=request.created_at,
            resolved_at=request.resolved_at,
            resolved_by_id=request.resolved_by_id,
        )
