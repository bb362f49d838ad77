"""
Approval router.

POST /api/approvals executes the action for privileged staff and queues it
for everyone else; the response says which happened.
"""

from fastapi import APIRouter, Depends

from salon_api.routers._common import Pagination, get_engine, get_pagination, require_staff_id, unwrap
from salon_api.services.engine import SalonEngine
from shared.utils.schemas import (
    ActionOutcome,
    ActionRequest,
    ApprovalRequestOutput,
    ResolveRequest,
)


router = APIRouter(prefix="/api/approvals", tags=["approvals"])


@router.post("", response_model=ActionOutcome)
def request_action(
    body: ActionRequest,
    engine: SalonEngine = Depends(get_engine),
    staff_id: int = Depends(require_staff_id),
) -> ActionOutcome:
    return unwrap(engine.request_action(staff_id, body.action))


@router.get("", response_model=list[ApprovalRequestOutput])
def list_pending(
    pagination: Pagination = Depends(get_pagination),
    engine: SalonEngine = Depends(get_engine),
) -> list[ApprovalRequestOutput]:
    """Pending requests, oldest first."""
    return unwrap(engine.list_pending(pagination.limit))


@router.post("/{request_id}/resolve", response_model=ApprovalRequestOutput)
def resolve_request(
    request_id: int,
    body: ResolveRequest,
    engine: SalonEngine = Depends(get_engine),
    staff_id: int = Depends(require_staff_id),
) -> ApprovalRequestOutput:
    return unwrap(engine.resolve_request(staff_id, request_id, body.decision))


@router.get("/{request_id}", response_model=ApprovalRequestOutput)
def get_request(
    request_id: int,
    engine: SalonEngine = Depends(get_engine),
) -> ApprovalRequestOutput:
    return unwrap(engine.get_approval_request(request_id))
