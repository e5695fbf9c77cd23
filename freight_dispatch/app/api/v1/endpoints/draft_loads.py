"""
Draft Load API Endpoints.

The email extraction pipeline produces draft loads; a dispatcher reviews
them and approves them here.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.db.session import get_db
from freight_dispatch.app.schemas.draft import DraftApprovalResponse, DraftLoadApproval
from freight_dispatch.app.schemas.load import to_load_response
from freight_dispatch.app.core.guards import require_role, DISPATCH_ROLES
from freight_dispatch.app.services.audit import AuditAction, record_load_event
from freight_dispatch.app.services.draft_loads import approve_draft

router = APIRouter(prefix="/draft-loads", tags=["Draft Loads"])


@router.post("/approve", response_model=DraftApprovalResponse, status_code=status.HTTP_201_CREATED)
async def approve_draft_load(
    draft: DraftLoadApproval,
    current_user: dict = Depends(require_role(DISPATCH_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Create an OPEN load from a reviewed draft.

    Without customer_id the customer is matched from broker_name, then
    broker_mc_number; no match returns 422.
    """
    load, matched_by = await approve_draft(db, draft, dispatcher_id=current_user["user_id"])

    await record_load_event(
        db, AuditAction.DRAFT_APPROVED, load.id, current_user,
        metadata={
            "email_import_id": draft.email_import_id,
            "confidence_score": draft.confidence_score,
            "customer_match": matched_by,
            "provenance": draft.provenance,
        },
    )
    return DraftApprovalResponse(load=to_load_response(load), customer_match=matched_by)
