"""
Draft load approval.

Turns an extracted draft into an OPEN load. When the draft names a broker
instead of a customer id, the customer is matched by name first and by MC
number second.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.core.exceptions import DispatchValidationError
from freight_dispatch.app.models.carrier import Customer
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.schemas.draft import DraftLoadApproval
from freight_dispatch.app.services.load_creation import create_load

logger = logging.getLogger(__name__)

WORD_OVERLAP_THRESHOLD = 0.5


def match_customer_by_name(customers: Sequence[Customer], broker_name: str) -> Optional[Customer]:
    """
    Best customer for a free-text broker name.

    Tries, in order: exact (case-insensitive) name, containment either way,
    then the highest word-overlap score at or above WORD_OVERLAP_THRESHOLD.
    """
    normalized = broker_name.strip().lower()
    if not normalized:
        return None

    for customer in customers:
        if customer.company_name.lower() == normalized:
            return customer

    for customer in customers:
        name = customer.company_name.lower()
        if name in normalized or normalized in name:
            return customer

    broker_words = normalized.split()
    best, best_score = None, 0.0
    for customer in customers:
        customer_words = customer.company_name.lower().split()
        if not customer_words:
            continue
        overlap = sum(
            1 for word in broker_words
            if any(word in other or other in word for other in customer_words)
        )
        score = overlap / max(len(broker_words), len(customer_words))
        if score > best_score and score >= WORD_OVERLAP_THRESHOLD:
            best, best_score = customer, score
    return best


async def resolve_customer(db: AsyncSession, draft: DraftLoadApproval) -> Tuple[int, str]:
    """
    Customer id for a draft and how it was found.

    Raises:
        DispatchValidationError: no customer could be matched
    """
    if draft.customer_id is not None:
        return draft.customer_id, "explicit"

    result = await db.execute(select(Customer).where(Customer.is_active.is_(True)).order_by(Customer.id))
    customers = result.scalars().all()

    if draft.broker_name:
        customer = match_customer_by_name(customers, draft.broker_name)
        if customer is not None:
            return customer.id, "name"

    if draft.broker_mc_number:
        for customer in customers:
            if customer.mc_number == draft.broker_mc_number:
                return customer.id, "mc_number"

    raise DispatchValidationError(
        "Could not match the draft to a customer",
        details={"broker_name": draft.broker_name, "broker_mc_number": draft.broker_mc_number},
    )


async def approve_draft(
    db: AsyncSession, draft: DraftLoadApproval, dispatcher_id: Optional[int] = None
) -> Tuple[Load, str]:
    """Create an OPEN load from a reviewed draft."""
    customer_id, matched_by = await resolve_customer(db, draft)

    if draft.status and draft.status.upper() != "OPEN":
        logger.info("Ignoring draft status %s; approved drafts start OPEN", draft.status)

    reference_number = draft.reference_number or f"LOAD-{int(datetime.now(timezone.utc).timestamp() * 1000)}"
    load = await create_load(
        db,
        reference_number=reference_number,
        customer_id=customer_id,
        stops=draft.stops,
        dispatcher_id=dispatcher_id,
        email_import_id=draft.email_import_id,
        confidence_score=draft.confidence_score,
        rate_amount=draft.rate_amount,
        rate_type=draft.rate_type,
        loaded_miles=draft.loaded_miles,
        commodity=draft.commodity,
        weight=draft.weight,
        equipment_type=draft.equipment_type,
    )
    logger.info(
        "Approved draft (email import %s) as load %s, customer matched by %s",
        draft.email_import_id, load.id, matched_by,
    )
    return load, matched_by
