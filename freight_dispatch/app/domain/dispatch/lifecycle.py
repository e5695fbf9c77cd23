"""
Load Lifecycle Service.

Persists state machine transitions: lock, validate, apply, commit. The state
machine itself stays pure; this module owns the transaction around it.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.core.exceptions import DispatchValidationError
from freight_dispatch.app.core.reliability import run_with_storage_retry
from freight_dispatch.app.domain.dispatch.persistence import commit_changes, lock_load, lock_row
from freight_dispatch.app.domain.dispatch.state_machine import (
    LoadStateMachine,
    TransitionOutcome,
    TransitionPayload,
)
from freight_dispatch.app.models.carrier import Carrier
from freight_dispatch.app.models.fleet_enums import CarrierStatus
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.models.load_enums import LoadStatus

logger = logging.getLogger(__name__)


async def transition(
    db: AsyncSession,
    load_id: int,
    target: LoadStatus,
    payload: Optional[TransitionPayload] = None,
) -> Tuple[Load, TransitionOutcome]:
    """
    Move a load to `target` and persist every resulting field change at once.

    Raises:
        ResourceNotFoundError: unknown load, or unknown carrier when brokering
        InvalidTransitionError: target not allowed from the current status
        MissingRequiredPayloadError: BROKERED without carrier_id
        DispatchValidationError: carrier not ACTIVE, negative carrier_rate
    """
    payload = payload or TransitionPayload()

    async def attempt() -> Tuple[Load, TransitionOutcome]:
        load = await lock_load(db, load_id)
        LoadStateMachine.validate(load, target, payload)

        if target == LoadStatus.BROKERED:
            carrier = await lock_row(db, Carrier, payload.carrier_id, "Carrier")
            if carrier.status != CarrierStatus.ACTIVE:
                raise DispatchValidationError(
                    "Carrier must be ACTIVE to accept brokered loads",
                    details={"carrier_id": carrier.id, "carrier_status": carrier.status.value},
                )

        outcome = LoadStateMachine.apply(load, target, payload)
        await commit_changes(db, load, {})
        logger.info(
            "Load %s: %s -> %s%s",
            load.id, outcome.previous_status.value, outcome.new_status.value,
            " (assignments cleared)" if outcome.cleared_assignments else "",
        )
        return load, outcome

    return await run_with_storage_retry(db, attempt, load_id)


async def attach_invoice(db: AsyncSession, load_id: int, invoice_id: int) -> Tuple[Load, TransitionOutcome]:
    """
    Record an invoice against a COMPLETED load and move it to INVOICED.

    Raises:
        ResourceNotFoundError: unknown load
        InvalidTransitionError: load not COMPLETED, or already invoiced
    """
    async def attempt() -> Tuple[Load, TransitionOutcome]:
        load = await lock_load(db, load_id)
        outcome = LoadStateMachine.attach_invoice(load, invoice_id)
        await commit_changes(db, load, {})
        logger.info("Load %s invoiced (invoice %s)", load.id, invoice_id)
        return load, outcome

    return await run_with_storage_retry(db, attempt, load_id)
