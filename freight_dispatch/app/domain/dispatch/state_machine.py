"""
Load Status State Machine.

Defines which status changes a dispatcher may make and the side effects of
the special ones. Everything here is pure: it mutates the Load object it is
given and never talks to the database, so the caller decides when to commit.

Invoicing is modelled outside the status enum: `Load.locked_by_invoice`
(derived from `invoice_id`) freezes manual transitions, and INVOICED is only
entered through `attach_invoice`.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional

from freight_dispatch.app.core.exceptions import (
    DispatchValidationError,
    InvalidTransitionError,
    MissingRequiredPayloadError,
)
from freight_dispatch.app.models.load import Load, ASSIGNMENT_FIELDS
from freight_dispatch.app.models.load_enums import LoadStatus


_EXECUTION = (LoadStatus.IN_TRANSIT, LoadStatus.COMPLETED, LoadStatus.TONU, LoadStatus.CANCELLED)

TRANSITIONS: Dict[LoadStatus, FrozenSet[LoadStatus]] = {
    LoadStatus.OPEN: frozenset({
        LoadStatus.SCHEDULED, LoadStatus.IN_PICKUP_YARD, *_EXECUTION, LoadStatus.BROKERED,
    }),
    LoadStatus.SCHEDULED: frozenset({LoadStatus.IN_PICKUP_YARD, *_EXECUTION, LoadStatus.BROKERED}),
    LoadStatus.IN_PICKUP_YARD: frozenset({*_EXECUTION, LoadStatus.BROKERED}),
    LoadStatus.IN_TRANSIT: frozenset({LoadStatus.COMPLETED, LoadStatus.TONU, LoadStatus.CANCELLED, LoadStatus.BROKERED}),
    LoadStatus.COMPLETED: frozenset(),  # invoicing only
    LoadStatus.TONU: frozenset(),
    LoadStatus.CANCELLED: frozenset(),
    LoadStatus.INVOICED: frozenset(),
    LoadStatus.BROKERED: frozenset(_EXECUTION),
}

SINK_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)

# Board/UI ordering
STATUS_ORDER: List[LoadStatus] = list(LoadStatus)


@dataclass
class TransitionPayload:
    """Extra data a transition may carry. Only BROKERED uses it."""
    carrier_id: Optional[int] = None
    carrier_rate: Optional[float] = None


@dataclass
class TransitionOutcome:
    previous_status: LoadStatus
    new_status: LoadStatus
    changed_fields: Dict[str, object]
    cleared_assignments: bool = False


def check_carrier_rate(carrier_rate: Optional[float]) -> None:
    """
    Raises:
        DispatchValidationError: rate is negative, NaN or infinite
    """
    if carrier_rate is not None and (not math.isfinite(carrier_rate) or carrier_rate < 0):
        raise DispatchValidationError(
            "carrier_rate must be a non-negative number",
            # NaN and inf are not valid JSON
            details={"carrier_rate": carrier_rate if math.isfinite(carrier_rate) else str(carrier_rate)},
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sorted(statuses) -> List[LoadStatus]:
    return [status for status in STATUS_ORDER if status in statuses]


class LoadStateMachine:

    @staticmethod
    def transitions_from(status: LoadStatus) -> List[LoadStatus]:
        """Legal targets from a status, ignoring invoice locking."""
        return _sorted(TRANSITIONS.get(status, frozenset()))

    @staticmethod
    def available_transitions(load: Load) -> List[LoadStatus]:
        """
        Statuses a dispatcher may move this load to right now.

        Empty for sink states and for loads an invoice has been attached to.
        """
        if load.locked_by_invoice:
            return []
        return LoadStateMachine.transitions_from(load.status)

    @staticmethod
    def validate(load: Load, target: LoadStatus, payload: Optional[TransitionPayload] = None) -> None:
        """
        Raise if `target` cannot be applied to `load` with `payload`.

        Raises:
            InvalidTransitionError: target not reachable (or load invoice-locked)
            MissingRequiredPayloadError: BROKERED without carrier_id
            DispatchValidationError: negative or non-finite carrier_rate
        """
        payload = payload or TransitionPayload()

        if load.locked_by_invoice:
            raise InvalidTransitionError(
                load.status.value, target.value,
                reason=f"Load is locked by invoice {load.invoice_id}; status can no longer be changed manually",
            )

        if target not in TRANSITIONS.get(load.status, frozenset()):
            raise InvalidTransitionError(load.status.value, target.value)

        if target == LoadStatus.BROKERED:
            if payload.carrier_id is None:
                raise MissingRequiredPayloadError(target.value, ["carrier_id"])
            check_carrier_rate(payload.carrier_rate)

    @staticmethod
    def apply(load: Load, target: LoadStatus, payload: Optional[TransitionPayload] = None) -> TransitionOutcome:
        """
        Validate and apply a transition to the in-memory load.

        Brokering onto a different carrier clears the four assignment fields
        in the same change set; leaving BROKERED never touches carrier data.
        """
        payload = payload or TransitionPayload()
        LoadStateMachine.validate(load, target, payload)

        previous = load.status
        changes: Dict[str, object] = {"status": target}
        cleared = False

        if target == LoadStatus.BROKERED:
            if load.carrier_id != payload.carrier_id:
                for field in ASSIGNMENT_FIELDS:
                    if getattr(load, field) is not None:
                        changes[field] = None
                        cleared = True
            changes["carrier_id"] = payload.carrier_id
            if payload.carrier_rate is not None:
                changes["carrier_rate"] = payload.carrier_rate

        if target == LoadStatus.IN_PICKUP_YARD and load.picked_up_at is None:
            changes["picked_up_at"] = _utcnow()

        if target == LoadStatus.COMPLETED and load.delivered_at is None:
            changes["delivered_at"] = _utcnow()

        for field, value in changes.items():
            setattr(load, field, value)

        return TransitionOutcome(
            previous_status=previous,
            new_status=target,
            changed_fields=changes,
            cleared_assignments=cleared,
        )

    @staticmethod
    def attach_invoice(load: Load, invoice_id: int) -> TransitionOutcome:
        """
        Invoicing collaborator entry point: COMPLETED -> INVOICED.

        Once attached, the invoice locks the load against manual transitions.
        """
        if load.locked_by_invoice:
            raise InvalidTransitionError(
                load.status.value, LoadStatus.INVOICED.value,
                reason=f"Load already invoiced (invoice {load.invoice_id})",
            )
        if load.status != LoadStatus.COMPLETED:
            raise InvalidTransitionError(
                load.status.value, LoadStatus.INVOICED.value,
                reason=f"Only COMPLETED loads can be invoiced, current status: {load.status.value}",
            )

        previous = load.status
        load.invoice_id = invoice_id
        load.status = LoadStatus.INVOICED
        return TransitionOutcome(
            previous_status=previous,
            new_status=LoadStatus.INVOICED,
            changed_fields={"invoice_id": invoice_id, "status": LoadStatus.INVOICED},
        )
