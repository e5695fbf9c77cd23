"""
Assignment merge.

Driver-first and truck-first assignment differ only in which field is
authoritative. Both build their change set here:

    merged[f] = existing[f] if existing[f] is set else advisory[f]

for every advisory field, while the authoritative field always takes the
value the dispatcher picked. A field the dispatcher already filled is never
overwritten by a suggestion.
"""

from dataclasses import dataclass, field as dc_field
from typing import Dict, List, Optional

from freight_dispatch.app.core.exceptions import DispatchValidationError


_TEAM_PARTNER = {"driver_id": "driver2_id", "driver2_id": "driver_id"}


@dataclass
class AssignmentPlan:
    """Fields to write, split into the chosen one and the auto-filled ones."""
    assigned_field: str
    changes: Dict[str, Optional[int]]
    auto_filled: List[str] = dc_field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.changes


def check_team_pairing(assignment: Dict[str, Optional[int]]) -> None:
    """
    Raises:
        DispatchValidationError: driver_id and driver2_id name the same driver
    """
    driver_id = assignment.get("driver_id")
    if driver_id is not None and driver_id == assignment.get("driver2_id"):
        raise DispatchValidationError(
            "A driver cannot be paired with themselves as team driver",
            details={"driver_id": driver_id, "driver2_id": driver_id},
        )


def merge_assignment(
    existing: Dict[str, Optional[int]],
    assigned_field: str,
    assigned_value: Optional[int],
    advisory: Optional[Dict[str, Optional[int]]] = None,
) -> AssignmentPlan:
    """
    Merge a dispatcher choice and resolver suggestions over the load's
    current assignment.

    Suggestions that would pair a driver with themselves are dropped rather
    than rejected.

    Raises:
        DispatchValidationError: the dispatcher's own choice breaks team pairing
    """
    merged = dict(existing)
    merged[assigned_field] = assigned_value
    check_team_pairing(merged)

    changes: Dict[str, Optional[int]] = {}
    if existing.get(assigned_field) != assigned_value:
        changes[assigned_field] = assigned_value

    auto_filled = []
    for name, suggestion in (advisory or {}).items():
        if name == assigned_field or suggestion is None:
            continue
        if existing.get(name) is not None:
            continue
        partner = _TEAM_PARTNER.get(name)
        if partner is not None and merged.get(partner) == suggestion:
            continue
        merged[name] = suggestion
        changes[name] = suggestion
        auto_filled.append(name)

    return AssignmentPlan(assigned_field=assigned_field, changes=changes, auto_filled=auto_filled)
