"""
Patient ownership as an explicit tagged variant.

A patient is always in exactly one of these states. ``owner_id`` is the user
currently responsible for the record and is what the API exposes as
``createdBy``; ``assigned_at`` is only set while an assignment is pending.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional, Union


@dataclass(frozen=True)
class Unassigned:
    state: ClassVar[str] = "unassigned"
    owner_id: ClassVar[Optional[str]] = None
    assigned_at: ClassVar[Optional[datetime]] = None


@dataclass(frozen=True)
class HeldByAdmin:
    admin_id: str
    state: ClassVar[str] = "held_by_admin"
    assigned_at: ClassVar[Optional[datetime]] = None

    @property
    def owner_id(self) -> str:
        return self.admin_id


@dataclass(frozen=True)
class HeldByDoctor:
    """Created by the doctor, or an assignment the doctor has already acted on."""
    doctor_id: str
    state: ClassVar[str] = "held_by_doctor"
    assigned_at: ClassVar[Optional[datetime]] = None

    @property
    def owner_id(self) -> str:
        return self.doctor_id


@dataclass(frozen=True)
class AssignedToDoctor:
    doctor_id: str
    assigned_at: datetime
    state: ClassVar[str] = "assigned"

    @property
    def owner_id(self) -> str:
        return self.doctor_id


Ownership = Union[Unassigned, HeldByAdmin, HeldByDoctor, AssignedToDoctor]


def from_columns(state: Optional[str], owner_id: Optional[str], assigned_at: Optional[datetime]) -> Ownership:
    """Rebuild the variant from its persisted columns."""
    if state == HeldByAdmin.state and owner_id:
        return HeldByAdmin(owner_id)
    if state == AssignedToDoctor.state and owner_id and assigned_at:
        return AssignedToDoctor(owner_id, assigned_at)
    if state == HeldByDoctor.state and owner_id:
        return HeldByDoctor(owner_id)
    if not owner_id:
        return Unassigned()
    # Rows written without a state tag
    if assigned_at:
        return AssignedToDoctor(owner_id, assigned_at)
    return HeldByDoctor(owner_id)


def consume_assignment(ownership: Ownership) -> Ownership:
    """A recorded diagnosis turns a pending assignment into plain ownership."""
    if isinstance(ownership, AssignedToDoctor):
        return HeldByDoctor(ownership.doctor_id)
    return ownership
