"""Plain records passed between the stores, services and routers."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from healthsync.ownership import Ownership, Unassigned

T = TypeVar("T")

ROLE_DOCTOR = "doctor"
ROLE_ORGANIZATION = "organization"
ROLES = (ROLE_DOCTOR, ROLE_ORGANIZATION)

PATIENT_ASSIGNED = "patient-assigned"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class UserRecord:
    id: str
    email: str
    password_hash: str
    role: str
    profile: dict = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def organization_id(self) -> Optional[str]:
        org_id = self.profile.get("organizationId")
        return str(org_id) if org_id else None


@dataclass
class OrganizationRecord:
    id: str
    name: str
    slug: str
    admin: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class DiagnosisRecord:
    id: str
    notes: str
    created_by: str
    created_at: datetime
    icd11: Optional[str] = None
    disease: Optional[str] = None


@dataclass
class PatientRecord:
    id: str
    name: str
    age: Optional[int]
    ownership: Ownership = field(default_factory=Unassigned)
    icd11: Optional[str] = None
    disease: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    diagnosis: list[DiagnosisRecord] = field(default_factory=list)

    @property
    def created_by(self) -> Optional[str]:
        return self.ownership.owner_id

    @property
    def assigned_at(self) -> Optional[datetime]:
        return self.ownership.assigned_at

    @property
    def ownership_state(self) -> str:
        return self.ownership.state


@dataclass
class NotificationRecord:
    id: str
    user_id: str
    type: str
    title: str
    message: str
    timestamp: datetime
    read: bool = False
    read_at: Optional[datetime] = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class Outcome(Generic[T]):
    """Primary result plus warnings from best-effort side effects."""
    result: T
    side_effect_warnings: list[str] = field(default_factory=list)


@dataclass
class PasswordResetRecord:
    id: str
    email: str
    otp: str
    expires_at: datetime
    created_at: datetime
    used: bool = False
    used_at: Optional[datetime] = None
