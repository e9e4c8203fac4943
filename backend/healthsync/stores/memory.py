"""Process-local storage. Used when no DATABASE_URL is configured, and in tests."""

import copy
import itertools
from typing import Any, Optional

from healthsync.ownership import Ownership
from healthsync.records import (
    DiagnosisRecord,
    NotificationRecord,
    OrganizationRecord,
    PasswordResetRecord,
    PatientRecord,
    UserRecord,
    new_id,
    utcnow,
)
from healthsync.stores.base import (
    NotificationStore,
    OrganizationStore,
    PasswordResetStore,
    PatientStore,
    Storage,
    UserStore,
)

# Breaks timestamp ties so "newest first" follows insertion order
_sequence = itertools.count()


class MemoryUserStore(UserStore):
    def __init__(self):
        self._users: dict[str, UserRecord] = {}

    async def get(self, user_id: str) -> Optional[UserRecord]:
        user = self._users.get(user_id)
        return copy.deepcopy(user) if user else None

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self._users.values():
            if user.email == email:
                return copy.deepcopy(user)
        return None

    async def create(self, email: str, password_hash: str, role: str, profile: dict) -> UserRecord:
        now = utcnow()
        user = UserRecord(
            id=new_id(),
            email=email,
            password_hash=password_hash,
            role=role,
            profile=dict(profile or {}),
            created_at=now,
            updated_at=now,
        )
        self._users[user.id] = user
        return copy.deepcopy(user)

    async def update(self, user_id, *, email=None, profile=None, password_hash=None) -> Optional[UserRecord]:
        user = self._users.get(user_id)
        if not user:
            return None
        if email is not None:
            user.email = email
        if profile is not None:
            user.profile = dict(profile)
        if password_hash is not None:
            user.password_hash = password_hash
        user.updated_at = utcnow()
        return copy.deepcopy(user)

    async def list_by_organization(self, org_id: str, role: Optional[str] = None) -> list[UserRecord]:
        return [
            copy.deepcopy(u)
            for u in self._users.values()
            if u.organization_id == str(org_id) and (role is None or u.role == role)
        ]


class MemoryOrganizationStore(OrganizationStore):
    def __init__(self):
        self._orgs: dict[str, OrganizationRecord] = {}

    async def get(self, org_id: str) -> Optional[OrganizationRecord]:
        org = self._orgs.get(org_id)
        return copy.deepcopy(org) if org else None

    async def list_all(self) -> list[OrganizationRecord]:
        return [copy.deepcopy(o) for o in self._orgs.values()]

    async def create(self, name: str, slug: str, admin: Optional[str] = None) -> OrganizationRecord:
        org = OrganizationRecord(id=new_id(), name=name, slug=slug, admin=admin, created_at=utcnow())
        self._orgs[org.id] = org
        return copy.deepcopy(org)

    async def count(self) -> int:
        return len(self._orgs)


class MemoryPatientStore(PatientStore):
    def __init__(self):
        self._patients: dict[str, PatientRecord] = {}
        self._order: dict[str, int] = {}

    def _newest_first(self, patients: list[PatientRecord]) -> list[PatientRecord]:
        return sorted(patients, key=lambda p: (p.created_at, self._order[p.id]), reverse=True)

    async def create(self, name, age, ownership: Ownership, icd11=None, disease=None) -> PatientRecord:
        now = utcnow()
        patient = PatientRecord(
            id=new_id(),
            name=name,
            age=age,
            ownership=ownership,
            icd11=icd11,
            disease=disease,
            created_at=now,
            updated_at=now,
        )
        self._patients[patient.id] = patient
        self._order[patient.id] = next(_sequence)
        return copy.deepcopy(patient)

    async def get(self, patient_id: str) -> Optional[PatientRecord]:
        patient = self._patients.get(patient_id)
        return copy.deepcopy(patient) if patient else None

    async def list_by_owner(self, owner_id: str, limit: int = 50) -> list[PatientRecord]:
        owned = [p for p in self._patients.values() if p.created_by == owner_id]
        return [copy.deepcopy(p) for p in self._newest_first(owned)[:limit]]

    async def list_with_diagnoses_by(self, author_id: str) -> list[PatientRecord]:
        matches = [
            p for p in self._patients.values()
            if any(d.created_by == author_id for d in p.diagnosis)
        ]
        return [copy.deepcopy(p) for p in self._newest_first(matches)]

    async def update_fields(self, patient_id: str, fields: dict[str, Any]) -> Optional[PatientRecord]:
        patient = self._patients.get(patient_id)
        if not patient:
            return None
        for key, value in fields.items():
            setattr(patient, key, value)
        patient.updated_at = utcnow()
        return copy.deepcopy(patient)

    async def set_ownership(self, patient_id: str, ownership: Ownership) -> Optional[PatientRecord]:
        patient = self._patients.get(patient_id)
        if not patient:
            return None
        patient.ownership = ownership
        patient.updated_at = utcnow()
        return copy.deepcopy(patient)

    async def append_diagnosis(
        self, patient_id: str, diagnosis: DiagnosisRecord, ownership: Ownership
    ) -> Optional[PatientRecord]:
        patient = self._patients.get(patient_id)
        if not patient:
            return None
        patient.diagnosis.append(copy.deepcopy(diagnosis))
        patient.ownership = ownership
        patient.updated_at = utcnow()
        return copy.deepcopy(patient)

    async def delete(self, patient_id: str) -> bool:
        self._order.pop(patient_id, None)
        return self._patients.pop(patient_id, None) is not None


class MemoryNotificationStore(NotificationStore):
    def __init__(self):
        self._notifications: dict[str, NotificationRecord] = {}
        self._order: dict[str, int] = {}

    def _owned(self, user_id: str) -> list[NotificationRecord]:
        return [n for n in self._notifications.values() if n.user_id == user_id]

    async def create(self, user_id, type, title, message, data=None) -> NotificationRecord:
        notification = NotificationRecord(
            id=new_id(),
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            timestamp=utcnow(),
            read=False,
            data=dict(data or {}),
        )
        self._notifications[notification.id] = notification
        self._order[notification.id] = next(_sequence)
        return copy.deepcopy(notification)

    async def list_for_user(self, user_id: str, limit: int = 100) -> list[NotificationRecord]:
        owned = sorted(
            self._owned(user_id),
            key=lambda n: (n.timestamp, self._order[n.id]),
            reverse=True,
        )
        return [copy.deepcopy(n) for n in owned[:limit]]

    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        notification = self._notifications.get(notification_id)
        if not notification or notification.user_id != user_id:
            return False
        notification.read = True
        notification.read_at = utcnow()
        return True

    async def mark_all_read(self, user_id: str) -> int:
        now = utcnow()
        count = 0
        for notification in self._owned(user_id):
            if not notification.read:
                notification.read = True
                notification.read_at = now
                count += 1
        return count

    async def delete(self, user_id: str, notification_id: str) -> bool:
        notification = self._notifications.get(notification_id)
        if not notification or notification.user_id != user_id:
            return False
        del self._notifications[notification_id]
        return True

    async def delete_all(self, user_id: str) -> int:
        owned = self._owned(user_id)
        for notification in owned:
            del self._notifications[notification.id]
        return len(owned)

    async def delete_by_patient(self, user_id: str, patient_id: str, type: str) -> bool:
        for notification in self._owned(user_id):
            if notification.type == type and notification.data.get("patientId") == patient_id:
                del self._notifications[notification.id]
                return True
        return False


class MemoryPasswordResetStore(PasswordResetStore):
    def __init__(self):
        self._resets: dict[str, PasswordResetRecord] = {}

    async def create(self, email, otp, expires_at) -> PasswordResetRecord:
        reset = PasswordResetRecord(id=new_id(), email=email, otp=otp, expires_at=expires_at, created_at=utcnow())
        self._resets[reset.id] = reset
        return copy.deepcopy(reset)

    async def find_valid(self, email, otp, now) -> Optional[PasswordResetRecord]:
        for reset in self._resets.values():
            if reset.email == email and reset.otp == otp and not reset.used and reset.expires_at > now:
                return copy.deepcopy(reset)
        return None

    async def mark_used(self, reset_id: str) -> bool:
        reset = self._resets.get(reset_id)
        if not reset or reset.used:
            return False
        reset.used = True
        reset.used_at = utcnow()
        return True


def create_memory_storage() -> Storage:
    return Storage(
        backend="memory",
        users=MemoryUserStore(),
        organizations=MemoryOrganizationStore(),
        patients=MemoryPatientStore(),
        notifications=MemoryNotificationStore(),
        password_resets=MemoryPasswordResetStore(),
    )
