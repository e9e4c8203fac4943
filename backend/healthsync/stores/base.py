"""
Storage interfaces consumed by the services.

Two implementations exist: ``SqlStorage`` (durable, SQLAlchemy async) and
``MemoryStorage`` (process-local). ``build_storage`` picks one at startup.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from healthsync.ownership import Ownership
from healthsync.records import (
    DiagnosisRecord,
    NotificationRecord,
    OrganizationRecord,
    PasswordResetRecord,
    PatientRecord,
    UserRecord,
)


class UserStore(ABC):
    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def create(self, email: str, password_hash: str, role: str, profile: dict) -> UserRecord:
        ...

    @abstractmethod
    async def update(
        self,
        user_id: str,
        *,
        email: Optional[str] = None,
        profile: Optional[dict] = None,
        password_hash: Optional[str] = None,
    ) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def list_by_organization(self, org_id: str, role: Optional[str] = None) -> list[UserRecord]:
        ...


class OrganizationStore(ABC):
    @abstractmethod
    async def get(self, org_id: str) -> Optional[OrganizationRecord]:
        ...

    @abstractmethod
    async def list_all(self) -> list[OrganizationRecord]:
        ...

    @abstractmethod
    async def create(self, name: str, slug: str, admin: Optional[str] = None) -> OrganizationRecord:
        ...

    @abstractmethod
    async def count(self) -> int:
        ...


class PatientStore(ABC):
    @abstractmethod
    async def create(
        self,
        name: str,
        age: Optional[int],
        ownership: Ownership,
        icd11: Optional[str] = None,
        disease: Optional[str] = None,
    ) -> PatientRecord:
        ...

    @abstractmethod
    async def get(self, patient_id: str) -> Optional[PatientRecord]:
        ...

    @abstractmethod
    async def list_by_owner(self, owner_id: str, limit: int = 50) -> list[PatientRecord]:
        """Patients whose current owner is ``owner_id``, newest first."""

    @abstractmethod
    async def list_with_diagnoses_by(self, author_id: str) -> list[PatientRecord]:
        """Patients holding at least one diagnosis written by ``author_id``."""

    @abstractmethod
    async def update_fields(self, patient_id: str, fields: dict[str, Any]) -> Optional[PatientRecord]:
        ...

    @abstractmethod
    async def set_ownership(self, patient_id: str, ownership: Ownership) -> Optional[PatientRecord]:
        """Overwrite the owner. Last write wins."""

    @abstractmethod
    async def append_diagnosis(
        self, patient_id: str, diagnosis: DiagnosisRecord, ownership: Ownership
    ) -> Optional[PatientRecord]:
        ...

    @abstractmethod
    async def delete(self, patient_id: str) -> bool:
        ...


class NotificationStore(ABC):
    @abstractmethod
    async def create(
        self, user_id: str, type: str, title: str, message: str, data: Optional[dict] = None
    ) -> NotificationRecord:
        ...

    @abstractmethod
    async def list_for_user(self, user_id: str, limit: int = 100) -> list[NotificationRecord]:
        ...

    @abstractmethod
    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        ...

    @abstractmethod
    async def mark_all_read(self, user_id: str) -> int:
        ...

    @abstractmethod
    async def delete(self, user_id: str, notification_id: str) -> bool:
        ...

    @abstractmethod
    async def delete_all(self, user_id: str) -> int:
        ...

    @abstractmethod
    async def delete_by_patient(self, user_id: str, patient_id: str, type: str) -> bool:
        ...


class PasswordResetStore(ABC):
    @abstractmethod
    async def create(self, email: str, otp: str, expires_at: datetime) -> PasswordResetRecord:
        ...

    @abstractmethod
    async def find_valid(self, email: str, otp: str, now: datetime) -> Optional[PasswordResetRecord]:
        """An unused code for ``email`` that expires after ``now``."""

    @abstractmethod
    async def mark_used(self, reset_id: str) -> bool:
        ...


@dataclass
class Storage:
    backend: str
    users: UserStore
    organizations: OrganizationStore
    patients: PatientStore
    notifications: NotificationStore
    password_resets: PasswordResetStore

    async def close(self) -> None:
        pass
