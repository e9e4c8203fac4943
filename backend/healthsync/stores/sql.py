"""Durable storage on SQLAlchemy async sessions."""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Optional

import structlog
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from healthsync.database import create_engine, create_sessionmaker, create_tables
from healthsync.exceptions import ServiceUnavailable
from healthsync.models import Diagnosis, Notification, Organization, PasswordReset, Patient, User
from healthsync.ownership import Ownership, from_columns
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

logger = structlog.get_logger(__name__)


def _user_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        profile=dict(row.profile or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _organization_record(row: Organization) -> OrganizationRecord:
    return OrganizationRecord(id=row.id, name=row.name, slug=row.slug, admin=row.admin, created_at=row.created_at)


def _diagnosis_record(row: Diagnosis) -> DiagnosisRecord:
    return DiagnosisRecord(
        id=row.id,
        notes=row.notes,
        created_by=row.created_by,
        created_at=row.created_at,
        icd11=row.icd11,
        disease=row.disease,
    )


def _patient_record(row: Patient) -> PatientRecord:
    return PatientRecord(
        id=row.id,
        name=row.name,
        age=row.age,
        ownership=from_columns(row.ownership, row.created_by, row.assigned_at),
        icd11=row.icd11,
        disease=row.disease,
        created_at=row.created_at,
        updated_at=row.updated_at,
        diagnosis=[_diagnosis_record(d) for d in row.diagnosis],
    )


def _notification_record(row: Notification) -> NotificationRecord:
    return NotificationRecord(
        id=row.id,
        user_id=row.user_id,
        type=row.type,
        title=row.title,
        message=row.message,
        timestamp=row.timestamp,
        read=bool(row.read),
        read_at=row.read_at,
        data=dict(row.data or {}),
    )


def _password_reset_record(row: PasswordReset) -> PasswordResetRecord:
    return PasswordResetRecord(
        id=row.id,
        email=row.email,
        otp=row.otp,
        expires_at=row.expires_at,
        created_at=row.created_at,
        used=bool(row.used),
        used_at=row.used_at,
    )


def _apply_ownership(row: Patient, ownership: Ownership) -> None:
    row.created_by = ownership.owner_id
    row.ownership = ownership.state
    row.assigned_at = ownership.assigned_at


class _SqlStore:
    def __init__(self, sessionmaker: async_sessionmaker):
        self._sessionmaker = sessionmaker

    @asynccontextmanager
    async def _session(self):
        try:
            async with self._sessionmaker() as session:
                yield session
        except (OperationalError, InterfaceError, OSError, asyncio.TimeoutError) as exc:
            logger.error("database_unavailable", error=str(exc))
            raise ServiceUnavailable("database unavailable") from exc


class SqlUserStore(_SqlStore, UserStore):
    async def get(self, user_id: str) -> Optional[UserRecord]:
        async with self._session() as session:
            row = await session.get(User, user_id)
            return _user_record(row) if row else None

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        async with self._session() as session:
            row = await session.scalar(select(User).where(User.email == email))
            return _user_record(row) if row else None

    async def create(self, email: str, password_hash: str, role: str, profile: dict) -> UserRecord:
        now = utcnow()
        profile = dict(profile or {})
        row = User(
            id=new_id(),
            email=email,
            password_hash=password_hash,
            role=role,
            profile=profile,
            organization_id=str(profile["organizationId"]) if profile.get("organizationId") else None,
            created_at=now,
            updated_at=now,
        )
        async with self._session() as session:
            session.add(row)
            await session.commit()
            return _user_record(row)

    async def update(self, user_id, *, email=None, profile=None, password_hash=None) -> Optional[UserRecord]:
        async with self._session() as session:
            row = await session.get(User, user_id)
            if not row:
                return None
            if email is not None:
                row.email = email
            if profile is not None:
                row.profile = dict(profile)
                org_id = profile.get("organizationId")
                row.organization_id = str(org_id) if org_id else None
            if password_hash is not None:
                row.password_hash = password_hash
            row.updated_at = utcnow()
            await session.commit()
            return _user_record(row)

    async def list_by_organization(self, org_id: str, role: Optional[str] = None) -> list[UserRecord]:
        query = select(User).where(User.organization_id == str(org_id))
        if role is not None:
            query = query.where(User.role == role)
        async with self._session() as session:
            result = await session.execute(query.order_by(User.created_at))
            return [_user_record(u) for u in result.scalars().all()]


class SqlOrganizationStore(_SqlStore, OrganizationStore):
    async def get(self, org_id: str) -> Optional[OrganizationRecord]:
        async with self._session() as session:
            row = await session.get(Organization, org_id)
            return _organization_record(row) if row else None

    async def list_all(self) -> list[OrganizationRecord]:
        async with self._session() as session:
            result = await session.execute(select(Organization).order_by(Organization.created_at))
            return [_organization_record(o) for o in result.scalars().all()]

    async def create(self, name: str, slug: str, admin: Optional[str] = None) -> OrganizationRecord:
        row = Organization(id=new_id(), name=name, slug=slug, admin=admin, created_at=utcnow())
        async with self._session() as session:
            session.add(row)
            await session.commit()
            return _organization_record(row)

    async def count(self) -> int:
        async with self._session() as session:
            return await session.scalar(select(func.count(Organization.id))) or 0


class SqlPatientStore(_SqlStore, PatientStore):
    async def create(self, name, age, ownership: Ownership, icd11=None, disease=None) -> PatientRecord:
        now = utcnow()
        row = Patient(
            id=new_id(),
            name=name,
            age=age,
            icd11=icd11,
            disease=disease,
            created_at=now,
            updated_at=now,
            diagnosis=[],
        )
        _apply_ownership(row, ownership)
        async with self._session() as session:
            session.add(row)
            await session.commit()
            return _patient_record(row)

    async def get(self, patient_id: str) -> Optional[PatientRecord]:
        async with self._session() as session:
            row = await session.get(Patient, patient_id)
            return _patient_record(row) if row else None

    async def list_by_owner(self, owner_id: str, limit: int = 50) -> list[PatientRecord]:
        query = (
            select(Patient)
            .where(Patient.created_by == owner_id)
            .order_by(Patient.created_at.desc())
            .limit(limit)
        )
        async with self._session() as session:
            result = await session.execute(query)
            return [_patient_record(p) for p in result.scalars().all()]

    async def list_with_diagnoses_by(self, author_id: str) -> list[PatientRecord]:
        query = (
            select(Patient)
            .where(Patient.diagnosis.any(Diagnosis.created_by == author_id))
            .order_by(Patient.created_at.desc())
        )
        async with self._session() as session:
            result = await session.execute(query)
            return [_patient_record(p) for p in result.scalars().all()]

    async def update_fields(self, patient_id: str, fields: dict[str, Any]) -> Optional[PatientRecord]:
        async with self._session() as session:
            row = await session.get(Patient, patient_id)
            if not row:
                return None
            for key, value in fields.items():
                setattr(row, key, value)
            row.updated_at = utcnow()
            await session.commit()
            return _patient_record(row)

    async def set_ownership(self, patient_id: str, ownership: Ownership) -> Optional[PatientRecord]:
        async with self._session() as session:
            row = await session.get(Patient, patient_id)
            if not row:
                return None
            _apply_ownership(row, ownership)
            row.updated_at = utcnow()
            await session.commit()
            return _patient_record(row)

    async def append_diagnosis(
        self, patient_id: str, diagnosis: DiagnosisRecord, ownership: Ownership
    ) -> Optional[PatientRecord]:
        async with self._session() as session:
            row = await session.get(Patient, patient_id)
            if not row:
                return None
            row.diagnosis.append(
                Diagnosis(
                    id=diagnosis.id,
                    icd11=diagnosis.icd11,
                    disease=diagnosis.disease,
                    notes=diagnosis.notes,
                    created_by=diagnosis.created_by,
                    created_at=diagnosis.created_at,
                )
            )
            _apply_ownership(row, ownership)
            row.updated_at = utcnow()
            await session.commit()
            return _patient_record(row)

    async def delete(self, patient_id: str) -> bool:
        async with self._session() as session:
            row = await session.get(Patient, patient_id)
            if not row:
                return False
            await session.delete(row)
            await session.commit()
            return True


class SqlNotificationStore(_SqlStore, NotificationStore):
    async def create(self, user_id, type, title, message, data=None) -> NotificationRecord:
        data = dict(data or {})
        row = Notification(
            id=new_id(),
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            timestamp=utcnow(),
            read=False,
            data=data,
            patient_id=str(data["patientId"]) if data.get("patientId") else None,
        )
        async with self._session() as session:
            session.add(row)
            await session.commit()
            return _notification_record(row)

    async def list_for_user(self, user_id: str, limit: int = 100) -> list[NotificationRecord]:
        query = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.timestamp.desc())
            .limit(limit)
        )
        async with self._session() as session:
            result = await session.execute(query)
            return [_notification_record(n) for n in result.scalars().all()]

    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        query = (
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(read=True, read_at=utcnow())
        )
        async with self._session() as session:
            result = await session.execute(query)
            await session.commit()
            return result.rowcount > 0

    async def mark_all_read(self, user_id: str) -> int:
        query = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True, read_at=utcnow())
        )
        async with self._session() as session:
            result = await session.execute(query)
            await session.commit()
            return result.rowcount or 0

    async def delete(self, user_id: str, notification_id: str) -> bool:
        query = delete(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
        async with self._session() as session:
            result = await session.execute(query)
            await session.commit()
            return result.rowcount > 0

    async def delete_all(self, user_id: str) -> int:
        async with self._session() as session:
            result = await session.execute(delete(Notification).where(Notification.user_id == user_id))
            await session.commit()
            return result.rowcount or 0

    async def delete_by_patient(self, user_id: str, patient_id: str, type: str) -> bool:
        query = (
            select(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.type == type,
                Notification.patient_id == patient_id,
            )
            .limit(1)
        )
        async with self._session() as session:
            row = await session.scalar(query)
            if not row:
                return False
            await session.delete(row)
            await session.commit()
            return True


class SqlPasswordResetStore(_SqlStore, PasswordResetStore):
    async def create(self, email, otp, expires_at) -> PasswordResetRecord:
        row = PasswordReset(id=new_id(), email=email, otp=otp, expires_at=expires_at, created_at=utcnow(), used=False)
        async with self._session() as session:
            session.add(row)
            await session.commit()
            return _password_reset_record(row)

    async def find_valid(self, email, otp, now) -> Optional[PasswordResetRecord]:
        query = (
            select(PasswordReset)
            .where(
                PasswordReset.email == email,
                PasswordReset.otp == otp,
                PasswordReset.used.is_(False),
                PasswordReset.expires_at > now,
            )
            .order_by(PasswordReset.created_at.desc())
            .limit(1)
        )
        async with self._session() as session:
            row = await session.scalar(query)
            return _password_reset_record(row) if row else None

    async def mark_used(self, reset_id: str) -> bool:
        query = (
            update(PasswordReset)
            .where(PasswordReset.id == reset_id, PasswordReset.used.is_(False))
            .values(used=True, used_at=utcnow())
        )
        async with self._session() as session:
            result = await session.execute(query)
            await session.commit()
            return result.rowcount > 0


@dataclass
class SqlStorage(Storage):
    engine: Optional[AsyncEngine] = None

    async def close(self) -> None:
        await self.engine.dispose()


async def create_sql_storage(database_url: str) -> Storage:
    engine = create_engine(database_url)
    await create_tables(engine)
    sessionmaker = create_sessionmaker(engine)
    storage = SqlStorage(
        backend="sql",
        users=SqlUserStore(sessionmaker),
        organizations=SqlOrganizationStore(sessionmaker),
        patients=SqlPatientStore(sessionmaker),
        notifications=SqlNotificationStore(sessionmaker),
        password_resets=SqlPasswordResetStore(sessionmaker),
        engine=engine,
    )
    return storage
