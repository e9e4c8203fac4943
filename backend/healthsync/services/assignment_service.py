"""
Assignment engine: moves a patient between an organization admin and a doctor.

Order of effects on assignment:
  1. patient ownership is overwritten (primary effect, last write wins)
  2. the "patient-assigned" notification is persisted
  3. the live push is attempted with the persisted notification id

A failure in 2 is logged and reported as a side-effect warning and skips 3.
Neither step can undo or fail step 1.
"""

from typing import Optional

import structlog

from healthsync.auth import UserPrincipal
from healthsync.exceptions import NotFound
from healthsync.ownership import AssignedToDoctor, HeldByAdmin
from healthsync.records import (
    PATIENT_ASSIGNED,
    ROLE_DOCTOR,
    Outcome,
    PatientRecord,
    utcnow,
)
from healthsync.services.notification_service import NotificationService
from healthsync.services.organization_service import OrganizationService
from healthsync.services.realtime_gateway import EVENT_PATIENT_ASSIGNED
from healthsync.stores.base import Storage

logger = structlog.get_logger(__name__)

ASSIGNMENT_TITLE = "New Patient Assigned"


class AssignmentService:
    def __init__(self, storage: Storage, organizations: OrganizationService, notifications: NotificationService):
        self.storage = storage
        self.organizations = organizations
        self.notifications = notifications

    async def assign_patient(
        self,
        requester: UserPrincipal,
        org_id: str,
        patient_id: str,
        doctor_id: Optional[str],
    ) -> Outcome[PatientRecord]:
        org = await self.organizations.get_administered(requester, org_id)

        patient = await self.storage.patients.get(patient_id)
        if not patient:
            raise NotFound("patient not found")
        await self._check_previous_owner(patient, org.id, requester)

        if not doctor_id:
            updated = await self.storage.patients.set_ownership(patient_id, HeldByAdmin(requester.id))
            if not updated:
                raise NotFound("patient not found")
            logger.info("patient_unassigned", patient_id=patient_id, org_id=org.id, admin_id=requester.id)
            return Outcome(updated)

        doctor = await self.storage.users.get(str(doctor_id))
        if not doctor or doctor.role != ROLE_DOCTOR or doctor.organization_id != str(org.id):
            raise NotFound("doctor not found in organization")

        assigned_by = await self._admin_display_name(requester)
        assigned_at = utcnow()
        updated = await self.storage.patients.set_ownership(patient_id, AssignedToDoctor(doctor.id, assigned_at))
        if not updated:
            raise NotFound("patient not found")
        logger.info("patient_assigned", patient_id=patient_id, org_id=org.id, doctor_id=doctor.id)

        warnings: list[str] = []
        message = f"{updated.name} (age {updated.age}) has been assigned to you by {org.name}"
        data = {
            "patientId": updated.id,
            "patientName": updated.name,
            "patientAge": updated.age,
            "assignedBy": assigned_by,
            "organizationName": org.name,
        }

        try:
            notification = await self.notifications.create(
                doctor.id, PATIENT_ASSIGNED, ASSIGNMENT_TITLE, message, data
            )
        except Exception as exc:
            # The ownership change stands without its notification
            logger.warning("assignment_notification_failed", patient_id=patient_id, doctor_id=doctor.id, error=str(exc))
            warnings.append(f"notification not persisted: {exc}")
            return Outcome(updated, warnings)

        payload = dict(data, timestamp=notification.timestamp, message=message)
        await self.notifications.dispatch(notification, EVENT_PATIENT_ASSIGNED, payload)
        return Outcome(updated, warnings)

    async def _admin_display_name(self, requester: UserPrincipal) -> str:
        admin = await self.storage.users.get(requester.id)
        if admin:
            profile = admin.profile or {}
            return profile.get("admin") or profile.get("name") or admin.email
        return requester.email or requester.id

    async def _check_previous_owner(self, patient: PatientRecord, org_id: str, requester: UserPrincipal) -> None:
        """Patients are not scoped to an organization; flag a takeover from outside this one."""
        owner_id = patient.created_by
        if not owner_id or owner_id == requester.id:
            return
        owner = await self.storage.users.get(owner_id)
        if owner is None or owner.organization_id != str(org_id):
            logger.warning(
                "patient_taken_from_other_organization",
                patient_id=patient.id,
                org_id=org_id,
                previous_owner_id=owner_id,
            )
