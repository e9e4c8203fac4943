import structlog

from healthsync.auth import UserPrincipal
from healthsync.exceptions import Forbidden, NotFound, ValidationError
from healthsync.ownership import consume_assignment
from healthsync.records import (
    PATIENT_ASSIGNED,
    DiagnosisRecord,
    Outcome,
    PatientRecord,
    new_id,
    utcnow,
)
from healthsync.services.notification_service import NotificationService
from healthsync.services.realtime_gateway import EVENT_DIAGNOSIS_ADDED, RealtimeGateway
from healthsync.stores.base import Storage

logger = structlog.get_logger(__name__)


class DiagnosisService:
    """Appends diagnosis entries and retires the pending assignment they answer."""

    def __init__(self, storage: Storage, notifications: NotificationService, gateway: RealtimeGateway):
        self.storage = storage
        self.notifications = notifications
        self.gateway = gateway

    async def add_diagnosis(
        self,
        requester: UserPrincipal,
        patient_id: str,
        notes: str = None,
        icd11: str = None,
        disease: str = None,
    ) -> Outcome[DiagnosisRecord]:
        if notes is None or str(notes).strip() == "":
            raise ValidationError("notes (text diagnosis) required")

        patient = await self.storage.patients.get(patient_id)
        if not patient:
            raise NotFound("patient not found")
        owner = patient.created_by
        if owner and owner != requester.id:
            raise Forbidden("forbidden")

        diagnosis = DiagnosisRecord(
            id=new_id(),
            notes=str(notes),
            created_by=requester.id,
            created_at=utcnow(),
            icd11=icd11 or None,
            disease=str(disease) if disease else None,
        )
        updated = await self.storage.patients.append_diagnosis(
            patient_id, diagnosis, consume_assignment(patient.ownership)
        )
        if not updated:
            raise NotFound("patient not found")
        logger.info("diagnosis_added", patient_id=patient_id, diagnosis_id=diagnosis.id, doctor_id=requester.id)

        warnings: list[str] = []
        try:
            await self.notifications.delete_by_patient(requester.id, patient_id, PATIENT_ASSIGNED)
        except Exception as exc:
            logger.warning("assignment_notification_cleanup_failed", patient_id=patient_id, error=str(exc))
            warnings.append(f"assignment notification not cleared: {exc}")

        await self.gateway.send(
            requester.id,
            EVENT_DIAGNOSIS_ADDED,
            {"patientId": patient_id, "diagnosisId": diagnosis.id},
        )
        return Outcome(diagnosis, warnings)

    async def list_for_patient(self, patient_id: str) -> list[DiagnosisRecord]:
        patient = await self.storage.patients.get(patient_id)
        if not patient:
            raise NotFound("patient not found")
        return patient.diagnosis

    async def list_authored_by(self, requester: UserPrincipal) -> list[tuple[PatientRecord, DiagnosisRecord]]:
        """Every diagnosis the caller wrote, newest first."""
        entries = []
        for patient in await self.storage.patients.list_with_diagnoses_by(requester.id):
            for entry in patient.diagnosis:
                if entry.created_by == requester.id:
                    entries.append((patient, entry))
        entries.sort(key=lambda pair: pair[1].created_at, reverse=True)
        return entries
