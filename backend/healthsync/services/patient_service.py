from typing import Any, Optional

import structlog

from healthsync.auth import UserPrincipal
from healthsync.exceptions import Forbidden, NotFound, ValidationError
from healthsync.ownership import HeldByDoctor
from healthsync.records import PatientRecord
from healthsync.stores.base import Storage

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = ("name", "age", "icd11", "disease")


class PatientService:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def create(
        self,
        requester: UserPrincipal,
        name: Optional[str],
        age: Optional[int],
        icd11: Optional[str],
        disease: Optional[str] = None,
    ) -> PatientRecord:
        if not name or not age or not icd11:
            raise ValidationError("name, age and icd11 required")
        patient = await self.storage.patients.create(
            name,
            int(age),
            HeldByDoctor(requester.id),
            icd11=icd11,
            disease=str(disease) if disease else None,
        )
        logger.info("patient_created", patient_id=patient.id, created_by=requester.id)
        return patient

    async def list_owned(self, requester: UserPrincipal) -> list[PatientRecord]:
        return await self.storage.patients.list_by_owner(requester.id, limit=50)

    async def get(self, patient_id: str) -> PatientRecord:
        patient = await self.storage.patients.get(patient_id)
        if not patient:
            raise NotFound("patient not found")
        return patient

    async def _get_owned(self, requester: UserPrincipal, patient_id: str) -> PatientRecord:
        patient = await self.storage.patients.get(patient_id)
        if not patient:
            raise NotFound("not found")
        owner = patient.created_by
        if owner and owner != requester.id:
            raise Forbidden("forbidden")
        return patient

    async def update(self, requester: UserPrincipal, patient_id: str, changes: dict[str, Any]) -> PatientRecord:
        fields = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS and value is not None}
        if not fields:
            raise ValidationError("nothing to update")
        if "name" in fields and not str(fields["name"]).strip():
            raise ValidationError("name cannot be empty")
        if "age" in fields:
            fields["age"] = int(fields["age"])
        if "disease" in fields:
            fields["disease"] = str(fields["disease"])
        await self._get_owned(requester, patient_id)
        updated = await self.storage.patients.update_fields(patient_id, fields)
        if not updated:
            raise NotFound("not found")
        logger.info("patient_updated", patient_id=patient_id, fields=sorted(fields))
        return updated

    async def delete(self, requester: UserPrincipal, patient_id: str) -> None:
        await self._get_owned(requester, patient_id)
        await self.storage.patients.delete(patient_id)
        logger.info("patient_deleted", patient_id=patient_id, deleted_by=requester.id)
