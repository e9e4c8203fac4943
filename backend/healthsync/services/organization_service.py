import re
from typing import Optional

import structlog

from healthsync.auth import UserPrincipal
from healthsync.exceptions import Forbidden, NotFound, ValidationError
from healthsync.ownership import HeldByAdmin
from healthsync.records import ROLE_DOCTOR, OrganizationRecord, PatientRecord
from healthsync.stores.base import Storage

logger = structlog.get_logger(__name__)

SEED_ORGANIZATIONS = [
    {"name": "Community Clinic A", "slug": "community-clinic-a"},
    {"name": "General Hospital B", "slug": "general-hospital-b"},
    {"name": "Independent Practice C", "slug": "independent-practice-c"},
]


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", str(name).lower().strip())
    return slug.strip("-")


class OrganizationService:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def seed(self) -> int:
        """Insert the default organizations when none exist. Idempotent."""
        if await self.storage.organizations.count() > 0:
            return 0
        for org in SEED_ORGANIZATIONS:
            await self.storage.organizations.create(org["name"], org["slug"])
        logger.info("organizations_seeded", count=len(SEED_ORGANIZATIONS))
        return len(SEED_ORGANIZATIONS)

    async def list_all(self) -> list[OrganizationRecord]:
        return await self.storage.organizations.list_all()

    async def get(self, org_id: str) -> OrganizationRecord:
        org = await self.storage.organizations.get(org_id)
        if not org:
            raise NotFound("organization not found")
        return org

    async def get_administered(self, requester: UserPrincipal, org_id: str) -> OrganizationRecord:
        """Load the organization and require the caller to be its admin."""
        org = await self.get(org_id)
        if not org.admin or str(org.admin) != str(requester.id):
            raise Forbidden("forbidden")
        return org

    async def doctors_overview(self, requester: UserPrincipal, org_id: str) -> tuple[OrganizationRecord, list[dict]]:
        """Doctors of the organization with the patients they hold and the diagnoses they wrote."""
        org = await self.get_administered(requester, org_id)
        doctors = []
        for doctor in await self.storage.users.list_by_organization(org.id, role=ROLE_DOCTOR):
            patients = await self.storage.patients.list_by_owner(doctor.id)
            diagnoses = []
            for patient in patients:
                for entry in patient.diagnosis:
                    if entry.created_by == doctor.id:
                        diagnoses.append({
                            "id": entry.id,
                            "patient_id": patient.id,
                            "patient_name": patient.name,
                            "icd11": entry.icd11,
                            "disease": entry.disease,
                            "notes": entry.notes,
                            "created_at": entry.created_at,
                        })
            doctors.append({
                "id": doctor.id,
                "email": doctor.email,
                "profile": doctor.profile,
                "patients": patients,
                "diagnoses": diagnoses,
            })
        return org, doctors

    async def unassigned_patients(self, requester: UserPrincipal, org_id: str) -> list[PatientRecord]:
        await self.get_administered(requester, org_id)
        return await self.storage.patients.list_by_owner(requester.id, limit=50)

    async def create_patient(
        self, requester: UserPrincipal, org_id: str, name: Optional[str], age: Optional[int]
    ) -> PatientRecord:
        await self.get_administered(requester, org_id)
        name = str(name).strip() if name else ""
        if not name or not age:
            raise ValidationError("name and age required")
        patient = await self.storage.patients.create(name, int(age), HeldByAdmin(requester.id))
        logger.info("patient_created", patient_id=patient.id, org_id=org_id, created_by=requester.id)
        return patient
