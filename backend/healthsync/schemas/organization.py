from datetime import datetime
from typing import Any, Optional

from healthsync.schemas.base import CamelModel
from healthsync.schemas.patient import PatientResponse


class OrganizationSummary(CamelModel):
    id: str
    name: str


class OrganizationListResponse(CamelModel):
    organizations: list[OrganizationSummary]


class OrganizationResponse(CamelModel):
    id: str
    name: str
    slug: str
    admin: Optional[str] = None
    created_at: Optional[datetime] = None


class DoctorDiagnosis(CamelModel):
    id: str
    patient_id: str
    patient_name: str
    icd11: Optional[str] = None
    disease: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class DoctorOverview(CamelModel):
    id: str
    email: str
    profile: dict[str, Any] = {}
    patients: list[PatientResponse] = []
    diagnoses: list[DoctorDiagnosis] = []


class OrganizationRef(CamelModel):
    id: str
    name: str
    slug: str


class OrganizationDoctorsResponse(CamelModel):
    organization: OrganizationRef
    doctors: list[DoctorOverview]
