from datetime import datetime
from typing import Optional

from healthsync.schemas.base import CamelModel


class DiagnosisCreate(CamelModel):
    icd11: Optional[str] = None
    disease: Optional[str] = None
    notes: Optional[str] = None


class DiagnosisResponse(CamelModel):
    id: str
    icd11: Optional[str] = None
    disease: Optional[str] = None
    notes: str
    created_at: Optional[datetime] = None
    created_by: str


class DiagnosisCreatedResponse(CamelModel):
    diagnosis: DiagnosisResponse
    side_effect_warnings: list[str] = []


class DiagnosisListResponse(CamelModel):
    diagnosis: list[DiagnosisResponse]


class PatientSummary(CamelModel):
    id: str
    name: str
    age: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthoredDiagnosisResponse(DiagnosisResponse):
    patient_id: str
    patient_name: str
    patient: PatientSummary


class AuthoredDiagnosisListResponse(CamelModel):
    diagnosis: list[AuthoredDiagnosisResponse]


class PatientCreate(CamelModel):
    name: Optional[str] = None
    age: Optional[int] = None
    icd11: Optional[str] = None
    disease: Optional[str] = None


class OrganizationPatientCreate(CamelModel):
    name: Optional[str] = None
    age: Optional[int] = None


class PatientUpdate(CamelModel):
    name: Optional[str] = None
    age: Optional[int] = None
    icd11: Optional[str] = None
    disease: Optional[str] = None


class PatientResponse(CamelModel):
    id: str
    name: str
    age: Optional[int] = None
    icd11: Optional[str] = None
    disease: Optional[str] = None
    created_by: Optional[str] = None
    assigned_at: Optional[datetime] = None
    ownership_state: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    diagnosis: list[DiagnosisResponse] = []


class PatientEnvelope(CamelModel):
    patient: PatientResponse


class PatientListResponse(CamelModel):
    patients: list[PatientResponse]


class AssignRequest(CamelModel):
    doctor_id: Optional[str] = None


class AssignResponse(CamelModel):
    ok: bool = True
    patient: PatientResponse
    side_effect_warnings: list[str] = []
