from fastapi import APIRouter, Depends

from healthsync.auth import get_current_user, UserPrincipal
from healthsync.schemas.patient import (
    AuthoredDiagnosisListResponse,
    AuthoredDiagnosisResponse,
    DiagnosisCreate,
    DiagnosisCreatedResponse,
    DiagnosisListResponse,
    DiagnosisResponse,
    PatientCreate,
    PatientEnvelope,
    PatientListResponse,
    PatientResponse,
    PatientSummary,
    PatientUpdate,
)
from healthsync.dependencies import get_diagnosis_service, get_patient_service
from healthsync.services.diagnosis_service import DiagnosisService
from healthsync.services.patient_service import PatientService

router = APIRouter()


@router.post("", response_model=PatientResponse, status_code=201)
async def create_patient(
    data: PatientCreate,
    patients: PatientService = Depends(get_patient_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    patient = await patients.create(current_user, data.name, data.age, data.icd11, data.disease)
    return PatientResponse.model_validate(patient)


@router.get("/diagnosis", response_model=AuthoredDiagnosisListResponse)
async def list_my_diagnoses(
    diagnoses: DiagnosisService = Depends(get_diagnosis_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    """Every diagnosis the caller authored, across all patients."""
    entries = await diagnoses.list_authored_by(current_user)
    return AuthoredDiagnosisListResponse(
        diagnosis=[
            AuthoredDiagnosisResponse(
                **DiagnosisResponse.model_validate(entry).model_dump(),
                patient_id=patient.id,
                patient_name=patient.name,
                patient=PatientSummary.model_validate(patient),
            )
            for patient, entry in entries
        ]
    )


@router.get("", response_model=PatientListResponse)
async def list_patients(
    patients: PatientService = Depends(get_patient_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    owned = await patients.list_owned(current_user)
    return PatientListResponse(patients=[PatientResponse.model_validate(p) for p in owned])


@router.get("/{patient_id}", response_model=PatientEnvelope)
async def get_patient(
    patient_id: str,
    patients: PatientService = Depends(get_patient_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    patient = await patients.get(patient_id)
    return PatientEnvelope(patient=PatientResponse.model_validate(patient))


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: str,
    data: PatientUpdate,
    patients: PatientService = Depends(get_patient_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    patient = await patients.update(current_user, patient_id, data.model_dump(exclude_unset=True))
    return PatientResponse.model_validate(patient)


@router.delete("/{patient_id}")
async def delete_patient(
    patient_id: str,
    patients: PatientService = Depends(get_patient_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    await patients.delete(current_user, patient_id)
    return {"ok": True}


@router.post("/{patient_id}/diagnosis", response_model=DiagnosisCreatedResponse, status_code=201)
async def add_diagnosis(
    patient_id: str,
    data: DiagnosisCreate,
    diagnoses: DiagnosisService = Depends(get_diagnosis_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    outcome = await diagnoses.add_diagnosis(
        current_user,
        patient_id,
        notes=data.notes,
        icd11=data.icd11,
        disease=data.disease,
    )
    return DiagnosisCreatedResponse(
        diagnosis=DiagnosisResponse.model_validate(outcome.result),
        side_effect_warnings=outcome.side_effect_warnings,
    )


@router.get("/{patient_id}/diagnosis", response_model=DiagnosisListResponse)
async def list_patient_diagnoses(
    patient_id: str,
    diagnoses: DiagnosisService = Depends(get_diagnosis_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    entries = await diagnoses.list_for_patient(patient_id)
    return DiagnosisListResponse(diagnosis=[DiagnosisResponse.model_validate(d) for d in entries])
