from fastapi import APIRouter, Depends

from healthsync.auth import get_current_user, UserPrincipal
from healthsync.dependencies import get_assignment_service, get_organization_service
from healthsync.schemas.organization import (
    DoctorDiagnosis,
    DoctorOverview,
    OrganizationDoctorsResponse,
    OrganizationListResponse,
    OrganizationRef,
    OrganizationResponse,
    OrganizationSummary,
)
from healthsync.schemas.patient import (
    AssignRequest,
    AssignResponse,
    OrganizationPatientCreate,
    PatientListResponse,
    PatientResponse,
)
from healthsync.services.assignment_service import AssignmentService
from healthsync.services.organization_service import OrganizationService

router = APIRouter()


@router.get("", response_model=OrganizationListResponse)
async def list_organizations(organizations: OrganizationService = Depends(get_organization_service)):
    orgs = await organizations.list_all()
    return OrganizationListResponse(organizations=[OrganizationSummary.model_validate(o) for o in orgs])


@router.get("/{org_id}", response_model=OrganizationResponse)
async def get_organization(org_id: str, organizations: OrganizationService = Depends(get_organization_service)):
    return OrganizationResponse.model_validate(await organizations.get(org_id))


@router.get("/{org_id}/doctors", response_model=OrganizationDoctorsResponse)
async def list_organization_doctors(
    org_id: str,
    organizations: OrganizationService = Depends(get_organization_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    org, doctors = await organizations.doctors_overview(current_user, org_id)
    return OrganizationDoctorsResponse(
        organization=OrganizationRef.model_validate(org),
        doctors=[
            DoctorOverview(
                id=d["id"],
                email=d["email"],
                profile=d["profile"],
                patients=[PatientResponse.model_validate(p) for p in d["patients"]],
                diagnoses=[DoctorDiagnosis(**x) for x in d["diagnoses"]],
            )
            for d in doctors
        ],
    )


@router.get("/{org_id}/unassigned", response_model=PatientListResponse)
async def list_unassigned_patients(
    org_id: str,
    organizations: OrganizationService = Depends(get_organization_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    patients = await organizations.unassigned_patients(current_user, org_id)
    return PatientListResponse(patients=[PatientResponse.model_validate(p) for p in patients])


@router.post("/{org_id}/patients", response_model=PatientResponse, status_code=201)
async def create_organization_patient(
    org_id: str,
    data: OrganizationPatientCreate,
    organizations: OrganizationService = Depends(get_organization_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    patient = await organizations.create_patient(current_user, org_id, data.name, data.age)
    return PatientResponse.model_validate(patient)


@router.post("/{org_id}/patients/{patient_id}/assign", response_model=AssignResponse)
async def assign_patient(
    org_id: str,
    patient_id: str,
    data: AssignRequest,
    assignments: AssignmentService = Depends(get_assignment_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    """Assign the patient to a doctor of the organization, or back to the admin when doctorId is null."""
    outcome = await assignments.assign_patient(current_user, org_id, patient_id, data.doctor_id)
    return AssignResponse(
        ok=True,
        patient=PatientResponse.model_validate(outcome.result),
        side_effect_warnings=outcome.side_effect_warnings,
    )
