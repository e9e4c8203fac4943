"""FastAPI dependencies resolving the per-process storage and gateway."""

from fastapi import Depends, Request

from healthsync.services.account_service import AccountService
from healthsync.services.assignment_service import AssignmentService
from healthsync.services.diagnosis_service import DiagnosisService
from healthsync.services.icd11_service import Icd11Client
from healthsync.services.notification_service import NotificationService
from healthsync.services.organization_service import OrganizationService
from healthsync.services.patient_service import PatientService
from healthsync.services.realtime_gateway import RealtimeGateway
from healthsync.stores.base import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_gateway(request: Request) -> RealtimeGateway:
    return request.app.state.gateway


def get_notification_service(
    storage: Storage = Depends(get_storage),
    gateway: RealtimeGateway = Depends(get_gateway),
) -> NotificationService:
    return NotificationService(storage.notifications, gateway)


def get_organization_service(storage: Storage = Depends(get_storage)) -> OrganizationService:
    return OrganizationService(storage)


def get_assignment_service(
    storage: Storage = Depends(get_storage),
    organizations: OrganizationService = Depends(get_organization_service),
    notifications: NotificationService = Depends(get_notification_service),
) -> AssignmentService:
    return AssignmentService(storage, organizations, notifications)


def get_diagnosis_service(
    storage: Storage = Depends(get_storage),
    notifications: NotificationService = Depends(get_notification_service),
    gateway: RealtimeGateway = Depends(get_gateway),
) -> DiagnosisService:
    return DiagnosisService(storage, notifications, gateway)


def get_patient_service(storage: Storage = Depends(get_storage)) -> PatientService:
    return PatientService(storage)


def get_account_service(request: Request, storage: Storage = Depends(get_storage)) -> AccountService:
    return AccountService(storage, mailer=getattr(request.app.state, "mailer", None))


def get_icd11_client(request: Request) -> Icd11Client:
    return request.app.state.icd11_client
