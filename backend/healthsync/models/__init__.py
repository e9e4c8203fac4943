from healthsync.models.user import User
from healthsync.models.organization import Organization
from healthsync.models.patient import Patient, Diagnosis
from healthsync.models.notification import Notification
from healthsync.models.password_reset import PasswordReset

__all__ = ["User", "Organization", "Patient", "Diagnosis", "Notification", "PasswordReset"]
