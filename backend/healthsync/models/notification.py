from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON
from healthsync.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), index=True)
    read = Column(Boolean, default=False)
    read_at = Column(DateTime(timezone=True))
    data = Column(JSON, default=dict)
    # Mirrors data["patientId"] for the per-patient cleanup query
    patient_id = Column(String(36), index=True)
