from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from healthsync.database import Base


class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False)
    age = Column(Integer)
    icd11 = Column(String(50))
    disease = Column(String(500))
    created_by = Column(String(36), index=True)
    ownership = Column(String(20), nullable=False)
    assigned_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), index=True)
    updated_at = Column(DateTime(timezone=True))

    diagnosis = relationship(
        "Diagnosis",
        back_populates="patient",
        order_by="Diagnosis.created_at",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class Diagnosis(Base):
    __tablename__ = "patient_diagnoses"

    id         = Column(String(36), primary_key=True)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    icd11      = Column(String(50))
    disease    = Column(String(500))
    notes      = Column(Text, nullable=False)
    created_by = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True))

    patient = relationship("Patient", back_populates="diagnosis")
