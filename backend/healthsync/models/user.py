from sqlalchemy import Column, String, DateTime, JSON
from healthsync.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(320), unique=True, nullable=False, index=True)
    password_hash = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False)  # "doctor" | "organization"
    profile = Column(JSON, default=dict)
    # Mirrors profile["organizationId"] so membership can be queried
    organization_id = Column(String(36), index=True)
    created_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True))
