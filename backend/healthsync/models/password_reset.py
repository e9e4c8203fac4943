from sqlalchemy import Column, String, Boolean, DateTime
from healthsync.database import Base


class PasswordReset(Base):
    __tablename__ = "password_resets"

    id = Column(String(36), primary_key=True)
    email = Column(String(320), nullable=False, index=True)
    otp = Column(String(6), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True))
    used = Column(Boolean, default=False)
    used_at = Column(DateTime(timezone=True))
