from sqlalchemy import Column, String, DateTime
from healthsync.database import Base


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False, index=True)
    admin = Column(String(36), index=True)
    created_at = Column(DateTime(timezone=True))
