"""Organization (recruiting team) and sub-group models."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, Integer, Text
from sqlalchemy.orm import relationship

from portal_backend.core.base import Base
from portal_backend.core.custom_types import GUID


class Organization(Base):
    """A team that runs recruiting cycles."""

    __tablename__ = "organizations"

    id = Column(GUID(), primary_key=True, default=uuid4)
    slug = Column(String(100), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    contact_email = Column(String(255), nullable=True)
    is_recruiting = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    subteams = relationship("Subteam", back_populates="organization", cascade="all, delete-orphan")
    cycles = relationship("RecruitingCycle", back_populates="organization")

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, slug='{self.slug}')>"


class Subteam(Base):
    """Sub-group of an organization that candidates may choose to apply to."""

    __tablename__ = "subteams"

    id = Column(GUID(), primary_key=True, default=uuid4)
    organization_id = Column(GUID(), ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_recruiting = Column(Boolean, default=True, nullable=False)
    open_positions = Column(Integer, nullable=True)

    organization = relationship("Organization", back_populates="subteams")

    def __repr__(self) -> str:
        return f"<Subteam(id={self.id}, name='{self.name}')>"
