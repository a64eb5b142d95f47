"""
models.py
=========
SQLAlchemy ORM models for the clinic intake backend.
Contains tables for:
 - User (patients and admins)
 - FormTemplate
 - FormSubmission
"""

import datetime
import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base, relationship

# SQLAlchemy Base class
Base = declarative_base()


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


# ---------------------------------------------------------------------------
# ENUM DEFINITIONS
# ---------------------------------------------------------------------------

class Role(str, enum.Enum):
    """Account roles."""
    admin = "admin"
    patient = "patient"


class FormType(str, enum.Enum):
    """Kinds of form templates an admin can publish."""
    generic = "generic"
    clinical_wizard = "clinical_wizard"


class Priority(str, enum.Enum):
    """Triage tier attached to clinical wizard submissions."""
    high = "high"
    medium = "medium"
    low = "low"


# ---------------------------------------------------------------------------
# TABLE DEFINITIONS
# ---------------------------------------------------------------------------

class User(Base):
    """Stores login credentials and role."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(Role), nullable=False, default=Role.patient)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow)


class FormTemplate(Base):
    """Admin-defined question structure."""
    __tablename__ = "form_templates"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    structure = Column(JSON, nullable=False, default=list)  # list of Question dicts
    form_type = Column(Enum(FormType), nullable=False, default=FormType.generic)
    created_at = Column(DateTime, default=_utcnow)

    submissions = relationship("FormSubmission", back_populates="template")


class FormSubmission(Base):
    """
    A patient's answers to a template. Written once, never updated.
    ``priority`` is set only for clinical wizard templates.
    """
    __tablename__ = "form_submissions"

    id = Column(Integer, primary_key=True)
    template_id = Column(Integer, ForeignKey("form_templates.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    answers = Column(Text, nullable=False)  # JSON text, stored verbatim
    priority = Column(Enum(Priority), nullable=True)
    submission_date = Column(DateTime, default=_utcnow)

    template = relationship("FormTemplate", back_populates="submissions")
    patient = relationship("User")
