"""
schemas.py
==========
Pydantic models used for validating incoming requests, structuring outgoing
API responses and describing the clinical wizard answer document.
Field names follow the JSON the frontend sends (camelCase).
"""

import datetime
import enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .models import FormType, Priority


# ---------------------------------------------------------------------------
# FORM TEMPLATES
# ---------------------------------------------------------------------------

class QuestionType(str, enum.Enum):
    """Input widgets a generic form question can use."""
    text = "text"
    textarea = "textarea"
    select = "select"
    checkbox = "checkbox"
    radio = "radio"


class Question(BaseModel):
    """One question of a generic form template."""
    id: Union[str, int]
    type: QuestionType
    label: str
    options: Optional[List[str]] = None
    required: bool = False


class TemplateRequest(BaseModel):
    """Request body for creating or updating a form template."""
    title: Optional[str] = None
    description: Optional[str] = None
    structure: Optional[List[Question]] = None
    formType: FormType = FormType.generic


class TemplateResponse(BaseModel):
    """Response model for a form template."""
    id: int
    title: str
    description: Optional[str] = None
    structure: List[Dict[str, Any]]
    formType: FormType


# ---------------------------------------------------------------------------
# CLINICAL WIZARD ANSWERS
# ---------------------------------------------------------------------------

def _text_or_none(value: Any) -> Optional[str]:
    """Fields the triage rules read as text; any other type counts as absent."""
    return value if isinstance(value, str) else None


class GeneralData(BaseModel):
    model_config = ConfigDict(extra="allow")

    fullName: Optional[Any] = None
    age: Optional[Any] = None
    gender: Optional[Any] = None
    occupation: Optional[Any] = None
    contact: Optional[Any] = None


class ConsultationReason(BaseModel):
    model_config = ConfigDict(extra="allow")

    reason: Optional[str] = None
    duration: Optional[Any] = None

    @field_validator("reason", mode="before")
    @classmethod
    def reason_as_text(cls, value):
        return _text_or_none(value)


class BodyPainPoint(BaseModel):
    """A single pain location marked on the body map (intensity 0-10)."""
    model_config = ConfigDict(extra="allow")

    bodyPart: Optional[str] = None
    painType: Optional[Any] = None
    intensity: float = 0
    duration: Optional[Any] = None
    view: Optional[Any] = None  # "front" | "back"

    @field_validator("bodyPart", mode="before")
    @classmethod
    def body_part_as_text(cls, value):
        return _text_or_none(value)


class MTCClassifiers(BaseModel):
    """Traditional Chinese Medicine axes: cold/heat, day/night, fullness/emptiness, acute/chronic."""
    model_config = ConfigDict(extra="allow")

    coldHeat: Optional[Any] = None
    dayNight: Optional[Any] = None
    fullEmpty: Optional[Any] = None
    onset: Optional[str] = None

    @field_validator("onset", mode="before")
    @classmethod
    def onset_as_text(cls, value):
        return _text_or_none(value)


class ClinicalWizardAnswers(BaseModel):
    """
    Answer document produced by the clinical intake wizard.
    Every section is optional; a missing section carries no signal.
    """
    model_config = ConfigDict(extra="allow")

    generalData: Optional[GeneralData] = None
    consultationReason: Optional[ConsultationReason] = None
    bodyMap: List[BodyPainPoint] = []
    mtc: Optional[MTCClassifiers] = None
    tongue: List[str] = []


# ---------------------------------------------------------------------------
# SUBMISSIONS
# ---------------------------------------------------------------------------

class SubmissionRequest(BaseModel):
    """Request body for a patient form submission."""
    templateId: Optional[int] = None
    answers: Any = None  # must be a JSON object, checked by the recorder


class SubmissionCreated(BaseModel):
    """Response for a stored submission."""
    id: int
    submission_date: datetime.datetime


class PatientSubmission(BaseModel):
    """Row of the patient's own submission history."""
    id: int
    submissionDate: datetime.datetime
    title: Optional[str] = None
    templateId: int


class SubmissionSummary(BaseModel):
    """Row of the admin triage list."""
    id: int
    templateId: int
    templateTitle: Optional[str] = None
    patientId: Optional[int] = None
    patientName: Optional[str] = None
    priority: Optional[Priority] = None
    submissionDate: datetime.datetime


class SubmissionDetail(SubmissionSummary):
    """Full submission including the stored answers."""
    answers: Any


# ---------------------------------------------------------------------------
# AUTH
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(BaseModel):
    token: str
