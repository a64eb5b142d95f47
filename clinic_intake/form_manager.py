"""
form_manager.py
===============
Service layer for dynamic forms:
 - Form template store (admin CRUD, form type lookup)
 - Submission recorder (validates, triages clinical wizard answers, stores)
 - Submission queries for patients and the admin triage list
"""

import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import config
from .exceptions import ConflictError, InvalidRequestError, NotFoundError, PersistenceError
from .models import FormSubmission, FormTemplate, FormType, Priority
from .priority import calculate_priority
from .schemas import TemplateRequest

logger = logging.getLogger(__name__)

# Review order of the admin triage list; unprioritised submissions go last
PRIORITY_RANK = {Priority.high: 0, Priority.medium: 1, Priority.low: 2}

CLINICAL_WIZARD_TITLE = "Historia Clínica Inicial"


# ---------------------------------------------------------------------------
# FORM TEMPLATE STORE
# ---------------------------------------------------------------------------

def template_to_dict(template: FormTemplate) -> Dict[str, Any]:
    return {
        "id": template.id,
        "title": template.title,
        "description": template.description,
        "structure": template.structure or [],
        "formType": template.form_type.value,
    }


def list_templates(db: Session) -> List[FormTemplate]:
    """All templates, newest first."""
    return (
        db.query(FormTemplate)
        .order_by(FormTemplate.created_at.desc(), FormTemplate.id.desc())
        .all()
    )


def get_template(db: Session, template_id: int) -> FormTemplate:
    template = db.get(FormTemplate, template_id)
    if not template:
        raise NotFoundError("Form not found", resource="form_template")
    return template


def get_form_type(db: Session, template_id: int) -> Optional[FormType]:
    """Form type of a template, or None when the template does not exist."""
    try:
        template = db.get(FormTemplate, template_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error looking up form template %s", template_id)
        raise PersistenceError(details={"template_id": template_id}) from exc
    return template.form_type if template else None


def _submission_count(db: Session, template_id: int) -> int:
    return db.query(FormSubmission).filter(FormSubmission.template_id == template_id).count()


def _check_template_request(req: TemplateRequest) -> None:
    if not req.title or req.structure is None:
        raise InvalidRequestError("Title and structure are required")


def create_template(db: Session, req: TemplateRequest) -> FormTemplate:
    _check_template_request(req)
    template = FormTemplate(
        title=req.title,
        description=req.description,
        structure=[q.model_dump(exclude_none=True, mode="json") for q in req.structure],
        form_type=req.formType,
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    logger.info("Created form template %s (%s)", template.id, template.form_type.value)
    return template


def update_template(db: Session, template_id: int, req: TemplateRequest) -> FormTemplate:
    _check_template_request(req)
    template = db.get(FormTemplate, template_id)
    if not template:
        raise NotFoundError("Form template not found", resource="form_template")

    changes_type = "formType" in req.model_fields_set and req.formType != template.form_type
    if changes_type:
        # Stored priorities were decided by the current form type
        in_use = _submission_count(db, template_id)
        if in_use:
            raise ConflictError(
                "Form type cannot change on a template that has submissions",
                details={"submissions": in_use},
            )

    template.title = req.title
    template.description = req.description
    template.structure = [q.model_dump(exclude_none=True, mode="json") for q in req.structure]
    if changes_type:
        template.form_type = req.formType
    db.commit()
    db.refresh(template)
    logger.info("Updated form template %s", template.id)
    return template


def delete_template(db: Session, template_id: int) -> None:
    template = db.get(FormTemplate, template_id)
    if not template:
        raise NotFoundError("Form template not found", resource="form_template")

    # Submissions are historical records and keep their template
    in_use = _submission_count(db, template_id)
    if in_use:
        raise ConflictError(
            "Form template has submissions and cannot be deleted",
            details={"submissions": in_use},
        )

    db.delete(template)
    db.commit()
    logger.info("Deleted form template %s", template_id)


def seed_clinical_wizard(db: Session) -> None:
    """Make sure one clinical wizard template exists."""
    exists = db.query(FormTemplate).filter(FormTemplate.form_type == FormType.clinical_wizard).count()
    if exists:
        return
    db.add(FormTemplate(
        title=CLINICAL_WIZARD_TITLE,
        description="Formulario clínico guiado: datos generales, motivo de consulta, "
                    "mapa corporal del dolor, diagnóstico MTC y lengua.",
        structure=[],
        form_type=FormType.clinical_wizard,
    ))
    db.commit()
    logger.info("Seeded clinical wizard template")


# ---------------------------------------------------------------------------
# SUBMISSION RECORDER
# ---------------------------------------------------------------------------

def insert_submission(
    db: Session,
    template_id: int,
    patient_id: Optional[int],
    answers_json: str,
    priority: Optional[Priority],
) -> FormSubmission:
    """Single insert; on failure the session is rolled back and nothing is stored."""
    submission = FormSubmission(
        template_id=template_id,
        patient_id=patient_id,
        answers=answers_json,
        priority=priority,
    )
    try:
        db.add(submission)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error saving form submission")
        raise PersistenceError(details={"template_id": template_id}) from exc
    db.refresh(submission)
    return submission


def record_submission(
    db: Session,
    patient_id: Optional[int],
    template_id: Optional[int],
    answers: Any,
) -> FormSubmission:
    """
    Store a patient's answers.

    Steps:
      1. Reject missing templateId / answers before touching the database
      2. Look up the template's form type
      3. Classify the answers only for clinical wizard templates
      4. Insert the submission with its frozen priority
    """
    if not template_id or answers is None:
        raise InvalidRequestError("templateId and answers are required")
    if not isinstance(answers, dict):
        raise InvalidRequestError("answers must be a JSON object")

    priority = None
    form_type = get_form_type(db, template_id)
    if form_type is None:
        if config.STRICT_TEMPLATE_LOOKUP:
            raise NotFoundError("Form not found", resource="form_template")
        logger.warning("Submission for unknown template %s stored without priority", template_id)
    elif form_type == FormType.clinical_wizard:
        priority = calculate_priority(answers)

    submission = insert_submission(
        db, template_id, patient_id, json.dumps(answers, ensure_ascii=False), priority
    )
    logger.info(
        "Stored submission %s (template=%s, patient=%s, priority=%s)",
        submission.id, template_id, patient_id, priority.value if priority else None,
    )
    return submission


# ---------------------------------------------------------------------------
# SUBMISSION QUERIES
# ---------------------------------------------------------------------------

def load_answers(submission: FormSubmission) -> Any:
    """Parse the stored answers JSON back into a document."""
    return json.loads(submission.answers)


def submission_summary(submission: FormSubmission) -> Dict[str, Any]:
    template = submission.template
    patient = submission.patient
    return {
        "id": submission.id,
        "templateId": submission.template_id,
        "templateTitle": template.title if template else None,
        "patientId": submission.patient_id,
        "patientName": patient.name if patient else None,
        "priority": submission.priority.value if submission.priority else None,
        "submissionDate": submission.submission_date,
    }


def list_patient_submissions(db: Session, patient_id: int) -> List[Dict[str, Any]]:
    """A patient's own submissions, newest first."""
    rows = (
        db.query(FormSubmission)
        .filter(FormSubmission.patient_id == patient_id)
        .order_by(FormSubmission.submission_date.desc(), FormSubmission.id.desc())
        .all()
    )
    return [
        {
            "id": s.id,
            "submissionDate": s.submission_date,
            "title": s.template.title if s.template else None,
            "templateId": s.template_id,
        }
        for s in rows
    ]


def list_submissions(db: Session, priority: Optional[Priority] = None) -> List[FormSubmission]:
    """Admin triage list: high, medium, low, then unprioritised; newest first within a tier."""
    query = db.query(FormSubmission)
    if priority is not None:
        query = query.filter(FormSubmission.priority == priority)
    rows = query.order_by(FormSubmission.submission_date.desc(), FormSubmission.id.desc()).all()
    # sorted() is stable, so recency order is kept inside each tier
    return sorted(rows, key=lambda s: PRIORITY_RANK.get(s.priority, len(PRIORITY_RANK)))


def get_submission(db: Session, submission_id: int) -> FormSubmission:
    submission = db.get(FormSubmission, submission_id)
    if not submission:
        raise NotFoundError("Submission not found", resource="form_submission")
    return submission
