"""
main.py
========
FastAPI entry point for the clinic intake backend.
It:
 - Initializes the database.
 - Seeds the admin account and the clinical wizard template if missing.
 - Exposes REST endpoints for auth, form templates and form submissions.
 - Handles WebSocket connections for admin dashboard alerts.
"""

import logging
from typing import List, Optional

import jwt
from fastapi import BackgroundTasks, Depends, FastAPI, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import __version__, config
from .auth import authenticate, create_token, decode_token, get_current_user, register_patient, require_admin, seed_admin
from .db import SessionLocal, get_db, init_db
from .exceptions import ClinicError
from .form_manager import (
    create_template,
    delete_template,
    get_submission,
    get_template,
    list_patient_submissions,
    list_submissions,
    list_templates,
    load_answers,
    record_submission,
    seed_clinical_wizard,
    submission_summary,
    template_to_dict,
    update_template,
)
from .logging_config import setup_logging
from .models import Base, Priority, Role
from .notifications import notify_high_priority, register_ws, unregister_ws
from .schemas import (
    LoginRequest,
    PatientSubmission,
    RegisterRequest,
    SubmissionCreated,
    SubmissionDetail,
    SubmissionRequest,
    SubmissionSummary,
    TemplateRequest,
    TemplateResponse,
    TokenResponse,
)

setup_logging(config.LOG_LEVEL, config.LOG_FILE)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# APP INITIALIZATION
# ---------------------------------------------------------------------------

app = FastAPI(title="Clinic Intake Backend", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ---------------------------------------------------------------------------
# APP STARTUP EVENT
# ---------------------------------------------------------------------------
@app.on_event("startup")
async def startup_event():
    """
    Called when FastAPI starts.
    Creates tables and seeds the admin account and clinical wizard template.
    """
    logger.info("Starting Clinic Intake Backend...")
    init_db(Base)

    db = SessionLocal()
    try:
        seed_admin(db)
        seed_clinical_wizard(db)
    finally:
        db.close()


# ---------------------------------------------------------------------------
# AUTH ENDPOINTS
# ---------------------------------------------------------------------------

@app.post("/api/auth/register", status_code=201, response_model=TokenResponse)
def api_register(req: RegisterRequest, db: Session = Depends(get_db)):
    """Register a patient account and return a token."""
    user = register_patient(db, req.email, req.password, req.name)
    return {"token": create_token(user)}


@app.post("/api/auth/login", response_model=TokenResponse)
def api_login(req: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email/password for a token."""
    user = authenticate(db, req.email, req.password)
    return {"token": create_token(user)}


# ---------------------------------------------------------------------------
# FORM TEMPLATE ENDPOINTS
# ---------------------------------------------------------------------------

@app.get("/api/forms/templates", response_model=List[TemplateResponse])
def api_list_templates(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """List all form templates, newest first."""
    return [template_to_dict(t) for t in list_templates(db)]


@app.post("/api/forms/templates", status_code=201, response_model=TemplateResponse)
def api_create_template(
    req: TemplateRequest,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Admin: create a form template."""
    return template_to_dict(create_template(db, req))


@app.get("/api/forms/templates/{template_id}", response_model=TemplateResponse)
def api_get_template(template_id: int, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get the structure of one form."""
    return template_to_dict(get_template(db, template_id))


@app.put("/api/forms/templates/{template_id}", response_model=TemplateResponse)
def api_update_template(
    template_id: int,
    req: TemplateRequest,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Admin: replace a template's title, description and structure."""
    return template_to_dict(update_template(db, template_id, req))


@app.delete("/api/forms/templates/{template_id}", status_code=204)
def api_delete_template(template_id: int, admin: dict = Depends(require_admin), db: Session = Depends(get_db)):
    """Admin: delete a template that has no submissions."""
    delete_template(db, template_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# FORM SUBMISSION ENDPOINTS
# ---------------------------------------------------------------------------

@app.post("/api/forms/submissions", status_code=201, response_model=SubmissionCreated)
async def api_submit_form(
    req: SubmissionRequest,
    background_tasks: BackgroundTasks,
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Submit answers to a form.

    - Clinical wizard answers are triaged into high / medium / low
    - High priority submissions alert the clinic staff after the response is sent
    - Returns the new submission id and date
    """
    submission = record_submission(db, user.get("id"), req.templateId, req.answers)

    if submission.priority == Priority.high:
        title = submission.template.title if submission.template else None
        background_tasks.add_task(notify_high_priority, submission.id, user.get("name"), title)

    return {"id": submission.id, "submission_date": submission.submission_date}


@app.get("/api/forms/my-submissions", response_model=List[PatientSubmission])
def api_my_submissions(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """The logged-in patient's submissions, newest first."""
    return list_patient_submissions(db, user.get("id"))


@app.get("/api/forms/submissions", response_model=List[SubmissionSummary])
def api_list_submissions(
    priority: Optional[Priority] = None,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Admin: triage list ordered by priority, then most recent."""
    return [submission_summary(s) for s in list_submissions(db, priority)]


@app.get("/api/forms/submissions/{submission_id}", response_model=SubmissionDetail)
def api_get_submission(submission_id: int, admin: dict = Depends(require_admin), db: Session = Depends(get_db)):
    """Admin: one submission with its answers."""
    submission = get_submission(db, submission_id)
    return {**submission_summary(submission), "answers": load_answers(submission)}


# ---------------------------------------------------------------------------
# WEBSOCKET ENDPOINT
# ---------------------------------------------------------------------------

@app.websocket("/ws/admin")
async def websocket_admin(ws: WebSocket, token: str = ""):
    """
    WebSocket endpoint for admin dashboards.
    Connect with ?token=<admin JWT> to receive high priority intake alerts.
    """
    try:
        claims = decode_token(token)
    except jwt.PyJWTError:
        await ws.close(code=1008)
        return
    if claims.get("role") != Role.admin.value:
        await ws.close(code=1008)
        return

    await ws.accept()
    register_ws(ws)
    try:
        while True:
            data = await ws.receive_text()
            await ws.send_text(f"Echo: {data}")
    except WebSocketDisconnect:
        unregister_ws(ws)


# ---------------------------------------------------------------------------
# ROOT ENDPOINT
# ---------------------------------------------------------------------------

@app.get("/")
def root():
    """Basic health check endpoint."""
    return {"message": "Clinic Intake Backend is running!"}
