"""
test_templates.py
=================
Form template store: listing, admin CRUD and role checks.
"""

from clinic_intake.db import SessionLocal
from clinic_intake.form_manager import get_form_type
from clinic_intake.models import FormType

STRUCTURE = [
    {"id": "q1", "type": "text", "label": "Alergias", "required": False},
    {"id": "q2", "type": "select", "label": "Fumador", "options": ["Sí", "No"], "required": True},
]


def test_clinical_wizard_is_seeded(client, patient_headers):
    res = client.get("/api/forms/templates", headers=patient_headers)
    assert res.status_code == 200
    wizards = [t for t in res.json() if t["formType"] == "clinical_wizard"]
    assert len(wizards) == 1
    assert wizards[0]["title"] == "Historia Clínica Inicial"


def test_create_and_get_template(client, admin_headers, patient_headers):
    res = client.post("/api/forms/templates", headers=admin_headers, json={
        "title": "Antecedentes", "description": "Historia médica", "structure": STRUCTURE,
    })
    assert res.status_code == 201
    created = res.json()
    assert created["formType"] == "generic"
    assert created["structure"] == STRUCTURE

    fetched = client.get(f"/api/forms/templates/{created['id']}", headers=patient_headers)
    assert fetched.status_code == 200
    assert fetched.json() == created


def test_templates_listed_newest_first(client, admin_headers, wizard_id, generic_id):
    res = client.get("/api/forms/templates", headers=admin_headers)
    assert [t["id"] for t in res.json()][:2] == [generic_id, wizard_id]


def test_create_clinical_wizard_template(client, admin_headers):
    res = client.post("/api/forms/templates", headers=admin_headers, json={
        "title": "Seguimiento", "structure": [], "formType": "clinical_wizard",
    })
    assert res.status_code == 201

    db = SessionLocal()
    try:
        assert get_form_type(db, res.json()["id"]) == FormType.clinical_wizard
        assert get_form_type(db, 999) is None
    finally:
        db.close()


def test_create_requires_title_and_structure(client, admin_headers):
    res = client.post("/api/forms/templates", headers=admin_headers, json={"title": "Sin estructura"})
    assert res.status_code == 400
    assert res.json()["detail"] == "Title and structure are required"

    res = client.post("/api/forms/templates", headers=admin_headers, json={"structure": STRUCTURE})
    assert res.status_code == 400


def test_invalid_question_type(client, admin_headers):
    res = client.post("/api/forms/templates", headers=admin_headers, json={
        "title": "Mala", "structure": [{"id": "q1", "type": "slider", "label": "x"}],
    })
    assert res.status_code == 422


def test_patient_cannot_create(client, patient_headers):
    res = client.post("/api/forms/templates", headers=patient_headers, json={
        "title": "X", "structure": [],
    })
    assert res.status_code == 403


def test_update_template(client, admin_headers, generic_id):
    res = client.put(f"/api/forms/templates/{generic_id}", headers=admin_headers, json={
        "title": "Encuesta v2", "description": None, "structure": STRUCTURE,
    })
    assert res.status_code == 200
    body = res.json()
    assert body["title"] == "Encuesta v2"
    assert body["structure"] == STRUCTURE
    assert body["formType"] == "generic"


def test_update_missing_template(client, admin_headers):
    res = client.put("/api/forms/templates/999", headers=admin_headers, json={
        "title": "X", "structure": [],
    })
    assert res.status_code == 404
    assert res.json()["detail"] == "Form template not found"


def test_get_missing_template(client, patient_headers):
    res = client.get("/api/forms/templates/999", headers=patient_headers)
    assert res.status_code == 404
    assert res.json()["detail"] == "Form not found"


def test_delete_template(client, admin_headers, generic_id):
    res = client.delete(f"/api/forms/templates/{generic_id}", headers=admin_headers)
    assert res.status_code == 204
    assert client.delete(f"/api/forms/templates/{generic_id}", headers=admin_headers).status_code == 404


def test_delete_template_with_submissions(client, admin_headers, patient_headers, generic_id):
    client.post("/api/forms/submissions", headers=patient_headers,
                json={"templateId": generic_id, "answers": {"q1": "Sí"}})
    res = client.delete(f"/api/forms/templates/{generic_id}", headers=admin_headers)
    assert res.status_code == 409
    assert res.json()["error"] == "CONFLICT"


def test_form_type_locked_once_submitted(client, admin_headers, patient_headers, generic_id):
    """
    ✅ Changing formType on a template with submissions.
    Expected: 409 and the template keeps its type.
    """
    client.post("/api/forms/submissions", headers=patient_headers,
                json={"templateId": generic_id, "answers": {"q1": "Sí"}})

    res = client.put(f"/api/forms/templates/{generic_id}", headers=admin_headers, json={
        "title": "Encuesta", "structure": [], "formType": "clinical_wizard",
    })
    assert res.status_code == 409
    assert res.json()["error"] == "CONFLICT"

    fetched = client.get(f"/api/forms/templates/{generic_id}", headers=admin_headers).json()
    assert fetched["formType"] == "generic"
    assert fetched["title"] == "Encuesta de satisfacción"


def test_form_type_change_without_submissions(client, admin_headers, generic_id):
    res = client.put(f"/api/forms/templates/{generic_id}", headers=admin_headers, json={
        "title": "Ahora clínico", "structure": [], "formType": "clinical_wizard",
    })
    assert res.status_code == 200
    assert res.json()["formType"] == "clinical_wizard"


def test_same_form_type_allowed_with_submissions(client, admin_headers, patient_headers, generic_id):
    client.post("/api/forms/submissions", headers=patient_headers,
                json={"templateId": generic_id, "answers": {"q1": "No"}})
    res = client.put(f"/api/forms/templates/{generic_id}", headers=admin_headers, json={
        "title": "Encuesta v3", "structure": STRUCTURE, "formType": "generic",
    })
    assert res.status_code == 200
    assert res.json()["title"] == "Encuesta v3"
