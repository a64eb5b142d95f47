"""
priority.py
===========
Triage of clinical wizard submissions into high / medium / low priority.

The rules are an ordered chain: the first rule that matches decides the
tier and later rules are never consulted. Pain severity is checked before
symptom keywords so a single intense pain point always dominates a vague
symptom description.

Answer documents come straight from the client, so they are coerced into
``ClinicalWizardAnswers`` section by section; anything unreadable is
treated as absent and classification never raises.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Tuple

from pydantic import ValidationError

from .models import Priority
from .schemas import (
    BodyPainPoint,
    ClinicalWizardAnswers,
    ConsultationReason,
    GeneralData,
    MTCClassifiers,
)

logger = logging.getLogger(__name__)

# Matched as substrings of the lower-cased consultation reason.
# Accents are significant: "digestion" does not match "digestión".
DIGESTIVE_KEYWORDS = ("digestión", "estómago", "intestinal", "náuseas", "acidez")

ACUTE_ONSET = "Agudo"

# NOTE: the body-map UI emits region ids such as "espalda-inferior"; no
# current client sends "lumbar", so this rule only fires for API callers
# using that literal. Pending confirmation of the body-part vocabulary.
LUMBAR_BODY_PART = "lumbar"

_SECTIONS = (
    ("generalData", GeneralData),
    ("consultationReason", ConsultationReason),
    ("mtc", MTCClassifiers),
)


@dataclass(frozen=True)
class Rule:
    """One link of the priority chain."""
    name: str
    applies: Callable[[ClinicalWizardAnswers], bool]
    priority: Priority


# ---------------------------------------------------------------------------
# DEFENSIVE PARSING
# ---------------------------------------------------------------------------

def parse_answers(raw: Any) -> ClinicalWizardAnswers:
    """
    Coerce an untrusted answer document into ``ClinicalWizardAnswers``.

    Sections that are not objects are dropped, as are body-map points whose
    intensity cannot be read as a number. Text fields the rules read
    (reason, onset, bodyPart) count as absent when they are not strings;
    the remaining fields are informational and accepted as sent. Never raises.
    """
    if isinstance(raw, ClinicalWizardAnswers):
        return raw
    if not isinstance(raw, dict):
        return ClinicalWizardAnswers()

    sections = {}
    for key, model in _SECTIONS:
        value = raw.get(key)
        if not isinstance(value, dict):
            continue
        try:
            sections[key] = model.model_validate(value)
        except ValidationError:
            logger.debug("Ignoring malformed %s section", key)

    points = []
    body_map = raw.get("bodyMap")
    if isinstance(body_map, list):
        for item in body_map:
            if not isinstance(item, dict):
                continue
            try:
                points.append(BodyPainPoint.model_validate(item))
            except ValidationError:
                logger.debug("Ignoring unreadable body-map point %r", item)

    tongue = raw.get("tongue")
    features = [t for t in tongue if isinstance(t, str)] if isinstance(tongue, list) else []

    return ClinicalWizardAnswers(bodyMap=points, tongue=features, **sections)


# ---------------------------------------------------------------------------
# RULE PREDICATES
# ---------------------------------------------------------------------------

def _any_pain_at_least(threshold: float) -> Callable[[ClinicalWizardAnswers], bool]:
    return lambda answers: any(p.intensity >= threshold for p in answers.bodyMap)


def _severe_lumbar_pain(answers: ClinicalWizardAnswers) -> bool:
    return any(
        p.bodyPart == LUMBAR_BODY_PART and p.intensity > 7
        for p in answers.bodyMap
    )


def _digestive_or_acute(answers: ClinicalWizardAnswers) -> bool:
    reason = ""
    if answers.consultationReason and answers.consultationReason.reason:
        reason = answers.consultationReason.reason.lower()
    if any(keyword in reason for keyword in DIGESTIVE_KEYWORDS):
        return True
    return answers.mtc is not None and answers.mtc.onset == ACUTE_ONSET


RULES: Tuple[Rule, ...] = (
    Rule("severe_pain", _any_pain_at_least(8), Priority.high),
    Rule("severe_lumbar_pain", _severe_lumbar_pain, Priority.high),
    Rule("moderate_pain", _any_pain_at_least(5), Priority.medium),
    Rule("digestive_symptoms_or_acute_onset", _digestive_or_acute, Priority.medium),
)


def calculate_priority(answers: Any) -> Priority:
    """
    Classify a clinical wizard answer document.

    Args:
        answers: Raw JSON document (dict) or an already parsed
                 ``ClinicalWizardAnswers``.

    Returns:
        The priority of the first matching rule, ``Priority.low`` otherwise.
    """
    document = parse_answers(answers)
    for rule in RULES:
        if rule.applies(document):
            logger.debug("Priority %s (rule: %s)", rule.priority.value, rule.name)
            return rule.priority
    logger.debug("Priority low (no rule matched)")
    return Priority.low
