"""
notifications.py
================
Alerts for the clinic staff when a high priority intake form arrives:
 - Pushover push notification (optional, needs PUSHOVER_TOKEN / PUSHOVER_USER)
 - WebSocket broadcast to connected admin dashboards
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from fastapi import WebSocket
from starlette.concurrency import run_in_threadpool

from . import config

logger = logging.getLogger(__name__)

PUSHOVER_URL = "https://api.pushover.net/1/messages.json"

# Connected admin dashboard sockets
connected_admins: List[WebSocket] = []

# ---------------------------------------------------------------------------
# Pushover Notification (optional)
# ---------------------------------------------------------------------------

def send_pushover(title: str, message: str, user_key: Optional[str] = None) -> bool:
    """
    Sends a push notification using the Pushover API.
    Returns True when Pushover accepted the message.
    """
    user_key = user_key or config.PUSHOVER_USER
    if not user_key:
        return False  # no pushover user configured

    token = config.PUSHOVER_TOKEN
    if not token:
        logger.warning("Pushover token not configured, skipping notification.")
        return False

    try:
        resp = requests.post(
            PUSHOVER_URL,
            data={"token": token, "user": user_key, "title": title, "message": message},
            timeout=5,
        )
    except requests.RequestException as e:
        logger.error("Pushover send failed: %s", e)
        return False

    if resp.status_code != 200:
        logger.error("Pushover error: %s", resp.text)
        return False
    return True

# ---------------------------------------------------------------------------
# WebSocket Registry
# ---------------------------------------------------------------------------

def register_ws(ws: WebSocket) -> None:
    """Register an admin dashboard connection."""
    connected_admins.append(ws)
    logger.info("Admin dashboard connected (%d active).", len(connected_admins))


def unregister_ws(ws: WebSocket) -> None:
    """Unregister a dashboard connection when disconnected."""
    if ws in connected_admins:
        connected_admins.remove(ws)
    logger.info("Admin dashboard disconnected. Remaining sockets: %d", len(connected_admins))


async def broadcast_to_admins(data: Dict[str, Any]) -> None:
    """Send a JSON message to every connected admin dashboard."""
    for ws in list(connected_admins):
        try:
            await ws.send_json(data)
        except Exception:
            logger.warning("Failed to send WS message, dropping socket")
            unregister_ws(ws)

# ---------------------------------------------------------------------------
# Intake alerts
# ---------------------------------------------------------------------------

async def notify_high_priority(submission_id: int, patient_name: Optional[str], template_title: Optional[str]) -> None:
    """Alert the clinic about a high priority intake submission."""
    who = patient_name or "Un paciente"
    form = template_title or "un formulario"
    # requests is blocking; keep it off the event loop
    await run_in_threadpool(
        send_pushover,
        title="Formulario de alta prioridad",
        message=f"{who} ha enviado {form} con prioridad alta (#{submission_id}).",
    )
    await broadcast_to_admins({
        "event": "high_priority_submission",
        "submission_id": submission_id,
        "patient": patient_name,
    })
